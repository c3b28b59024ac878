"""
Ingestion Pipeline

Drives one item through its lifecycle:
1. Pending → Analyzing (guards against double processing)
2. Load the payload and run the analysis service
3. Analyzing → Completed with descriptors, then spawn a matcher run
4. Analyzing → Failed on any analysis failure (no retry)
"""

import asyncio
import logging
import time
from typing import Optional, Set
from uuid import UUID

from media_match.catalog.catalog import Catalog
from media_match.llm.base import AnalysisError
from media_match.llm.client import AnalysisClient
from media_match.models.media_item import ItemState, MediaItem
from media_match.pipelines.hooks import PipelineHookManager
from media_match.pipelines.match import MatchPipeline
from media_match.storage.media_store import MediaNotFoundError, MediaStore

logger = logging.getLogger("media_match.ingest")


class IngestionPipeline:
    """
    Pipeline for analyzing uploaded items.

    Flow:
    Catalog (analyzing) → Media store → Analysis service →
    Catalog (completed | failed) → background matcher run

    The matcher run is a task owned by this pipeline. Its outcome never
    touches the completed state of the item; `join()` waits for every
    outstanding run.
    """

    def __init__(
        self,
        catalog: Catalog,
        media_store: MediaStore,
        analyzer: AnalysisClient,
        matcher: MatchPipeline,
        hooks: Optional[PipelineHookManager] = None,
    ):
        self.catalog = catalog
        self.media_store = media_store
        self.analyzer = analyzer
        self.matcher = matcher
        self.hooks = hooks if hooks is not None else PipelineHookManager()

        self._match_tasks: Set[asyncio.Task] = set()

    async def process(self, item_id: UUID) -> MediaItem:
        """
        Analyze one pending item.

        Args:
            item_id: A registered, pending item

        Returns:
            The item after its terminal transition (completed or failed)

        Raises:
            ItemNotFoundError: If the id is unknown
            InvalidTransitionError: If the item is not pending
        """
        item = self.catalog.transition(item_id, ItemState.ANALYZING)

        context = {
            "item_id": item_id,
            "display_name": item.display_name,
            "start_time": time.time(),
        }
        await self.hooks.execute_before("analyze", context)

        try:
            payload = self.media_store.get(item.source_ref)
            context["payload_bytes"] = payload.size_bytes
            descriptors = await self.analyzer.analyze(payload)
        except (AnalysisError, MediaNotFoundError) as e:
            logger.warning(f"Analysis failed for {item.display_name} ({item_id}): {e}")
            return await self._fail(item_id, context, str(e))
        except asyncio.CancelledError:
            await self._fail(item_id, context, "analysis cancelled")
            raise
        except Exception as e:
            logger.error(f"Unexpected error analyzing {item_id}: {e}", exc_info=True)
            return await self._fail(item_id, context, f"unexpected analysis error: {e}")
        finally:
            # nothing reads the bytes after analysis
            self.media_store.discard(item.source_ref)

        item = self.catalog.transition(item_id, ItemState.COMPLETED, descriptors=descriptors)
        context["state"] = ItemState.COMPLETED.value
        await self.hooks.execute_after("analyze", context)
        logger.info(f"Analyzed {item.display_name} ({item_id})")

        self._spawn_matching(item_id)
        return item

    async def join(self) -> None:
        """Wait until no matcher run is outstanding."""
        while self._match_tasks:
            await asyncio.gather(*list(self._match_tasks), return_exceptions=True)

    async def cancel(self) -> None:
        """Cancel every outstanding matcher run."""
        tasks = list(self._match_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def pending_match_runs(self) -> int:
        return len(self._match_tasks)

    async def _fail(self, item_id: UUID, context: dict, reason: str) -> MediaItem:
        item = self.catalog.transition(item_id, ItemState.FAILED, error=reason)
        context["state"] = ItemState.FAILED.value
        context["error"] = reason
        await self.hooks.execute_after("analyze", context)
        return item

    def _spawn_matching(self, item_id: UUID) -> None:
        task = asyncio.create_task(self.matcher.run(item_id), name=f"match-{item_id}")
        self._match_tasks.add(task)
        task.add_done_callback(self._on_match_done)

    def _on_match_done(self, task: asyncio.Task) -> None:
        self._match_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Matcher run {task.get_name()} failed: {error}", exc_info=error)
