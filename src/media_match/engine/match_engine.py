"""
Media Match System - Main Engine Implementation

Wires the catalog, media store, clients and pipelines together and
owns the per-item background tasks.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set
from uuid import UUID

from media_match.catalog.catalog import Catalog
from media_match.catalog.query import CatalogQuery, ResolvedMatch
from media_match.config import MediaMatchConfig, load_config
from media_match.engine.base import MediaMatchEngine
from media_match.llm.client import AnalysisClient, ComparatorClient
from media_match.models.match import Match
from media_match.models.media_item import MediaItem, MediaPayload
from media_match.monitoring.performance import PerformanceMonitor
from media_match.pipelines.hooks import PipelineHookManager
from media_match.pipelines.ingest import IngestionPipeline
from media_match.pipelines.match import MatchPipeline
from media_match.storage.media_store import MediaStore

logger = logging.getLogger("media_match.engine")


class MediaMatchSystem(MediaMatchEngine):
    """
    Main implementation of the media match engine.

    One background task per submitted item, bounded by
    `ingest.max_concurrent_items`. Items are independent: a later
    upload may finish (and collect matches) before an earlier one.

    Usage:
        system = MediaMatchSystem()

        item_id = await system.submit(MediaPayload(data=raw, file_name="clip.mp4"))
        await system.wait_until_idle()

        for match in system.get(item_id).matches:
            print(system.resolve_target(match).display_name, match.similarity)

        await system.close()
    """

    def __init__(
        self,
        config: Optional[MediaMatchConfig] = None,
        analyzer: Optional[AnalysisClient] = None,
        comparator: Optional[ComparatorClient] = None,
        media_store: Optional[MediaStore] = None,
    ):
        """
        Initialize the system.

        Args:
            config: Configuration object. Loads from config/media_match.yaml if not provided.
            analyzer: Analysis client. Built from config.llm if not provided.
            comparator: Comparator client. Built from config.llm if not provided.
            media_store: Payload store. A fresh in-memory store if not provided.
        """
        self.config = config if config is not None else load_config()

        self.catalog = Catalog()
        self.query = CatalogQuery(self.catalog)
        # MediaStore defines __len__, so an empty store is falsy
        if media_store is None:
            media_store = MediaStore(max_payload_bytes=self.config.ingest.max_payload_bytes)
        self.media_store = media_store
        self.analyzer = analyzer if analyzer is not None else AnalysisClient.from_config(self.config.llm)
        self.comparator = comparator if comparator is not None else ComparatorClient.from_config(self.config.llm)

        self.hooks = PipelineHookManager()
        self.monitor: Optional[PerformanceMonitor] = None
        if self.config.monitoring.enabled:
            self.monitor = PerformanceMonitor(
                log_dir=self.config.monitoring.log_dir,
                max_recent=self.config.monitoring.max_recent,
            )
            self.monitor.register(self.hooks)

        self.matcher = MatchPipeline(
            catalog=self.catalog,
            comparator=self.comparator,
            acceptance_threshold=self.config.matching.acceptance_threshold,
            max_concurrent_comparisons=self.config.matching.max_concurrent_comparisons,
            hooks=self.hooks,
        )
        self.ingest = IngestionPipeline(
            catalog=self.catalog,
            media_store=self.media_store,
            analyzer=self.analyzer,
            matcher=self.matcher,
            hooks=self.hooks,
        )

        self._item_slots = asyncio.Semaphore(self.config.ingest.max_concurrent_items)
        self._item_tasks: Set[asyncio.Task] = set()

    async def submit(self, payload: MediaPayload) -> UUID:
        """Register a payload and schedule its analysis. Returns the new id."""
        source_ref = self.media_store.put(payload)
        item_id = self.catalog.register(source_ref, display_name=payload.file_name or None)

        task = asyncio.create_task(self._process(item_id), name=f"ingest-{item_id}")
        self._item_tasks.add(task)
        task.add_done_callback(self._on_item_done)

        logger.info(f"Submitted {payload.file_name or source_ref} as {item_id}")
        return item_id

    async def submit_many(self, payloads: List[MediaPayload]) -> List[UUID]:
        """
        Register several payloads in the given order.

        Sizes are checked up front, so a rejected batch registers nothing.
        """
        for payload in payloads:
            self.media_store.check(payload)
        return [await self.submit(payload) for payload in payloads]

    def get(self, item_id: UUID) -> MediaItem:
        return self.query.get(item_id)

    def list_items(self) -> List[MediaItem]:
        return self.query.list_all()

    def list_completed(self) -> List[MediaItem]:
        return self.query.list_completed()

    def resolve_target(self, match: Match) -> Optional[MediaItem]:
        return self.query.resolve_target(match)

    def resolve_matches(self, item_id: UUID) -> List[ResolvedMatch]:
        return self.query.resolve_matches(item_id)

    async def wait_until_idle(self) -> None:
        """Wait until every item is terminal and every matcher run is done."""
        while self._item_tasks or self.ingest.pending_match_runs:
            if self._item_tasks:
                await asyncio.gather(*list(self._item_tasks), return_exceptions=True)
            await self.ingest.join()

    def get_stats(self) -> Dict[str, Any]:
        """Item counts by state plus pipeline metrics."""
        stats: Dict[str, Any] = {
            "items": len(self.catalog),
            "states": self.catalog.count_by_state(),
            "in_flight": len(self._item_tasks),
            "pending_match_runs": self.ingest.pending_match_runs,
        }
        if self.monitor:
            stats["metrics"] = self.monitor.get_summary()
        return stats

    async def close(self) -> None:
        """Cancel in-flight work and close metric log handlers."""
        tasks = list(self._item_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self.ingest.cancel()

        if self.monitor:
            self.monitor.close()

    async def _process(self, item_id: UUID) -> None:
        async with self._item_slots:
            await self.ingest.process(item_id)

    def _on_item_done(self, task: asyncio.Task) -> None:
        self._item_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Ingestion task {task.get_name()} failed: {error}", exc_info=error)
