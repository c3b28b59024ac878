"""
Match Pipeline

Cross-compares one newly completed item against every other item
that was completed when the run started:
1. Snapshot the completed candidates
2. Compare against each candidate concurrently (bounded)
3. Keep verdicts strictly above the acceptance threshold
4. Rank by similarity, ties in candidate registration order
5. Store the ranked list on the item (even when empty)
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from media_match.catalog.catalog import Catalog
from media_match.catalog.errors import ItemNotFoundError, MatchPreconditionError
from media_match.llm.client import ComparatorClient
from media_match.models.match import BiometricProfile, Match
from media_match.models.media_item import ItemState, MediaItem
from media_match.pipelines.hooks import PipelineHookManager

logger = logging.getLogger("media_match.match")


def rank_matches(matches: Sequence[Match]) -> List[Match]:
    """
    Order matches by descending similarity.

    `matches` must already be in candidate registration order; the sort
    is stable, so exact ties keep that order.
    """
    return sorted(matches, key=lambda match: match.similarity, reverse=True)


def profile_of(item: MediaItem) -> BiometricProfile:
    return BiometricProfile(
        face=item.descriptors.face_description,
        voice=item.descriptors.voice_description,
        label=item.display_name,
    )


class MatchPipeline:
    """
    Pipeline for matching one item against the catalog.

    Flow:
    Catalog snapshot → Comparator (N calls) → Threshold →
    Ranking → Catalog.set_matches

    A failing comparison counts as "no match" for that pair and never
    aborts the rest of the run. The result depends only on the snapshot
    and the verdicts, not on the order comparisons finish in.
    """

    def __init__(
        self,
        catalog: Catalog,
        comparator: ComparatorClient,
        acceptance_threshold: int = 75,
        max_concurrent_comparisons: int = 4,
        hooks: Optional[PipelineHookManager] = None,
    ):
        self.catalog = catalog
        self.comparator = comparator
        self.acceptance_threshold = acceptance_threshold
        self.max_concurrent_comparisons = max_concurrent_comparisons
        self.hooks = hooks if hooks is not None else PipelineHookManager()

    async def run(self, source_id: UUID) -> Optional[List[Match]]:
        """
        Execute one matcher run.

        Args:
            source_id: A completed item

        Returns:
            The ranked matches that were stored, or None if the item
            vanished before they could be stored

        Raises:
            ItemNotFoundError: If source_id is unknown
            MatchPreconditionError: If the item is not completed
        """
        source = self.catalog.get(source_id)
        if ItemState(source.state) != ItemState.COMPLETED or source.descriptors is None:
            raise MatchPreconditionError(
                f"Cannot match item {source_id} in state {ItemState(source.state).value}"
            )

        candidates = self.catalog.snapshot_completed_except(source_id)

        context = {
            "item_id": source_id,
            "candidate_count": len(candidates),
            "start_time": time.time(),
        }
        await self.hooks.execute_before("match", context)

        source_profile = profile_of(source)
        semaphore = asyncio.Semaphore(self.max_concurrent_comparisons)

        # gather keeps candidate order regardless of completion order
        outcomes = await asyncio.gather(*[
            self._compare(source_profile, candidate, semaphore)
            for candidate in candidates
        ])

        accepted = [match for match, _ in outcomes if match is not None]
        ranked = rank_matches(accepted)
        context["comparison_failures"] = sum(1 for _, failed in outcomes if failed)
        context["match_count"] = len(ranked)

        try:
            self.catalog.set_matches(source_id, ranked)
        except ItemNotFoundError as e:
            logger.error(f"Matches for {source_id} were not stored: {e}")
            context["stored"] = False
            await self.hooks.execute_after("match", context)
            return None

        context["stored"] = True
        await self.hooks.execute_after("match", context)

        logger.info(
            f"Matched {source.display_name}: {len(ranked)} of {len(candidates)} candidates accepted"
            + (f", {context['comparison_failures']} comparisons failed"
               if context["comparison_failures"] else "")
        )
        return ranked

    async def _compare(
        self,
        source_profile: BiometricProfile,
        candidate: MediaItem,
        semaphore: asyncio.Semaphore,
    ) -> Tuple[Optional[Match], bool]:
        """Compare against one candidate. Returns (accepted match or None, failed)."""
        async with semaphore:
            try:
                verdict = await self.comparator.compare(source_profile, profile_of(candidate))
            except Exception as e:
                logger.warning(
                    f"Comparison with {candidate.id} ({candidate.display_name}) failed, "
                    f"treating as no match: {e}"
                )
                return None, True
            detected_at = datetime.now()

        if verdict is None or verdict.similarity_percentage <= self.acceptance_threshold:
            return None, False

        return Match.from_verdict(candidate.id, verdict, detected_at), False
