"""
Unit Tests for IngestionPipeline

Drives items through analysis with scripted services.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from fakes import FakeAnalyzer, FakeComparator, bundle, payload, verdict
from media_match.catalog.catalog import Catalog
from media_match.catalog.errors import InvalidTransitionError, ItemNotFoundError
from media_match.llm.base import AnalysisError
from media_match.models.media_item import ItemState
from media_match.pipelines.hooks import PipelineHookManager
from media_match.pipelines.ingest import IngestionPipeline
from media_match.pipelines.match import MatchPipeline
from media_match.storage.media_store import MediaStore


def build(analyzer, comparator=None, hooks=None):
    catalog = Catalog()
    store = MediaStore()
    hooks = hooks or PipelineHookManager()
    matcher = MatchPipeline(catalog, comparator or FakeComparator(), hooks=hooks)
    pipeline = IngestionPipeline(catalog, store, analyzer, matcher, hooks=hooks)
    return catalog, store, pipeline


def register(catalog: Catalog, store: MediaStore, name: str):
    media = payload(name)
    return catalog.register(store.put(media), display_name=media.file_name)


class TestProcess:
    """Tests for IngestionPipeline.process."""

    @pytest.mark.asyncio
    async def test_success_completes_and_matches(self):
        analyzer = FakeAnalyzer({"a.mp4": bundle("F1", "V1", summary="greeting")})
        catalog, store, pipeline = build(analyzer)
        item_id = register(catalog, store, "a.mp4")

        item = await pipeline.process(item_id)
        assert item.state == ItemState.COMPLETED
        assert item.descriptors.summary == "greeting"

        await pipeline.join()
        item = catalog.get(item_id)
        assert item.is_matched is True
        assert item.matches == []
        assert pipeline.pending_match_runs == 0

    @pytest.mark.asyncio
    async def test_analysis_failure_marks_failed(self):
        analyzer = FakeAnalyzer({"a.mp4": AnalysisError("malformed reply")})
        comparator = FakeComparator()
        catalog, store, pipeline = build(analyzer, comparator)
        item_id = register(catalog, store, "a.mp4")

        item = await pipeline.process(item_id)
        await pipeline.join()

        assert item.state == ItemState.FAILED
        assert "malformed reply" in item.error
        assert catalog.get(item_id).is_matched is False
        assert comparator.calls == []

    @pytest.mark.asyncio
    async def test_unexpected_error_marks_failed(self):
        analyzer = FakeAnalyzer({"a.mp4": RuntimeError("socket closed")})
        catalog, store, pipeline = build(analyzer)
        item_id = register(catalog, store, "a.mp4")

        item = await pipeline.process(item_id)
        assert item.state == ItemState.FAILED
        assert "socket closed" in item.error

    @pytest.mark.asyncio
    async def test_missing_payload_marks_failed(self):
        analyzer = FakeAnalyzer({})
        catalog, store, pipeline = build(analyzer)
        item_id = catalog.register("mem://nothing-here")

        item = await pipeline.process(item_id)

        assert item.state == ItemState.FAILED
        assert analyzer.calls == []

    @pytest.mark.asyncio
    async def test_double_processing_is_rejected(self):
        analyzer = FakeAnalyzer({"a.mp4": bundle("F1")})
        catalog, store, pipeline = build(analyzer)
        item_id = register(catalog, store, "a.mp4")

        await pipeline.process(item_id)
        with pytest.raises(InvalidTransitionError):
            await pipeline.process(item_id)
        await pipeline.join()

        assert analyzer.calls == ["a.mp4"]

    @pytest.mark.asyncio
    async def test_concurrent_double_processing_runs_analysis_once(self):
        analyzer = FakeAnalyzer({"a.mp4": bundle("F1")}, delays={"a.mp4": 0.01})
        catalog, store, pipeline = build(analyzer)
        item_id = register(catalog, store, "a.mp4")

        results = await asyncio.gather(
            pipeline.process(item_id),
            pipeline.process(item_id),
            return_exceptions=True,
        )
        await pipeline.join()

        assert sum(isinstance(r, InvalidTransitionError) for r in results) == 1
        assert analyzer.calls == ["a.mp4"]

    @pytest.mark.asyncio
    async def test_unknown_item_raises_not_found(self):
        from uuid import uuid4

        catalog, store, pipeline = build(FakeAnalyzer({}))
        with pytest.raises(ItemNotFoundError):
            await pipeline.process(uuid4())

    @pytest.mark.asyncio
    async def test_matcher_failure_keeps_completed_state(self):
        analyzer = FakeAnalyzer({"a.mp4": bundle("F1")})
        catalog, store, pipeline = build(analyzer)
        pipeline.matcher.run = AsyncMock(side_effect=RuntimeError("matcher crashed"))
        item_id = register(catalog, store, "a.mp4")

        await pipeline.process(item_id)
        await pipeline.join()

        item = catalog.get(item_id)
        assert item.state == ItemState.COMPLETED
        assert item.descriptors.face_description == "F1"
        pipeline.matcher.run.assert_awaited_once_with(item_id)

    @pytest.mark.asyncio
    async def test_completed_item_is_matched_against_earlier_items(self):
        analyzer = FakeAnalyzer({"x.mp4": bundle("F1", "V1"), "y.mp4": bundle("F2", "V2")})
        comparator = FakeComparator({("F2", "F1"): verdict(82)})
        catalog, store, pipeline = build(analyzer, comparator)

        x = register(catalog, store, "x.mp4")
        await pipeline.process(x)
        await pipeline.join()

        y = register(catalog, store, "y.mp4")
        await pipeline.process(y)
        await pipeline.join()

        assert catalog.get(x).matches == []
        assert [m.target_id for m in catalog.get(y).matches] == [x]

    @pytest.mark.asyncio
    async def test_hooks_see_both_outcomes(self):
        hooks = PipelineHookManager()
        outcomes = []

        @hooks.after("analyze")
        async def capture(context):
            outcomes.append((context["display_name"], context["state"]))

        analyzer = FakeAnalyzer({"ok.mp4": bundle("F1"), "bad.mp4": AnalysisError("no face")})
        catalog, store, pipeline = build(analyzer, hooks=hooks)

        await pipeline.process(register(catalog, store, "ok.mp4"))
        await pipeline.process(register(catalog, store, "bad.mp4"))
        await pipeline.join()

        assert outcomes == [("ok.mp4", "completed"), ("bad.mp4", "failed")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("outcome", [bundle("F1"), AnalysisError("no face")])
    async def test_payload_is_released_after_analysis(self, outcome):
        catalog, store, pipeline = build(FakeAnalyzer({"a.mp4": outcome}))
        item_id = register(catalog, store, "a.mp4")
        assert len(store) == 1

        await pipeline.process(item_id)
        await pipeline.join()

        assert len(store) == 0
        assert catalog.get(item_id).is_terminal
