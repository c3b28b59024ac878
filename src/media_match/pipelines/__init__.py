"""Pipelines package - Ingestion and matching pipelines."""

from media_match.pipelines.hooks import PipelineHookManager
from media_match.pipelines.ingest import IngestionPipeline
from media_match.pipelines.match import MatchPipeline, rank_matches

__all__ = ["IngestionPipeline", "MatchPipeline", "PipelineHookManager", "rank_matches"]
