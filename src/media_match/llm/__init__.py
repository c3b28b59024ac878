"""LLM package - Analysis and comparator clients over pluggable providers."""

from media_match.llm.base import AnalysisError, AnalysisProvider, ComparatorProvider, ComparisonError
from media_match.llm.client import AnalysisClient, ComparatorClient

__all__ = [
    "AnalysisClient",
    "AnalysisError",
    "AnalysisProvider",
    "ComparatorClient",
    "ComparatorProvider",
    "ComparisonError",
]
