"""
Base classes for analysis and comparator providers.

This module defines abstract interfaces that allow supporting
multiple model providers (Gemini, OpenAI, etc.) through the adapter
pattern. Providers only handle transport: they send a prompt (and
media, for analysis) and return the model's raw JSON text. Prompt
assembly and response validation live in `media_match.llm.client`.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from media_match.models.media_item import MediaPayload


class AnalysisProvider(ABC):
    """
    Abstract base class for media analysis providers.

    Implementations must accept raw media bytes and return JSON text
    conforming to the supplied response schema.
    """

    @abstractmethod
    async def analyze_media(
        self,
        payload: MediaPayload,
        prompt: str,
        response_schema: Dict[str, Any],
    ) -> str:
        """
        Run one analysis request over a media payload.

        Args:
            payload: Media bytes and mime type
            prompt: Instruction text
            response_schema: JSON schema the reply must follow

        Returns:
            Raw response text (expected to be JSON)

        Raises:
            AnalysisError: If the provider call fails
        """
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """Get the name of the model being used."""
        pass


class ComparatorProvider(ABC):
    """Abstract base class for text-only JSON completion used by comparisons."""

    @abstractmethod
    async def complete_json(
        self,
        prompt: str,
        response_schema: Dict[str, Any],
    ) -> str:
        """
        Run one JSON completion.

        Returns:
            Raw response text, or an empty string if the model produced none

        Raises:
            ComparisonError: If the provider call fails
        """
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """Get the name of the model being used."""
        pass


class AnalysisError(Exception):
    """Exception raised when media analysis fails or returns malformed data."""
    pass


class ComparisonError(Exception):
    """Exception raised when a pairwise comparison fails."""
    pass
