"""
Google Gemini provider implementation.

Serves both media analysis (video/audio sent inline) and profile
comparison.
"""

import asyncio
from typing import Any, Dict, Optional

from media_match.llm.base import AnalysisError, AnalysisProvider, ComparatorProvider, ComparisonError
from media_match.models.media_item import MediaPayload


class GeminiProvider(AnalysisProvider, ComparatorProvider):
    """
    Google Gemini provider.

    google-generativeai is synchronous, so every request runs in a
    worker thread via asyncio.to_thread.
    """

    # Gemini rejects inline request bodies above this size
    INLINE_LIMIT_BYTES = 20 * 1024 * 1024

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-2.5-flash",
    ):
        """
        Initialize Gemini provider.

        Args:
            api_key: Google AI API key (defaults to GOOGLE_API_KEY env var)
            model: Generative model name (default: gemini-2.5-flash)
        """
        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai package required for Gemini provider. "
                "Install with: pip install google-generativeai"
            )

        self.genai = genai

        if api_key:
            genai.configure(api_key=api_key)

        self.model = model

    async def analyze_media(
        self,
        payload: MediaPayload,
        prompt: str,
        response_schema: Dict[str, Any],
    ) -> str:
        if payload.size_bytes > self.INLINE_LIMIT_BYTES:
            raise AnalysisError(
                f"{payload.file_name or 'payload'} is too large to send inline "
                f"({payload.size_bytes} bytes)"
            )

        contents = [
            {"mime_type": payload.mime_type, "data": payload.data},
            prompt,
        ]
        try:
            return await asyncio.to_thread(self._generate, contents, response_schema)
        except Exception as e:
            raise AnalysisError(f"Gemini analysis failed: {e}") from e

    async def complete_json(
        self,
        prompt: str,
        response_schema: Dict[str, Any],
    ) -> str:
        try:
            return await asyncio.to_thread(self._generate, prompt, response_schema)
        except Exception as e:
            raise ComparisonError(f"Gemini comparison failed: {e}") from e

    def _generate(self, contents: Any, response_schema: Dict[str, Any]) -> str:
        model = self.genai.GenerativeModel(self.model)
        response = model.generate_content(
            contents,
            generation_config=self.genai.GenerationConfig(
                response_mime_type="application/json",
                response_schema=response_schema,
            ),
        )
        # .text raises when the candidate was blocked or empty
        try:
            return response.text or ""
        except ValueError:
            return ""

    def get_model_name(self) -> str:
        """Get the model name."""
        return self.model
