"""
OpenAI comparator provider implementation.
"""

import json
from typing import Any, Dict, Optional

from openai import AsyncOpenAI

from .base import ComparatorProvider, ComparisonError


class OpenAIComparatorProvider(ComparatorProvider):
    """
    OpenAI provider for profile comparison.

    Comparison is text-only, so any OpenAI-compatible chat endpoint
    works. The schema is passed in the system message and the reply is
    forced to a JSON object.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
    ):
        """
        Initialize OpenAI comparator provider.

        Args:
            api_key: OpenAI API key (defaults to OPENAI_API_KEY env var)
            base_url: Optional base URL for OpenAI-compatible APIs
            model: Chat model name (default: gpt-4o-mini)
        """
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.model = model
        self.temperature = temperature

    async def complete_json(
        self,
        prompt: str,
        response_schema: Dict[str, Any],
    ) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "system",
                        "content": "Reply with a JSON object matching this schema: "
                        + json.dumps(response_schema),
                    },
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            raise ComparisonError(f"OpenAI comparison failed: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def get_model_name(self) -> str:
        """Get the model name."""
        return self.model
