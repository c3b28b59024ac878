"""
LLM Clients

Handles all model interactions:
- Media analysis (face description, voice description, transcript)
- Pairwise profile comparison

Providers only move bytes; these clients own the prompts, enforce
timeouts and turn raw replies into validated models. Any failure is
surfaced as AnalysisError or ComparisonError.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from media_match.config import LLMConfig
from media_match.llm.base import (
    AnalysisError,
    AnalysisProvider,
    ComparatorProvider,
    ComparisonError,
)
from media_match.models.match import BiometricProfile, ComparisonVerdict, MatchKind
from media_match.models.media_item import DescriptorBundle, MediaPayload, TranscriptLine
from media_match.security.sanitizer import Sanitizer

logger = logging.getLogger("media_match.llm")


ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "faceDescription": {"type": "STRING", "description": "Detailed description of the main face"},
        "voiceDescription": {"type": "STRING", "description": "Timbre, pitch and tone of the main voice"},
        "summary": {"type": "STRING", "description": "Short summary of the content"},
        "subtitles": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "bengaliPhonetic": {"type": "STRING", "description": "Line as spoken, unchanged"},
                    "vietnameseTranslation": {"type": "STRING", "description": "Natural translation"},
                },
                "required": ["bengaliPhonetic", "vietnameseTranslation"],
            },
        },
    },
    "required": ["faceDescription", "voiceDescription", "subtitles", "summary"],
}

COMPARISON_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "similarityPercentage": {"type": "INTEGER"},
        "matchType": {"type": "STRING", "enum": [kind.value for kind in MatchKind]},
        "reason": {"type": "STRING"},
    },
    "required": ["similarityPercentage", "matchType", "reason"],
}


def create_analysis_provider(config: LLMConfig) -> AnalysisProvider:
    """
    Factory method to create the configured analysis provider.

    Only Gemini accepts raw video input today.
    """
    if config.analysis_provider == "gemini":
        from media_match.llm.gemini_provider import GeminiProvider
        return GeminiProvider(api_key=config.google_api_key, model=config.analysis_model)
    raise ValueError(
        f"Unknown analysis provider: {config.analysis_provider}. "
        f"Supported providers: gemini"
    )


def create_comparator_provider(config: LLMConfig) -> ComparatorProvider:
    """Factory method to create the configured comparator provider."""
    if config.comparator_provider == "gemini":
        from media_match.llm.gemini_provider import GeminiProvider
        return GeminiProvider(api_key=config.google_api_key, model=config.comparator_model)
    elif config.comparator_provider == "openai":
        from media_match.llm.openai_provider import OpenAIComparatorProvider
        return OpenAIComparatorProvider(
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
            model=config.comparator_model,
        )
    raise ValueError(
        f"Unknown comparator provider: {config.comparator_provider}. "
        f"Supported providers: gemini, openai"
    )


class AnalysisClient:
    """
    Extracts a descriptor bundle from one media payload.

    Usage:
        client = AnalysisClient(GeminiProvider(api_key="..."))
        bundle = await client.analyze(payload)
    """

    def __init__(
        self,
        provider: AnalysisProvider,
        timeout_seconds: float = 300.0,
        source_language: str = "Bengali (Latin phonetic)",
        target_language: str = "Vietnamese",
    ):
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.source_language = source_language
        self.target_language = target_language

    @classmethod
    def from_config(cls, config: LLMConfig) -> "AnalysisClient":
        return cls(
            create_analysis_provider(config),
            timeout_seconds=config.analysis_timeout_seconds,
            source_language=config.source_language,
            target_language=config.target_language,
        )

    def build_prompt(self) -> str:
        return f"""You are an expert in forensic video analysis and linguistics.

Tasks:
1. Face recognition data: describe the face of the main person in detail.
2. Voice recognition data: describe timbre, pitch and tone of the main voice.
3. Subtitle extraction for everything spoken in the media:
   - Column 1 (bengaliPhonetic): {self.source_language}, kept exactly as spoken. Do NOT translate or correct it.
   - Column 2 (vietnameseTranslation): natural, grammatical {self.target_language} translation. No phonetics.
   - No timestamps.
4. A short summary of the content.

Return pure JSON only."""

    async def analyze(self, payload: MediaPayload) -> DescriptorBundle:
        """
        Analyze one payload.

        Raises:
            AnalysisError: On provider failure, timeout or malformed reply
        """
        try:
            text = await asyncio.wait_for(
                self.provider.analyze_media(payload, self.build_prompt(), ANALYSIS_SCHEMA),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"Analysis of {payload.file_name or 'payload'} timed out after {self.timeout_seconds}s")
            raise AnalysisError(
                f"Analysis timed out after {self.timeout_seconds}s"
            ) from e
        except AnalysisError:
            raise
        except Exception as e:
            raise AnalysisError(f"Analysis request failed: {e}") from e

        return self.parse_analysis(text)

    @staticmethod
    def parse_analysis(text: str) -> DescriptorBundle:
        """Validate a raw analysis reply into a DescriptorBundle."""
        if not text or not text.strip():
            raise AnalysisError("No response text from analysis provider")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise AnalysisError(f"Analysis reply is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise AnalysisError("Analysis reply is not a JSON object")

        raw_lines = data.get("subtitles")
        if raw_lines is None:
            raw_lines = data.get("transcriptLines", [])
        if not isinstance(raw_lines, list):
            raise AnalysisError("Transcript lines must be a list")

        try:
            transcript = [
                TranscriptLine(
                    source_text=line.get("bengaliPhonetic", line.get("sourceText", "")),
                    translated_text=line.get("vietnameseTranslation", line.get("translatedText", "")),
                )
                for line in raw_lines
                if isinstance(line, dict)
            ]
            return DescriptorBundle(
                face_description=data["faceDescription"],
                voice_description=data["voiceDescription"],
                transcript_lines=transcript,
                summary=data.get("summary") or "",
            )
        except KeyError as e:
            raise AnalysisError(f"Analysis reply is missing field {e}") from e
        except ValidationError as e:
            raise AnalysisError(f"Analysis reply failed validation: {e}") from e


class ComparatorClient:
    """
    Scores the similarity of two biometric profiles.

    `compare` returns None when the model gives no verdict at all; the
    acceptance threshold is applied by the matcher, not here.
    """

    def __init__(
        self,
        provider: ComparatorProvider,
        timeout_seconds: float = 60.0,
        sanitizer: Optional[Sanitizer] = None,
    ):
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.sanitizer = sanitizer if sanitizer is not None else Sanitizer()

    @classmethod
    def from_config(cls, config: LLMConfig) -> "ComparatorClient":
        return cls(
            create_comparator_provider(config),
            timeout_seconds=config.comparison_timeout_seconds,
        )

    def build_prompt(self, new_profile: BiometricProfile, existing_profile: BiometricProfile) -> str:
        clean = self.sanitizer.sanitize_description
        label = self.sanitizer.sanitize_label(existing_profile.label) or "unnamed"

        return f"""Compare the following two biometric video profiles.

Profile A (new):
- Face: {clean(new_profile.face)}
- Voice: {clean(new_profile.voice)}

Profile B (existing - {label}):
- Face: {clean(existing_profile.face)}
- Voice: {clean(existing_profile.voice)}

Requirements:
1. similarityPercentage: similarity score (0-100).
2. matchType: "Face" (face only), "Voice" (voice only), or "Face + Voice" (both).
3. reason: a short justification.

A score above 75 counts as a match.
Return JSON."""

    async def compare(
        self,
        new_profile: BiometricProfile,
        existing_profile: BiometricProfile,
    ) -> Optional[ComparisonVerdict]:
        """
        Compare two profiles.

        Returns:
            The verdict, or None if the model produced no reply

        Raises:
            ComparisonError: On provider failure, timeout or malformed reply
        """
        prompt = self.build_prompt(new_profile, existing_profile)
        logger.debug(f"Comparing against {existing_profile.label or 'unnamed'} with {self.provider.get_model_name()}")
        try:
            text = await asyncio.wait_for(
                self.provider.complete_json(prompt, COMPARISON_SCHEMA),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"Comparison against {existing_profile.label or 'unnamed'} timed out after {self.timeout_seconds}s")
            raise ComparisonError(
                f"Comparison timed out after {self.timeout_seconds}s"
            ) from e
        except ComparisonError:
            raise
        except Exception as e:
            raise ComparisonError(f"Comparison request failed: {e}") from e

        return self.parse_verdict(text)

    @staticmethod
    def parse_verdict(text: str) -> Optional[ComparisonVerdict]:
        """Validate a raw comparator reply. Empty replies mean no verdict."""
        if not text or not text.strip():
            return None

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ComparisonError(f"Comparison reply is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ComparisonError("Comparison reply is not a JSON object")

        try:
            return ComparisonVerdict(
                similarity_percentage=int(round(float(data["similarityPercentage"]))),
                match_kind=MatchKind.parse(str(data["matchType"])),
                reason=str(data.get("reason") or ""),
            )
        except KeyError as e:
            raise ComparisonError(f"Comparison reply is missing field {e}") from e
        except (TypeError, ValueError, OverflowError) as e:
            # pydantic's ValidationError is a ValueError
            raise ComparisonError(f"Comparison reply failed validation: {e}") from e
