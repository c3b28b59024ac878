"""
Configuration

Loads and manages system configuration from media_match.yaml
"""

import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

env_path = Path.cwd() / "setting" / ".env"
if env_path.exists():
    load_dotenv(env_path)


class LLMConfig(BaseModel):
    """Model provider configuration.

    - analysis: extracts face/voice descriptions and transcript from media
    - comparator: scores two descriptor profiles against each other
    """
    analysis_provider: Literal["gemini"] = "gemini"
    analysis_model: str = "gemini-2.5-flash"

    comparator_provider: Literal["gemini", "openai"] = "gemini"
    comparator_model: str = "gemini-2.5-flash"

    google_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None

    # Clients enforce these themselves and report expiry as an ordinary failure
    analysis_timeout_seconds: float = Field(default=300.0, gt=0)
    comparison_timeout_seconds: float = Field(default=60.0, gt=0)

    # Language pair for the transcript columns
    source_language: str = "Bengali (Latin phonetic)"
    target_language: str = "Vietnamese"


class MatchingConfig(BaseModel):
    """Cross-matching configuration."""
    # Verdicts must score strictly above this to be recorded
    acceptance_threshold: int = Field(default=75, ge=0, le=100)
    max_concurrent_comparisons: int = Field(default=4, ge=1)


class IngestConfig(BaseModel):
    """Ingestion configuration."""
    max_concurrent_items: int = Field(default=2, ge=1)
    # Matches the inline request limit of the Gemini API
    max_payload_mb: int = Field(default=20, ge=1)

    @property
    def max_payload_bytes(self) -> int:
        return self.max_payload_mb * 1024 * 1024


class MonitoringConfig(BaseModel):
    """Pipeline metrics configuration."""
    enabled: bool = True
    log_dir: str = "logs"
    max_recent: int = 100


class MediaMatchConfig(BaseModel):
    """Main configuration model."""
    llm: LLMConfig = Field(default_factory=LLMConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    ingest: IngestConfig = Field(default_factory=IngestConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)


def load_config(config_path: Optional[Path] = None) -> MediaMatchConfig:
    """
    Load configuration from YAML file.

    Falls back to environment variables and defaults.
    """
    if config_path is None:
        config_path = Path.cwd() / "config" / "media_match.yaml"

    config_data = {}

    if config_path.exists():
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

    # Override with environment variables
    llm_data = config_data.setdefault("llm", {})
    if os.getenv("GOOGLE_API_KEY"):
        llm_data["google_api_key"] = os.getenv("GOOGLE_API_KEY")
    if os.getenv("OPENAI_API_KEY"):
        llm_data["openai_api_key"] = os.getenv("OPENAI_API_KEY")

    if os.getenv("MEDIA_MATCH_THRESHOLD"):
        config_data.setdefault("matching", {})["acceptance_threshold"] = int(
            os.getenv("MEDIA_MATCH_THRESHOLD")
        )

    return MediaMatchConfig(**config_data)
