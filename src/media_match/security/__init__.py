"""Security package - Prompt input sanitization."""

from media_match.security.sanitizer import Sanitizer

__all__ = ["Sanitizer"]
