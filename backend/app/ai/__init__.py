"""Language-model backed mood insights."""

from __future__ import annotations

from .insights import MoodInsightGenerator
from .openai_client import OpenAIClient

__all__ = ["MoodInsightGenerator", "OpenAIClient"]
