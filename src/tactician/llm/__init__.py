"""LLM integration: the OpenAI-compatible transport and turn prompts."""

from __future__ import annotations

from tactician.llm.prompts import SYSTEM_PROMPT, TacticalPromptBuilder
from tactician.llm.transport import OpenAITransport, create_client


__all__ = [
    "SYSTEM_PROMPT",
    "TacticalPromptBuilder",
    "OpenAITransport",
    "create_client",
]
