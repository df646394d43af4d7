"""LLM-backed dialogue for FairSim conversations."""

from .dialogue import DialogueGenerator, build_prompt, fallback_message
from .providers import (
    ProviderError,
    ProviderExecutionError,
    ProviderExecutionResult,
    ProviderUnavailableError,
    execute_chat_completion,
)

__all__ = [
    "DialogueGenerator",
    "build_prompt",
    "fallback_message",
    "ProviderError",
    "ProviderExecutionError",
    "ProviderExecutionResult",
    "ProviderUnavailableError",
    "execute_chat_completion",
]
