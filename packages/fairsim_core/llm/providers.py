"""Chat-completion provider for agent dialogue.

This module speaks the OpenAI-compatible Chat Completions contract so any
vendor exposing that surface can voice the fair's students and recruiters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib import error, request
import json
import os


DEFAULT_OPENAI_COMPATIBLE_BASE_URL = "https://api.openai.com/v1"
DEFAULT_DIALOGUE_MODEL = "gpt-4o-mini"
DEFAULT_TIMEOUT_MS = 8000
SUPPORTED_PROVIDERS = {"openai_compatible"}


def _truthy_env(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _first_non_empty(*values: str | None) -> str | None:
    for value in values:
        if value and value.strip():
            return value.strip()
    return None


@dataclass(frozen=True)
class ProviderExecutionResult:
    text: str
    model_name: str
    prompt_tokens: int | None = None
    completion_tokens: int | None = None


class ProviderError(RuntimeError):
    def __init__(self, message: str, *, error_code: str, model_name: str | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.model_name = model_name


class ProviderUnavailableError(ProviderError):
    pass


class ProviderExecutionError(ProviderError):
    pass


@dataclass(frozen=True)
class ChatProviderConfig:
    provider: str
    model: str
    base_url: str
    api_key: str | None
    timeout_ms: int

    def model_name(self) -> str:
        return f"{self.provider}:{self.model}"


def chat_provider_config() -> ChatProviderConfig:
    if _truthy_env("FAIRSIM_LLM_DISABLED", False):
        raise ProviderUnavailableError("LLM dialogue disabled", error_code="disabled")

    provider = (_first_non_empty(os.environ.get("FAIRSIM_LLM_PROVIDER")) or "openai_compatible").lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ProviderUnavailableError(
            f"Unsupported provider: {provider}",
            error_code="unsupported_provider",
        )

    api_key = _first_non_empty(
        os.environ.get("FAIRSIM_LLM_API_KEY"),
        os.environ.get("OPENAI_API_KEY"),
    )
    if not api_key and not _truthy_env("FAIRSIM_LLM_ALLOW_EMPTY_API_KEY", False):
        raise ProviderUnavailableError("No API key configured for dialogue", error_code="missing_api_key")

    model = _first_non_empty(os.environ.get("FAIRSIM_LLM_MODEL")) or DEFAULT_DIALOGUE_MODEL
    base_url = _first_non_empty(os.environ.get("FAIRSIM_LLM_BASE_URL")) or DEFAULT_OPENAI_COMPATIBLE_BASE_URL
    try:
        timeout_ms = int(os.environ.get("FAIRSIM_LLM_TIMEOUT_MS") or DEFAULT_TIMEOUT_MS)
    except ValueError:
        timeout_ms = DEFAULT_TIMEOUT_MS

    return ChatProviderConfig(
        provider=provider,
        model=model,
        base_url=base_url.rstrip("/"),
        api_key=api_key,
        timeout_ms=max(200, timeout_ms),
    )


def _message_text(content: Any) -> str:
    """Flatten string or content-part list replies into plain text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(str(part["text"]) for part in content if isinstance(part, dict) and part.get("text"))
    return str(content)


def _completion_request(config: ChatProviderConfig, payload: dict[str, Any]) -> request.Request:
    headers = {"Content-Type": "application/json"}
    if config.api_key:
        headers["Authorization"] = f"Bearer {config.api_key}"
    return request.Request(
        config.base_url + "/chat/completions",
        data=json.dumps(payload).encode("utf-8"),
        headers=headers,
        method="POST",
    )


def _fetch_json(config: ChatProviderConfig, req: request.Request) -> dict[str, Any]:
    model_name = config.model_name()
    try:
        with request.urlopen(req, timeout=config.timeout_ms / 1000.0) as response:
            raw = response.read()
    except error.HTTPError as exc:
        body = exc.read().decode("utf-8", errors="replace") if exc.fp is not None else ""
        raise ProviderExecutionError(
            f"Dialogue provider returned HTTP {exc.code}: {body[:240]}",
            error_code=f"http_{exc.code}",
            model_name=model_name,
        ) from exc
    except (error.URLError, TimeoutError, OSError) as exc:
        raise ProviderExecutionError(
            f"Dialogue provider unreachable: {exc}",
            error_code="network_error",
            model_name=model_name,
        ) from exc

    try:
        decoded = json.loads(raw.decode("utf-8", errors="replace"))
    except ValueError as exc:
        raise ProviderExecutionError(
            "Dialogue provider sent a non-JSON body",
            error_code="invalid_provider_response",
            model_name=model_name,
        ) from exc
    if not isinstance(decoded, dict):
        raise ProviderExecutionError(
            "Dialogue provider sent an unexpected JSON shape",
            error_code="invalid_provider_response",
            model_name=model_name,
        )
    return decoded


def _first_choice_text(body: dict[str, Any], model_name: str) -> str:
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        raise ProviderExecutionError("No choices in completion", error_code="missing_choices", model_name=model_name)
    message = (choices[0] or {}).get("message") or {}
    text = _message_text(message.get("content")).strip()
    if not text:
        raise ProviderExecutionError("Completion text was empty", error_code="empty_response", model_name=model_name)
    return text


def execute_chat_completion(
    *,
    messages: list[dict[str, str]],
    temperature: float = 0.8,
    max_output_tokens: int = 80,
) -> ProviderExecutionResult:
    """Run one chat completion against the configured provider."""
    config = chat_provider_config()
    req = _completion_request(
        config,
        {
            "model": config.model,
            "messages": messages,
            "temperature": float(temperature),
            "max_tokens": int(max_output_tokens),
        },
    )
    body = _fetch_json(config, req)
    usage = body.get("usage") or {}
    return ProviderExecutionResult(
        text=_first_choice_text(body, config.model_name()),
        model_name=str(body.get("model") or config.model_name()),
        prompt_tokens=usage.get("prompt_tokens"),
        completion_tokens=usage.get("completion_tokens"),
    )
