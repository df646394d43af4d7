#!/usr/bin/env python3

from __future__ import annotations

import io
import json
import os
import unittest
from unittest import mock
from urllib import error

from packages.fairsim_core.llm.providers import (
    DEFAULT_DIALOGUE_MODEL,
    DEFAULT_OPENAI_COMPATIBLE_BASE_URL,
    DEFAULT_TIMEOUT_MS,
    ProviderExecutionError,
    ProviderUnavailableError,
    _message_text,
    chat_provider_config,
    execute_chat_completion,
)


class ProviderConfigTests(unittest.TestCase):
    _env_keys = (
        "FAIRSIM_LLM_DISABLED",
        "FAIRSIM_LLM_PROVIDER",
        "FAIRSIM_LLM_API_KEY",
        "FAIRSIM_LLM_ALLOW_EMPTY_API_KEY",
        "FAIRSIM_LLM_MODEL",
        "FAIRSIM_LLM_BASE_URL",
        "FAIRSIM_LLM_TIMEOUT_MS",
        "OPENAI_API_KEY",
    )

    def setUp(self) -> None:
        self._env_backup = {k: os.environ.get(k) for k in self._env_keys}
        for key in self._env_keys:
            os.environ.pop(key, None)

    def tearDown(self) -> None:
        for key, value in self._env_backup.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value

    def test_missing_key_is_unavailable(self) -> None:
        with self.assertRaises(ProviderUnavailableError) as ctx:
            chat_provider_config()
        self.assertEqual(ctx.exception.error_code, "missing_api_key")

    def test_disabled_flag_wins(self) -> None:
        os.environ["FAIRSIM_LLM_API_KEY"] = "sk-test"
        os.environ["FAIRSIM_LLM_DISABLED"] = "true"
        with self.assertRaises(ProviderUnavailableError) as ctx:
            chat_provider_config()
        self.assertEqual(ctx.exception.error_code, "disabled")

    def test_unsupported_provider(self) -> None:
        os.environ["FAIRSIM_LLM_API_KEY"] = "sk-test"
        os.environ["FAIRSIM_LLM_PROVIDER"] = "carrier_pigeon"
        with self.assertRaises(ProviderUnavailableError) as ctx:
            chat_provider_config()
        self.assertEqual(ctx.exception.error_code, "unsupported_provider")

    def test_defaults(self) -> None:
        os.environ["FAIRSIM_LLM_ALLOW_EMPTY_API_KEY"] = "1"
        config = chat_provider_config()
        self.assertIsNone(config.api_key)
        self.assertEqual(config.model, DEFAULT_DIALOGUE_MODEL)
        self.assertEqual(config.base_url, DEFAULT_OPENAI_COMPATIBLE_BASE_URL)
        self.assertEqual(config.timeout_ms, DEFAULT_TIMEOUT_MS)
        self.assertEqual(config.model_name(), f"openai_compatible:{DEFAULT_DIALOGUE_MODEL}")

    def test_openai_key_fallback_and_overrides(self) -> None:
        os.environ["OPENAI_API_KEY"] = "  sk-openai  "
        os.environ["FAIRSIM_LLM_MODEL"] = "local-chat"
        os.environ["FAIRSIM_LLM_BASE_URL"] = "http://localhost:8080/v1/"
        os.environ["FAIRSIM_LLM_TIMEOUT_MS"] = "50"
        config = chat_provider_config()
        self.assertEqual(config.api_key, "sk-openai")
        self.assertEqual(config.model, "local-chat")
        self.assertEqual(config.base_url, "http://localhost:8080/v1")
        self.assertEqual(config.timeout_ms, 200)

    def test_fairsim_key_takes_precedence(self) -> None:
        os.environ["OPENAI_API_KEY"] = "sk-openai"
        os.environ["FAIRSIM_LLM_API_KEY"] = "sk-fairsim"
        os.environ["FAIRSIM_LLM_TIMEOUT_MS"] = "soon"
        config = chat_provider_config()
        self.assertEqual(config.api_key, "sk-fairsim")
        self.assertEqual(config.timeout_ms, DEFAULT_TIMEOUT_MS)

    def test_message_text_joins_parts(self) -> None:
        self.assertEqual(_message_text("hi"), "hi")
        self.assertEqual(_message_text([{"type": "text", "text": "Hello "}, {"text": "there"}, {"x": 1}]), "Hello there")
        self.assertEqual(_message_text(None), "")


class _FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


class ChatCompletionTests(unittest.TestCase):
    def setUp(self) -> None:
        self._env = mock.patch.dict(
            os.environ,
            {"FAIRSIM_LLM_API_KEY": "sk-test", "FAIRSIM_LLM_BASE_URL": "http://llm.local/v1"},
        )
        self._env.start()
        os.environ.pop("FAIRSIM_LLM_DISABLED", None)
        os.environ.pop("FAIRSIM_LLM_PROVIDER", None)
        os.environ.pop("FAIRSIM_LLM_MODEL", None)
        os.environ.pop("FAIRSIM_LLM_TIMEOUT_MS", None)

    def tearDown(self) -> None:
        self._env.stop()

    def test_successful_completion(self) -> None:
        body = {
            "model": "gpt-test",
            "choices": [{"message": {"content": " Nice to meet you! "}}],
            "usage": {"prompt_tokens": 12, "completion_tokens": 5},
        }
        with mock.patch(
            "packages.fairsim_core.llm.providers.request.urlopen",
            return_value=_FakeResponse(json.dumps(body).encode("utf-8")),
        ) as urlopen:
            result = execute_chat_completion(messages=[{"role": "user", "content": "hi"}])

        req = urlopen.call_args.args[0]
        self.assertEqual(req.full_url, "http://llm.local/v1/chat/completions")
        self.assertEqual(req.get_header("Authorization"), "Bearer sk-test")
        self.assertEqual(json.loads(req.data)["max_tokens"], 80)
        self.assertEqual(result.text, "Nice to meet you!")
        self.assertEqual(result.model_name, "gpt-test")
        self.assertEqual(result.prompt_tokens, 12)

    def test_missing_choices(self) -> None:
        with mock.patch(
            "packages.fairsim_core.llm.providers.request.urlopen",
            return_value=_FakeResponse(b'{"choices": []}'),
        ):
            with self.assertRaises(ProviderExecutionError) as ctx:
                execute_chat_completion(messages=[])
        self.assertEqual(ctx.exception.error_code, "missing_choices")

    def test_non_json_body(self) -> None:
        with mock.patch(
            "packages.fairsim_core.llm.providers.request.urlopen",
            return_value=_FakeResponse(b"<html>oops</html>"),
        ):
            with self.assertRaises(ProviderExecutionError) as ctx:
                execute_chat_completion(messages=[])
        self.assertEqual(ctx.exception.error_code, "invalid_provider_response")

    def test_network_failure(self) -> None:
        with mock.patch(
            "packages.fairsim_core.llm.providers.request.urlopen",
            side_effect=error.URLError("connection refused"),
        ):
            with self.assertRaises(ProviderExecutionError) as ctx:
                execute_chat_completion(messages=[])
        self.assertEqual(ctx.exception.error_code, "network_error")
        self.assertEqual(ctx.exception.model_name, "openai_compatible:gpt-4o-mini")


if __name__ == "__main__":
    unittest.main()
