"""Tests for LLMClient provider abstraction."""

import logging

import pytest
from unittest.mock import MagicMock

from aiwatch.common.llm_client import LLMClient


class TestLLMClientInit:
    @pytest.mark.parametrize("provider", ["openai", "anthropic", "google"])
    def test_missing_key_logs_info(self, caplog, provider):
        with caplog.at_level(logging.INFO, logger="aiwatch.common.llm_client"):
            client = LLMClient(provider=provider)
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_default_provider_is_openai(self):
        assert LLMClient().provider == "openai"

    def test_unsupported_provider_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="aiwatch.common.llm_client"):
            client = LLMClient(provider="unsupported_xyz")
        assert not client.is_available
        assert "Unsupported" in caplog.text


class TestLLMClientGenerate:
    def test_generate_raises_when_unavailable(self):
        client = LLMClient(provider="openai")
        with pytest.raises(RuntimeError, match="not available"):
            client.generate("test")

    def test_openai_request(self):
        client = LLMClient(provider="openai", model="gpt-4o")
        client._client = MagicMock()
        response = MagicMock()
        response.choices[0].message.content = "  AI_RELATED:false \n"
        client._client.chat.completions.create.return_value = response

        text = client.generate("thread", system="be brief", max_tokens=500, temperature=0.3, timeout=12.0)

        assert text == "AI_RELATED:false"
        kwargs = client._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["timeout"] == 12.0
        assert kwargs["messages"] == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "thread"},
        ]

    def test_anthropic_request(self):
        client = LLMClient(provider="anthropic", model="claude-sonnet-4-20250514")
        client._client = MagicMock()
        client._client.messages.create.return_value.content = [MagicMock(text="AI_RELATED:true\nbody")]

        assert client.generate("thread", system="sys") == "AI_RELATED:true\nbody"
        kwargs = client._client.messages.create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["messages"] == [{"role": "user", "content": "thread"}]

    def test_provider_errors_propagate(self):
        client = LLMClient(provider="openai")
        client._client = MagicMock()
        client._client.chat.completions.create.side_effect = TimeoutError("timed out")

        with pytest.raises(TimeoutError):
            client.generate("thread")
