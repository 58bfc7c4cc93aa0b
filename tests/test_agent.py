"""
Tests for the response generator client. The OpenAI client is replaced by
a stub; nothing here touches the network.
"""

from types import SimpleNamespace

import httpx
import pytest
from openai import APIConnectionError, APIStatusError, APITimeoutError

from app import config
from app.agent import FALLBACK_REPLY, ResponseGenerator
from app.errors import UpstreamError


class _StubCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(content=None, error=None):
    completions = _StubCompletions(content=content, error=error)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


TURNS = [{"role": "system", "content": "persona"}, {"role": "user", "content": "pay now"}]
REQUEST = httpx.Request("POST", "https://llm.example/v1/chat/completions")


class TestGenerate:
    def test_returns_reply_text(self):
        client, completions = _client("ohh ok, which bank is this?")
        generator = ResponseGenerator(client=client)
        assert generator.generate(TURNS) == "ohh ok, which bank is this?"

    def test_single_call_with_fixed_sampling(self):
        client, completions = _client("ok")
        ResponseGenerator(client=client).generate(TURNS)

        assert len(completions.calls) == 1
        call = completions.calls[0]
        assert call["messages"] == TURNS
        assert call["temperature"] == config.LLM_TEMPERATURE
        assert call["max_tokens"] == config.LLM_MAX_TOKENS
        assert call["timeout"] == config.LLM_TIMEOUT_SECONDS

    @pytest.mark.parametrize("content", ["", None, "   ", "<think>plan</think>"])
    def test_empty_content_falls_back(self, content):
        client, _ = _client(content)
        assert ResponseGenerator(client=client).generate(TURNS) == FALLBACK_REPLY

    def test_no_choices_falls_back(self):
        client, completions = _client("unused")
        completions.create = lambda **kwargs: SimpleNamespace(choices=[])
        assert ResponseGenerator(client=client).generate(TURNS) == FALLBACK_REPLY


class TestCleanReply:
    def test_speaker_label_removed(self):
        client, _ = _client("Priya: ohh ok sir")
        assert ResponseGenerator(client=client).generate(TURNS) == "ohh ok sir"

    def test_wrapping_quotes_and_markdown_removed(self):
        client, _ = _client('"**hmm** what is the upi id again?"')
        assert ResponseGenerator(client=client).generate(TURNS) == "hmm what is the upi id again?"


class TestUpstreamErrors:
    def test_missing_credential(self):
        generator = ResponseGenerator(api_key="")
        with pytest.raises(UpstreamError):
            generator.generate(TURNS)

    def test_connection_error(self):
        client, _ = _client(error=APIConnectionError(request=REQUEST))
        with pytest.raises(UpstreamError):
            ResponseGenerator(client=client).generate(TURNS)

    def test_timeout(self):
        client, _ = _client(error=APITimeoutError(request=REQUEST))
        with pytest.raises(UpstreamError):
            ResponseGenerator(client=client).generate(TURNS)

    def test_non_success_status(self):
        response = httpx.Response(503, request=REQUEST, json={"error": "overloaded"})
        error = APIStatusError("service unavailable", response=response, body=None)
        client, _ = _client(error=error)
        with pytest.raises(UpstreamError) as excinfo:
            ResponseGenerator(client=client).generate(TURNS)
        assert "APIStatusError" in excinfo.value.details
