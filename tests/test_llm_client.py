"""Tests for the LLM client against a fake HTTP session."""

import pytest
import requests

from plugmate.config.manager import default_config
from plugmate.errors import PlugmateError, ProviderError, ProviderUnavailableError
from plugmate.llm.client import AskOptions, LLMClient


class StubResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self.payload = payload
        self.text = text

    def json(self):
        if self.payload is None:
            raise ValueError("no json")
        return self.payload


class FakeSession:
    """Routes requests by URL suffix; a missing route refuses the connection."""

    def __init__(self, routes):
        self.routes = routes
        self.posts = []
        self.gets = []

    def _route(self, url):
        for suffix, response in self.routes.items():
            if url.endswith(suffix):
                return response
        raise requests.ConnectionError(f"connection refused: {url}")

    def post(self, url, json=None, headers=None, timeout=None):
        self.posts.append((url, json, headers))
        return self._route(url)

    def get(self, url, timeout=None):
        self.gets.append(url)
        return self._route(url)


def make_client(routes, provider="ollama", api_key=""):
    config = default_config()
    config["provider"] = provider
    config["max_retries"] = 0
    return LLMClient(config, api_key=api_key, session=FakeSession(routes))


OPENAI_OK = StubResponse(payload={"choices": [{"message": {"content": " hi from openai "}}]})


class TestAsk:
    """Tests for single prompt round-trips."""

    def test_ollama(self):
        client = make_client({"/api/generate": StubResponse(payload={"response": "hello"})})

        result = client.ask("say hi", AskOptions(model="llama3", base_url="http://box:11434/"))

        assert (result.text, result.provider, result.model) == ("hello", "ollama", "llama3")
        url, body, _ = client.http.posts[0]
        assert url == "http://box:11434/api/generate"
        assert body == {"model": "llama3", "prompt": "say hi", "stream": False}

    def test_openai(self):
        client = make_client({"/chat/completions": OPENAI_OK}, provider="openai", api_key="sk-1")

        result = client.ask("say hi")

        assert result.text == "hi from openai"
        assert result.provider == "openai"
        _, body, headers = client.http.posts[0]
        assert headers["Authorization"] == "Bearer sk-1"
        assert body["messages"][1] == {"role": "user", "content": "say hi"}

    def test_openai_without_key(self):
        client = make_client({"/chat/completions": OPENAI_OK}, provider="openai")

        with pytest.raises(ProviderError, match="missing OpenAI API key"):
            client.ask("say hi")

    def test_auto_falls_back_to_openai(self):
        client = make_client({"/chat/completions": OPENAI_OK}, provider="auto", api_key="sk-1")

        assert client.ask("say hi").provider == "openai"

    def test_auto_reports_both_failures(self):
        client = make_client({}, provider="auto", api_key="sk-1")

        with pytest.raises(ProviderUnavailableError, match="openai fallback failed"):
            client.ask("say hi")

    def test_empty_prompt(self):
        with pytest.raises(PlugmateError, match="prompt is required"):
            make_client({}).ask("   ")

    def test_empty_ollama_response(self):
        client = make_client({"/api/generate": StubResponse(payload={"response": "  "})})

        with pytest.raises(ProviderError, match="empty ollama response"):
            client.ask("say hi")

    def test_invalid_json_body(self):
        client = make_client({"/api/generate": StubResponse(text="<html>")})

        with pytest.raises(ProviderError, match="invalid JSON"):
            client.ask("say hi")

    def test_http_error_status(self):
        client = make_client({"/api/generate": StubResponse(404, text="model not found")})

        with pytest.raises(ProviderError) as excinfo:
            client.ask("say hi")

        assert excinfo.value.status == 404


class TestSessionProvider:
    """Tests for choosing the provider of an interactive session."""

    def test_auto_prefers_running_ollama(self):
        client = make_client({"/api/tags": StubResponse(payload={})}, provider="auto")

        chosen = client.resolve_session_provider()

        assert chosen.provider == "ollama"
        assert chosen.options.provider == "ollama"

    def test_auto_without_ollama_uses_openai(self):
        client = make_client({}, provider="auto", api_key="sk-1")

        chosen = client.resolve_session_provider()

        assert chosen.provider == "openai"
        assert chosen.options.base_url == "https://api.openai.com/v1"

    def test_auto_without_anything(self):
        client = make_client({}, provider="auto")

        with pytest.raises(ProviderError, match="API key is missing"):
            client.resolve_session_provider()

    def test_ollama_must_be_running(self):
        client = make_client({"/api/tags": StubResponse(500)}, provider="ollama")

        with pytest.raises(ProviderUnavailableError, match="status 500"):
            client.resolve_session_provider()
