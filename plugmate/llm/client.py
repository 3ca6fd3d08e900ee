"""LLM client for the Ollama and OpenAI-compatible providers."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import requests

from ..constants import (
    DEFAULT_OLLAMA_BASE_URL, DEFAULT_OLLAMA_MODEL, DEFAULT_OPENAI_BASE_URL,
    DEFAULT_OPENAI_MODEL, DEFAULT_HTTP_TIMEOUT, DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY,
    DEFAULT_MAX_RETRY_DELAY, OLLAMA_PING_TIMEOUT, OPENAI_SYSTEM_PROMPT,
)
from ..config.manager import ConfigManager, default_config, normalize_provider
from ..errors import PlugmateError, ProviderError, ProviderUnavailableError
from ..utils.logging import logger
from .retry import RetryConfig, request_with_retry


@dataclass
class AskOptions:
    """Call-site overrides; empty fields fall back to the configuration."""
    provider: str = ""
    model: str = ""
    base_url: str = ""


@dataclass
class AskResult:
    text: str
    provider: str
    model: str


@dataclass
class SessionProvider:
    """Provider chosen once for an interactive session."""
    provider: str
    model: str
    options: AskOptions = field(default_factory=AskOptions)


def _clean_url(url: str, default: str) -> str:
    return (url or "").strip().rstrip("/") or default


class LLMClient:
    """Sends prompts to an LLM provider and returns the generated text."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, api_key: str = "",
                 config_source: str = "", session: Optional[requests.Session] = None):
        """Initialize LLM client.

        Args:
            config: Application configuration (defaults when None)
            api_key: OpenAI API key resolved from config or environment
            config_source: Config file path shown in missing-key errors
            session: HTTP session, replaceable in tests
        """
        self.config = config or default_config()
        self.api_key = api_key
        self.config_source = config_source or "the config file"
        self.http = session or requests.Session()
        self.timeout = self.config.get("http_timeout", DEFAULT_HTTP_TIMEOUT)
        self.retry_config = RetryConfig(
            max_retries=self.config.get("max_retries", DEFAULT_MAX_RETRIES),
            base_delay=float(self.config.get("retry_delay", DEFAULT_RETRY_DELAY)),
            max_delay=DEFAULT_MAX_RETRY_DELAY,
        )

    def provider_for(self, options: Optional[AskOptions]) -> str:
        requested = options.provider if options and options.provider else self.config.get("provider", "")
        return normalize_provider(requested)

    def ollama_settings(self, options: Optional[AskOptions] = None) -> Tuple[str, str]:
        section = self.config.get("ollama", {})
        base_url = (options.base_url if options else "") or section.get("base_url", "")
        model = (options.model if options else "") or section.get("model", "")
        return _clean_url(base_url, DEFAULT_OLLAMA_BASE_URL), model.strip() or DEFAULT_OLLAMA_MODEL

    def openai_settings(self, options: Optional[AskOptions] = None) -> Tuple[str, str]:
        section = self.config.get("openai", {})
        base_url = (options.base_url if options else "") or section.get("base_url", "")
        model = (options.model if options else "") or section.get("model", "")
        return _clean_url(base_url, DEFAULT_OPENAI_BASE_URL), model.strip() or DEFAULT_OPENAI_MODEL

    def missing_key_message(self) -> str:
        return f"missing OpenAI API key (set in {self.config_source} or OPENAI_API_KEY)"

    def ask(self, prompt: str, options: Optional[AskOptions] = None) -> AskResult:
        """Send ``prompt`` to the configured provider.

        ``auto`` tries Ollama first and falls back to OpenAI.

        Args:
            prompt: Prompt text
            options: Provider/model/base URL overrides

        Returns:
            AskResult with the generated text and the provider/model that answered

        Raises:
            ConfigError: Unknown provider name
            ProviderUnavailableError: The provider could not be reached
            ProviderError: The provider rejected the request or returned nothing
        """
        text = (prompt or "").strip()
        if not text:
            raise PlugmateError("prompt is required")

        provider = self.provider_for(options)
        if provider == "ollama":
            return self._ask_ollama(text, options)
        if provider == "openai":
            return self._ask_openai(text, options)

        try:
            return self._ask_ollama(text, options)
        except PlugmateError as e:
            logger.debug(f"Ollama unavailable ({e}); falling back to OpenAI")
        try:
            return self._ask_openai(text, options)
        except ProviderUnavailableError as e:
            raise ProviderUnavailableError(f"ollama unavailable and openai fallback failed: {e}") from e
        except ProviderError as e:
            raise ProviderError(f"ollama unavailable and openai fallback failed: {e}", status=e.status) from e

    def _post_json(self, url: str, body: Dict[str, Any], headers: Dict[str, str], context: str) -> Dict[str, Any]:
        logger.debug(f"POST {url}")
        response = request_with_retry(
            lambda: self.http.post(url, json=body, headers=headers, timeout=self.timeout),
            self.retry_config,
            context=context,
        )
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(f"{context} returned invalid JSON: {e}", status=response.status_code) from e
        if not isinstance(data, dict):
            raise ProviderError(f"{context} returned an unexpected body", status=response.status_code)
        return data

    def _ask_ollama(self, prompt: str, options: Optional[AskOptions]) -> AskResult:
        base_url, model = self.ollama_settings(options)
        data = self._post_json(
            f"{base_url}/api/generate",
            {"model": model, "prompt": prompt, "stream": False},
            {"Content-Type": "application/json"},
            "ollama request",
        )
        answer = str(data.get("response") or "").strip()
        if not answer:
            raise ProviderError("empty ollama response")
        logger.llm(f"Response received from ollama ({model})")
        return AskResult(text=answer, provider="ollama", model=model)

    def _ask_openai(self, prompt: str, options: Optional[AskOptions]) -> AskResult:
        base_url, model = self.openai_settings(options)
        if not self.api_key:
            raise ProviderError(self.missing_key_message())
        data = self._post_json(
            f"{base_url}/chat/completions",
            {
                "model": model,
                "messages": [
                    {"role": "system", "content": OPENAI_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            },
            {"Content-Type": "application/json", "Authorization": f"Bearer {self.api_key}"},
            "openai request",
        )
        choices = data.get("choices") or []
        if not choices:
            raise ProviderError("empty openai response")
        message = (choices[0] or {}).get("message") or {}
        answer = str(message.get("content") or "").strip()
        if not answer:
            raise ProviderError("empty openai content")
        logger.llm(f"Response received from openai ({model})")
        return AskResult(text=answer, provider="openai", model=model)

    def ping_ollama(self, base_url: str) -> None:
        """Check that an Ollama server answers on ``/api/tags``.

        Raises:
            ProviderUnavailableError: No server, or a non-2xx answer
        """
        url = f"{_clean_url(base_url, DEFAULT_OLLAMA_BASE_URL)}/api/tags"
        try:
            response = self.http.get(url, timeout=OLLAMA_PING_TIMEOUT)
        except requests.RequestException as e:
            raise ProviderUnavailableError(f"ollama unavailable: {e}") from e
        if not 200 <= response.status_code < 300:
            raise ProviderUnavailableError(f"ollama unavailable: status {response.status_code}")

    def resolve_session_provider(self, options: Optional[AskOptions] = None) -> SessionProvider:
        """Pick the provider for an interactive session, once.

        Raises:
            ConfigError: Unknown provider name
            ProviderUnavailableError: Ollama was requested but is not running
            ProviderError: OpenAI is needed but no API key is configured
        """
        provider = self.provider_for(options)
        ollama_base, ollama_model = self.ollama_settings(options)
        openai_base, openai_model = self.openai_settings(options)

        if provider == "ollama":
            self.ping_ollama(ollama_base)
            return SessionProvider("ollama", ollama_model, AskOptions("ollama", ollama_model, ollama_base))
        if provider == "auto":
            try:
                self.ping_ollama(ollama_base)
                return SessionProvider("ollama", ollama_model, AskOptions("ollama", ollama_model, ollama_base))
            except ProviderUnavailableError as e:
                logger.debug(str(e))
            if not self.api_key:
                raise ProviderError("ollama unavailable and OpenAI API key is missing")
        elif not self.api_key:
            raise ProviderError(self.missing_key_message())
        return SessionProvider("openai", openai_model, AskOptions("openai", openai_model, openai_base))


def create_llm_client(config_manager: Optional[ConfigManager] = None,
                      session: Optional[requests.Session] = None) -> LLMClient:
    """Create an LLM client from a loaded configuration manager."""
    if config_manager is None:
        return LLMClient(session=session)
    return LLMClient(
        config_manager.config,
        api_key=config_manager.openai_api_key(),
        config_source=config_manager.describe_source(),
        session=session,
    )
