"""Text-generation backends.

Both backends speak the OpenAI chat-completions protocol: DeepSeek is the default
backend and xAI Grok is the premium one. The SDK's own retries are disabled: it
also retries 408, 409 and 429. A failed call is retried once here, and only on
connection errors, timeouts and 5xx responses.
"""

import logging
from typing import Any, Optional, Protocol

import httpx
import openai
from openai import AsyncOpenAI

from app.core.config import Settings, settings
from app.services.config_provider import ConfigProvider, ResolvedConfig, config_provider
from app.utils.exceptions import ConfigurationError, ExternalServiceError

logger = logging.getLogger(__name__)


class TextBackend(Protocol):
    name: str
    model: str

    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> str: ...


class OpenAICompatibleBackend:
    """Chat-completions client bound to one provider and model."""

    def __init__(
        self,
        name: str,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float = 30.0,
        retries: int = 1,
        supports_json_mode: bool = True,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.name = name
        self.model = model
        self.supports_json_mode = supports_json_mode
        self._retries = retries
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> str:
        """
        Run one chat completion and return the message text.

        Raises:
            ExternalServiceError: timeout, transport failure, non-2xx status or empty reply
        """
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        if json_mode and self.supports_json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        attempt = 0
        while True:
            try:
                response = await self._client.chat.completions.create(**kwargs)
                break
            except openai.OpenAIError as exc:
                error = self._map_error(exc)
                if not error.transient or attempt >= self._retries:
                    raise error from exc
                attempt += 1
                logger.warning("%s call failed (%s); retrying", self.name, error.message)

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise ExternalServiceError(f"{self.name} returned an empty response", details={"backend": self.name})
        return content

    def _map_error(self, exc: openai.OpenAIError) -> ExternalServiceError:
        if isinstance(exc, openai.APIConnectionError):
            return ExternalServiceError(
                f"{self.name} request failed: {exc}",
                details={"backend": self.name},
                transient=True,
            )
        if isinstance(exc, openai.APIStatusError):
            return ExternalServiceError(
                f"{self.name} returned HTTP {exc.status_code}",
                details={"backend": self.name, "status": exc.status_code},
                transient=exc.status_code >= 500,
            )
        return ExternalServiceError(f"{self.name} request failed: {exc}", details={"backend": self.name})


class TextBackendFactory:
    """Builds backends from the current runtime configuration.

    ``premium()`` raises ConfigurationError when the Grok flag is off or the key is
    missing; callers that can degrade catch it and use ``default()`` instead.
    """

    def __init__(
        self,
        provider: ConfigProvider = config_provider,
        defaults: Settings = settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._provider = provider
        self._defaults = defaults
        self._http_client = http_client
        self._clients: dict[tuple[str, str], AsyncOpenAI] = {}

    async def default(self, config: Optional[ResolvedConfig] = None) -> TextBackend:
        config = config or await self._provider.load()
        api_key = config.get_secret("DEEPSEEK_API_KEY")
        if not api_key:
            raise ConfigurationError("Default text backend has no API key configured")
        return self._build(
            "deepseek",
            api_key,
            self._defaults.DEEPSEEK_BASE_URL,
            config.get_value("DEEPSEEK_MODEL", self._defaults.DEEPSEEK_MODEL),
        )

    async def premium(self, config: Optional[ResolvedConfig] = None) -> TextBackend:
        config = config or await self._provider.load()
        if not config.get_flag("GROK_ENABLED"):
            raise ConfigurationError("Premium text backend is disabled")
        api_key = config.get_secret("XAI_API_KEY")
        if not api_key:
            raise ConfigurationError("Premium text backend has no API key configured")
        return self._build(
            "grok",
            api_key,
            self._defaults.XAI_BASE_URL,
            config.get_value("GROK_MODEL", self._defaults.GROK_MODEL),
            supports_json_mode=False,
        )

    async def vision(self, config: Optional[ResolvedConfig] = None) -> TextBackend:
        """Premium backend bound to the image-understanding model."""
        config = config or await self._provider.load()
        await self.premium(config)
        return self._build(
            "grok-vision",
            config.get_secret("XAI_API_KEY") or "",
            self._defaults.XAI_BASE_URL,
            self._defaults.GROK_VISION_MODEL,
            supports_json_mode=False,
        )

    def _build(
        self, name: str, api_key: str, base_url: str, model: str, supports_json_mode: bool = True
    ) -> OpenAICompatibleBackend:
        cache_key = (base_url, api_key)
        client = self._clients.get(cache_key)
        if client is None:
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=self._defaults.TEXT_BACKEND_TIMEOUT_SECONDS,
                max_retries=0,
                http_client=self._http_client,
            )
            self._clients[cache_key] = client
            logger.info("Created %s text backend client", name)
        return OpenAICompatibleBackend(
            name, api_key, base_url, model, supports_json_mode=supports_json_mode, client=client
        )

    async def close(self) -> None:
        for client in self._clients.values():
            await client.close()
        self._clients.clear()


text_backend_factory = TextBackendFactory()
