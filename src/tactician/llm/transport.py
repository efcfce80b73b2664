"""OpenAI-compatible LLM transport.

Sends prompts to any OpenAI-compatible chat completions endpoint
(OpenRouter by default) and retries rate limits, timeouts and connection
failures with exponential backoff. Every failure that survives the
retries is raised as ``TransportError``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    OpenAIError,
    RateLimitError,
)
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tactician.core.config import LLMSettings, get_settings
from tactician.core.exceptions import ConfigurationError, TransportError
from tactician.core.logging import get_logger
from tactician.llm.prompts import SYSTEM_PROMPT


if TYPE_CHECKING:
    from openai.types.chat import ChatCompletion

logger = get_logger(__name__)

RETRYABLE_ERRORS = (RateLimitError, APIConnectionError, APITimeoutError)


def create_client(settings: LLMSettings) -> AsyncOpenAI:
    """Create an async OpenAI client for the configured endpoint.

    Raises:
        ConfigurationError: If no API key is configured.
    """
    if settings.api_key is None or not settings.api_key.get_secret_value():
        raise ConfigurationError(
            "LLM API key not configured. Set TACTICIAN_LLM_API_KEY",
            config_key="llm.api_key",
        )
    return AsyncOpenAI(
        api_key=settings.api_key.get_secret_value(),
        base_url=settings.base_url,
        timeout=settings.timeout_seconds,
        max_retries=0,
        default_headers={"X-Title": "Tactician"},
    )


class OpenAITransport:
    """LLM transport over the chat completions API.

    Attributes:
        settings: LLM settings in use.
    """

    def __init__(
        self,
        settings: LLMSettings | None = None,
        *,
        client: AsyncOpenAI | None = None,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        """Initialize the transport.

        Args:
            settings: LLM settings (defaults to ``get_settings().llm``).
            client: Pre-built client; created from settings when omitted.
            system_prompt: System message sent before every prompt.
        """
        self.settings = settings or get_settings().llm
        self._client = client or create_client(self.settings)
        self._system_prompt = system_prompt

        logger.info(
            "LLM transport initialized",
            model=self.settings.model,
            base_url=self.settings.base_url,
            max_retries=self.settings.max_retries,
        )

    @property
    def model_name(self) -> str:
        return self.settings.model

    async def _complete(self, prompt: str) -> str:
        response: ChatCompletion = await self._client.chat.completions.create(
            model=self.settings.model,
            messages=[
                {"role": "system", "content": self._system_prompt},
                {"role": "user", "content": prompt},
            ],
            max_tokens=self.settings.max_tokens,
            temperature=self.settings.temperature,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def send(self, prompt: str) -> str:
        """Send a prompt and return the reply text.

        Args:
            prompt: User prompt built for this request.

        Returns:
            The model's reply.

        Raises:
            TransportError: If the request fails after retries or the
                reply is empty.
        """
        details = {"model": self.settings.model, "provider": self.settings.base_url}
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(RETRYABLE_ERRORS),
                stop=stop_after_attempt(self.settings.max_retries),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                reraise=True,
            ):
                with attempt:
                    reply = await self._complete(prompt)
        except RateLimitError as exc:
            raise TransportError(f"Rate limit exceeded: {exc}", **details) from exc
        except (APIConnectionError, APITimeoutError) as exc:
            raise TransportError(f"Failed to reach the model: {exc}", **details) from exc
        except APIStatusError as exc:
            raise TransportError(
                f"Model API error: {exc}",
                details={"status_code": exc.status_code},
                **details,
            ) from exc
        except (OpenAIError, RetryError) as exc:
            raise TransportError(f"Model request failed: {exc}", **details) from exc

        if not reply.strip():
            raise TransportError("Model returned an empty reply", **details)

        logger.debug("LLM reply received", model=self.settings.model, reply_length=len(reply))
        return reply


__all__ = [
    "RETRYABLE_ERRORS",
    "create_client",
    "OpenAITransport",
]
