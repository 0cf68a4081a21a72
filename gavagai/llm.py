import logging
from typing import Any

import anthropic
import openai

from .models import ModelSpec

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.0


class ProviderError(RuntimeError):
    """Raised by an adapter when the provider call fails or returns nothing usable."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status


def resolve_client(factory: Any, client: Any | None = None, api_key: str | None = None) -> Any:
    if client is not None:
        return client
    if not api_key:
        raise ProviderError("api_key is required when client is not provided")
    return factory(api_key=api_key)


def extract_text(resp) -> str:
    parts = []
    for block in resp.content:
        if getattr(block, "type", "text") == "text" and getattr(block, "text", None):
            parts.append(block.text)
    raw_text = "".join(parts)
    if not raw_text.strip():
        raise ProviderError("Unexpected response format from Anthropic API: no text content")
    return raw_text.strip()


def _request_kwargs(spec: ModelSpec) -> dict[str, Any]:
    params = spec.params
    kwargs: dict[str, Any] = {
        "model": spec.model,
        "max_tokens": params.get("max_tokens", DEFAULT_MAX_TOKENS),
        "temperature": params.get("temperature", DEFAULT_TEMPERATURE),
    }
    if params.get("timeout") is not None:
        kwargs["timeout"] = params["timeout"]
    return kwargs


class AnthropicAdapter:
    provider_id = "anthropic"

    def __init__(self, *, client: Any | None = None, api_key: str | None = None):
        self._client = client
        self._api_key = api_key

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = resolve_client(anthropic.Anthropic, api_key=self._api_key)
        return self._client

    def complete(self, system_prompt: str, user_message: str, spec: ModelSpec) -> str:
        client = self._get_client()
        logger.debug("anthropic request model=%s", spec.model)
        try:
            resp = client.messages.create(
                system=system_prompt,
                messages=[{"role": "user", "content": user_message}],
                **_request_kwargs(spec),
            )
        except anthropic.RateLimitError as e:
            raise ProviderError("Rate limited by Anthropic API", status=429) from e
        except anthropic.APIStatusError as e:
            raise ProviderError(f"Anthropic API error: {e.message}", status=e.status_code) from e
        except anthropic.APIError as e:
            raise ProviderError(f"Anthropic API error: {e}") from e
        return extract_text(resp)


class OpenAIAdapter:
    provider_id = "openai"

    def __init__(self, *, client: Any | None = None, api_key: str | None = None):
        self._client = client
        self._api_key = api_key

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = resolve_client(openai.OpenAI, api_key=self._api_key)
        return self._client

    def complete(self, system_prompt: str, user_message: str, spec: ModelSpec) -> str:
        client = self._get_client()
        logger.debug("openai request model=%s", spec.model)
        try:
            resp = client.chat.completions.create(
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                **_request_kwargs(spec),
            )
        except openai.RateLimitError as e:
            raise ProviderError("Rate limited by OpenAI API", status=429) from e
        except openai.APIStatusError as e:
            raise ProviderError(f"OpenAI API error: {e.message}", status=e.status_code) from e
        except openai.APIError as e:
            raise ProviderError(f"OpenAI API error: {e}") from e

        choices = getattr(resp, "choices", None) or []
        content = choices[0].message.content if choices and choices[0].message else None
        if not content:
            raise ProviderError("Unexpected response format from OpenAI API: no message content")
        return content
