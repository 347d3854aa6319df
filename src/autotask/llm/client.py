# src/autotask/llm/client.py

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from ..config import Settings, get_settings
from ..core.errors import DelegationError
from ..core.ports import ChatMessage

logger = logging.getLogger(__name__)


def _is_auth_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return True
    return exc.__class__.__name__ in {"UnauthorizedError"}


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.APIConnectionError, httpx.TimeoutException)):
        return True
    return exc.__class__.__name__ in {"Timeout", "ConnectTimeout", "ReadTimeout", "WriteTimeout"}


def _is_not_found_error(exc: Exception) -> bool:
    return isinstance(exc, openai.NotFoundError)


def _status_code(exc: Exception) -> int | None:
    code = getattr(exc, "status_code", None)
    return int(code) if isinstance(code, int) else None


def friendly_llm_error_message(err: Exception, *, model: str = "") -> str:
    """Short operator-facing text for a provider exception."""
    if _is_auth_error(err):
        return "LLM authentication failed. Check your API key (/set api_key=...)."
    if _is_rate_limit_error(err):
        return "LLM is rate-limited. Try again later."
    if _is_not_found_error(err):
        return f"Model not available: {model}" if model else "Model not available."
    if _is_connection_error(err):
        return "LLM network/timeout error. Try again later or change models."
    msg = str(err).strip()
    return msg or f"LLM error ({err.__class__.__name__})."


def _extract_content(response: Any) -> str:
    try:
        choice0 = response.choices[0]
        message = getattr(choice0, "message", None)
        content = getattr(message, "content", None) if message is not None else None
    except (AttributeError, IndexError, TypeError):
        content = None
    return content if isinstance(content, str) else ""


class OpenAICompatibleClient:
    """
    LLM client for OpenAI-compatible chat completion APIs (OpenRouter, OpenAI, Anthropic).

    - One AsyncOpenAI instance per (provider, api_key), created lazily.
    - Automatic SDK retries are disabled: a failed call fails the task.
    - Every provider failure surfaces as DelegationError.
    """

    def __init__(self, settings: Settings | None = None, *, http_client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings if settings is not None else get_settings()
        self._http_client = http_client
        self._clients: dict[tuple[str, str], AsyncOpenAI] = {}

    def _timeout(self) -> httpx.Timeout:
        s = self._settings
        return httpx.Timeout(
            connect=s.llm_connect_timeout_seconds,
            read=s.llm_read_timeout_seconds,
            write=10.0,
            pool=s.llm_connect_timeout_seconds,
        )

    def _get_client(self, provider: str, api_key: str) -> AsyncOpenAI:
        key = (provider, api_key)
        client = self._clients.get(key)
        if client is not None:
            return client

        base_url = (self._settings.provider_base_urls.get(provider) or "").strip()
        if not base_url:
            raise DelegationError(f"Unknown LLM provider: {provider}")

        headers = dict(self._settings.extra_headers) if provider == "openrouter" else None
        client = AsyncOpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=self._timeout(),
            max_retries=0,
            default_headers=headers,
            http_client=self._http_client,
        )
        self._clients[key] = client
        return client

    async def complete(
        self,
        *,
        provider: str,
        api_key: str,
        model: str,
        messages: list[ChatMessage],
        temperature: float,
        max_tokens: int,
    ) -> str:
        api_key = (api_key or self._settings.api_key or "").strip()
        if not api_key:
            raise DelegationError("LLM is not configured (missing API key). Use /set api_key=... or AUTOTASK_API_KEY.")
        if not model.strip():
            raise DelegationError("LLM is not configured (no model). Use /set model=...")

        client = self._get_client(provider, api_key)

        logger.info("LLM: request provider=%s model=%s max_tokens=%s", provider, model, max_tokens)
        t0 = time.monotonic()
        try:
            response = await client.chat.completions.create(
                model=model,
                messages=messages,  # type: ignore[arg-type]
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APIError as e:
            logger.info("LLM: error on model=%s (%s)", model, e.__class__.__name__)
            raise DelegationError(friendly_llm_error_message(e, model=model), status_code=_status_code(e)) from e
        except httpx.HTTPError as e:
            logger.info("LLM: transport error on model=%s (%s)", model, e.__class__.__name__)
            raise DelegationError(friendly_llm_error_message(e, model=model)) from e

        content = _extract_content(response).strip()
        if not content:
            raise DelegationError(f"Model returned no content: {model}")

        logger.debug("LLM: completed with model=%s (%.2fs)", model, time.monotonic() - t0)
        return content

    async def aclose(self) -> None:
        for client in self._clients.values():
            try:
                await client.close()
            except Exception:
                logger.debug("LLM client close failed.", exc_info=True)
        self._clients.clear()
