# src/taskpilot/llm/client.py

from __future__ import annotations

import logging
import time
from typing import Any, Iterable

import httpx
import openai
from openai import OpenAI

from ..core.ports import ChatMessage
from ..errors import LLMError

logger = logging.getLogger(__name__)

# model -> retry_at (monotonic); shared across clients in one process
_BAD_MODELS: dict[str, float] = {}


def _is_auth_error(exc: Exception) -> bool:
    return isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError))


def _is_rate_limit_error(exc: Exception) -> bool:
    return isinstance(exc, openai.RateLimitError)


def _is_connection_error(exc: Exception) -> bool:
    return isinstance(exc, (openai.APIConnectionError, openai.APITimeoutError, httpx.TimeoutException))


def _is_not_found_error(exc: Exception) -> bool:
    return isinstance(exc, openai.NotFoundError)


class OpenRouterLLMClient:
    """
    OpenAI-compatible streaming client pointed at OpenRouter.

    Behavior:
    - Tries models in the order from settings.llm_models.
    - If a model doesn't produce a first content token within the first-token
      timeout, we abort and try the next model.
    - 404 (model not available) -> remember for an hour, try next.
    - Rate limit / network issues -> try next.
    - Auth issues -> fail fast (no retries across models).
    """

    def __init__(self, settings: Any) -> None:
        api_key = getattr(settings, "openrouter_api_key", None)
        base_url = getattr(settings, "openrouter_base_url", "") or ""
        if not api_key or not str(api_key).strip():
            raise LLMError("LLM API key is not set. Set TASKPILOT_OPENROUTER_API_KEY in your .env.")
        if not base_url.strip():
            raise LLMError("LLM base URL is not set. Set TASKPILOT_OPENROUTER_BASE_URL in your .env.")

        self._models: list[str] = [m.strip() for m in getattr(settings, "llm_models", []) if m.strip()]
        self._headers: dict[str, str] = dict(getattr(settings, "extra_headers", {}) or {})
        self._first_token_timeout = float(getattr(settings, "llm_first_token_timeout", 20.0))
        self._timeout = httpx.Timeout(
            connect=float(getattr(settings, "llm_connect_timeout", 5.0)),
            read=float(getattr(settings, "llm_read_timeout", 25.0)),
            write=10.0,
            pool=float(getattr(settings, "llm_connect_timeout", 5.0)),
        )
        # No automatic retries: falling through to the next model is faster.
        self._client = OpenAI(
            base_url=str(base_url),
            api_key=str(api_key),
            timeout=self._timeout,
            max_retries=0,
        )

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        if not self._models:
            raise LLMError("LLM model list is empty. Set TASKPILOT_LLM_MODELS in your .env.")

        last_error: Exception | None = None
        now = time.monotonic()

        for model in self._models:
            retry_at = _BAD_MODELS.get(model)
            if retry_at is not None and retry_at > now:
                continue

            logger.info(
                "LLM: trying model=%s (first_token_timeout=%.1fs)", model, self._first_token_timeout
            )
            t0 = time.monotonic()
            deadline = t0 + self._first_token_timeout
            stream = None
            used_any = False

            try:
                stream = self._client.chat.completions.create(
                    model=model,
                    stream=True,
                    extra_headers=self._headers or None,
                    messages=[{"role": "system", "content": system_prompt}, *messages],
                    timeout=self._timeout,
                )

                for chunk in stream:
                    if not used_any and time.monotonic() > deadline:
                        last_error = TimeoutError(f"First token timeout on model: {model}")
                        logger.info("LLM: first token timeout on model=%s -> trying next", model)
                        break

                    content = chunk.choices[0].delta.content if chunk.choices else None
                    if content:
                        if not used_any:
                            logger.info(
                                "LLM: first token from model=%s (%.2fs)", model, time.monotonic() - t0
                            )
                        used_any = True
                        yield content

                if used_any:
                    logger.debug("LLM: completed with model=%s", model)
                    return

                if last_error is None:
                    last_error = LLMError(f"Model returned no content: {model}")

            except openai.OpenAIError as e:
                last_error = e

                if _is_auth_error(e):
                    raise LLMError(
                        "LLM authentication failed. Check your API key (TASKPILOT_OPENROUTER_API_KEY)."
                    ) from e

                if _is_not_found_error(e):
                    _BAD_MODELS[model] = time.monotonic() + 3600.0
                    logger.info("LLM: model not available (404): %s", model)
                elif _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                elif _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                else:
                    logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)

            finally:
                if stream is not None:
                    stream.close()

        if last_error is not None:
            if _is_rate_limit_error(last_error):
                raise LLMError("LLM is rate-limited. Try again later.") from last_error
            if _is_connection_error(last_error):
                raise LLMError("LLM network/timeout error. Try again later or change models.") from last_error
            raise LLMError("All LLM models failed.") from last_error

        raise LLMError("All LLM models failed.")
