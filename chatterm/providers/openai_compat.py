"""Shared base class for OpenAI-compatible LLM providers.

Handles parameter building, response parsing and error mapping.
OpenAIProvider and GenericOpenAIProvider are thin subclasses that differ
only in client configuration.
"""

import logging
import time
from typing import Any

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from chatterm.providers.base import (
    CompletionError,
    GenerationRequest,
    GenerationResult,
    LLMProvider,
)

logger = logging.getLogger(__name__)


class OpenAICompatibleProvider(LLMProvider):
    """Base provider for any API that speaks the OpenAI chat completions protocol."""

    def __init__(self, client: AsyncOpenAI) -> None:
        self._client = client

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        params = self._build_params(request)
        logger.debug(
            "Requesting completion from %s: model=%s messages=%d",
            self.name, request.model, len(params["messages"]),
        )
        start = time.monotonic()
        try:
            response = await self._client.chat.completions.create(**params)
        except openai.APIError as exc:
            raise CompletionError(
                exc.message,
                status=getattr(exc, "status_code", None),
                code=exc.code,
                error_type=exc.type,
            ) from exc
        except openai.OpenAIError as exc:
            raise CompletionError(str(exc)) from exc
        latency_ms = int((time.monotonic() - start) * 1000)

        if not response.choices:
            raise CompletionError("Response contained no choices")
        choice = response.choices[0]
        content = choice.message.content or ""

        usage = None
        if response.usage is not None:
            usage = {
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            }

        logger.debug(
            "Completion finished: finish_reason=%s latency_ms=%d",
            choice.finish_reason, latency_ms,
        )
        try:
            return GenerationResult(
                content=content,
                model=response.model or request.model,
                finish_reason=choice.finish_reason,
                usage=usage,
                latency_ms=latency_ms,
            )
        except ValidationError as exc:
            raise CompletionError(f"Malformed response from {self.name}: {exc}") from exc

    @staticmethod
    def _build_params(request: GenerationRequest) -> dict[str, Any]:
        """Build kwargs dict for client.chat.completions.create()."""
        sp = request.sampling_params
        params: dict[str, Any] = {
            "model": request.model,
            "messages": [m.to_api() for m in request.messages],
        }
        if sp.reasoning_effort is not None:
            params["reasoning_effort"] = sp.reasoning_effort
        if sp.max_completion_tokens is not None:
            params["max_completion_tokens"] = sp.max_completion_tokens
        return params
