"""Shared test helpers: scripted providers and deterministic token counters."""

import io

import tiktoken

from chatterm.generation.tokens import TokenCounter
from chatterm.providers.base import (
    CompletionError,
    GenerationRequest,
    GenerationResult,
    LLMProvider,
)


def make_result(content: str = "Hi there!", finish_reason: str | None = "stop") -> GenerationResult:
    return GenerationResult(content=content, model="o3-mini", finish_reason=finish_reason)


class ScriptedProvider(LLMProvider):
    """Provider that replays a fixed script of results or errors.

    Every request is recorded. Once the script runs out the last entry is
    repeated, so a single failing entry fails every call.
    """

    def __init__(self, script: list[GenerationResult | Exception]):
        self.script = list(script)
        self.requests: list[GenerationRequest] = []

    @property
    def name(self) -> str:
        return "scripted"

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.script) - 1)
        entry = self.script[index]
        if isinstance(entry, Exception):
            raise entry
        return entry


def truncating_then_stop(n: int) -> ScriptedProvider:
    """Provider that truncates n times, then finishes normally."""
    script = [make_result(f"part {i}", "length") for i in range(n)]
    script.append(make_result("the end", "stop"))
    return ScriptedProvider(script)


def failing_provider(message: str = "Connection error.") -> ScriptedProvider:
    return ScriptedProvider([CompletionError(message)])


class CharCounter(TokenCounter):
    """One token per character."""

    def count(self, text: str) -> int:
        return len(text)


class KeepOpenStringIO(io.StringIO):
    """In-memory transcript sink that survives close() so tests can read it."""

    def close(self) -> None:
        pass


def make_byte_encoding() -> tiktoken.Encoding:
    """Offline tiktoken encoding: one token per byte, no merges.

    Registers <|endoftext|> as a special token like the real encodings do.
    """
    return tiktoken.Encoding(
        name="bytes-test",
        pat_str=r"\S+|\s+",
        mergeable_ranks={bytes([i]): i for i in range(256)},
        special_tokens={"<|endoftext|>": 256},
    )
