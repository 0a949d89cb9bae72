"""Context window policies: which part of the history is sent to the model.

The conversation store keeps everything. A ContextWindow picks the messages
for each request. UnboundedWindow sends the full history, which is the default
and means the request grows for as long as the session runs.
TokenBudgetWindow drops whole messages, oldest first, until the request fits.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from chatterm.generation.tokens import TokenCounter, get_message_overhead
from chatterm.models import EvictionReport, Message

logger = logging.getLogger(__name__)

# Known model context limits (tokens). Falls back to DEFAULT for unknown models.
MODEL_CONTEXT_LIMITS: dict[str, int] = {
    "o3-mini": 200_000,
    "o4-mini": 200_000,
    "o1": 200_000,
    "gpt-5-mini": 128_000,
    "gpt-4o": 128_000,
    "gpt-4o-mini": 128_000,
    "gpt-4-turbo": 128_000,
    "gpt-4": 8_192,
    "gpt-3.5-turbo": 16_385,
}
DEFAULT_CONTEXT_LIMIT = 200_000


def get_model_context_limit(model: str) -> int:
    """Look up context limit for a model, falling back to a conservative default."""
    return MODEL_CONTEXT_LIMITS.get(model, DEFAULT_CONTEXT_LIMIT)


class ContextWindow(ABC):
    @abstractmethod
    def select(self, messages: Sequence[Message]) -> tuple[list[Message], EvictionReport]:
        """Return the messages to send, in their original order."""
        ...


class UnboundedWindow(ContextWindow):
    """Send the whole history on every request."""

    def select(self, messages: Sequence[Message]) -> tuple[list[Message], EvictionReport]:
        return list(messages), EvictionReport()


class TokenBudgetWindow(ContextWindow):
    """Keep the request under max_tokens by dropping the oldest messages.

    System messages are always kept. The newest message is never dropped,
    so a single oversized message is still sent. The budget never exceeds
    the model's own context limit.
    """

    def __init__(self, max_tokens: int, counter: TokenCounter, model: str) -> None:
        if max_tokens <= 0:
            raise ValueError("max_tokens must be positive")
        limit = get_model_context_limit(model)
        if max_tokens > limit:
            logger.warning(
                "Context budget %d exceeds the %d-token limit of %s; using %d",
                max_tokens, limit, model, limit,
            )
            max_tokens = limit
        self.max_tokens = max_tokens
        self._counter = counter
        self._tokens_per_message, _ = get_message_overhead(model)

    def _cost(self, message: Message) -> int:
        return self._tokens_per_message + self._counter.count(message.content)

    def select(self, messages: Sequence[Message]) -> tuple[list[Message], EvictionReport]:
        costs = [self._cost(m) for m in messages]
        total = sum(costs)
        if total <= self.max_tokens:
            return list(messages), EvictionReport(final_token_count=total)

        keep = [True] * len(messages)
        evicted = 0
        freed = 0
        for i, message in enumerate(messages[:-1]):
            if total <= self.max_tokens:
                break
            if message.role == "system":
                continue
            keep[i] = False
            evicted += 1
            freed += costs[i]
            total -= costs[i]

        if evicted:
            logger.warning(
                "Context over budget: dropped %d oldest message(s), %d tokens (%d / %d sent)",
                evicted, freed, total, self.max_tokens,
            )
        if total > self.max_tokens:
            logger.warning(
                "Request still over budget with nothing left to drop (%d / %d tokens)",
                total, self.max_tokens,
            )
        selected = [m for m, k in zip(messages, keep) if k]
        return selected, EvictionReport(
            eviction_applied=evicted > 0,
            evicted_count=evicted,
            tokens_freed=freed,
            final_token_count=total,
        )
