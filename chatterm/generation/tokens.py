"""Token counting for chat-formatted prompts.

Provides a TokenCounter interface, a tiktoken-backed implementation and the
len // 4 heuristic, plus count_tokens_by_role(), which applies the per-message
chat framing overhead and splits the total into input and output tokens.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

import tiktoken

from chatterm.models import Message, TokenUsage

# (tokens_per_message, tokens_per_name) keyed by model family.
# "default" is the bucket for every model without its own entry.
MESSAGE_OVERHEAD: dict[str, tuple[int, int]] = {
    "o3-mini": (3, -1),
    "gpt-4": (3, 1),
    "default": (4, -1),
}

# Framing tokens reserved for the reply, counted as output
REPLY_OVERHEAD = 2


class UnknownModelError(Exception):
    pass


def model_family(model: str) -> str:
    """Map a model id to its key in MESSAGE_OVERHEAD."""
    if model == "o3-mini":
        return "o3-mini"
    if model.startswith("gpt-4"):
        return "gpt-4"
    return "default"


def get_message_overhead(model: str) -> tuple[int, int]:
    return MESSAGE_OVERHEAD[model_family(model)]


class TokenCounter(ABC):
    """Interface for counting tokens in text."""

    @abstractmethod
    def count(self, text: str) -> int:
        """Return the token count for the given text."""
        ...


class ApproximateTokenCounter(TokenCounter):
    """len(text) // 4.

    Roughly 4 characters per token for English text. Useful for backends
    tiktoken has no encoding for; not precise enough for cost reporting.
    """

    def count(self, text: str) -> int:
        return len(text) // 4


class TiktokenCounter(TokenCounter):
    """Exact counts using the encoding tiktoken registers for the model.

    Raises:
        UnknownModelError: If tiktoken has no encoding for the model.
    """

    def __init__(self, model: str, encoding: tiktoken.Encoding | None = None) -> None:
        if encoding is None:
            try:
                encoding = tiktoken.encoding_for_model(model)
            except KeyError:
                raise UnknownModelError(
                    f"No tokenizer registered for model '{model}'."
                    " Use --approximate-tokens to fall back to a character estimate."
                ) from None
        self._encoding = encoding
        self.model = model

    def count(self, text: str) -> int:
        # Special-token markers in chat text are ordinary text, not control tokens
        return len(self._encoding.encode(text, disallowed_special=()))


def count_tokens_by_role(
    messages: Iterable[Message],
    model: str,
    counter: TokenCounter | None = None,
) -> TokenUsage:
    """Count tokens for a conversation, separating input from output.

    Assistant messages count as output; every other role counts as input.
    Each message costs its encoded content (and name) plus the per-message
    overhead of the model family. The reply framing is added to output once.
    """
    if counter is None:
        counter = TiktokenCounter(model)
    tokens_per_message, tokens_per_name = get_message_overhead(model)

    input_tokens = 0
    output_tokens = 0
    for message in messages:
        message_tokens = tokens_per_message + counter.count(message.content)
        if message.name is not None:
            message_tokens += counter.count(message.name) + tokens_per_name
        if message.role == "assistant":
            output_tokens += message_tokens
        else:
            input_tokens += message_tokens

    output_tokens += REPLY_OVERHEAD
    return TokenUsage(input_tokens=input_tokens, output_tokens=output_tokens)
