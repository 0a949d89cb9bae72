"""Canonical data structures for chatterm.

Defined once here, referenced everywhere else. Messages are immutable once
created; usage and cost snapshots are transient values recomputed on demand
from the conversation store.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, computed_field

Role = Literal["system", "user", "assistant"]

# Synthetic user prompt injected after a truncated reply
CONTINUE_PROMPT = "Continue"


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    name: str | None = None

    def to_api(self) -> dict[str, str]:
        """Wire format for the chat completions endpoint."""
        data = {"role": self.role, "content": self.content}
        if self.name is not None:
            data["name"] = self.name
        return data


class TurnOutcome(BaseModel):
    """One round of a turn: the reply and whether it finished normally."""

    reply: Message
    complete: bool


class SamplingParams(BaseModel):
    reasoning_effort: str | None = "high"
    max_completion_tokens: int | None = None


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class CostEstimate(BaseModel):
    input_cost: float
    output_cost: float

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_cost(self) -> float:
        return self.input_cost + self.output_cost


class EvictionReport(BaseModel):
    eviction_applied: bool = False
    evicted_count: int = 0
    tokens_freed: int = 0
    final_token_count: int = 0
