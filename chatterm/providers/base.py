"""Abstract LLM provider interface and shared data types."""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from chatterm.models import Message, SamplingParams

# finish_reason reported when a reply was cut off by the output token limit
FINISH_LENGTH = "length"


class GenerationRequest(BaseModel):
    """Everything a provider needs to make an API call.

    The remote model keeps no state between calls, so messages is always the
    full history to condition on, not just the newest message.
    """

    model: str
    messages: list[Message]
    sampling_params: SamplingParams = Field(default_factory=SamplingParams)


class GenerationResult(BaseModel):
    """Full response from a provider after generation completes."""

    content: str
    model: str
    finish_reason: str | None = None
    usage: dict[str, int] | None = None
    latency_ms: int | None = None

    @property
    def truncated(self) -> bool:
        return self.finish_reason == FINISH_LENGTH


class CompletionError(Exception):
    """A completion request failed. The message is ready to show the user."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: str | None = None,
        error_type: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.error_type = error_type

    def diagnostic_lines(self) -> list[str]:
        """Lines for the console, most important first."""
        if self.status is None and self.code is None and self.error_type is None:
            return [f"Error: {self}"]
        return [
            f"API Error: {self.status}",
            str(self),
            str(self.code),
            str(self.error_type),
        ]


class LLMProvider(ABC):
    """Abstract interface for LLM providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g., 'openai')."""
        ...

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Send a non-streaming generation request. Returns the full result.

        Raises:
            CompletionError: On any transport or API failure. Never retried.
        """
        ...
