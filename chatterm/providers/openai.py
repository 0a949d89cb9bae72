"""OpenAI LLM provider — thin subclass of OpenAICompatibleProvider."""

from openai import AsyncOpenAI

from chatterm.providers.openai_compat import OpenAICompatibleProvider


class OpenAIProvider(OpenAICompatibleProvider):
    """LLM provider backed by OpenAI's Chat Completions API."""

    def __init__(self, *, client: AsyncOpenAI | None = None, api_key: str | None = None) -> None:
        if client is not None:
            super().__init__(client)
        else:
            # Failures are reported once per turn, never retried
            super().__init__(AsyncOpenAI(api_key=api_key, max_retries=0))

    @property
    def name(self) -> str:
        return "openai"
