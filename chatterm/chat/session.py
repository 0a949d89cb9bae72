"""Turn controller: drives one chat session from user input to model replies.

A turn appends the user's message, asks the provider for a reply and appends
it. While the provider reports the reply was cut off by the length limit, a
synthetic "Continue" prompt is appended and the provider is asked again. A
turn, including every continuation round, finishes before the next line of
input is read.
"""

import logging
import sys
from collections.abc import Awaitable, Callable
from typing import TextIO

from chatterm.chat.transcript import TranscriptLogger
from chatterm.conversation.store import ConversationStore
from chatterm.conversation.window import ContextWindow, UnboundedWindow
from chatterm.generation.cost import estimate_cost, format_token_report
from chatterm.generation.tokens import TiktokenCounter, TokenCounter, count_tokens_by_role
from chatterm.models import CONTINUE_PROMPT, Message, SamplingParams, TokenUsage, TurnOutcome
from chatterm.providers.base import (
    CompletionError,
    GenerationRequest,
    GenerationResult,
    LLMProvider,
)

logger = logging.getLogger(__name__)

TOKENS_COMMAND = "/tokens"
EXIT_COMMANDS = frozenset({"exit", "quit"})

BANNER = [
    "Interactive chat. Type your message and press enter.",
    f"Type '{TOKENS_COMMAND}' to see the current token count and cost.",
    "Type 'exit' or 'quit' to end the session.",
]


def is_exit_command(line: str) -> bool:
    return line.strip().lower() in EXIT_COMMANDS


class ChatSession:
    """One interactive conversation with a single provider and model."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        model: str,
        store: ConversationStore | None = None,
        sampling_params: SamplingParams | None = None,
        counter: TokenCounter | None = None,
        window: ContextWindow | None = None,
        transcript: TranscriptLogger | None = None,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ) -> None:
        self.provider = provider
        self.model = model
        self.store = store if store is not None else ConversationStore()
        self.sampling_params = sampling_params or SamplingParams()
        self.counter = counter if counter is not None else TiktokenCounter(model)
        self.window = window or UnboundedWindow()
        self.transcript = transcript or TranscriptLogger()
        self._out = out
        self._err = err

    # -- console --------------------------------------------------------

    def _print(self, text: str) -> None:
        print(text, file=self._out or sys.stdout, flush=True)

    def _print_error(self, text: str) -> None:
        print(text, file=self._err or sys.stderr, flush=True)

    # -- token accounting -----------------------------------------------

    def token_usage(self) -> TokenUsage:
        """Token counts for the full history, recomputed on every call."""
        return count_tokens_by_role(self.store.snapshot(), self.model, self.counter)

    def report_tokens(self) -> None:
        usage = self.token_usage()
        for line in format_token_report(usage, estimate_cost(usage)):
            self._print(line)

    # -- turns ----------------------------------------------------------

    def _append(self, role: str, content: str) -> Message:
        message = self.store.add(role, content)  # type: ignore[arg-type]
        self.transcript.record(role, content)
        return message

    async def _request(self) -> GenerationResult | None:
        """Ask the provider for the next reply. None if the request failed."""
        messages, report = self.window.select(self.store.snapshot())
        if report.eviction_applied:
            logger.debug(
                "Sending %d of %d messages: evicted %d, freed %d tokens, %d tokens sent",
                len(messages), len(self.store), report.evicted_count,
                report.tokens_freed, report.final_token_count,
            )
        request = GenerationRequest(
            model=self.model,
            messages=messages,
            sampling_params=self.sampling_params,
        )
        try:
            return await self.provider.generate(request)
        except CompletionError as exc:
            logger.debug("Completion request failed", exc_info=True)
            for line in exc.diagnostic_lines():
                self._print_error(line)
            return None

    async def run_turn(self, text: str) -> list[TurnOutcome]:
        """Run one user turn to completion, continuing truncated replies.

        Returns one outcome per reply received. A failed request ends the turn
        without appending anything further; a failure after a truncated reply
        leaves the history ending on that truncated reply.
        """
        outcomes: list[TurnOutcome] = []
        self._append("user", text)

        result = await self._request()
        if result is None:
            self._print_error("No response from API.")
            return outcomes

        reply = self._append("assistant", result.content)
        outcomes.append(TurnOutcome(reply=reply, complete=not result.truncated))
        self._print(f"Assistant: {result.content}")

        while result.truncated:
            self._print("[Response truncated. Automatically continuing...]")
            self._append("user", CONTINUE_PROMPT)
            result = await self._request()
            if result is None:
                self._print_error("No continuation response from API.")
                break
            reply = self._append("assistant", result.content)
            outcomes.append(TurnOutcome(reply=reply, complete=not result.truncated))
            self._print(result.content)

        if len(outcomes) > 1:
            logger.info("Turn needed %d continuation round(s)", len(outcomes) - 1)
        return outcomes

    async def handle_line(self, line: str) -> bool:
        """Process one line of input. Returns False when the session should end."""
        text = line.strip()
        if is_exit_command(text):
            return False
        if text == TOKENS_COMMAND:
            self.report_tokens()
            return True
        if not text:
            return True
        await self.run_turn(text)
        return True

    async def run(self, read_line: Callable[[], Awaitable[str | None]]) -> None:
        """Read and handle lines until exit, quit or end of input.

        read_line returns None at end of input.
        """
        for line in BANNER:
            self._print(line)
        try:
            while True:
                line = await read_line()
                if line is None or not await self.handle_line(line):
                    break
        finally:
            self._print("Exiting chat.")
            self.transcript.close()
