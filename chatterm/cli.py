"""Command-line entry point.

Usage:
    chatterm [-c CONTEXT_FILE] [-o TRANSCRIPT_FILE] [-m MODEL]

Startup problems (missing API key, unreadable context file, transcript that
cannot be opened, model without a tokenizer) are reported on stderr and exit
with status 1 before the interactive loop starts.
"""

import argparse
import asyncio
import logging
import sys
import threading
from pathlib import Path

from chatterm.chat.session import ChatSession
from chatterm.chat.transcript import TranscriptLogger
from chatterm.config import (
    REASONING_EFFORTS,
    ConfigError,
    Settings,
    load_environment,
    load_settings,
)
from chatterm.conversation.store import ConversationStore
from chatterm.conversation.window import ContextWindow, TokenBudgetWindow, UnboundedWindow
from chatterm.generation.tokens import (
    ApproximateTokenCounter,
    TiktokenCounter,
    TokenCounter,
    UnknownModelError,
)
from chatterm.models import SamplingParams
from chatterm.providers.base import LLMProvider
from chatterm.providers.generic_openai import GenericOpenAIProvider
from chatterm.providers.openai import OpenAIProvider

logger = logging.getLogger(__name__)

PROMPT = "You: "


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chatterm",
        description="Interactive chat with an OpenAI-compatible model.",
    )
    parser.add_argument("-c", "--context", type=Path, help="Path to a context file")
    parser.add_argument("-o", "--output", type=Path, help="Path to log conversation output")
    parser.add_argument("-m", "--model", help="Model id (default: o3-mini)")
    parser.add_argument(
        "--reasoning-effort",
        choices=REASONING_EFFORTS,
        help="Reasoning effort for reasoning models; 'none' omits it (default: high)",
    )
    parser.add_argument("--base-url", help="Base URL of an OpenAI-compatible server")
    parser.add_argument(
        "--max-context-tokens",
        type=int,
        help="Drop the oldest messages from requests above this many tokens"
        " (default: no limit)",
    )
    parser.add_argument(
        "--approximate-tokens",
        action="store_true",
        help="Estimate tokens as characters / 4 instead of using tiktoken",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if not verbose:
        # The SDK's own request logging is noise in an interactive terminal
        logging.getLogger("openai").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)


def read_context(path: Path) -> str:
    """Read the system context file. Raises OSError if it cannot be read."""
    return path.read_text(encoding="utf-8")


def build_provider(settings: Settings) -> LLMProvider:
    if settings.base_url:
        return GenericOpenAIProvider(base_url=settings.base_url, api_key=settings.api_key)
    return OpenAIProvider(api_key=settings.api_key)


def build_counter(settings: Settings) -> TokenCounter:
    if settings.approximate_tokens:
        return ApproximateTokenCounter()
    return TiktokenCounter(settings.model)


def build_window(settings: Settings, counter: TokenCounter) -> ContextWindow:
    if settings.max_context_tokens is None:
        return UnboundedWindow()
    return TokenBudgetWindow(settings.max_context_tokens, counter, settings.model)


def build_session(settings: Settings) -> ChatSession:
    """Wire a session from settings. Raises OSError or UnknownModelError."""
    counter = build_counter(settings)
    system_prompt = read_context(settings.context_path) if settings.context_path else None
    transcript = (
        TranscriptLogger.open(settings.output_path)
        if settings.output_path
        else TranscriptLogger()
    )
    return ChatSession(
        build_provider(settings),
        model=settings.model,
        store=ConversationStore(system_prompt),
        sampling_params=SamplingParams(reasoning_effort=settings.reasoning_effort),
        counter=counter,
        window=build_window(settings, counter),
        transcript=transcript,
    )


async def read_stdin_line() -> str | None:
    """Prompt and read one line from the terminal. None at end of input.

    The blocking read runs on a daemon thread so that Ctrl-C can end the
    process while the prompt is still waiting.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[str | None] = loop.create_future()

    def _deliver(line: str | None, exc: BaseException | None) -> None:
        if future.done():
            return
        if exc is not None:
            future.set_exception(exc)
        else:
            future.set_result(line)

    def _read() -> None:
        line: str | None = None
        error: BaseException | None = None
        try:
            line = input(PROMPT)
        except EOFError:
            pass
        except Exception as exc:
            error = exc
        try:
            loop.call_soon_threadsafe(_deliver, line, error)
        except RuntimeError:
            # Loop already closed after an interrupt
            pass

    threading.Thread(target=_read, name="chatterm-stdin", daemon=True).start()
    return await future


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    load_environment()

    try:
        settings = load_settings(args)
    except ConfigError as exc:
        print(exc, file=sys.stderr)
        return 1

    try:
        session = build_session(settings)
    except UnknownModelError as exc:
        print(exc, file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error opening file: {exc}", file=sys.stderr)
        return 1

    logger.debug("Session ready: provider=%s model=%s", session.provider.name, settings.model)
    try:
        asyncio.run(session.run(read_stdin_line))
    except KeyboardInterrupt:
        print(file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
