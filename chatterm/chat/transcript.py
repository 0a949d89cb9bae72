"""Plain-text mirror of the conversation.

One line per retained message, "{role}: {content}\n", appended and flushed as
the conversation happens. System messages and the user's session commands are
never written.
"""

from pathlib import Path
from typing import TextIO

# User inputs that control the session rather than talk to the model
SESSION_COMMANDS = frozenset({"/tokens", "exit", "quit"})


def should_record(role: str, content: str) -> bool:
    if role == "system":
        return False
    if role == "user" and content.strip().lower() in SESSION_COMMANDS:
        return False
    return True


class TranscriptLogger:
    """Append-only transcript sink. Without a stream every call is a no-op."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @classmethod
    def open(cls, path: str | Path) -> "TranscriptLogger":
        """Open path for appending. Raises OSError if it cannot be opened."""
        return cls(open(path, "a", encoding="utf-8"))

    @property
    def enabled(self) -> bool:
        return self._stream is not None

    def record(self, role: str, content: str) -> None:
        if self._stream is None or not should_record(role, content):
            return
        self._stream.write(f"{role}: {content}\n")
        self._stream.flush()

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def __enter__(self) -> "TranscriptLogger":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
