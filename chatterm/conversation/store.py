"""Append-only conversation history for a single chat session."""

from collections.abc import Iterator

from chatterm.models import Message, Role


class ConversationStore:
    """Ordered, append-only sequence of messages.

    The order is exactly the order in which messages were appended, which is
    the order they are sent to the model. Nothing is ever reordered, merged,
    edited or removed. There is no size cap here; limiting what gets sent is
    the job of a ContextWindow.
    """

    def __init__(self, system_prompt: str | None = None) -> None:
        self._messages: list[Message] = []
        if system_prompt:
            self._messages.append(Message(role="system", content=system_prompt))

    def append(self, message: Message) -> None:
        if message is None:
            raise TypeError("Cannot append None to the conversation")
        self._messages.append(message)

    def add(self, role: Role, content: str) -> Message:
        """Build a message, append it and return it."""
        message = Message(role=role, content=content)
        self.append(message)
        return message

    def snapshot(self) -> tuple[Message, ...]:
        """Read-only view of the full history in order."""
        return tuple(self._messages)

    def messages_by_role(self, role: Role) -> list[Message]:
        return [m for m in self._messages if m.role == role]

    @property
    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.snapshot())
