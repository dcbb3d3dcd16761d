"""In-memory conversation log."""

from collections.abc import Iterator
from typing import Any

from pydantic import ValidationError

from askagent.models.messages import Message, MessageList, SystemMessage
from askagent.utils.logging import get_logger

logger = get_logger(__name__)


class MessageStore:
    """Ordered, append-only log of conversation turns.

    The store is the single source of truth for a conversation: the execution
    loop reads the full snapshot from it before every model invocation and
    history persistence writes its non-system subset.
    """

    def __init__(self, messages: list[Message] | None = None):
        self._messages: list[Message] = list(messages or [])

    def append(self, message: Message) -> None:
        """Append a turn to the end of the log."""
        self._messages.append(message)

    def extend(self, messages: list[Message]) -> None:
        for message in messages:
            self.append(message)

    def all(self) -> list[Message]:
        """Return a snapshot of the ordered log."""
        return list(self._messages)

    def persistable(self) -> list[Message]:
        """Return the turns that belong in the history file (system messages excluded)."""
        return [m for m in self._messages if not isinstance(m, SystemMessage)]

    def load(self, serialized: Any) -> int:
        """Append previously persisted messages.

        Malformed content, including anything that is not a JSON array of
        messages, is treated as an empty history.

        Returns:
            Number of messages loaded
        """
        if serialized is None:
            return 0

        if not isinstance(serialized, list):
            logger.warning(f"Ignoring history: expected a list of messages, got {type(serialized).__name__}")
            return 0

        try:
            messages = MessageList.validate_python(serialized)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed history ({e.error_count()} validation errors)")
            return 0

        self.extend(messages)
        return len(messages)

    def dump(self) -> list[dict[str, Any]]:
        """Serialize the persistable turns to plain JSON-compatible data."""
        return MessageList.dump_python(self.persistable(), mode="json")

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.all())
