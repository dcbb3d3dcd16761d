"""History persistence for resumable conversations."""

import json
from pathlib import Path

from askagent.services.message_store import MessageStore
from askagent.utils.files import read_json
from askagent.utils.logging import get_logger

logger = get_logger(__name__)


class HistoryPersistence:
    """Reads and writes the history file of a single conversation.

    The file holds one JSON array of messages (system messages excluded) and
    is rewritten in full on every persist.
    """

    def __init__(self, path: str | Path | None):
        self.path = Path(path) if path else None

    @property
    def enabled(self) -> bool:
        return self.path is not None

    def load(self, store: MessageStore) -> int:
        """Load the history file into ``store``. Absent or malformed files load nothing."""
        if not self.path:
            return 0

        loaded = store.load(read_json(self.path))
        logger.info(f"Loaded {loaded} messages from history {self.path}")
        return loaded

    def persist(self, store: MessageStore) -> bool:
        """Write the persistable turns of ``store`` to the history file.

        Write failures are logged and reported through the return value; they
        never interrupt the conversation.
        """
        if not self.path:
            return False

        try:
            payload = json.dumps(store.dump(), ensure_ascii=False)
            self.path.write_text(payload, encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to write history file {self.path}: {e}")
            return False

        logger.debug(f"Persisted {len(store.persistable())} messages to {self.path}")
        return True
