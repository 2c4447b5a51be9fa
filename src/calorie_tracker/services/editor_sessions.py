"""In-memory store of open editing sessions."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from calorie_tracker.services.editor import FoodDetailsEditor


@dataclass
class _SessionEntry:
    editor: FoodDetailsEditor
    expires_at: datetime


class EditorSessionStore:
    """Keeps editors alive between requests; idle sessions expire."""

    def __init__(self, ttl_seconds: int) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self._entries: dict[UUID, _SessionEntry] = {}

    def open(self, editor: FoodDetailsEditor) -> UUID:
        """Register an editor and return its session id."""
        self._purge_expired()
        session_id = uuid4()
        self._entries[session_id] = _SessionEntry(
            editor=editor, expires_at=datetime.now(tz=UTC) + self.ttl
        )
        return session_id

    def get(self, session_id: UUID) -> FoodDetailsEditor | None:
        """Return a live editor and extend its expiry."""
        entry = self._entries.get(session_id)
        if entry is None:
            return None
        now = datetime.now(tz=UTC)
        if now >= entry.expires_at:
            self._entries.pop(session_id, None)
            return None
        entry.expires_at = now + self.ttl
        return entry.editor

    def close(self, session_id: UUID) -> bool:
        """Discard a session; unsaved edits are dropped."""
        return self._entries.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def _purge_expired(self) -> None:
        now = datetime.now(tz=UTC)
        expired = [
            key for key, entry in self._entries.items() if now >= entry.expires_at
        ]
        for key in expired:
            del self._entries[key]
