"""Per-user try-on session store with lazy TTL expiry."""

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import Protocol

from tryon_bot.config import DEFAULT_SESSION_TTL_MS
from tryon_bot.domain.images import ImageAsset
from tryon_bot.domain.sessions import Session, SessionState, Slot


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class SessionStore(Protocol):
    """Interface for per-user session state."""

    def get(self, user_id: str) -> Session:
        """Return the live session for a user, creating it if absent or expired."""

    def update(self, user_id: str, **patch: object) -> Session:
        """Merge fields into the session and refresh its timestamp."""

    def reset(self, user_id: str) -> Session:
        """Replace the session with a fresh empty one."""

    def store_image(self, user_id: str, slot: Slot, asset: ImageAsset) -> Session:
        """Fill an image slot."""

    def try_begin_generation(self, user_id: str) -> Session | None:
        """Atomically move a READY session to GENERATING."""


@dataclass
class InMemorySessionStore(SessionStore):
    """Process-local session table.

    None of the methods await, so each call runs without interleaving under
    asyncio. Expired sessions are replaced on the next ``get`` rather than
    swept in the background.
    """

    ttl: timedelta = field(
        default_factory=lambda: timedelta(milliseconds=DEFAULT_SESSION_TTL_MS)
    )
    clock: Callable[[], datetime] = _utcnow
    _sessions: dict[str, Session] = field(default_factory=dict, repr=False)

    @classmethod
    def from_ttl_ms(cls, ttl_ms: int) -> "InMemorySessionStore":
        """Create a store using a TTL expressed in milliseconds."""
        return cls(ttl=timedelta(milliseconds=ttl_ms))

    def get(self, user_id: str) -> Session:
        """Return the live session, replacing it when older than the TTL."""
        session = self._sessions.get(user_id)
        if session is None or self._is_expired(session):
            session = Session(user_id=user_id, last_updated=self.clock())
            self._sessions[user_id] = session
        return session

    def update(self, user_id: str, **patch: object) -> Session:
        """Merge the given fields and refresh ``last_updated``."""
        unknown = set(patch) - {"selfie", "clothing", "in_progress"}
        if unknown:
            raise ValueError(f"Unknown session fields: {sorted(unknown)}")
        session = replace(self.get(user_id), **patch, last_updated=self.clock())
        self._sessions[user_id] = session
        return session

    def reset(self, user_id: str) -> Session:
        """Replace the session with an empty one."""
        session = Session(user_id=user_id, last_updated=self.clock())
        self._sessions[user_id] = session
        return session

    def store_image(self, user_id: str, slot: Slot, asset: ImageAsset) -> Session:
        """Fill a slot; a new selfie discards any clothing paired with the old one."""
        if slot == Slot.SELFIE:
            return self.update(user_id, selfie=asset, clothing=None)
        if slot == Slot.CLOTHING:
            return self.update(user_id, clothing=asset)
        raise ValueError(f"Cannot store an image for slot {slot!r}")

    def try_begin_generation(self, user_id: str) -> Session | None:
        """Set ``in_progress`` only if the session is READY; return the snapshot."""
        session = self.get(user_id)
        if session.state != SessionState.READY:
            return None
        return self.update(user_id, in_progress=True)

    def __len__(self) -> int:
        return len(self._sessions)

    def _is_expired(self, session: Session) -> bool:
        return self.clock() - session.last_updated > self.ttl
