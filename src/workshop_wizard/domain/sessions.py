"""Domain models for workshop sessions."""

from dataclasses import dataclass, field
from datetime import datetime

DEFAULT_SESSION_NAME = "Untitled Workshop"
MIN_STEP = 1
MAX_STEP = 10


@dataclass(frozen=True)
class WorkshopSession:
    """Represents a persisted workshop session."""

    session_id: str
    user_id: str
    name: str
    current_step: int
    workshop_data: dict[str, object]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class WorkshopState:
    """Immutable snapshot of the active session held by the session store.

    ``workshop_data`` is never mutated in place; every update builds a new
    dict and a new snapshot.
    """

    session_id: str | None = None
    user_id: str | None = None
    name: str = DEFAULT_SESSION_NAME
    current_step: int = 0
    workshop_data: dict[str, object] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_saving: bool = False
    save_error: str | None = None


def new_session_id(now: datetime) -> str:
    """Build a client-side session id from a timestamp."""
    return f"session_{int(now.timestamp() * 1000)}"
