"""In-memory source of truth for the active workshop session."""

import copy
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import replace
from datetime import UTC, datetime
from typing import Protocol, TypeVar

from workshop_wizard.domain.errors import (
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    WorkshopError,
)
from workshop_wizard.domain.sessions import (
    DEFAULT_SESSION_NAME,
    MAX_STEP,
    MIN_STEP,
    WorkshopSession,
    WorkshopState,
    new_session_id,
)
from workshop_wizard.domain.workshop import (
    default_workshop_data,
    normalize_workshop_data,
)
from workshop_wizard.services.save_queue import (
    DEFAULT_DEBOUNCE_SECONDS,
    DebouncedSaveQueue,
)
from workshop_wizard.services.validation import is_step_complete, missing_fields

logger = logging.getLogger(__name__)

WORKSHOP_DATA_KEY = "workshop_data"

T = TypeVar("T")


class SessionGateway(Protocol):
    """Persistence interface for workshop session documents."""

    async def create_session(
        self, session_id: str, user_id: str, initial: dict[str, object]
    ) -> WorkshopSession:
        """Insert a new session and return the stored record."""

    async def get_session(self, session_id: str) -> WorkshopSession | None:
        """Return a session by id, if present."""

    async def update_session(
        self, session_id: str, user_id: str, fields: dict[str, object]
    ) -> None:
        """Update columns of a session owned by ``user_id``."""

    async def delete_session(self, session_id: str, user_id: str) -> None:
        """Delete a session owned by ``user_id``."""

    async def list_sessions(self, user_id: str) -> list[WorkshopSession]:
        """Return every session owned by ``user_id``."""

    async def list_all_sessions(self) -> list[WorkshopSession]:
        """Return every stored session regardless of owner."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class WorkshopSessionStore:
    """Holds the active session and keeps the remote copy in sync.

    Edits land in memory synchronously and reach the gateway through a
    debounced save queue. Step changes, renames and session creation are
    written immediately. Remote failures are raised as ``PersistenceError``
    and never retried here; the in-memory snapshot is kept either way.
    """

    def __init__(
        self,
        gateway: SessionGateway,
        user_id: str,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.gateway = gateway
        self.user_id = user_id
        self._clock = clock
        self._state = WorkshopState(
            user_id=user_id, workshop_data=default_workshop_data()
        )
        self._saves = DebouncedSaveQueue(
            self._flush, delay=debounce_seconds, on_error=self._on_save_error
        )
        self._generation = 0

    @property
    def state(self) -> WorkshopState:
        """Return the current immutable snapshot."""
        return self._state

    @property
    def has_pending_saves(self) -> bool:
        """Return True while debounced edits have not reached the gateway."""
        return self._saves.has_pending

    async def initialize_session(
        self, name: str = DEFAULT_SESSION_NAME
    ) -> WorkshopState:
        """Create, persist and adopt a brand-new session."""
        await self._saves.flush_all()
        generation = self._next_generation()
        session_id = new_session_id(self._clock())
        record = await self._remote(
            "create workshop session",
            self.gateway.create_session(
                session_id,
                self.user_id,
                {
                    "name": name.strip() or DEFAULT_SESSION_NAME,
                    "current_step": 0,
                    "workshop_data": default_workshop_data(),
                },
            ),
        )
        logger.info("Created workshop session %s", record.session_id)
        if generation != self._generation:
            logger.info("Session %s created but superseded", record.session_id)
            return self._state
        self._state = _state_from_record(record)
        return self._state

    async def load_session(self, session_id: str) -> WorkshopState:
        """Fetch a session and replace the in-memory state with it.

        When a newer load or creation starts before this one resolves, the
        fetched record is discarded and the current snapshot is returned.
        """
        generation = self._next_generation()
        await self._saves.flush_all()
        record = await self._remote(
            f"load workshop session {session_id}",
            self.gateway.get_session(session_id),
        )
        if generation != self._generation:
            logger.info("Discarding superseded load of session %s", session_id)
            return self._state
        if record is None:
            raise NotFoundError(session_id)
        if record.user_id != self.user_id:
            logger.warning("User %s denied access to %s", self.user_id, session_id)
            raise AuthorizationError(session_id)
        self._state = _state_from_record(record)
        return self._state

    def update_workshop_data(self, partial: Mapping[str, object]) -> WorkshopState:
        """Merge top-level keys into the workshop data and schedule a save.

        Nested values replace the stored value wholesale.
        """
        merged = dict(self._state.workshop_data)
        merged.update(copy.deepcopy(dict(partial)))
        self._state = replace(self._state, workshop_data=merged)
        if self._state.session_id is not None:
            self._saves.schedule(WORKSHOP_DATA_KEY)
        return self._state

    async def set_current_step(self, step: int) -> WorkshopState:
        """Move to ``step`` (clamped to the wizard range) and persist it now."""
        clamped = min(max(step, MIN_STEP), MAX_STEP)
        self._state = replace(self._state, current_step=clamped)
        await self._persist_now("save current step", {"current_step": clamped})
        return self._state

    def can_proceed_to_next_step(self) -> bool:
        """Return True when the current step's required fields are filled."""
        return is_step_complete(self._state.current_step, self._state.workshop_data)

    def missing_fields(self) -> list[str]:
        """Return the fields blocking the current step."""
        return missing_fields(self._state.current_step, self._state.workshop_data)

    def add_chat_message(
        self, step: int, message: Mapping[str, object]
    ) -> WorkshopState:
        """Append a message to the chat transcript of ``step``."""
        raw_chats = self._state.workshop_data.get("stepChats")
        chats = dict(raw_chats) if isinstance(raw_chats, dict) else {}
        key = str(step)
        chat = chats.get(key)
        chat = dict(chat) if isinstance(chat, dict) else {}
        messages = chat.get("messages")
        messages = list(messages) if isinstance(messages, list) else []
        messages.append(dict(message))
        chat["messages"] = messages
        chats[key] = chat
        return self.update_workshop_data({"stepChats": chats})

    def chat_messages(self, step: int) -> list[dict[str, object]]:
        """Return the chat transcript of ``step``."""
        chats = self._state.workshop_data.get("stepChats")
        if not isinstance(chats, dict):
            return []
        chat = chats.get(str(step))
        if not isinstance(chat, dict):
            return []
        messages = chat.get("messages")
        return list(messages) if isinstance(messages, list) else []

    async def rename_session(self, name: str) -> WorkshopState:
        """Rename the active session and persist it now."""
        cleaned = name.strip() or DEFAULT_SESSION_NAME
        self._state = replace(self._state, name=cleaned)
        await self._persist_now("rename workshop session", {"name": cleaned})
        return self._state

    async def flush(self) -> None:
        """Push pending debounced edits to the gateway and wait."""
        await self._saves.flush_all()

    async def aclose(self) -> None:
        """Deliver pending edits and stop accepting new ones."""
        await self._saves.aclose()

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    async def _remote(self, action: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except WorkshopError:
            raise
        except Exception as exc:
            raise PersistenceError(f"Failed to {action}") from exc

    async def _persist_now(self, action: str, fields: dict[str, object]) -> None:
        session_id = self._state.session_id
        if session_id is None:
            return
        try:
            await self._remote(
                action, self.gateway.update_session(session_id, self.user_id, fields)
            )
        except PersistenceError as exc:
            self._replace_if_current(session_id, save_error=str(exc))
            raise
        self._replace_if_current(session_id, updated_at=self._clock())

    async def _flush(self, key: str) -> None:
        snapshot = self._state
        session_id = snapshot.session_id
        if session_id is None:
            return
        self._replace_if_current(session_id, is_saving=True)
        try:
            await self._remote(
                "save workshop data",
                self.gateway.update_session(
                    session_id, self.user_id, {key: snapshot.workshop_data}
                ),
            )
        except Exception:
            self._replace_if_current(session_id, is_saving=False)
            raise
        self._replace_if_current(
            session_id, is_saving=False, save_error=None, updated_at=self._clock()
        )

    def _on_save_error(self, key: str, exc: Exception) -> None:
        self._state = replace(self._state, save_error=str(exc))

    def _replace_if_current(self, session_id: str, **changes: object) -> None:
        if self._state.session_id == session_id:
            self._state = replace(self._state, **changes)


def _state_from_record(record: WorkshopSession) -> WorkshopState:
    return WorkshopState(
        session_id=record.session_id,
        user_id=record.user_id,
        name=record.name,
        current_step=record.current_step,
        workshop_data=normalize_workshop_data(record.workshop_data),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )
