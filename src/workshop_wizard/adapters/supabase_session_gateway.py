"""Supabase-backed workshop session gateway."""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from workshop_wizard.domain.errors import PersistenceError
from workshop_wizard.domain.sessions import DEFAULT_SESSION_NAME, WorkshopSession
from workshop_wizard.services.sessions import SessionGateway

_TABLE = "workshop_sessions"
_COLUMNS = (
    "session_id, user_id, name, current_step, workshop_data, created_at, updated_at"
)


@dataclass
class SupabaseSessionGateway(SessionGateway):
    """Supabase implementation for workshop sessions.

    The Supabase client is synchronous, so every query runs in a worker
    thread to keep the event loop free.
    """

    client: Client

    async def create_session(
        self, session_id: str, user_id: str, initial: dict[str, object]
    ) -> WorkshopSession:
        """Insert a session row and return it."""
        return await asyncio.to_thread(
            self._create_session, session_id, user_id, initial
        )

    async def get_session(self, session_id: str) -> WorkshopSession | None:
        """Return a session by id, if present."""
        return await asyncio.to_thread(self._get_session, session_id)

    async def update_session(
        self, session_id: str, user_id: str, fields: dict[str, object]
    ) -> None:
        """Update session columns and refresh updated_at."""
        await asyncio.to_thread(self._update_session, session_id, user_id, fields)

    async def delete_session(self, session_id: str, user_id: str) -> None:
        """Delete a session owned by the user."""
        await asyncio.to_thread(self._delete_session, session_id, user_id)

    async def list_sessions(self, user_id: str) -> list[WorkshopSession]:
        """Return a user's sessions, most recently updated first."""
        return await asyncio.to_thread(self._list_sessions, user_id)

    async def list_all_sessions(self) -> list[WorkshopSession]:
        """Return every session ordered by owner, newest first."""
        return await asyncio.to_thread(self._list_all_sessions)

    def _create_session(
        self, session_id: str, user_id: str, initial: dict[str, object]
    ) -> WorkshopSession:
        now = datetime.now(tz=UTC).isoformat()
        response = _execute(
            "create workshop session",
            self.client.table(_TABLE).insert(
                {
                    "session_id": session_id,
                    "user_id": user_id,
                    "name": initial.get("name", DEFAULT_SESSION_NAME),
                    "current_step": initial.get("current_step", 0),
                    "workshop_data": initial.get("workshop_data", {}),
                    "created_at": now,
                    "updated_at": now,
                }
            ),
        )
        if not response.data:
            raise PersistenceError("Failed to create workshop session")
        return _to_session(response.data[0])

    def _get_session(self, session_id: str) -> WorkshopSession | None:
        response = _execute(
            "load workshop session",
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("session_id", session_id)
            .limit(1),
        )
        if not response.data:
            return None
        return _to_session(response.data[0])

    def _update_session(
        self, session_id: str, user_id: str, fields: dict[str, object]
    ) -> None:
        _execute(
            "update workshop session",
            self.client.table(_TABLE)
            .update({**fields, "updated_at": datetime.now(tz=UTC).isoformat()})
            .eq("session_id", session_id)
            .eq("user_id", user_id),
        )

    def _delete_session(self, session_id: str, user_id: str) -> None:
        _execute(
            "delete workshop session",
            self.client.table(_TABLE)
            .delete()
            .eq("session_id", session_id)
            .eq("user_id", user_id),
        )

    def _list_sessions(self, user_id: str) -> list[WorkshopSession]:
        response = _execute(
            "list workshop sessions",
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .order("updated_at", desc=True),
        )
        return [_to_session(row) for row in response.data or []]

    def _list_all_sessions(self) -> list[WorkshopSession]:
        response = _execute(
            "list workshop sessions",
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .order("user_id")
            .order("created_at", desc=True),
        )
        return [_to_session(row) for row in response.data or []]


def _execute(action: str, query):  # type: ignore[no-untyped-def]
    try:
        return query.execute()
    except (APIError, httpx.HTTPError) as exc:
        raise PersistenceError(f"Failed to {action}") from exc


def _to_session(row: dict[str, object]) -> WorkshopSession:
    workshop_data = row.get("workshop_data")
    return WorkshopSession(
        session_id=str(row["session_id"]),
        user_id=str(row["user_id"]),
        name=str(row.get("name") or DEFAULT_SESSION_NAME),
        current_step=int(row.get("current_step") or 0),
        workshop_data=workshop_data if isinstance(workshop_data, dict) else {},
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at") or row.get("created_at")),
    )


def _parse_timestamp(value: object) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        return datetime.fromtimestamp(0, tz=UTC)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
