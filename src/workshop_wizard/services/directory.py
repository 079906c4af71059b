"""Dashboard operations over a user's workshop sessions."""

import logging
from dataclasses import dataclass

from workshop_wizard.domain.errors import NotFoundError
from workshop_wizard.domain.sessions import DEFAULT_SESSION_NAME, WorkshopSession
from workshop_wizard.services.sessions import SessionGateway

logger = logging.getLogger(__name__)


@dataclass
class SessionDirectory:
    """List, rename and delete sessions on behalf of their owner."""

    gateway: SessionGateway

    async def list_sessions(self, user_id: str) -> list[WorkshopSession]:
        """Return the user's sessions, most recently updated first."""
        sessions = await self.gateway.list_sessions(user_id)
        return sorted(sessions, key=lambda item: item.updated_at, reverse=True)

    async def rename_session(self, user_id: str, session_id: str, name: str) -> None:
        """Rename a session owned by ``user_id``."""
        await self._require_owned(user_id, session_id)
        cleaned = name.strip() or DEFAULT_SESSION_NAME
        await self.gateway.update_session(session_id, user_id, {"name": cleaned})

    async def delete_session(self, user_id: str, session_id: str) -> None:
        """Delete a session owned by ``user_id``."""
        await self._require_owned(user_id, session_id)
        await self.gateway.delete_session(session_id, user_id)
        logger.info("Deleted workshop session %s", session_id)

    async def _require_owned(self, user_id: str, session_id: str) -> None:
        session = await self.gateway.get_session(session_id)
        if session is None or session.user_id != user_id:
            raise NotFoundError(session_id)
