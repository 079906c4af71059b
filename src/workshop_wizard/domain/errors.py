"""Typed errors raised at the session store boundary."""


class WorkshopError(Exception):
    """Base class for workshop errors surfaced to callers."""


class NotFoundError(WorkshopError):
    """The referenced session does not exist."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Workshop session {session_id} not found")
        self.session_id = session_id


class AuthorizationError(NotFoundError):
    """The session exists but belongs to another user.

    Carries the same message as ``NotFoundError`` so callers cannot tell the
    two apart.
    """


class PersistenceError(WorkshopError):
    """Reading from or writing to the remote store failed."""


class AssistantError(WorkshopError):
    """A text-generation or summarization call failed."""


class UpstreamError(AssistantError):
    """A third-party API answered with an error status."""

    def __init__(self, message: str, status_code: int, details: object) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details
