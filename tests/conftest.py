"""Shared test fixtures."""

import asyncio
import copy
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

import pytest

from workshop_wizard.config import Settings
from workshop_wizard.containers import AppContainer
from workshop_wizard.domain.errors import AssistantError, PersistenceError
from workshop_wizard.domain.sessions import WorkshopSession
from workshop_wizard.services.assistant import (
    AssistantClient,
    SparkyService,
    UrlSummaryClient,
    UrlSummaryService,
)
from workshop_wizard.services.directory import SessionDirectory
from workshop_wizard.services.reconciler import DuplicateSessionReconciler
from workshop_wizard.services.sessions import SessionGateway

BASE_TIME = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


def make_session(
    session_id: str,
    user_id: str = "user-1",
    created_offset: float = 0.0,
    workshop_data: dict[str, object] | None = None,
    current_step: int = 0,
    name: str = "Untitled Workshop",
) -> WorkshopSession:
    """Build a session created ``created_offset`` seconds after BASE_TIME."""
    created_at = BASE_TIME + timedelta(seconds=created_offset)
    return WorkshopSession(
        session_id=session_id,
        user_id=user_id,
        name=name,
        current_step=current_step,
        workshop_data=workshop_data or {},
        created_at=created_at,
        updated_at=created_at,
    )


@dataclass
class InMemorySessionGateway(SessionGateway):
    """In-memory session gateway for tests."""

    sessions: dict[str, WorkshopSession] = field(default_factory=dict)
    updates: list[tuple[str, dict[str, object]]] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    get_delays: dict[str, float] = field(default_factory=dict)
    update_delay: float = 0.0
    fail_creates: bool = False
    fail_updates: bool = False
    fail_deletes: set[str] = field(default_factory=set)
    in_flight_updates: int = 0
    max_parallel_updates: int = 0

    def add(self, session: WorkshopSession) -> None:
        self.sessions[session.session_id] = session

    async def create_session(
        self, session_id: str, user_id: str, initial: dict[str, object]
    ) -> WorkshopSession:
        if self.fail_creates:
            raise PersistenceError("Failed to create workshop session")
        now = datetime.now(tz=UTC)
        session = WorkshopSession(
            session_id=session_id,
            user_id=user_id,
            name=str(initial["name"]),
            current_step=int(initial["current_step"]),
            workshop_data=copy.deepcopy(initial["workshop_data"]),
            created_at=now,
            updated_at=now,
        )
        self.sessions[session_id] = session
        return session

    async def get_session(self, session_id: str) -> WorkshopSession | None:
        delay = self.get_delays.get(session_id)
        if delay:
            await asyncio.sleep(delay)
        return self.sessions.get(session_id)

    async def update_session(
        self, session_id: str, user_id: str, fields: dict[str, object]
    ) -> None:
        self.in_flight_updates += 1
        self.max_parallel_updates = max(
            self.max_parallel_updates, self.in_flight_updates
        )
        try:
            if self.update_delay:
                await asyncio.sleep(self.update_delay)
            if self.fail_updates:
                raise PersistenceError("Failed to update workshop session")
            snapshot = copy.deepcopy(fields)
            self.updates.append((session_id, snapshot))
            session = self.sessions.get(session_id)
            if session is not None and session.user_id == user_id:
                self.sessions[session_id] = replace(
                    session, **snapshot, updated_at=datetime.now(tz=UTC)
                )
        finally:
            self.in_flight_updates -= 1

    async def delete_session(self, session_id: str, user_id: str) -> None:
        if session_id in self.fail_deletes:
            raise PersistenceError(f"Failed to delete {session_id}")
        session = self.sessions.get(session_id)
        if session is not None and session.user_id == user_id:
            del self.sessions[session_id]
            self.deleted.append(session_id)

    async def list_sessions(self, user_id: str) -> list[WorkshopSession]:
        return [s for s in self.sessions.values() if s.user_id == user_id]

    async def list_all_sessions(self) -> list[WorkshopSession]:
        return list(self.sessions.values())


@dataclass
class FakeAssistantClient(AssistantClient):
    """Fake assistant that records prompts and returns a fixed answer."""

    answer: str = "Try narrowing it down to one audience."
    error: Exception | None = None
    calls: list[dict[str, str]] = field(default_factory=list)

    async def complete(self, *, system_prompt: str, user_prompt: str, model: str) -> str:
        self.calls.append(
            {"system_prompt": system_prompt, "user_prompt": user_prompt, "model": model}
        )
        if self.error is not None:
            raise self.error
        return self.answer


@dataclass
class FakeSummaryClient(UrlSummaryClient):
    """Fake summarizer returning a canned summary."""

    summary: str = "Consultant helping agencies systemize onboarding."
    error: AssistantError | None = None
    urls: list[str] = field(default_factory=list)

    async def summarize(self, url: str) -> str:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.summary


@dataclass
class FakeOpenAIProxy:
    """Fake OpenAI proxy that echoes the forwarded request."""

    response: object = field(
        default_factory=lambda: {"choices": [{"message": {"content": "hi"}}]}
    )
    error: Exception | None = None
    requests: list[tuple[str, dict[str, object]]] = field(default_factory=list)

    async def forward(self, endpoint: str, payload: dict[str, object]) -> object:
        self.requests.append((endpoint, payload))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_key="header.payload.signature",
        openai_api_key="openai-key",
        perplexity_api_key="perplexity-key",
    )


@pytest.fixture
def gateway() -> InMemorySessionGateway:
    return InMemorySessionGateway()


@pytest.fixture
def assistant_client() -> FakeAssistantClient:
    return FakeAssistantClient()


@pytest.fixture
def summary_client() -> FakeSummaryClient:
    return FakeSummaryClient()


@pytest.fixture
def openai_proxy() -> FakeOpenAIProxy:
    return FakeOpenAIProxy()


@pytest.fixture
def container(
    settings: Settings,
    gateway: InMemorySessionGateway,
    assistant_client: FakeAssistantClient,
    summary_client: FakeSummaryClient,
    openai_proxy: FakeOpenAIProxy,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        session_gateway=gateway,
        session_directory=SessionDirectory(gateway),
        reconciler=DuplicateSessionReconciler(gateway),
        sparky_service=SparkyService(
            client=assistant_client, model=settings.openai_model
        ),
        url_summary_service=UrlSummaryService(summary_client),
        openai_proxy=openai_proxy,
        close_resources=close_resources,
    )
