"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from workshop_wizard.adapters.openai_assistant_client import OpenAIAssistantClient
from workshop_wizard.adapters.openai_proxy import HttpxOpenAIProxy, OpenAIProxy
from workshop_wizard.adapters.perplexity_client import HttpxPerplexityClient
from workshop_wizard.adapters.supabase_session_gateway import SupabaseSessionGateway
from workshop_wizard.config import Settings
from workshop_wizard.services.assistant import SparkyService, UrlSummaryService
from workshop_wizard.services.directory import SessionDirectory
from workshop_wizard.services.reconciler import DuplicateSessionReconciler
from workshop_wizard.services.sessions import SessionGateway, WorkshopSessionStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies.

    The assistant services and the OpenAI proxy are None when their API key
    is not configured.
    """

    settings: Settings
    session_gateway: SessionGateway
    session_directory: SessionDirectory
    reconciler: DuplicateSessionReconciler
    sparky_service: SparkyService | None
    url_summary_service: UrlSummaryService | None
    openai_proxy: OpenAIProxy | None
    close_resources: Callable[[], Awaitable[None]]

    def create_store(self, user_id: str) -> WorkshopSessionStore:
        """Build a session store for one signed-in user."""
        return WorkshopSessionStore(
            self.session_gateway,
            user_id,
            debounce_seconds=self.settings.save_debounce_seconds,
        )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_key
    )
    session_gateway = SupabaseSessionGateway(supabase_client)
    reconciler = DuplicateSessionReconciler(
        gateway=session_gateway,
        window=timedelta(seconds=resolved_settings.duplicate_window_seconds),
    )

    assistant_client: OpenAIAssistantClient | None = None
    openai_proxy: HttpxOpenAIProxy | None = None
    sparky_service: SparkyService | None = None
    if resolved_settings.openai_api_key:
        assistant_client = OpenAIAssistantClient.create(
            resolved_settings.openai_api_key,
            temperature=resolved_settings.openai_temperature,
            max_tokens=resolved_settings.openai_max_tokens,
        )
        openai_proxy = HttpxOpenAIProxy.create(resolved_settings.openai_api_key)
        sparky_service = SparkyService(
            client=assistant_client, model=resolved_settings.openai_model
        )

    perplexity_client: HttpxPerplexityClient | None = None
    url_summary_service: UrlSummaryService | None = None
    if resolved_settings.perplexity_api_key:
        perplexity_client = HttpxPerplexityClient.create(
            api_key=resolved_settings.perplexity_api_key,
            base_url=resolved_settings.perplexity_base_url,
            model=resolved_settings.perplexity_model,
        )
        url_summary_service = UrlSummaryService(perplexity_client)

    async def close_resources() -> None:
        if assistant_client is not None:
            await assistant_client.close()
        if openai_proxy is not None:
            await openai_proxy.close()
        if perplexity_client is not None:
            await perplexity_client.close()

    return AppContainer(
        settings=resolved_settings,
        session_gateway=session_gateway,
        session_directory=SessionDirectory(session_gateway),
        reconciler=reconciler,
        sparky_service=sparky_service,
        url_summary_service=url_summary_service,
        openai_proxy=openai_proxy,
        close_resources=close_resources,
    )
