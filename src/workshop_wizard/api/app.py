"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from workshop_wizard.api.models import OpenAIProxyRequest, SummarizeUrlRequest
from workshop_wizard.app_logging import configure_logging
from workshop_wizard.containers import AppContainer
from workshop_wizard.domain.errors import AssistantError, UpstreamError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/openai-proxy")
    async def openai_proxy(body: OpenAIProxyRequest, request: Request) -> JSONResponse:
        """Forward a request payload to an OpenAI endpoint."""
        state_container: AppContainer = request.app.state.container
        if not body.endpoint:
            return _error(status.HTTP_400_BAD_REQUEST, "OpenAI endpoint is required")
        if not body.payload:
            return _error(status.HTTP_400_BAD_REQUEST, "Request payload is required")
        if state_container.openai_proxy is None:
            return _error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "OpenAI API key is not configured",
            )
        logger.info(
            "Proxying OpenAI request to %s with keys %s",
            body.endpoint,
            sorted(body.payload),
        )
        try:
            data = await state_container.openai_proxy.forward(
                body.endpoint, body.payload
            )
        except UpstreamError as exc:
            logger.warning("OpenAI API error %s: %s", exc.status_code, exc.details)
            return _error(exc.status_code, str(exc), details=exc.details)
        except Exception as exc:
            logger.exception("OpenAI proxy failed")
            return _error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Internal Server Error",
                message=str(exc),
            )
        return JSONResponse(status_code=status.HTTP_200_OK, content=data)

    @app.post("/api/summarize-url")
    async def summarize_url(body: SummarizeUrlRequest, request: Request) -> JSONResponse:
        """Summarize the page behind a URL for the big idea step."""
        state_container: AppContainer = request.app.state.container
        if not body.url:
            return _error(status.HTTP_400_BAD_REQUEST, "URL is required")
        if state_container.url_summary_service is None:
            return _error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Perplexity API key is not configured",
            )
        try:
            summary = await state_container.url_summary_service.summarize(body.url)
        except ValueError as exc:
            return _error(status.HTTP_400_BAD_REQUEST, str(exc))
        except UpstreamError as exc:
            logger.warning("Perplexity API error %s: %s", exc.status_code, exc.details)
            return _error(exc.status_code, str(exc), details=exc.details)
        except AssistantError as exc:
            logger.warning("URL summary failed: %s", exc)
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
        logger.info("Summarized %s (%d chars)", body.url, len(summary))
        return JSONResponse(status_code=status.HTTP_200_OK, content={"summary": summary})

    return app


def _error(status_code: int, error: str, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, **extra})
