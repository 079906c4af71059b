"""Request bodies accepted by the proxy endpoints."""

from pydantic import BaseModel


class OpenAIProxyRequest(BaseModel):
    """Body of an OpenAI proxy call."""

    endpoint: str | None = None
    payload: dict[str, object] | None = None


class SummarizeUrlRequest(BaseModel):
    """Body of a URL summarization call."""

    url: str | None = None
