"""Pass-through client for the OpenAI REST API."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from workshop_wizard.domain.errors import UpstreamError

OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAIProxy(Protocol):
    """Interface for forwarding requests to the OpenAI REST API."""

    async def forward(self, endpoint: str, payload: dict[str, object]) -> object:
        """POST a payload to an OpenAI endpoint and return the JSON body."""


@dataclass
class HttpxOpenAIProxy(OpenAIProxy):
    """Forwards raw request payloads to an OpenAI endpoint."""

    api_key: str
    http_client: httpx.AsyncClient
    base_url: str = OPENAI_BASE_URL

    @classmethod
    def create(cls, api_key: str) -> "HttpxOpenAIProxy":
        """Create a proxy with a managed httpx session."""
        return cls(api_key=api_key, http_client=httpx.AsyncClient())

    async def forward(self, endpoint: str, payload: dict[str, object]) -> object:
        """POST ``payload`` to ``endpoint`` and return the decoded JSON body."""
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        response = await self.http_client.post(
            url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json=payload,
            timeout=120,
        )
        try:
            data = response.json()
        except ValueError:
            data = {"message": response.text}
        if response.is_error:
            details = data.get("error", data) if isinstance(data, dict) else data
            raise UpstreamError(
                "Error calling OpenAI API",
                status_code=response.status_code,
                details=details,
            )
        return data

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
