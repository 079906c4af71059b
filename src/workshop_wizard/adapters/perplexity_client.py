"""Perplexity API client for URL summaries."""

from dataclasses import dataclass

import httpx

from workshop_wizard.domain.errors import AssistantError, UpstreamError
from workshop_wizard.services.assistant import UrlSummaryClient

SUMMARY_SYSTEM_PROMPT = (
    "You are an expert business analyst. Summarize the provided web content "
    "from the URL, focusing on the person's/company's core services, "
    "expertise, typical clients, and any stated problems they solve. Extract "
    "key phrases and offerings that could form the basis of a scalable "
    "product or service. The user is a service-based entrepreneur looking to "
    "create a more scalable offer (like a course, productized service, "
    "template, workshop, software tool)."
)


@dataclass
class HttpxPerplexityClient(UrlSummaryClient):
    """HTTPX-backed Perplexity chat completions client."""

    api_key: str
    base_url: str
    model: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str, base_url: str, model: str) -> "HttpxPerplexityClient":
        """Create a Perplexity client with a managed httpx session."""
        return cls(
            api_key=api_key,
            base_url=base_url,
            model=model,
            http_client=httpx.AsyncClient(),
        )

    async def summarize(self, url: str) -> str:
        """Ask Perplexity to read ``url`` and summarize the offer behind it."""
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": (
                        "Please analyze the content at this URL and provide a "
                        "summary of their expertise and potential scalable "
                        f"offer starting points: {url}"
                    ),
                },
            ],
            "temperature": 0.4,
            "max_tokens": 1000,
        }
        try:
            response = await self.http_client.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload,
                timeout=60,
            )
        except httpx.HTTPError as exc:
            raise AssistantError("Error making request to Perplexity API") from exc
        if response.is_error:
            raise UpstreamError(
                "Error fetching content from Perplexity API",
                status_code=response.status_code,
                details=_error_details(response),
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise AssistantError(
                "Unexpected response structure from Perplexity API"
            ) from exc
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices or not isinstance(choices[0], dict):
            raise AssistantError("Unexpected response structure from Perplexity API")
        message = choices[0].get("message") or {}
        return str(message.get("content") or "")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _error_details(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError:
        return {"message": response.text}
