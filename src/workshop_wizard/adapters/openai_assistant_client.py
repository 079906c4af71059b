"""OpenAI chat completions client for the workshop assistant."""

from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from workshop_wizard.domain.errors import AssistantError
from workshop_wizard.services.assistant import AssistantClient


@dataclass
class OpenAIAssistantClient(AssistantClient):
    """Assistant client backed by the OpenAI chat completions API."""

    client: AsyncOpenAI
    temperature: float = 0.7
    max_tokens: int = 2000

    @classmethod
    def create(
        cls, api_key: str, temperature: float = 0.7, max_tokens: int = 2000
    ) -> "OpenAIAssistantClient":
        """Create an OpenAI assistant client."""
        return cls(
            client=AsyncOpenAI(api_key=api_key),
            temperature=temperature,
            max_tokens=max_tokens,
        )

    async def complete(self, *, system_prompt: str, user_prompt: str, model: str) -> str:
        """Run a single system+user turn and return the reply text."""
        try:
            response = await self.client.chat.completions.create(
                model=model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except OpenAIError as exc:
            raise AssistantError("Failed to generate completion") from exc
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise AssistantError("OpenAI returned an empty response")
        return content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
