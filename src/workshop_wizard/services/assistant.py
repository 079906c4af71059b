"""Sparky, the step-aware workshop assistant."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from workshop_wizard.domain.errors import AssistantError, WorkshopError
from workshop_wizard.domain.workshop import STEP_TITLES, entries, section
from workshop_wizard.services.sessions import WorkshopSessionStore

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10

SPARKY_PERSONA = (
    "You are Sparky, a friendly and practical business coach guiding a "
    "service-based entrepreneur through a ten-step workshop to design a more "
    "scalable offer (a course, productized service, template, workshop or "
    "software tool). Keep answers short, concrete and encouraging, and end "
    "with one question that moves the user forward on the current step."
)

STEP_GUIDANCE: dict[int, str] = {
    1: "Help the user describe their big idea in one or two plain sentences.",
    2: "Help the user name the business goal behind the idea and their "
    "constraints (time, budget, delivery preferences).",
    3: "Help the user list anti-goals: markets, offers, delivery models, "
    "lifestyle outcomes and values they want to avoid.",
    4: "Help the user brainstorm trigger events: moments that make the status "
    "quo unacceptable for a buyer and push them to look for a solution.",
    5: "Help the user phrase jobs-to-be-done statements from the buyer's "
    "point of view and pick the main job.",
    6: "Help the user list distinct market segments that share the job.",
    7: "Help the user describe the most painful, urgent problems those "
    "markets face.",
    8: "Help the user score each market on size, growth, accessibility, "
    "profitability and urgency, then choose one market.",
    9: "Help the user write a value proposition: unique value, pain points, "
    "benefits and differentiators.",
    10: "Help the user choose a pricing strategy that reflects the value of "
    "the offer.",
}


class AssistantClient(Protocol):
    """Interface for the hosted text-generation API."""

    async def complete(self, *, system_prompt: str, user_prompt: str, model: str) -> str:
        """Return the generated text for a single-turn prompt."""


class UrlSummaryClient(Protocol):
    """Interface for the URL summarization API."""

    async def summarize(self, url: str) -> str:
        """Return a summary of the page at ``url``."""


def chat_message(role: str, content: str) -> dict[str, object]:
    """Build a transcript entry."""
    return {
        "id": uuid4().hex,
        "role": role,
        "content": content,
        "timestamp": datetime.now(tz=UTC).isoformat(),
    }


@dataclass
class SparkyService:
    """Answers user questions in the context of the current workshop step."""

    client: AssistantClient
    model: str

    async def reply(
        self, store: WorkshopSessionStore, step: int, text: str
    ) -> dict[str, object]:
        """Record the user's message, ask the assistant and record its answer.

        The user's message stays in the transcript even when the call fails.
        An answer that arrives after another session became active is
        returned but not recorded.
        """
        question = text.strip()
        if not question:
            raise ValueError("Message must not be empty")
        session_id = store.state.session_id
        history = store.chat_messages(step)[-HISTORY_LIMIT:]
        store.add_chat_message(step, chat_message("user", question))
        try:
            answer = await self.client.complete(
                system_prompt=build_system_prompt(step, store.state.workshop_data),
                user_prompt=build_user_prompt(history, question),
                model=self.model,
            )
        except WorkshopError:
            raise
        except Exception as exc:
            logger.exception("Sparky failed to answer on step %s", step)
            raise AssistantError("Sparky could not answer right now") from exc
        message = chat_message("assistant", answer.strip())
        if store.state.session_id != session_id:
            logger.info(
                "Dropping Sparky answer for session %s: active session changed",
                session_id,
            )
            return message
        store.add_chat_message(step, message)
        return message


@dataclass
class UrlSummaryService:
    """Summarizes a web page to seed the big idea step."""

    client: UrlSummaryClient

    async def summarize(self, url: str) -> str:
        """Return a summary of ``url``."""
        cleaned = url.strip()
        if not cleaned.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return await self.client.summarize(cleaned)


def build_system_prompt(step: int, workshop_data: Mapping[str, object]) -> str:
    """Compose Sparky's system prompt for a step."""
    title = STEP_TITLES.get(step, "Introduction")
    guidance = STEP_GUIDANCE.get(step, "Explain how the workshop works.")
    parts = [SPARKY_PERSONA, f"Current step: {step} - {title}. {guidance}"]
    context = workshop_context(workshop_data)
    if context:
        parts.append("What the user has decided so far:\n" + context)
    return "\n\n".join(parts)


def build_user_prompt(history: list[dict[str, object]], question: str) -> str:
    """Fold the recent transcript and the new question into one prompt."""
    lines = [
        f"{message.get('role', 'user')}: {message.get('content', '')}"
        for message in history
    ]
    if not lines:
        return question
    transcript = "\n".join(lines)
    return f"Conversation so far:\n{transcript}\n\nuser: {question}"


def workshop_context(data: Mapping[str, object]) -> str:
    """Summarize the answers that are already filled in."""
    lines: list[str] = []
    big_idea = section(data, "bigIdea").get("description")
    if _filled(big_idea):
        lines.append(f"- Big idea: {big_idea}")
    goal = section(data, "underlyingGoal").get("businessGoal")
    if _filled(goal):
        lines.append(f"- Business goal: {goal}")
    main_jobs = [
        job.get("statement")
        for job in entries(data, "jobs")
        if job.get("isMain") and _filled(job.get("statement"))
    ]
    if main_jobs:
        lines.append(f"- Main job: {main_jobs[0]}")
    markets = [
        market.get("segment")
        for market in entries(data, "markets")
        if _filled(market.get("segment"))
    ]
    if markets:
        lines.append("- Markets: " + ", ".join(str(item) for item in markets))
    chosen = [
        market.get("segment")
        for market in entries(data, "markets")
        if market.get("selected") is True
    ]
    if chosen:
        lines.append(f"- Chosen market: {chosen[0]}")
    problems = [
        problem.get("description")
        for problem in entries(data, "problems")
        if _filled(problem.get("description"))
    ]
    if problems:
        lines.append("- Problems: " + "; ".join(str(item) for item in problems))
    return "\n".join(lines)


def _filled(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


