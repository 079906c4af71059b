"""Step completeness rules used to gate forward navigation."""

from collections.abc import Callable, Mapping

from workshop_wizard.domain.sessions import MAX_STEP
from workshop_wizard.domain.workshop import (
    ANTI_GOAL_FIELDS,
    EVALUATION_CRITERIA,
    VALUE_PROPOSITION_FIELDS,
    entries,
    section,
)

StepRule = Callable[[Mapping[str, object]], list[str]]


def is_step_complete(step: int, workshop_data: Mapping[str, object] | None) -> bool:
    """Return True when every required field of ``step`` is filled in."""
    return not missing_fields(step, workshop_data)


def missing_fields(step: int, workshop_data: Mapping[str, object] | None) -> list[str]:
    """Return the field paths that keep ``step`` from being complete.

    Step 0 is the intro and has no requirements. Absent keys are treated the
    same as empty values.
    """
    if not 0 <= step <= MAX_STEP:
        raise ValueError(f"Unknown workshop step: {step}")
    if step == 0:
        return []
    data = workshop_data if isinstance(workshop_data, Mapping) else {}
    return _RULES[step](data)


def _text(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""


def _required_text(key: str, fields: tuple[str, ...]) -> StepRule:
    def rule(data: Mapping[str, object]) -> list[str]:
        values = section(data, key)
        return [f"{key}.{name}" for name in fields if not _text(values.get(name))]

    return rule


def _at_least_one(key: str, text_field: str) -> StepRule:
    def rule(data: Mapping[str, object]) -> list[str]:
        if any(_text(entry.get(text_field)) for entry in entries(data, key)):
            return []
        return [key]

    return rule


def _score(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    return value


def _market_evaluation(data: Mapping[str, object]) -> list[str]:
    # Every listed market must be fully scored, selected or not.
    markets = entries(data, "markets")
    missing: list[str] = []
    for index, market in enumerate(markets):
        raw_scores = market.get("scores")
        scores = raw_scores if isinstance(raw_scores, Mapping) else {}
        label = market.get("id") or index
        missing.extend(
            f"markets[{label}].scores.{criterion}"
            for criterion in EVALUATION_CRITERIA
            if _score(scores.get(criterion)) <= 0
        )
    if not any(market.get("selected") is True for market in markets):
        missing.append("markets.selected")
    return missing


_RULES: dict[int, StepRule] = {
    1: _required_text("bigIdea", ("description",)),
    2: _required_text("underlyingGoal", ("businessGoal",)),
    3: _required_text("antiGoals", ANTI_GOAL_FIELDS),
    4: _at_least_one("triggerEvents", "description"),
    5: _at_least_one("jobs", "statement"),
    6: _at_least_one("markets", "segment"),
    7: _at_least_one("problems", "description"),
    8: _market_evaluation,
    9: _required_text("valueProposition", VALUE_PROPOSITION_FIELDS),
    10: _required_text("pricing", ("strategy",)),
}
