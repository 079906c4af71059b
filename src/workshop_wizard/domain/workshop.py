"""Shape of the per-step workshop answers."""

import copy
from collections.abc import Mapping

STEP_TITLES: dict[int, str] = {
    1: "Big Idea",
    2: "Underlying Goal",
    3: "Anti-Goals",
    4: "Trigger Events",
    5: "Jobs",
    6: "Markets",
    7: "Problems",
    8: "Market Evaluation",
    9: "Value Proposition",
    10: "Pricing",
}

ANTI_GOAL_FIELDS = ("market", "offer", "delivery", "lifestyle", "values")

VALUE_PROPOSITION_FIELDS = (
    "uniqueValue",
    "painPoints",
    "benefits",
    "differentiators",
)

EVALUATION_CRITERIA = (
    "size",
    "growth",
    "accessibility",
    "profitability",
    "urgency",
)

_DEFAULT_WORKSHOP_DATA: dict[str, object] = {
    "bigIdea": {"description": "", "version": "initial"},
    "underlyingGoal": {"businessGoal": "", "constraints": ""},
    "antiGoals": dict.fromkeys(ANTI_GOAL_FIELDS, ""),
    "triggerEvents": [],
    "jobs": [],
    "markets": [],
    "problems": [],
    "valueProposition": dict.fromkeys(VALUE_PROPOSITION_FIELDS, ""),
    "pricing": {"strategy": ""},
    "stepChats": {},
}


def default_workshop_data() -> dict[str, object]:
    """Return a fresh, empty workshop document."""
    return copy.deepcopy(_DEFAULT_WORKSHOP_DATA)


def normalize_workshop_data(raw: object) -> dict[str, object]:
    """Fill missing or malformed top-level keys with empty structures.

    Unknown keys are kept as-is so older or newer documents round-trip.
    """
    data = default_workshop_data()
    if not isinstance(raw, dict):
        return data
    for key, value in raw.items():
        default = data.get(key)
        if default is None or isinstance(value, type(default)):
            data[key] = value
    return data


def section(data: Mapping[str, object], key: str) -> Mapping[str, object]:
    """Return the nested object at ``key`` or an empty mapping."""
    value = data.get(key)
    return value if isinstance(value, Mapping) else {}


def entries(data: Mapping[str, object], key: str) -> list[Mapping[str, object]]:
    """Return the object entries of the list at ``key``."""
    value = data.get(key)
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, Mapping)]
