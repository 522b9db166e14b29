"""
Migration Strategy Recommendation Engine

Scores a questionnaire answer set against the three S/4HANA migration
strategies and reports a 0-100 readiness score with a rationale.

Every function here is pure and deterministic. None of them raise: a
missing, unknown or malformed answer simply contributes nothing, so shape
validation stays with the caller.

Usage:
    from app.services.recommendation_engine import evaluate

    result = evaluate({"outcome": "clean_slate", "customCode": "eliminate"})
    result.strategy         # "greenfield"
    result.readiness_score  # 0-100
    result.rationale        # ["Clean slate approach aligns ...", ...]
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from app.utils.numeric import round_half_up


# ═════════════════════════════════════════════════════════════════════════════
# Strategies & questionnaire fields
# ═════════════════════════════════════════════════════════════════════════════

GREENFIELD = "greenfield"
BROWNFIELD = "brownfield"
HYBRID = "hybrid"

# Tie-break precedence: the first strategy holding the max score wins.
STRATEGIES: tuple[str, ...] = (GREENFIELD, BROWNFIELD, HYBRID)

# Fields counted by the readiness score, in questionnaire order.
TRACKED_FIELDS: tuple[str, ...] = (
    "landscape", "outcome", "customCode", "dataQuality", "dataVolume",
    "changeAppetite", "changeMaturity", "timeline", "budget", "orgSize",
    "industry",
)

# Allowed values per categorical field (industry is free form).
FIELD_CHOICES: dict[str, frozenset[str]] = {
    "landscape": frozenset({"single", "multiple", "complex"}),
    "outcome": frozenset({"clean_slate", "preserve", "phased"}),
    "customCode": frozenset({"preserve_all", "selective", "minimize", "eliminate"}),
    "dataQuality": frozenset({"excellent", "good", "poor"}),
    "dataVolume": frozenset({"small", "medium", "large", "enterprise"}),
    "changeAppetite": frozenset({"minimal", "moderate", "significant"}),
    "changeMaturity": frozenset({"low", "medium", "high"}),
    "timeline": frozenset({"6_months", "12_months", "18_months", "24_months", "longer"}),
    "budget": frozenset({"small", "medium", "large", "enterprise"}),
    "orgSize": frozenset({"small", "medium", "large", "enterprise"}),
}

MULTI_SELECT_FIELDS: tuple[str, ...] = ("modules", "regions")


# ═════════════════════════════════════════════════════════════════════════════
# Strategy weights — (greenfield, brownfield, hybrid) points per answer
# ═════════════════════════════════════════════════════════════════════════════

STRATEGY_WEIGHTS: dict[str, dict[str, tuple[int, int, int]]] = {
    "landscape": {
        "single": (0, 3, 1),
        "multiple": (1, 1, 3),
        "complex": (2, 0, 3),
    },
    "outcome": {
        "clean_slate": (4, 0, 0),
        "preserve": (0, 4, 0),
        "phased": (0, 0, 4),
    },
    "customCode": {
        "preserve_all": (0, 3, 0),
        "selective": (0, 1, 3),
        "minimize": (2, 0, 2),
        "eliminate": (4, 0, 0),
    },
    "dataQuality": {
        "excellent": (0, 2, 1),
        "good": (0, 1, 2),
        "poor": (2, 0, 1),
    },
    "dataVolume": {
        "small": (1, 1, 0),
        "medium": (0, 2, 1),
        "large": (1, 0, 3),
        "enterprise": (1, 0, 3),
    },
    "changeAppetite": {
        "minimal": (0, 3, 0),
        "moderate": (0, 1, 3),
        "significant": (3, 0, 1),
    },
    "timeline": {
        "6_months": (0, 3, 0),
        "12_months": (0, 2, 1),
        "18_months": (1, 0, 3),
        "24_months": (2, 0, 2),
        "longer": (2, 0, 2),
    },
    "orgSize": {
        "small": (1, 2, 0),
        "medium": (0, 1, 2),
        "large": (1, 0, 3),
        "enterprise": (1, 0, 3),
    },
    "budget": {
        "small": (0, 2, 0),
        "medium": (0, 1, 1),
        "large": (2, 0, 2),
        "enterprise": (2, 0, 2),
    },
    "changeMaturity": {
        "low": (0, 2, 0),
        "medium": (0, 0, 2),
        "high": (2, 0, 1),
    },
}


# ═════════════════════════════════════════════════════════════════════════════
# Readiness scoring constants
# ═════════════════════════════════════════════════════════════════════════════

COMPLETION_POINTS = 5
MAX_FIELD_POINTS = 15
MAX_BONUS_POINTS = 20
# Fixed denominator: 11 fields × 15 + 20 = 185. Not derived from actual maxima.
MAX_READINESS_POINTS = len(TRACKED_FIELDS) * MAX_FIELD_POINTS + MAX_BONUS_POINTS


# ═════════════════════════════════════════════════════════════════════════════
# Rationale rules — (field, matching values, message), evaluated in order
# ═════════════════════════════════════════════════════════════════════════════

RATIONALE_RULES: dict[str, tuple[tuple[str, frozenset[str], str], ...]] = {
    GREENFIELD: (
        ("outcome", frozenset({"clean_slate"}),
         "Clean slate approach aligns with complete re-engineering objective"),
        ("customCode", frozenset({"eliminate", "minimize"}),
         "Preference for standard functionality supports greenfield approach"),
        ("changeAppetite", frozenset({"significant"}),
         "High change tolerance enables comprehensive transformation"),
        ("dataQuality", frozenset({"poor"}),
         "Poor data quality benefits from fresh start with data cleansing"),
    ),
    BROWNFIELD: (
        ("landscape", frozenset({"single"}),
         "Single instance environment is ideal for system conversion"),
        ("outcome", frozenset({"preserve"}),
         "Business process preservation aligns with conversion approach"),
        ("customCode", frozenset({"preserve_all"}),
         "Desire to preserve customizations supports brownfield strategy"),
        ("timeline", frozenset({"6_months", "12_months"}),
         "Tight timeline favors faster conversion approach"),
        ("changeAppetite", frozenset({"minimal"}),
         "Low change tolerance suits conversion with minimal disruption"),
    ),
    HYBRID: (
        ("landscape", frozenset({"complex", "multiple"}),
         "Complex multi-instance environment requires phased approach"),
        ("outcome", frozenset({"phased"}),
         "Phased modernization objective aligns with hybrid strategy"),
        ("dataVolume", frozenset({"large", "enterprise"}),
         "Large data volume benefits from staged migration"),
        ("changeAppetite", frozenset({"moderate"}),
         "Moderate change appetite aligns with selective modernization"),
        ("orgSize", frozenset({"large", "enterprise"}),
         "Large organization complexity benefits from phased approach"),
        ("customCode", frozenset({"selective"}),
         "Selective customization approach fits hybrid methodology"),
    ),
}


@dataclass(frozen=True)
class RecommendationResult:
    """Engine output for one answer set."""
    strategy: str
    readiness_score: int
    rationale: list[str] = field(default_factory=list)
    scores: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy,
            "readiness_score": self.readiness_score,
            "rationale": list(self.rationale),
            "scores": dict(self.scores),
        }


# ── Input coercion ───────────────────────────────────────────────────────────

def _as_mapping(responses) -> Mapping:
    return responses if isinstance(responses, Mapping) else {}


def _answer(responses: Mapping, name: str) -> str | None:
    """Return the answer for *name* if it is a non-empty string, else None."""
    value = responses.get(name)
    if isinstance(value, str) and value.strip():
        return value
    return None


def _selection_count(responses: Mapping, name: str) -> int:
    value = responses.get(name)
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value)
    return 0


# ═════════════════════════════════════════════════════════════════════════════
# Public API
# ═════════════════════════════════════════════════════════════════════════════

def compute_strategy_scores(responses) -> dict[str, int]:
    """Accumulate the weight table over *responses*.

    Returns:
        {"greenfield": int, "brownfield": int, "hybrid": int}
    """
    data = _as_mapping(responses)
    totals = [0, 0, 0]
    for name, table in STRATEGY_WEIGHTS.items():
        weights = table.get(_answer(data, name))
        if weights is None:
            continue
        for i, points in enumerate(weights):
            totals[i] += points
    return dict(zip(STRATEGIES, totals))


def generate_recommendation(responses) -> str:
    """Return the strategy with the highest score (ties: greenfield > brownfield > hybrid)."""
    scores = compute_strategy_scores(responses)
    best = max(scores.values())
    return next(s for s in STRATEGIES if scores[s] == best)


def raw_readiness_points(responses) -> int:
    """Readiness points before normalization to 0-100."""
    data = _as_mapping(responses)
    points = 0

    for name in TRACKED_FIELDS:
        value = _answer(data, name)
        if value is None:
            continue
        if name == "changeMaturity" and value == "high":
            points += 10
        elif name == "dataQuality" and value == "excellent":
            points += 10
        elif name == "dataQuality" and value == "good":
            points += 7
        elif name == "changeAppetite" and value != "minimal":
            points += 8
        elif name == "budget" and value in ("large", "enterprise"):
            points += 8
        elif name == "timeline" and value != "6_months":
            points += 5
        points += COMPLETION_POINTS

    # Module diversity
    modules = _selection_count(data, "modules")
    if modules > 3:
        points += 10
    elif modules > 1:
        points += 5

    # Geographic diversity
    if _selection_count(data, "regions") > 2:
        points += 5

    return points


def calculate_score(responses) -> int:
    """Readiness score in [0, 100]."""
    raw = raw_readiness_points(responses)
    return min(100, round_half_up(raw / MAX_READINESS_POINTS * 100))


def get_recommendation_rationale(responses, strategy: str) -> list[str]:
    """Explain *strategy* for *responses*; ``[]`` when nothing applies or the strategy is unknown."""
    data = _as_mapping(responses)
    return [
        message
        for name, values, message in RATIONALE_RULES.get(strategy, ())
        if _answer(data, name) in values
    ]


def evaluate(responses) -> RecommendationResult:
    """Run the full engine: strategy, readiness score, rationale and raw scores."""
    scores = compute_strategy_scores(responses)
    strategy = generate_recommendation(responses)
    return RecommendationResult(
        strategy=strategy,
        readiness_score=calculate_score(responses),
        rationale=get_recommendation_rationale(responses, strategy),
        scores=scores,
    )


def unknown_answers(responses) -> dict[str, str]:
    """Field-level report of answers outside the closed enums.

    Used by the API layer to reject malformed submissions before they are
    stored; the engine itself ignores such answers.
    """
    data = _as_mapping(responses)
    problems: dict[str, str] = {}
    for name, choices in FIELD_CHOICES.items():
        if name not in data or data[name] in (None, ""):
            continue
        if not isinstance(data[name], str) or data[name] not in choices:
            problems[name] = f"Must be one of: {', '.join(sorted(choices))}."
    if "industry" in data and data["industry"] is not None and not isinstance(data["industry"], str):
        problems["industry"] = "Must be a string."
    for name in MULTI_SELECT_FIELDS:
        if name in data and data[name] is not None and not isinstance(data[name], list):
            problems[name] = "Must be a list."
    return problems
