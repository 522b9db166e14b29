"""
Unit tests for the migration strategy recommendation engine.

Covers:
    - Strategy selection on the reference answer sets
    - Tie-break precedence (greenfield > brownfield > hybrid)
    - Readiness score: completion points, field bonuses, module/region
      bonuses and the fixed 185-point denominator
    - Rationale lookup order and empty results
    - Graceful handling of missing / malformed answers
"""

import pytest

from app.services import recommendation_engine as engine
from app.services.recommendation_engine import (
    BROWNFIELD,
    GREENFIELD,
    HYBRID,
    MAX_READINESS_POINTS,
    STRATEGY_WEIGHTS,
    TRACKED_FIELDS,
    calculate_score,
    compute_strategy_scores,
    evaluate,
    generate_recommendation,
    get_recommendation_rationale,
    raw_readiness_points,
    unknown_answers,
)

CLEAN_SLATE = {"outcome": "clean_slate", "customCode": "eliminate", "changeAppetite": "significant"}
CONVERSION = {
    "landscape": "single",
    "outcome": "preserve",
    "customCode": "preserve_all",
    "changeAppetite": "minimal",
    "timeline": "6_months",
}
FULL_READINESS = {
    "landscape": "complex",
    "outcome": "phased",
    "customCode": "selective",
    "dataQuality": "excellent",
    "dataVolume": "enterprise",
    "changeAppetite": "moderate",
    "changeMaturity": "high",
    "timeline": "18_months",
    "budget": "enterprise",
    "orgSize": "enterprise",
    "industry": "manufacturing",
    "modules": ["FI", "CO", "MM", "SD"],
    "regions": ["EMEA", "APAC", "AMER"],
}


# ═════════════════════════════════════════════════════════════════════════════
# generate_recommendation
# ═════════════════════════════════════════════════════════════════════════════


class TestGenerateRecommendation:
    def test_clean_slate_answers_pick_greenfield(self):
        assert compute_strategy_scores(CLEAN_SLATE) == {
            GREENFIELD: 11, BROWNFIELD: 0, HYBRID: 1,
        }
        assert generate_recommendation(CLEAN_SLATE) == GREENFIELD

    def test_conversion_answers_pick_brownfield(self):
        assert compute_strategy_scores(CONVERSION) == {
            GREENFIELD: 0, BROWNFIELD: 16, HYBRID: 1,
        }
        assert generate_recommendation(CONVERSION) == BROWNFIELD

    def test_phased_answers_pick_hybrid(self):
        responses = {"landscape": "complex", "outcome": "phased", "dataVolume": "large"}
        assert generate_recommendation(responses) == HYBRID

    def test_empty_answers_tie_to_greenfield(self):
        assert compute_strategy_scores({}) == {GREENFIELD: 0, BROWNFIELD: 0, HYBRID: 0}
        assert generate_recommendation({}) == GREENFIELD

    @pytest.mark.parametrize("responses, expected", [
        ({"dataVolume": "small"}, GREENFIELD),    # 1 / 1 / 0
        ({"customCode": "minimize"}, GREENFIELD), # 2 / 0 / 2
        ({"budget": "medium"}, BROWNFIELD),       # 0 / 1 / 1
    ])
    def test_tie_break_precedence(self, responses, expected):
        assert generate_recommendation(responses) == expected

    def test_moderate_appetite_adds_to_two_strategies(self):
        assert compute_strategy_scores({"changeAppetite": "moderate"}) == {
            GREENFIELD: 0, BROWNFIELD: 1, HYBRID: 3,
        }

    @pytest.mark.parametrize("field", sorted(STRATEGY_WEIGHTS))
    def test_every_weighted_answer_is_applied(self, field):
        for value, weights in STRATEGY_WEIGHTS[field].items():
            scores = compute_strategy_scores({field: value})
            assert (scores[GREENFIELD], scores[BROWNFIELD], scores[HYBRID]) == weights

    def test_weights_cover_ten_categorical_fields(self):
        # industry is tracked for readiness but carries no strategy weight
        assert set(STRATEGY_WEIGHTS) == set(TRACKED_FIELDS) - {"industry"}

    @pytest.mark.parametrize("responses", [
        None,
        "greenfield",
        42,
        ["outcome", "clean_slate"],
        {"outcome": "bogus"},
        {"outcome": None, "customCode": 7, "landscape": ["single"]},
        {"outcome": ""},
    ])
    def test_malformed_input_contributes_nothing(self, responses):
        assert compute_strategy_scores(responses) == {GREENFIELD: 0, BROWNFIELD: 0, HYBRID: 0}
        assert generate_recommendation(responses) == GREENFIELD


# ═════════════════════════════════════════════════════════════════════════════
# calculate_score
# ═════════════════════════════════════════════════════════════════════════════


class TestCalculateScore:
    def test_denominator_is_fixed(self):
        assert MAX_READINESS_POINTS == 185

    def test_empty_answers_score_zero(self):
        assert raw_readiness_points({}) == 0
        assert calculate_score({}) == 0

    def test_completion_points_only(self):
        # 5 / 185 → 2.7 → 3
        assert raw_readiness_points({"industry": "retail"}) == 5
        assert calculate_score({"industry": "retail"}) == 3

    @pytest.mark.parametrize("responses, raw", [
        ({"changeMaturity": "high"}, 15),
        ({"changeMaturity": "low"}, 5),
        ({"dataQuality": "excellent"}, 15),
        ({"dataQuality": "good"}, 12),
        ({"dataQuality": "poor"}, 5),
        ({"changeAppetite": "minimal"}, 5),
        ({"changeAppetite": "moderate"}, 13),
        ({"budget": "large"}, 13),
        ({"budget": "small"}, 5),
        ({"timeline": "6_months"}, 5),
        ({"timeline": "longer"}, 10),
    ])
    def test_field_bonuses(self, responses, raw):
        assert raw_readiness_points(responses) == raw

    @pytest.mark.parametrize("modules, bonus", [
        ([], 0),
        (["FI"], 0),
        (["FI", "CO"], 5),
        (["FI", "CO", "MM"], 5),
        (["FI", "CO", "MM", "SD"], 10),
    ])
    def test_module_diversity_bonus(self, modules, bonus):
        assert raw_readiness_points({"modules": modules}) == bonus

    def test_region_bonus_needs_more_than_two(self):
        assert raw_readiness_points({"regions": ["EMEA", "APAC"]}) == 0
        assert raw_readiness_points({"regions": ["EMEA", "APAC", "AMER"]}) == 5

    def test_full_answer_set(self):
        # 11×5 completion + 41 field bonuses + 10 modules + 5 regions = 111 → 60
        assert raw_readiness_points(FULL_READINESS) == 111
        assert calculate_score(FULL_READINESS) == 60

    def test_clean_slate_score(self):
        # 5 + 5 + (5 + 8) = 23 → 12.4 → 12
        assert calculate_score(CLEAN_SLATE) == 12

    def test_blank_answers_are_not_counted(self):
        assert raw_readiness_points({"landscape": "", "budget": "   ", "timeline": None}) == 0

    def test_score_never_decreases_when_an_answer_is_added(self):
        answered = {}
        previous = calculate_score(answered)
        for field in TRACKED_FIELDS:
            answered[field] = FULL_READINESS[field]
            current = calculate_score(answered)
            assert current >= previous
            previous = current

    @pytest.mark.parametrize("responses", [None, "x", 3.14, {"modules": "FI,CO,MM,SD"}])
    def test_malformed_input_scores_zero(self, responses):
        assert calculate_score(responses) == 0

    def test_score_within_bounds(self):
        for responses in ({}, CLEAN_SLATE, CONVERSION, FULL_READINESS):
            assert 0 <= calculate_score(responses) <= 100


# ═════════════════════════════════════════════════════════════════════════════
# get_recommendation_rationale
# ═════════════════════════════════════════════════════════════════════════════


class TestRationale:
    def test_greenfield_messages_in_order(self):
        assert get_recommendation_rationale(CLEAN_SLATE, GREENFIELD) == [
            "Clean slate approach aligns with complete re-engineering objective",
            "Preference for standard functionality supports greenfield approach",
            "High change tolerance enables comprehensive transformation",
        ]

    def test_brownfield_messages_in_order(self):
        assert get_recommendation_rationale(CONVERSION, BROWNFIELD) == [
            "Single instance environment is ideal for system conversion",
            "Business process preservation aligns with conversion approach",
            "Desire to preserve customizations supports brownfield strategy",
            "Tight timeline favors faster conversion approach",
            "Low change tolerance suits conversion with minimal disruption",
        ]

    def test_hybrid_messages(self):
        messages = get_recommendation_rationale(FULL_READINESS, HYBRID)
        assert messages[0] == "Complex multi-instance environment requires phased approach"
        assert "Selective customization approach fits hybrid methodology" in messages
        assert len(messages) == 6

    def test_no_matching_condition_returns_empty_list(self):
        assert get_recommendation_rationale({}, GREENFIELD) == []
        assert get_recommendation_rationale(CONVERSION, GREENFIELD) == []

    def test_unknown_strategy_returns_empty_list(self):
        assert get_recommendation_rationale(CLEAN_SLATE, "bluefield") == []

    def test_malformed_responses_return_empty_list(self):
        assert get_recommendation_rationale(None, HYBRID) == []


# ═════════════════════════════════════════════════════════════════════════════
# evaluate / unknown_answers
# ═════════════════════════════════════════════════════════════════════════════


class TestEvaluate:
    def test_evaluate_bundles_all_outputs(self):
        result = evaluate(CONVERSION)
        assert result.strategy == BROWNFIELD
        assert result.readiness_score == calculate_score(CONVERSION)
        assert result.rationale == get_recommendation_rationale(CONVERSION, BROWNFIELD)
        assert result.to_dict()["scores"] == {GREENFIELD: 0, BROWNFIELD: 16, HYBRID: 1}

    def test_evaluate_is_deterministic(self):
        assert evaluate(FULL_READINESS) == evaluate(dict(FULL_READINESS))

    def test_unknown_answers_reports_bad_fields(self):
        problems = unknown_answers({
            "outcome": "bogus",
            "landscape": ["single"],
            "modules": "FI",
            "industry": 3,
            "budget": "large",
        })
        assert set(problems) == {"outcome", "landscape", "modules", "industry"}

    def test_unknown_answers_accepts_valid_and_blank(self):
        assert unknown_answers(FULL_READINESS) == {}
        assert unknown_answers({"outcome": "", "timeline": None}) == {}
        assert engine.unknown_answers(None) == {}
