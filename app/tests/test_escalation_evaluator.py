"""
Tests for the escalation matrix loader and evaluator
"""
import json

import pytest

from app.core.escalation_config import (
    EscalationConfigError,
    load_escalation_matrix,
    parse_escalation_matrix,
)
from app.services.escalation_evaluator import EscalationEvaluator


def _tier(code, lo, hi, actions=("Act",)):
    return {"code": code, "name": code.title(), "min_points": lo, "max_points": hi, "actions": list(actions)}


@pytest.mark.parametrize("points,expected", [
    (0, None),
    (3, None),
    (4, None),
    (5, "LEVEL_1"),
    (9, "LEVEL_1"),
    (10, "LEVEL_2"),
    (15, "LEVEL_2"),
    (16, "LEVEL_3"),
    (250, "LEVEL_3"),
])
def test_stages_matrix_boundaries(stages_evaluator, points, expected):
    assert stages_evaluator.evaluate(points).tier_code == expected


def test_below_first_tier_has_no_actions(stages_evaluator):
    result = stages_evaluator.evaluate(3)
    assert result.tier is None
    assert result.actions == []


def test_stage_one_actions(stages_evaluator):
    result = stages_evaluator.evaluate(5)
    assert result.tier_name == "Stage 1"
    assert result.actions == ["Notify reporting manager"]


def test_stage_three_actions_in_order(stages_evaluator):
    result = stages_evaluator.evaluate(16)
    assert result.actions == [
        "Notify Department Head and Hong",
        "Complete Mandatory Training",
        "Procurement rights paused",
        "Session with Finance",
    ]


def test_evaluate_is_deterministic(stages_evaluator):
    assert stages_evaluator.evaluate(12) == stages_evaluator.evaluate(12)


def test_every_total_maps_to_at_most_one_tier():
    matrix = load_escalation_matrix("levels")
    for points in range(0, 40):
        matching = [t.code for t in matrix.tiers if t.contains(points)]
        assert len(matching) <= 1


def test_levels_matrix_selectable_by_name():
    evaluator = EscalationEvaluator(load_escalation_matrix("levels"))
    assert evaluator.evaluate(0).tier_code is None
    assert evaluator.evaluate(1).tier_code == "LEVEL_1"
    assert evaluator.evaluate(4).tier_code == "LEVEL_2"
    assert evaluator.evaluate(7).tier_code == "LEVEL_3"
    assert evaluator.evaluate(11).tier_code == "LEVEL_4"
    assert evaluator.evaluate(12).tier_code == "LEVEL_5"


def test_ordinal_and_next_threshold(stages_evaluator):
    assert stages_evaluator.ordinal(None) == 0
    assert stages_evaluator.ordinal("UNKNOWN") == 0
    assert stages_evaluator.ordinal("LEVEL_1") == 1
    assert stages_evaluator.ordinal("LEVEL_3") == 3
    assert stages_evaluator.next_threshold(3).min_points == 5
    assert stages_evaluator.next_threshold(9).min_points == 10
    assert stages_evaluator.next_threshold(20) is None


def test_overlapping_tiers_rejected():
    with pytest.raises(EscalationConfigError, match="overlaps"):
        parse_escalation_matrix({"tiers": [_tier("A", 1, 5), _tier("B", 5, None)]})


def test_unbounded_tier_must_be_last():
    with pytest.raises(EscalationConfigError, match="unbounded"):
        parse_escalation_matrix({"tiers": [_tier("A", 1, None), _tier("B", 10, None)]})


def test_min_above_max_rejected():
    with pytest.raises(EscalationConfigError):
        parse_escalation_matrix({"tiers": [_tier("A", 6, 2)]})


def test_duplicate_codes_rejected():
    with pytest.raises(EscalationConfigError, match="duplicate"):
        parse_escalation_matrix({"tiers": [_tier("A", 1, 2), _tier("A", 3, None)]})


def test_empty_matrix_rejected():
    with pytest.raises(EscalationConfigError):
        parse_escalation_matrix({"tiers": []})


def test_tier_requires_actions():
    with pytest.raises(EscalationConfigError):
        parse_escalation_matrix({"tiers": [_tier("A", 1, None, actions=())]})


def test_unknown_matrix_name():
    with pytest.raises(EscalationConfigError, match="Unknown escalation matrix"):
        load_escalation_matrix("nonexistent")


def test_load_matrix_from_json_file(tmp_path):
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"tiers": [_tier("WARN", 2, 4), _tier("STOP", 5, None)]}))

    matrix = load_escalation_matrix("stages", path=str(path))

    assert matrix.name == "custom"
    evaluator = EscalationEvaluator(matrix)
    assert evaluator.evaluate(1).tier_code is None
    assert evaluator.evaluate(3).tier_code == "WARN"
    assert evaluator.evaluate(99).tier_code == "STOP"


def test_missing_matrix_file(tmp_path):
    with pytest.raises(EscalationConfigError, match="not found"):
        load_escalation_matrix(path=str(tmp_path / "missing.json"))
