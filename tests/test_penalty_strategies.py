"""Tests for the single-stage strategy model."""

import pytest

from harness_grader.models import GradingResult
from harness_grader.penalty_strategies import (
    PenaltyService,
    compilation_penalty,
    structural_penalty,
)


def test_no_strategies_leaves_score_untouched():
    service = PenaltyService()
    for raw in (0.0, 7.5, 20.0):
        score = service.process(GradingResult(raw_score=raw, max_possible_score=20))
        assert score.total_deduction == 0
        assert score.final_score == raw


def test_none_strategy_is_ignored():
    service = PenaltyService().register(None).register(compilation_penalty)
    assert service.strategy_count == 1


def test_default_strategies():
    service = PenaltyService.default()
    result = GradingResult(
        raw_score=18.0,
        max_possible_score=20.0,
        has_compilation_error=False,
        is_naming_correct=False,
    )
    score = service.process(result)

    assert score.raw_score == 18.0
    assert score.total_deduction == pytest.approx(2.0)
    assert score.final_score == pytest.approx(16.0)


def test_final_score_clamps_at_zero():
    service = PenaltyService.default()
    result = GradingResult(
        raw_score=5.0,
        max_possible_score=20.0,
        has_compilation_error=True,
        has_headers=False,
    )
    score = service.process(result)

    assert score.total_deduction == pytest.approx(12.0)
    assert score.final_score == 0.0
    assert score.final_score == max(0.0, score.raw_score - score.total_deduction)


def test_order_does_not_matter():
    result = GradingResult(raw_score=15, max_possible_score=20, has_compilation_error=True, has_headers=False)
    forward = PenaltyService([structural_penalty, compilation_penalty]).process(result)
    backward = PenaltyService([compilation_penalty, structural_penalty]).process(result)
    assert forward == backward


def test_custom_callable_strategy():
    service = PenaltyService([lambda r: 1.5])
    assert service.process(GradingResult(raw_score=4)).final_score == pytest.approx(2.5)


def test_negative_deduction_rejected():
    service = PenaltyService([lambda r: -1.0])
    with pytest.raises(ValueError, match="negative"):
        service.process(GradingResult(raw_score=4))


def test_none_result_rejected():
    with pytest.raises(ValueError):
        PenaltyService().process(None)


def test_process_all_clamps_per_question():
    service = PenaltyService.default()
    results = [
        GradingResult(raw_score=1.0, max_possible_score=10, has_compilation_error=True),
        GradingResult(raw_score=10.0, max_possible_score=10),
    ]
    score = service.process_all(results)

    assert score.raw_score == 11.0
    assert score.final_score == 10.0
    assert score.total_deduction == 1.0
