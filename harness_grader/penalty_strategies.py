"""
Single-stage penalty model.

A penalty strategy is any callable taking a GradingResult and returning a
non-negative deduction in points. PenaltyService sums the deductions of all
registered strategies and clamps the final score at zero.
"""

from collections.abc import Callable, Iterable

from .config import STRATEGY_COMPILATION_RATE, STRATEGY_STRUCTURAL_RATE
from .models import GradingResult, ProcessedScore

PenaltyStrategy = Callable[[GradingResult], float]


def compilation_penalty(result: GradingResult) -> float:
    """Half the question's maximum score when the submission did not compile."""
    if result.has_compilation_error:
        return result.max_possible_score * STRATEGY_COMPILATION_RATE
    return 0.0


def structural_penalty(result: GradingResult) -> float:
    """
    A tenth of the maximum score when any structural requirement is missed:
    folder naming, question folder placement, or the header comment.
    """
    violated = not (result.is_naming_correct and result.has_proper_hierarchy and result.has_headers)
    if violated:
        return result.max_possible_score * STRATEGY_STRUCTURAL_RATE
    return 0.0


class PenaltyService:
    """
    Ordered registry of penalty strategies.
    """

    def __init__(self, strategies: Iterable[PenaltyStrategy | None] = ()) -> None:
        self._strategies: list[PenaltyStrategy] = []
        for strategy in strategies:
            self.register(strategy)

    @classmethod
    def default(cls) -> "PenaltyService":
        return cls([structural_penalty, compilation_penalty])

    def register(self, strategy: PenaltyStrategy | None) -> "PenaltyService":
        """Add a strategy; ``None`` is ignored. Returns self for chaining."""
        if strategy is not None:
            self._strategies.append(strategy)
        return self

    @property
    def strategy_count(self) -> int:
        return len(self._strategies)

    def process(self, result: GradingResult) -> ProcessedScore:
        """
        Apply every registered strategy to one result.

        Raises:
            ValueError: If ``result`` is None or a strategy returns a
                negative deduction.
        """
        if result is None:
            raise ValueError("GradingResult cannot be None")

        total_deduction = 0.0
        for strategy in self._strategies:
            deduction = strategy(result)
            if deduction < 0:
                name = getattr(strategy, "__name__", repr(strategy))
                raise ValueError(f"Strategy {name} returned a negative deduction: {deduction}")
            total_deduction += deduction

        final_score = max(0.0, result.raw_score - total_deduction)
        return ProcessedScore(
            raw_score=result.raw_score,
            total_deduction=total_deduction,
            final_score=final_score,
        )

    def process_all(self, results: list[GradingResult]) -> ProcessedScore:
        """
        Process several questions and combine them.

        Each question is clamped on its own, so the combined deduction is
        the raw total minus the sum of the clamped question scores.
        """
        if not results:
            raise ValueError("Question results cannot be empty")

        processed = [self.process(result) for result in results]
        raw_total = sum(p.raw_score for p in processed)
        final_total = sum(p.final_score for p in processed)
        return ProcessedScore(
            raw_score=raw_total,
            total_deduction=raw_total - final_total,
            final_score=final_total,
        )
