"""
Two-stage penalty model.

Stage one applies percentage penalties to each question, compounding on the
running subtotal: structural error, then header error, then compilation
error. Stage two adds the externally declared penalties (lateness and the
like, loaded from a CSV file) to the summed subtotals and clamps at zero.

Every call returns its own audit log alongside the numbers, so the
calculator holds no per-student state.
"""

from collections import defaultdict
from pathlib import Path

from .config import (
    COMPILATION_PENALTY_RATE,
    DEFAULT_PENALTY_REASON,
    HEADER_PENALTY_RATE,
    ID_MARKER_CHARS,
    PENALTY_DELIMITER,
    STRUCTURAL_PENALTY_RATE,
)
from .models import (
    Deduction,
    GlobalAdjustment,
    GradingResult,
    PenaltyRecord,
    PenaltyReport,
    ProcessedScore,
    QuestionBreakdown,
)


def normalize_student_id(student_id: str) -> str:
    """``"#Alice.2022 "`` -> ``"alice.2022"``."""
    cleaned = student_id.strip()
    for marker in ID_MARKER_CHARS:
        cleaned = cleaned.replace(marker, "")
    return cleaned.lower()


def load_external_penalties(csv_path: Path) -> dict[str, list[PenaltyRecord]]:
    """
    Read ``studentId,value[,reason]`` lines into a table keyed by normalized id.

    Lines with fewer than two fields or a non-numeric value (a header row,
    for instance) are skipped. A file that cannot be read yields an empty
    table and a warning; grading carries on without external penalties.

    Args:
        csv_path: Path to the penalties CSV file.

    Returns:
        Mapping of normalized student id to that student's records, in file order.
    """
    table: dict[str, list[PenaltyRecord]] = defaultdict(list)

    try:
        with open(csv_path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        print(f"Warning: Could not load penalties from {csv_path}: {e}")
        return {}

    skipped = 0
    for line in lines:
        if not line.strip():
            continue
        fields = line.split(PENALTY_DELIMITER)
        if len(fields) < 2:
            skipped += 1
            continue

        student_id = normalize_student_id(fields[0])
        try:
            value = float(fields[1].strip())
        except ValueError:
            skipped += 1
            continue
        if not student_id:
            skipped += 1
            continue

        # Reasons may themselves contain the delimiter
        reason = PENALTY_DELIMITER.join(fields[2:]).strip().strip('"').strip()
        table[student_id].append(
            PenaltyRecord(student_id=student_id, penalty_value=value, reason=reason or DEFAULT_PENALTY_REASON)
        )

    if skipped:
        print(f"  Skipped {skipped} malformed line(s) in {csv_path}")

    return dict(table)


class PenaltyCalculator:
    """
    Percentage penalties per question plus external penalties per student.

    The external table is loaded once and only read afterwards.
    """

    def __init__(self, external_penalties: dict[str, list[PenaltyRecord]] | None = None) -> None:
        self._external: dict[str, list[PenaltyRecord]] = {}
        for student_id, records in (external_penalties or {}).items():
            self._external.setdefault(normalize_student_id(student_id), []).extend(records)

    @classmethod
    def from_csv(cls, csv_path: Path) -> "PenaltyCalculator":
        return cls(load_external_penalties(csv_path))

    @property
    def student_count(self) -> int:
        return len(self._external)

    def penalties_for(self, student_id: str) -> list[PenaltyRecord]:
        return list(self._external.get(normalize_student_id(student_id), []))

    def calculate_question_score(
        self,
        question_name: str,
        raw_score: float,
        structural_error: bool,
        header_error: bool,
        compile_error: bool,
    ) -> QuestionBreakdown:
        """
        Apply the per-question stage.

        Each penalty removes its rate from the subtotal left by the previous
        one: 100 with structural and header errors gives 64, not 60.

        Returns:
            QuestionBreakdown with the deductions in order, the subtotal
            and the audit text for this question.
        """
        subtotal = raw_score
        deductions: list[Deduction] = []
        lines = [f"--- {question_name} Breakdown ---"]

        stages = [
            (structural_error, "Structural Error", STRUCTURAL_PENALTY_RATE),
            (header_error, "Header Error", HEADER_PENALTY_RATE),
            (compile_error, "Compilation Failure", COMPILATION_PENALTY_RATE),
        ]
        for flagged, label, rate in stages:
            if not flagged:
                continue
            amount = subtotal * rate
            subtotal -= amount
            deductions.append(Deduction(label=label, rate=rate, amount=amount))
            lines.append(f"  - {label}: -{rate * 100:.0f}% (-{amount} pts, subtotal {subtotal})")

        lines.append(f"  Subtotal for {question_name}: {subtotal}")
        return QuestionBreakdown(
            question_name=question_name,
            raw_score=raw_score,
            deductions=deductions,
            subtotal=subtotal,
            log="\n".join(lines) + "\n\n",
        )

    def calculate_final_total(self, student_id: str, total_from_questions: float) -> GlobalAdjustment:
        """
        Apply the student's external penalties once to the summed subtotals.

        A student without records keeps the total unchanged; the result is
        clamped at 0 either way.
        """
        records = self.penalties_for(student_id)
        final_score = total_from_questions
        lines = ["--- Global Adjustments ---"]

        if records:
            for record in records:
                final_score += record.penalty_value
                lines.append(f"  - {record.reason}: {record.penalty_value} pts")
        else:
            lines.append("  - No external penalties found.")

        final_score = max(0.0, final_score)
        lines.append(f"FINAL GRADE: {final_score}")

        return GlobalAdjustment(
            student_id=student_id,
            total_before=total_from_questions,
            records=records,
            final_score=final_score,
            log="\n".join(lines) + "\n",
        )

    def process_student(
        self,
        student_id: str,
        results: list[GradingResult],
        question_names: list[str] | None = None,
    ) -> PenaltyReport:
        """
        Run both stages for one student.

        Structural error means the question folder was misplaced, header
        error means the header comment is missing; naming is not penalised
        by this model.

        Args:
            student_id: Student identifier, matched against the external table.
            results: One GradingResult per question, in report order.
            question_names: Labels for the report; defaults to Q1, Q2, ...

        Raises:
            ValueError: On an empty id, an empty or None-containing result
                list, or mismatched question names.
        """
        if not student_id or not student_id.strip():
            raise ValueError("Student ID cannot be empty")
        if not results:
            raise ValueError("Question results cannot be empty")
        if question_names is None:
            question_names = [f"Q{i}" for i in range(1, len(results) + 1)]
        if len(question_names) != len(results):
            raise ValueError("question_names must match results one to one")

        questions: list[QuestionBreakdown] = []
        for index, (name, result) in enumerate(zip(question_names, results)):
            if result is None:
                raise ValueError(f"Question result at index {index} cannot be None")
            questions.append(
                self.calculate_question_score(
                    name,
                    result.raw_score,
                    structural_error=not result.has_proper_hierarchy,
                    header_error=not result.has_headers,
                    compile_error=result.has_compilation_error,
                )
            )

        raw_total = sum(r.raw_score for r in results)
        adjustment = self.calculate_final_total(student_id, sum(q.subtotal for q in questions))

        return PenaltyReport(
            student_id=student_id,
            questions=questions,
            adjustment=adjustment,
            processed=ProcessedScore(
                raw_score=raw_total,
                total_deduction=raw_total - adjustment.final_score,
                final_score=adjustment.final_score,
            ),
        )


def process_with_global_deductions(
    student_id: str,
    results: list[GradingResult],
    penalties_csv: str | Path,
) -> PenaltyReport:
    """
    One-shot form of the two-stage model: load the CSV, then process.

    Raises:
        ValueError: If any argument is empty, before the CSV is touched.
    """
    if not student_id or not student_id.strip():
        raise ValueError("Student ID cannot be empty")
    if not results:
        raise ValueError("Question results cannot be empty")
    if not penalties_csv or not str(penalties_csv).strip():
        raise ValueError("Penalties CSV path cannot be empty")

    calculator = PenaltyCalculator.from_csv(Path(penalties_csv))
    return calculator.process_student(student_id, results)


def render_report(report: PenaltyReport) -> str:
    """Multi-line audit report: header, question breakdowns, global adjustments."""
    header = f"Penalty report for {report.student_id}\n{'=' * 40}\n"
    footer = (
        f"Raw total: {report.processed.raw_score}  "
        f"Deductions: {report.processed.total_deduction}  "
        f"Final: {report.processed.final_score}\n"
    )
    return header + report.log + footer
