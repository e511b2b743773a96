"""
Pydantic models for the Harness Grader system.

Defines the students and tasks being graded, the outcome of running a
harness, and the value objects produced by both penalty pipelines.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .config import HARNESS_SUFFIX


class FailureKind(str, Enum):
    """Why a task could not be measured."""

    FOLDER_MISSING = "folder-missing"
    UNKNOWN_TASK = "unknown-task"
    INJECTION_ERROR = "injection-error"
    COMPILE_FAILED = "compile-failed"
    RUN_ERROR = "run-error"
    TIMEOUT = "timeout"
    PARSE_ERROR = "parse-error"


class Student(BaseModel):
    """
    One submitter.

    Attributes:
        student_id: Student identifier (usually the submission folder name).
        root_path: Directory holding the student's question folders.
    """

    model_config = ConfigDict(frozen=True)

    student_id: str = Field(..., min_length=1, description="Student identifier")
    root_path: Path = Field(..., description="Submission root directory")

    def question_path(self, folder: str) -> Path:
        return self.root_path / folder


class Task(BaseModel):
    """
    One gradable unit, e.g. "Q1A".

    Attributes:
        task_id: Task identifier shown in summaries.
        folder: Name of the submission folder holding the task's code.
        harness: Filename of the tester injected into that folder.
        max_score: Maximum marks available for the task (0 if unknown).
    """

    model_config = ConfigDict(frozen=True)

    task_id: str = Field(..., min_length=1, description="Task identifier")
    folder: str = Field(..., min_length=1, description="Submission folder name")
    harness: str = Field(..., min_length=1, description="Harness filename")
    max_score: float = Field(default=0.0, ge=0, description="Maximum possible score")

    @property
    def entry_point(self) -> str:
        """Harness name without its source suffix (Q1aTester.java -> Q1aTester)."""
        if self.harness.endswith(HARNESS_SUFFIX):
            return self.harness[: -len(HARNESS_SUFFIX)]
        return self.harness


class TaskOutcome(BaseModel):
    """
    Result of running the execution pipeline for one task.

    A measured score of 0.0 has ``failure=None``; a task that could not be
    measured carries the failure kind and a reason string.
    """

    model_config = ConfigDict(frozen=True)

    task_id: str
    score: float = Field(default=0.0, ge=0)
    failure: FailureKind | None = None
    reason: str = ""
    output: str = Field(default="", description="Captured harness output")

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    @classmethod
    def failed(cls, task_id: str, kind: FailureKind, reason: str, output: str = "") -> "TaskOutcome":
        return cls(task_id=task_id, score=0.0, failure=kind, reason=reason, output=output)


class GradingResult(BaseModel):
    """
    One question's raw outcome, the input to both penalty pipelines.

    Attributes:
        raw_score: Score before penalties.
        max_possible_score: Total marks available for the question.
        has_compilation_error: True if the submission failed to compile.
        is_naming_correct: True if the submission folder follows the id format.
        has_proper_hierarchy: True if the question folder sits where expected.
        has_headers: True if the source files carry the student header comment.
    """

    model_config = ConfigDict(frozen=True)

    raw_score: float
    max_possible_score: float = 0.0
    has_compilation_error: bool = False
    is_naming_correct: bool = True
    has_proper_hierarchy: bool = True
    has_headers: bool = True


class PenaltyRecord(BaseModel):
    """
    One externally declared deduction, keyed by normalized student id.

    Attributes:
        student_id: Normalized identifier (lowercase, marker characters removed).
        penalty_value: Signed value added to the total; negative deducts.
        reason: Free-text reason shown in the audit report.
    """

    model_config = ConfigDict(frozen=True)

    student_id: str
    penalty_value: float
    reason: str


class ProcessedScore(BaseModel):
    """Final score after penalties. ``final_score`` is never negative."""

    model_config = ConfigDict(frozen=True)

    raw_score: float
    total_deduction: float
    final_score: float = Field(..., ge=0)


class Deduction(BaseModel):
    label: str
    rate: float
    amount: float


class QuestionBreakdown(BaseModel):
    """Per-question stage of the two-stage calculator."""

    question_name: str
    raw_score: float
    deductions: list[Deduction] = Field(default_factory=list)
    subtotal: float
    log: str = ""


class GlobalAdjustment(BaseModel):
    """Final stage of the two-stage calculator: external penalties and clamping."""

    student_id: str
    total_before: float
    records: list[PenaltyRecord] = Field(default_factory=list)
    final_score: float = Field(..., ge=0)
    log: str = ""


class PenaltyReport(BaseModel):
    """
    Everything the two-stage calculator produced for one student.

    The audit log is carried on the report itself, so nothing has to be
    drained from the calculator between students.
    """

    student_id: str
    questions: list[QuestionBreakdown] = Field(default_factory=list)
    adjustment: GlobalAdjustment
    processed: ProcessedScore

    @property
    def log(self) -> str:
        return "".join(q.log for q in self.questions) + self.adjustment.log


class StudentSummary(BaseModel):
    """
    Per-student record emitted by the orchestrator.

    Attributes:
        student_id: Student identifier.
        outcomes: Task outcomes in declared task order.
        total: Sum of raw task scores.
        processed: Penalty-adjusted score, when a penalty pipeline ran.
        penalty_report: Rendered audit report, when the two-stage pipeline ran.
        error: Message of a student-level failure, if one occurred.
    """

    student_id: str
    outcomes: list[TaskOutcome] = Field(default_factory=list)
    total: float = 0.0
    processed: ProcessedScore | None = None
    penalty_report: str = ""
    error: str | None = None

    @property
    def summary(self) -> str:
        """Per-task fragment, e.g. ``"A:3.0  B:0.0  "``."""
        return "".join(f"{o.task_id}:{o.score}  " for o in self.outcomes)

    @property
    def line(self) -> str:
        return f"{self.student_id}: {self.summary}Total: {self.total}"

    @property
    def final_score(self) -> float:
        return self.processed.final_score if self.processed else self.total
