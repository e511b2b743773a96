"""
Grading orchestrator.

Runs every declared task for every student, in declared order, and collects
one StudentSummary per student. Optionally hands the task outcomes to one of
the two penalty models; the models are never combined.
"""

from collections.abc import Iterable

from .config import SOURCE_GLOB
from .local_runner import ExecutionPipeline
from .models import Student, StudentSummary, TaskOutcome
from .penalty_calculator import PenaltyCalculator, render_report
from .penalty_strategies import PenaltyService
from .submission_checks import build_grading_result, locate_question_folder
from .task_table import TaskTable


class GradingOrchestrator:
    """
    Drives the student loop and the task loop.

    Args:
        tasks: Ordered task table; summaries follow its order.
        pipeline: Execution pipeline used for every task.
        penalty_service: Single-stage strategy model, if penalties apply.
        penalty_calculator: Two-stage percentage/external model, if penalties apply.
        source_glob: Pattern of source files inspected by the header check.
    """

    def __init__(
        self,
        tasks: TaskTable,
        pipeline: ExecutionPipeline,
        penalty_service: PenaltyService | None = None,
        penalty_calculator: PenaltyCalculator | None = None,
        source_glob: str = SOURCE_GLOB,
    ) -> None:
        if len(tasks) == 0:
            raise ValueError("Task list cannot be empty")
        if penalty_service is not None and penalty_calculator is not None:
            raise ValueError("Choose one penalty model, not both")

        self.tasks = tasks
        self.pipeline = pipeline
        self.penalty_service = penalty_service
        self.penalty_calculator = penalty_calculator
        self.source_glob = source_glob

    def grade_task(self, student: Student, task_id: str) -> TaskOutcome:
        task = self.tasks.resolve(task_id)
        folder = locate_question_folder(student, task.folder) or student.question_path(task.folder)
        return self.pipeline.run_task(task, folder)

    def grade_student(self, student: Student) -> StudentSummary:
        """
        Grade every task for one student and apply the selected penalty model.
        """
        outcomes: list[TaskOutcome] = []
        total = 0.0

        for task in self.tasks:
            outcome = self.grade_task(student, task.task_id)
            outcomes.append(outcome)
            total += outcome.score
            _print_outcome(outcome)

        summary = StudentSummary(student_id=student.student_id, outcomes=outcomes, total=total)

        if self.penalty_service is None and self.penalty_calculator is None:
            return summary

        results = [
            build_grading_result(student, task, outcome, self.source_glob)
            for task, outcome in zip(self.tasks, outcomes)
        ]
        if self.penalty_service is not None:
            summary.processed = self.penalty_service.process_all(results)
        else:
            report = self.penalty_calculator.process_student(
                student.student_id, results, question_names=self.tasks.task_ids
            )
            summary.processed = report.processed
            summary.penalty_report = render_report(report)

        return summary

    def grade_all(self, students: Iterable[Student]) -> list[StudentSummary]:
        """
        Grade students one at a time.

        A failure while grading one student is recorded on that student's
        summary and does not stop the loop.
        """
        students = list(students)
        summaries: list[StudentSummary] = []

        for i, student in enumerate(students, 1):
            print(f"\n[{i}/{len(students)}] Processing {student.student_id}...")
            try:
                summary = self.grade_student(student)
            except Exception as e:
                print(f"  Warning: Grading failed for '{student.student_id}': {e}")
                summary = StudentSummary(student_id=student.student_id, error=str(e))
            summaries.append(summary)

        return summaries


def _print_outcome(outcome: TaskOutcome) -> None:
    if outcome.succeeded:
        print(f"  {outcome.task_id}: {outcome.score} points")
    else:
        print(f"  {outcome.task_id}: {outcome.score} points ({outcome.failure.value}: {outcome.reason})")
