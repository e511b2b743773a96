"""
Structural checks on a student's submission tree.

These feed the boolean flags of GradingResult: whether the submission folder
is named in the normalized id format, whether each question folder sits
directly under the student root, and whether the sources carry the
student's header comment.

A question folder wrapped one level too deep (``<root>/<wrapper>/Q1``) is
still graded, but counts as misplaced.
"""

from pathlib import Path

from .config import HEADER_SCAN_LINES, SOURCE_GLOB
from .models import FailureKind, GradingResult, Student, Task, TaskOutcome
from .penalty_calculator import normalize_student_id


def is_naming_correct(student: Student) -> bool:
    name = student.root_path.name
    return bool(name) and name == normalize_student_id(name)


def locate_question_folder(student: Student, folder: str) -> Path | None:
    """
    Find a question folder directly under the student root, or failing that
    inside a single wrapper directory.

    Returns:
        The folder path, or None if it is in neither place.
    """
    direct = student.question_path(folder)
    if direct.is_dir():
        return direct
    if not student.root_path.is_dir():
        return None

    try:
        wrappers = sorted(student.root_path.iterdir())
    except OSError:
        return None

    for wrapper in wrappers:
        if not wrapper.is_dir() or wrapper.name.startswith((".", "__")):
            continue
        nested = wrapper / folder
        if nested.is_dir():
            return nested
    return None


def has_proper_hierarchy(student: Student, folder: str) -> bool:
    return student.question_path(folder).is_dir()


def has_headers(student: Student, folder: str, source_glob: str = SOURCE_GLOB) -> bool:
    """
    True if any source file in the question folder names the student in its
    first few lines (case-insensitive).
    """
    question_dir = locate_question_folder(student, folder)
    if question_dir is None:
        return False

    needle = normalize_student_id(student.student_id)
    for source in sorted(question_dir.glob(source_glob)):
        if _header_mentions(source, needle):
            return True
    return False


def _header_mentions(source: Path, needle: str) -> bool:
    try:
        with open(source, "r", encoding="utf-8", errors="replace") as f:
            for line_number, line in enumerate(f):
                if line_number >= HEADER_SCAN_LINES:
                    break
                if needle in line.lower():
                    return True
    except OSError:
        return False
    return False


def build_grading_result(
    student: Student,
    task: Task,
    outcome: TaskOutcome,
    source_glob: str = SOURCE_GLOB,
) -> GradingResult:
    """Snapshot one task's outcome and structural flags for the penalty models."""
    return GradingResult(
        raw_score=outcome.score,
        max_possible_score=task.max_score,
        has_compilation_error=outcome.failure == FailureKind.COMPILE_FAILED,
        is_naming_correct=is_naming_correct(student),
        has_proper_hierarchy=has_proper_hierarchy(student, task.folder),
        has_headers=has_headers(student, task.folder, source_glob),
    )
