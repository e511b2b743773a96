"""
Harness Grader: inject, compile, run and score student submissions

Usage:
  main.py [--config=PATH] [--verbose]
  main.py (-h | --help)

Options:
  --config=PATH  Path to YAML configuration file [default: grader_config.yml].
  --verbose      Print executed commands and harness output.
  -h --help      Show this screen.
"""

from docopt import docopt
import sys
from pathlib import Path

from harness_grader.config import DEFAULT_GRADES_DIR
from harness_grader.config_loader import GraderConfig, load_config
from harness_grader.grades_aggregator import GradesAggregator
from harness_grader.local_runner import ExecutionPipeline, HarnessRepository, JavaCompiler, LocalRunner
from harness_grader.models import Student, StudentSummary
from harness_grader.orchestrator import GradingOrchestrator
from harness_grader.penalty_calculator import PenaltyCalculator
from harness_grader.penalty_strategies import PenaltyService


def find_students(submissions_dir: Path) -> list[Student]:
    """
    Find all student submission directories.

    Args:
        submissions_dir: Path to directory containing one folder per student.

    Returns:
        List of Student objects, sorted by folder name.
    """
    students: list[Student] = []

    for item in sorted(submissions_dir.iterdir()):
        if not item.is_dir():
            continue

        # Skip hidden directories and common non-submission dirs
        if item.name.startswith(".") or item.name in ("__pycache__", "grades"):
            continue

        students.append(Student(student_id=item.name, root_path=item.resolve()))

    return students


def build_orchestrator(config: GraderConfig) -> GradingOrchestrator:
    """
    Wire the pipeline and the selected penalty model from configuration.
    """
    pipeline = ExecutionPipeline(
        harnesses=HarnessRepository(config.testers_dir),
        compiler=JavaCompiler(
            command=config.compile_command,
            source_glob=config.source_glob,
            verbose=config.verbose,
        ),
        runner=LocalRunner(
            command=config.run_command,
            timeout_seconds=config.timeout_seconds,
            verbose=config.verbose,
        ),
        verbose=config.verbose,
    )

    penalty_service = None
    penalty_calculator = None
    if config.apply_penalties:
        if config.penalty_model == "strategy":
            penalty_service = PenaltyService.default()
            print(f"Penalty model: strategy ({penalty_service.strategy_count} strategies)")
        else:
            if config.penalties_csv:
                penalty_calculator = PenaltyCalculator.from_csv(config.penalties_csv)
            else:
                print("Warning: penalties_csv not set; no external penalties will be applied.")
                penalty_calculator = PenaltyCalculator()
            print(f"Penalty model: percentage ({penalty_calculator.student_count} students with external penalties)")

    return GradingOrchestrator(
        tasks=config.task_table(),
        pipeline=pipeline,
        penalty_service=penalty_service,
        penalty_calculator=penalty_calculator,
        source_glob=config.source_glob,
    )


def print_student_summary(summary: StudentSummary) -> None:
    """
    Print a summary of one student's grading to console.
    """
    print(f"\n  {'='*50}")
    print(f"  {summary.line}")
    if summary.processed:
        print(
            f"  After penalties: {summary.processed.final_score:.1f} "
            f"(deducted {summary.processed.total_deduction:.1f})"
        )
    if summary.error:
        print(f"  Error: {summary.error}")
    print(f"  {'='*50}")

    if summary.penalty_report:
        for line in summary.penalty_report.rstrip("\n").split("\n"):
            print(f"  {line}")
    print()


def run_grading_pipeline(config: GraderConfig) -> list[StudentSummary]:
    """
    Run the complete grading pipeline.

    Args:
        config: Loaded grader configuration.

    Returns:
        List of StudentSummary objects for all students.
    """
    orchestrator = build_orchestrator(config)
    print(f"Tasks: {', '.join(orchestrator.tasks.task_ids)}")

    print(f"\nScanning {config.submissions_dir} for submissions...")
    students = find_students(config.submissions_dir)
    print(f"Found {len(students)} submissions")

    if not students:
        print("No submissions found!")
        return []

    summaries = orchestrator.grade_all(students)

    aggregator = GradesAggregator(
        task_ids=orchestrator.tasks.task_ids,
        output_dir=config.grades_dir or DEFAULT_GRADES_DIR,
    )
    for summary in summaries:
        print_student_summary(summary)
        aggregator.add_summary(summary)

    print("\nSaving aggregated grades...")
    output_files = aggregator.save_all()
    print(f"  Summary JSON: {output_files.get('summary_json')}")
    print(f"  Summary CSV:  {output_files.get('summary_csv')}")

    print("\n" + "=" * 60)
    print("GRADING COMPLETE")
    print("=" * 60)
    print(f"Total submissions processed: {len(summaries)}")
    stats = aggregator.calculate_statistics()
    print(f"Average score: {stats['average_score']:.1f}")
    print(f"Highest / lowest: {stats['highest_score']:.1f} / {stats['lowest_score']:.1f}")

    return summaries


def main() -> int:
    """
    Main CLI entrypoint.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    arguments = docopt(__doc__)
    config_path = Path(arguments["--config"])

    if not config_path.exists():
        print(f"Error: Configuration file not found at {config_path}")
        return 1

    try:
        config = load_config(config_path)
        print(f"Loaded configuration from {config_path}")
    except Exception as e:
        print(f"Error loading config: {e}")
        return 1

    if arguments["--verbose"]:
        config.verbose = True

    if not config.submissions_dir.exists():
        print(f"Error: Submissions directory not found: {config.submissions_dir}")
        return 1

    if not config.testers_dir.exists():
        print(f"Error: Testers directory not found: {config.testers_dir}")
        return 1

    try:
        run_grading_pipeline(config)
        return 0
    except KeyboardInterrupt:
        print("\nGrading interrupted by user.")
        return 1
    except Exception as e:
        print(f"\nError: {e}")
        if config.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
