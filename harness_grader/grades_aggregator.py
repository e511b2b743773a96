"""
Grades aggregator for collecting and exporting all student summaries.

Saves grades to a centralized folder with JSON and CSV summaries.
"""

import csv
import json
from collections import Counter
from datetime import datetime
from pathlib import Path

from .config import (
    DEFAULT_GRADES_DIR,
    GRADES_CSV_FILENAME,
    GRADES_SUMMARY_FILENAME,
)
from .models import StudentSummary


class GradesAggregator:
    """
    Aggregates summaries from multiple students and exports to various formats.
    """

    def __init__(self, task_ids: list[str], output_dir: Path | None = None) -> None:
        """
        Initialize the grades aggregator.

        Args:
            task_ids: Task identifiers in declared order; one CSV column each.
            output_dir: Directory to save aggregated grades. Defaults to ./grades/
        """
        self.task_ids = list(task_ids)
        self.output_dir = output_dir or DEFAULT_GRADES_DIR
        self.summaries: list[StudentSummary] = []
        self.timestamp = datetime.now().isoformat()

    def add_summary(self, summary: StudentSummary) -> None:
        self.summaries.append(summary)

    def save_all(self) -> dict[str, Path]:
        """
        Save all summaries to the output directory.

        Creates:
        - Individual JSON files per student
        - Summary JSON with all grades and statistics
        - Summary CSV for easy import to gradebook

        Returns:
            Dictionary of output file paths.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)

        output_files: dict[str, Path] = {}

        self.summaries.sort(key=lambda s: s.student_id)

        for summary in self.summaries:
            individual_path = self.output_dir / f"{summary.student_id}.json"
            with open(individual_path, "w", encoding="utf-8") as f:
                f.write(summary.model_dump_json(indent=2))
            output_files[summary.student_id] = individual_path

        summary_path = self.output_dir / GRADES_SUMMARY_FILENAME
        summary_data = {
            "timestamp": self.timestamp,
            "total_students": len(self.summaries),
            "tasks": self.task_ids,
            "statistics": self.calculate_statistics(),
            "grades": [s.model_dump(mode="json") for s in self.summaries],
        }
        with open(summary_path, "w", encoding="utf-8") as f:
            json.dump(summary_data, f, indent=2)
        output_files["summary_json"] = summary_path

        csv_path = self.output_dir / GRADES_CSV_FILENAME
        self._save_csv(csv_path)
        output_files["summary_csv"] = csv_path

        return output_files

    def calculate_statistics(self) -> dict:
        """
        Calculate summary statistics over final scores.

        Returns:
            Dictionary with statistics; empty when there are no summaries.
        """
        if not self.summaries:
            return {}

        scores = [s.final_score for s in self.summaries]
        failures: Counter[str] = Counter(
            o.failure.value for s in self.summaries for o in s.outcomes if o.failure is not None
        )

        return {
            "average_score": sum(scores) / len(scores),
            "highest_score": max(scores),
            "lowest_score": min(scores),
            "students_with_errors": sum(1 for s in self.summaries if s.error),
            "task_failures": dict(failures),
        }

    def _save_csv(self, csv_path: Path) -> None:
        header = ["student_id"] + self.task_ids + ["raw_total", "deductions", "final_total", "error"]

        with open(csv_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(header)

            for summary in self.summaries:
                scores = {o.task_id: o.score for o in summary.outcomes}
                row: list = [summary.student_id]
                row.extend(scores.get(task_id, "") for task_id in self.task_ids)
                row.append(summary.total)
                row.append(summary.processed.total_deduction if summary.processed else 0.0)
                row.append(summary.final_score)
                row.append(summary.error or "")
                writer.writerow(row)
