"""
Configuration loader for the Harness Grader system.

Handles parsing and validation of YAML configuration files.
"""

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .config import (
    COMPILE_COMMAND,
    DEFAULT_TASKS,
    EXECUTION_TIMEOUT_SECONDS,
    RUN_COMMAND,
    SOURCE_GLOB,
)
from .models import Task
from .task_table import TaskTable


class TaskSpec(BaseModel):
    """
    One entry of the task table as written in the config file.
    """
    task_id: str = Field(..., min_length=1, description="Task identifier, e.g. Q1A")
    folder: str = Field(..., min_length=1, description="Submission folder holding the task")
    harness: str = Field(..., min_length=1, description="Harness filename in testers_dir")
    max_score: float = Field(0.0, ge=0, description="Maximum marks for the task")

    def to_task(self) -> Task:
        return Task(task_id=self.task_id, folder=self.folder, harness=self.harness, max_score=self.max_score)


def _default_task_specs() -> list[TaskSpec]:
    return [
        TaskSpec(task_id=task_id, folder=folder, harness=harness, max_score=max_score)
        for task_id, folder, harness, max_score in DEFAULT_TASKS
    ]


class GraderConfig(BaseModel):
    """
    Configuration model for the grader.
    """
    submissions_dir: Path = Field(..., description="Path to directory containing one folder per student")
    testers_dir: Path = Field(..., description="Path to the harness source files")
    penalties_csv: Optional[Path] = Field(None, description="Path to the external penalties CSV")
    grades_dir: Optional[Path] = Field(None, description="Path to save aggregated grades")

    tasks: list[TaskSpec] = Field(default_factory=_default_task_specs, description="Ordered task table")

    timeout_seconds: int = Field(EXECUTION_TIMEOUT_SECONDS, gt=0, description="Harness run time limit")
    compile_command: list[str] = Field(default_factory=lambda: list(COMPILE_COMMAND))
    run_command: list[str] = Field(default_factory=lambda: list(RUN_COMMAND))
    source_glob: str = Field(SOURCE_GLOB, description="Source files compiled per folder")

    # Penalties
    apply_penalties: bool = Field(False, description="Run a penalty model after grading")
    penalty_model: Literal["percentage", "strategy"] = Field(
        "percentage", description="Two-stage percentage model or single-stage strategies"
    )
    verbose: bool = Field(False, description="Enable verbose output")

    @field_validator("tasks")
    @classmethod
    def _unique_task_ids(cls, tasks: list[TaskSpec]) -> list[TaskSpec]:
        if not tasks:
            raise ValueError("tasks cannot be empty")
        seen: set[str] = set()
        for spec in tasks:
            if spec.task_id in seen:
                raise ValueError(f"Duplicate task id: {spec.task_id}")
            seen.add(spec.task_id)
        return tasks

    def task_table(self) -> TaskTable:
        return TaskTable(spec.to_task() for spec in self.tasks)


def load_config(config_path: Path) -> GraderConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        GraderConfig object with loaded values.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        yaml.YAMLError: If config file is invalid YAML.
        ValidationError: If config data is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    # Resolve relative paths relative to the config file location
    config_dir = config_path.parent
    for path_field in ["submissions_dir", "testers_dir", "penalties_csv", "grades_dir"]:
        if path_field in config_data and config_data[path_field]:
            path = Path(config_data[path_field])
            if not path.is_absolute():
                config_data[path_field] = config_dir / path

    return GraderConfig(**config_data)
