"""Shared fixtures: fake compiler and runner standing in for javac/java."""

from pathlib import Path

import pytest

from harness_grader.local_runner import ExecutionPipeline, HarnessRepository, HarnessRunError
from harness_grader.models import Student, Task
from harness_grader.task_table import TaskTable


class FakeCompiler:
    """Succeeds unless the folder contains a file named BROKEN."""

    def __init__(self):
        self.compiled: list[Path] = []

    def compile(self, folder: Path) -> bool:
        self.compiled.append(folder)
        return not (folder / "BROKEN").exists()


class FakeRunner:
    """Returns canned output per entry point, or raises a canned error."""

    def __init__(self, outputs: dict | None = None):
        self.outputs = outputs or {}
        self.calls: list[tuple[str, Path]] = []

    def run(self, entry_point: str, folder: Path) -> str:
        self.calls.append((entry_point, folder))
        result = self.outputs.get(entry_point, "")
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def testers_dir(tmp_path):
    path = tmp_path / "testers"
    path.mkdir()
    for name in ("ATester.java", "BTester.java", "CTester.java"):
        (path / name).write_text(f"public class {name[:-5]} {{}}\n", encoding="utf-8")
    return path


@pytest.fixture
def student(tmp_path):
    root = tmp_path / "submissions" / "s1"
    root.mkdir(parents=True)
    return Student(student_id="s1", root_path=root)


@pytest.fixture
def task_table():
    return TaskTable([
        Task(task_id="A", folder="QA", harness="ATester.java", max_score=10),
        Task(task_id="B", folder="QB", harness="BTester.java", max_score=10),
    ])


@pytest.fixture
def compiler():
    return FakeCompiler()


@pytest.fixture
def runner():
    return FakeRunner({
        "ATester": "Running tests...\n3.0\n",
        "BTester": "Score: 2\n",
        "CTester": HarnessRunError("Harness exited with code 1"),
    })


@pytest.fixture
def pipeline(testers_dir, compiler, runner):
    return ExecutionPipeline(HarnessRepository(testers_dir), compiler, runner)
