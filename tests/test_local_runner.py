"""Tests for harness injection, the local runner and the execution pipeline."""

import subprocess
import sys

import pytest

from harness_grader.local_runner import (
    ExecutionPipeline,
    HarnessRepository,
    HarnessRunError,
    InjectionError,
    JavaCompiler,
    LocalRunner,
    strip_package_declaration,
)
from harness_grader.models import FailureKind, Task
from harness_grader.task_table import TaskTable


def _task(task_id="A", harness="ATester.java"):
    return Task(task_id=task_id, folder="QA", harness=harness)


def test_inject_overwrites_existing_copy(testers_dir, tmp_path):
    folder = tmp_path / "QA"
    folder.mkdir()
    (folder / "ATester.java").write_text("stale", encoding="utf-8")

    HarnessRepository(testers_dir).inject("ATester.java", folder)

    assert (folder / "ATester.java").read_text(encoding="utf-8") == "public class ATester {}\n"


def test_inject_missing_harness_raises(testers_dir, tmp_path):
    with pytest.raises(InjectionError, match="Harness not available"):
        HarnessRepository(testers_dir).inject("Nope.java", tmp_path)


def test_pipeline_success(pipeline, student, runner):
    folder = student.question_path("QA")
    folder.mkdir()

    outcome = pipeline.run_task(_task(), folder)

    assert outcome.succeeded
    assert outcome.score == 3.0
    assert (folder / "ATester.java").exists()
    assert runner.calls == [("ATester", folder)]


def test_pipeline_missing_folder_short_circuits(pipeline, student, compiler, runner):
    outcome = pipeline.run_task(_task(), student.question_path("QA"))

    assert outcome.score == 0.0
    assert outcome.failure == FailureKind.FOLDER_MISSING
    assert "Folder not found" in outcome.reason
    assert compiler.compiled == []
    assert runner.calls == []


def test_pipeline_unknown_task(pipeline, student):
    task = TaskTable.default().resolve("Q42")
    outcome = pipeline.run_task(task, student.question_path(task.folder))
    assert outcome.failure == FailureKind.UNKNOWN_TASK


def test_pipeline_injection_failure(pipeline, student, compiler):
    folder = student.question_path("QA")
    folder.mkdir()

    outcome = pipeline.run_task(_task(harness="Missing.java"), folder)

    assert outcome.failure == FailureKind.INJECTION_ERROR
    assert "Missing.java" in outcome.reason
    assert compiler.compiled == []


def test_pipeline_compile_failure_skips_run(pipeline, student, runner):
    folder = student.question_path("QA")
    folder.mkdir()
    (folder / "BROKEN").touch()

    outcome = pipeline.run_task(_task(), folder)

    assert outcome.failure == FailureKind.COMPILE_FAILED
    assert outcome.reason == "Compilation failed"
    assert runner.calls == []


def test_pipeline_run_error(pipeline, student):
    folder = student.question_path("QA")
    folder.mkdir()

    outcome = pipeline.run_task(_task(harness="CTester.java"), folder)

    assert outcome.failure == FailureKind.RUN_ERROR
    assert outcome.score == 0.0


def test_pipeline_timeout(pipeline, student, runner):
    folder = student.question_path("QA")
    folder.mkdir()
    runner.outputs["ATester"] = HarnessRunError("too slow", timed_out=True)

    assert pipeline.run_task(_task(), folder).failure == FailureKind.TIMEOUT


def test_pipeline_parse_error_is_not_a_zero_score(pipeline, student, runner):
    folder = student.question_path("QA")
    folder.mkdir()

    runner.outputs["ATester"] = "all tests finished\n"
    unparseable = pipeline.run_task(_task(), folder)
    runner.outputs["ATester"] = "all tests finished\n0.0\n"
    measured_zero = pipeline.run_task(_task(), folder)

    assert unparseable.failure == FailureKind.PARSE_ERROR
    assert unparseable.output == "all tests finished\n"
    assert measured_zero.succeeded
    assert measured_zero.score == 0.0


def test_strip_package_declaration(tmp_path):
    source = tmp_path / "Main.java"
    source.write_text("package com.student;\n\npublic class Main {}\n", encoding="utf-8")

    assert strip_package_declaration(source)
    text = source.read_text(encoding="utf-8")
    assert "package com.student;" not in text
    assert "public class Main {}" in text
    assert not strip_package_declaration(source)


def test_compiler_without_sources_fails(tmp_path):
    assert not JavaCompiler().compile(tmp_path)


def test_compiler_reports_exit_status(tmp_path, monkeypatch):
    (tmp_path / "Main.java").write_text("public class Main {}\n", encoding="utf-8")
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="Main.java:1: error: oops\n")

    monkeypatch.setattr(subprocess, "run", fake_run)

    assert not JavaCompiler().compile(tmp_path)
    assert calls[0][0] == "javac"
    assert calls[0][-1].endswith("Main.java")


def test_runner_returns_stdout(tmp_path, monkeypatch):
    def fake_run(cmd, **kwargs):
        assert cmd[-1] == "ATester"
        assert kwargs["timeout"] == 3
        return subprocess.CompletedProcess(cmd, 0, stdout="3.0\n", stderr="")

    monkeypatch.setattr(subprocess, "run", fake_run)

    assert LocalRunner(timeout_seconds=3).run("ATester", tmp_path) == "3.0\n"


def test_runner_nonzero_exit_raises(tmp_path, monkeypatch):
    monkeypatch.setattr(
        subprocess,
        "run",
        lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 1, stdout="", stderr="Exception in thread main"),
    )

    with pytest.raises(HarnessRunError) as excinfo:
        LocalRunner().run("ATester", tmp_path)
    assert not excinfo.value.timed_out


def test_runner_timeout_raises(tmp_path, monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"], output=b"partial")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(HarnessRunError) as excinfo:
        LocalRunner(timeout_seconds=1).run("ATester", tmp_path)
    assert excinfo.value.timed_out
    assert excinfo.value.output == "partial"


def test_runner_launch_failure_raises(tmp_path, monkeypatch):
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError("java")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(HarnessRunError, match="Could not launch"):
        LocalRunner().run("ATester", tmp_path)


NON_UTF8_HARNESS = [
    sys.executable,
    "-c",
    "import sys; sys.stdout.buffer.write(b'caf\\xe9\\n3.0\\n'); sys.stderr.buffer.write(b'\\xff')",
]


def test_runner_tolerates_non_utf8_output(tmp_path):
    output = LocalRunner(command=NON_UTF8_HARNESS, timeout_seconds=30).run("ATester", tmp_path)

    assert output.endswith("3.0\n")
    assert "�" in output


def test_pipeline_grades_harness_with_non_utf8_output(testers_dir, compiler, student):
    folder = student.question_path("QA")
    folder.mkdir()
    pipeline = ExecutionPipeline(
        HarnessRepository(testers_dir),
        compiler,
        LocalRunner(command=NON_UTF8_HARNESS, timeout_seconds=30),
    )

    outcome = pipeline.run_task(_task(), folder)

    assert outcome.succeeded
    assert outcome.score == 3.0


def test_compiler_tolerates_non_utf8_diagnostics(tmp_path):
    (tmp_path / "Main.java").write_text("public class Main {}\n", encoding="utf-8")
    command = [sys.executable, "-c", "import sys; sys.stderr.buffer.write(b'\\xe9 error: bad\\n'); sys.exit(1)"]

    assert not JavaCompiler(command=command, verbose=True).compile(tmp_path)
