"""
Local execution runner for student code.

Injects a harness into a submission folder, compiles the folder with javac
and runs the harness with java on the host machine, without isolation.
"""

import subprocess
from pathlib import Path

from .config import (
    COMPILE_COMMAND,
    COMPILE_TIMEOUT_SECONDS,
    EXECUTION_TIMEOUT_SECONDS,
    PACKAGE_STRIPPED_MARKER,
    RUN_COMMAND,
    SOURCE_GLOB,
)
from .models import FailureKind, Task, TaskOutcome
from .output_parser import ScoreParseError, parse_score
from .task_table import TaskTable


class InjectionError(Exception):
    """Raised when a harness cannot be copied into a submission folder."""


class HarnessRunError(Exception):
    """
    Raised when the harness process fails.

    Attributes:
        timed_out: True if the process was killed for exceeding its time limit.
        output: Whatever the process printed before failing.
    """

    def __init__(self, message: str, timed_out: bool = False, output: str = "") -> None:
        super().__init__(message)
        self.timed_out = timed_out
        self.output = output


class HarnessRepository:
    """
    Directory of harness (tester) source files.
    """

    def __init__(self, testers_dir: Path) -> None:
        self.testers_dir = testers_dir

    def source(self, harness: str) -> bytes:
        path = self.testers_dir / harness
        try:
            return path.read_bytes()
        except OSError as e:
            raise InjectionError(f"Harness not available: {path} ({e.strerror or e})") from e

    def inject(self, harness: str, folder: Path) -> Path:
        """
        Write the named harness into ``folder``, overwriting any existing copy.

        Raises:
            InjectionError: If the harness cannot be read or written.
        """
        content = self.source(harness)
        destination = folder / harness
        try:
            destination.write_bytes(content)
        except OSError as e:
            raise InjectionError(f"Failed to copy harness to {destination}: {e}") from e
        return destination


class JavaCompiler:
    """
    Compiles every source file in a folder.

    Returns a plain success flag; compiler diagnostics are only shown in
    verbose mode.
    """

    def __init__(
        self,
        command: list[str] | None = None,
        source_glob: str = SOURCE_GLOB,
        timeout_seconds: int = COMPILE_TIMEOUT_SECONDS,
        verbose: bool = False,
    ) -> None:
        self.command = list(command or COMPILE_COMMAND)
        self.source_glob = source_glob
        self.timeout_seconds = timeout_seconds
        self.verbose = verbose

    def compile(self, folder: Path) -> bool:
        if not folder.is_dir():
            print(f"    [Compiler] Directory does not exist: {folder}")
            return False

        sources = sorted(folder.glob(self.source_glob))
        if not sources:
            print(f"    [Compiler] No {self.source_glob} files found in {folder}")
            return False

        # Submissions are compiled flat, so package declarations have to go
        for source in sources:
            strip_package_declaration(source)

        cmd = self.command + ["-d", str(folder.resolve())] + [str(s.resolve()) for s in sources]
        if self.verbose:
            print(f"    Executing: {' '.join(cmd)}")

        try:
            process = subprocess.run(
                cmd,
                cwd=str(folder.resolve()),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired:
            print(f"    [Compiler] Compilation timed out after {self.timeout_seconds}s")
            return False
        except OSError as e:
            print(f"    [Compiler] Could not start compiler: {e}")
            return False

        if process.returncode != 0:
            errors = sum(1 for line in process.stderr.splitlines() if "error:" in line.lower())
            print(f"    [Compiler] Compilation failed ({errors} error(s))")
            if self.verbose:
                for line in process.stderr.split("\n")[:20]:
                    print(f"    {line}")
            return False

        return True


def strip_package_declaration(source: Path) -> bool:
    """
    Comment out the first ``package ...;`` line of a source file.

    Returns:
        True if the file was rewritten.
    """
    try:
        lines = source.read_text(encoding="utf-8").split("\n")
    except (OSError, UnicodeDecodeError) as e:
        print(f"    Warning: Could not read {source.name}: {e}")
        return False

    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith("package ") and stripped.endswith(";"):
            lines[i] = PACKAGE_STRIPPED_MARKER
            try:
                source.write_text("\n".join(lines), encoding="utf-8")
            except OSError as e:
                print(f"    Warning: Could not strip package from {source.name}: {e}")
                return False
            return True
    return False


class LocalRunner:
    """
    Runs a compiled harness locally and captures its standard output.

    Uses subprocess with a bounded wait; anything other than a clean exit is
    raised as HarnessRunError.
    """

    def __init__(
        self,
        command: list[str] | None = None,
        timeout_seconds: int = EXECUTION_TIMEOUT_SECONDS,
        verbose: bool = False,
    ) -> None:
        """
        Initialize the Local runner.

        Args:
            command: Interpreter command, without classpath or entry point.
            timeout_seconds: Maximum execution time per harness run.
            verbose: Echo executed commands.
        """
        self.command = list(command or RUN_COMMAND)
        self.timeout_seconds = timeout_seconds
        self.verbose = verbose

    def run(self, entry_point: str, folder: Path) -> str:
        """
        Run ``entry_point`` with ``folder`` as working directory and classpath.

        Args:
            entry_point: Harness class name, e.g. ``Q1aTester``.
            folder: Compiled submission folder.

        Returns:
            The complete standard output of the process.

        Raises:
            HarnessRunError: On launch failure, non-zero exit or timeout.
        """
        cwd = folder.resolve()
        cmd = self.command + ["-cp", str(cwd), entry_point]
        if self.verbose:
            print(f"    Executing: {' '.join(cmd)}")

        try:
            process = subprocess.run(
                cmd,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as e:
            partial = e.stdout if isinstance(e.stdout, str) else (e.stdout or b"").decode(errors="replace")
            raise HarnessRunError(
                f"Execution exceeded {self.timeout_seconds} seconds",
                timed_out=True,
                output=partial,
            ) from e
        except OSError as e:
            raise HarnessRunError(f"Could not launch harness: {e}") from e

        if process.returncode != 0:
            raise HarnessRunError(
                f"Harness exited with code {process.returncode}: {process.stderr.strip()[:200]}",
                output=process.stdout + process.stderr,
            )

        return process.stdout


class ExecutionPipeline:
    """
    Grades one task: existence check, injection, compile, run, parse.

    Each step only runs if the previous one succeeded. Every failure becomes
    a zero-score TaskOutcome tagged with its FailureKind; nothing raised by
    a step escapes ``run_task``.
    """

    def __init__(
        self,
        harnesses: HarnessRepository,
        compiler: JavaCompiler,
        runner: LocalRunner,
        verbose: bool = False,
    ) -> None:
        self.harnesses = harnesses
        self.compiler = compiler
        self.runner = runner
        self.verbose = verbose

    def run_task(self, task: Task, folder: Path) -> TaskOutcome:
        if TaskTable.is_unknown(task):
            return TaskOutcome.failed(task.task_id, FailureKind.UNKNOWN_TASK, f"Unknown task: {task.task_id}")

        if not folder.is_dir():
            return TaskOutcome.failed(task.task_id, FailureKind.FOLDER_MISSING, f"Folder not found: {folder}")

        try:
            self.harnesses.inject(task.harness, folder)
        except InjectionError as e:
            return TaskOutcome.failed(task.task_id, FailureKind.INJECTION_ERROR, str(e))

        if not self.compiler.compile(folder):
            return TaskOutcome.failed(task.task_id, FailureKind.COMPILE_FAILED, "Compilation failed")

        try:
            output = self.runner.run(task.entry_point, folder)
        except HarnessRunError as e:
            kind = FailureKind.TIMEOUT if e.timed_out else FailureKind.RUN_ERROR
            return TaskOutcome.failed(task.task_id, kind, str(e), output=e.output)

        if self.verbose and output:
            print("    --- Harness Output ---")
            for line in output.split("\n")[:20]:
                print(f"    {line}")
            print("    ----------------------")

        try:
            score = parse_score(output)
        except ScoreParseError as e:
            return TaskOutcome.failed(task.task_id, FailureKind.PARSE_ERROR, str(e), output=output)

        return TaskOutcome(task_id=task.task_id, score=score, output=output)
