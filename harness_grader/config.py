"""
Configuration constants for the Harness Grader system.
"""

from pathlib import Path


# Execution configuration
EXECUTION_TIMEOUT_SECONDS: int = 5
COMPILE_TIMEOUT_SECONDS: int = 30
COMPILE_COMMAND: list[str] = ["javac", "-encoding", "UTF-8", "-nowarn"]
RUN_COMMAND: list[str] = ["java", "-Xmx256m"]
PACKAGE_STRIPPED_MARKER: str = "// [package declaration removed by grader]"
SOURCE_GLOB: str = "*.java"
HARNESS_SUFFIX: str = ".java"

# Task table used when the configuration file does not declare one.
# Each entry is (task_id, folder, harness, max_score).
DEFAULT_TASKS: list[tuple[str, str, str, float]] = [
    ("Q1A", "Q1", "Q1aTester.java", 0.0),
    ("Q1B", "Q1", "Q1bTester.java", 0.0),
    ("Q2A", "Q2", "Q2aTester.java", 0.0),
    ("Q2B", "Q2", "Q2bTester.java", 0.0),
    ("Q3", "Q3", "Q3Tester.java", 0.0),
]
UNKNOWN_FOLDER: str = "Unknown"
UNKNOWN_HARNESS: str = "UnknownTester.java"

# Two-stage penalty rates, applied in this order on the running subtotal
STRUCTURAL_PENALTY_RATE: float = 0.20
HEADER_PENALTY_RATE: float = 0.20
COMPILATION_PENALTY_RATE: float = 0.50

# Single-stage strategy rates, fractions of the maximum possible score
STRATEGY_COMPILATION_RATE: float = 0.50
STRATEGY_STRUCTURAL_RATE: float = 0.10

# External penalties file
PENALTY_DELIMITER: str = ","
ID_MARKER_CHARS: str = "#"
DEFAULT_PENALTY_REASON: str = "Manual Deduction"

# Header check: how many leading lines of a source file are searched
HEADER_SCAN_LINES: int = 15

# Output parsing
SCORE_LABEL_PATTERN: str = r"(?i)(?:score|total|points?|result)\s*[=:]\s*(-?\d+(?:\.\d+)?)"
NUMBER_PATTERN: str = r"-?\d+(?:\.\d+)?"

# Default paths (can be overridden via config)
DEFAULT_CONFIG_FILENAME: str = "grader_config.yml"
DEFAULT_GRADES_DIR: Path = Path("grades")
GRADES_SUMMARY_FILENAME: str = "grades_summary.json"
GRADES_CSV_FILENAME: str = "grades_summary.csv"
