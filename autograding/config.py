"""
Configuration constants for the autograding system.
"""

from pathlib import Path


# Scoring
TOTAL_POINTS: int = 100
PASSING_POINTS: int = 60

# Plausibility checks on the report timestamp
STALE_AFTER_DAYS: int = 30

# File patterns
RESULTS_FILENAME: str = "test-results.json"
CONFIG_FILENAME: str = "autograding.yml"
JUNIT_REPORT_FILENAME: str = "test_report.xml"

# Default paths (can be overridden via CLI or config file)
DEFAULT_REPORT_PATH: Path = Path(RESULTS_FILENAME)
DEFAULT_CONFIG_PATH: Path = Path(CONFIG_FILENAME)

# Test execution
# Jest prints its JSON results on stdout, even when some tests fail
TEST_COMMAND: list[str] = ["npm", "test", "--", "--json", "--testLocationInResults"]
EXECUTION_TIMEOUT_SECONDS: int = 300
RESULT_FORMATS: tuple[str, ...] = ("jest-json", "junit-xml")

# Report schema
REQUIRED_REPORT_FIELDS: list[str] = ["exercises", "summary", "executed_at"]
REQUIRED_EXERCISE_FIELDS: list[str] = [
    "exercise",
    "name",
    "state",
    "tests_total",
    "tests_passed",
    "tests_failed",
    "points_possible",
    "points_earned",
    "percent",
]
