"""
Validator for persisted scoring reports.

Re-reads ``test-results.json`` and runs a fixed pipeline of checks before the
score is handed to the grading platform. The pipeline stops at the first
failing stage. The timestamp checks are plausibility heuristics only; they do
not prove the report was produced by a real test run.
"""

import json
import math
import numbers
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from .catalog import EXERCISE_CATALOG, expected_points
from .config import (
    DEFAULT_REPORT_PATH,
    PASSING_POINTS,
    REQUIRED_EXERCISE_FIELDS,
    REQUIRED_REPORT_FIELDS,
    STALE_AFTER_DAYS,
    TOTAL_POINTS,
)
from .models import ExerciseSpec, ValidationVerdict

_DATETIME_ADAPTER = TypeAdapter(datetime)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse an ISO 8601 timestamp, assuming UTC when no offset is given.

    Returns:
        Aware datetime, or None if the value is not a valid timestamp.
    """
    if not isinstance(value, str):
        return None
    try:
        parsed = _DATETIME_ADAPTER.validate_python(value)
    except ValidationError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ReportValidator:
    """
    Validates a scoring report file against the exercise catalog.

    Stages, in order: existence, parseability, structure, content, score and
    plausibility. Errors are fatal; warnings are reported but do not reject
    the report.
    """

    def __init__(
        self,
        report_path: Path = DEFAULT_REPORT_PATH,
        catalog: tuple[ExerciseSpec, ...] = EXERCISE_CATALOG,
        points_total: int = TOTAL_POINTS,
        now: datetime | None = None,
        verbose: bool = True,
    ) -> None:
        """
        Initialize the validator.

        Args:
            report_path: Path to the persisted report.
            catalog: Exercises the report must contain.
            points_total: Expected maximum points.
            now: Reference time for the timestamp checks (defaults to the
                time of each validate() call).
            verbose: Print a line for each stage that passes.
        """
        self.report_path = report_path
        self.catalog = catalog
        self.expected_points = expected_points(catalog)
        self.points_total = points_total
        self.now = now
        self.verbose = verbose
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.data: dict[str, Any] | None = None

    def validate(self) -> ValidationVerdict:
        """
        Run every stage and build the verdict.

        Returns:
            ValidationVerdict; ``valid`` is False and ``points`` is 0 as soon
            as one stage fails.
        """
        self.errors = []
        self.warnings = []
        self.data = None

        stages = (
            self._check_exists,
            self._load,
            self._check_structure,
            self._check_content,
            self._check_score,
            self._check_plausibility,
        )
        for stage in stages:
            if not stage():
                return self._failure()

        return self._success()

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message)

    def _check_exists(self) -> bool:
        if not self.report_path.is_file():
            self.errors.append(f"Report file not found: {self.report_path}")
            return False
        self._log(f"[ok] Found {self.report_path}")
        return True

    def _load(self) -> bool:
        try:
            with open(self.report_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError, RecursionError) as e:
            self.errors.append(f"Could not read {self.report_path}: {e}")
            return False

        if not isinstance(data, dict):
            self.errors.append(f"{self.report_path} does not contain a JSON object")
            return False

        self.data = data
        self._log("[ok] Report is valid JSON")
        return True

    def _check_structure(self) -> bool:
        missing = [field for field in REQUIRED_REPORT_FIELDS if field not in self.data]
        if missing:
            self.errors.append(f"Report is missing required fields: {', '.join(missing)}")
            return False
        self._log("[ok] Report structure is complete")
        return True

    def _check_content(self) -> bool:
        exercises = self.data["exercises"]
        if not isinstance(exercises, list):
            self.errors.append("Field 'exercises' must be a list")
            return False

        if len(exercises) != len(self.catalog):
            self.errors.append(
                f"Expected {len(self.catalog)} exercises, found {len(exercises)}"
            )
            return False

        for entry in exercises:
            if not self._check_exercise(entry):
                return False

        self._log("[ok] Exercise entries are valid")
        return True

    def _check_exercise(self, entry: Any) -> bool:
        if not isinstance(entry, dict):
            self.errors.append("Exercise entry is not an object")
            return False

        exercise_id = entry.get("exercise", "?")
        missing = [field for field in REQUIRED_EXERCISE_FIELDS if field not in entry]
        if missing:
            self.errors.append(
                f"Exercise {exercise_id} is missing fields: {', '.join(missing)}"
            )
            return False

        expected = None
        if isinstance(exercise_id, int) and not isinstance(exercise_id, bool):
            expected = self.expected_points.get(exercise_id)
        possible = entry["points_possible"]
        if expected is None or not _is_number(possible) or possible != expected:
            self.errors.append(
                f"Exercise {exercise_id}: wrong points possible "
                f"(expected {expected}, found {possible})"
            )
            return False

        earned = entry["points_earned"]
        if not _is_number(earned):
            self.errors.append(f"Exercise {exercise_id}: points earned is not a number ({earned!r})")
            return False

        if earned > possible:
            self.errors.append(
                f"Exercise {exercise_id}: points earned ({earned}) exceed points possible ({possible})"
            )
            return False

        return True

    def _check_score(self) -> bool:
        summary = self.data["summary"]
        if not isinstance(summary, dict):
            self.errors.append("Field 'summary' must be an object")
            return False

        earned = summary.get("points_earned")
        total = summary.get("points_total")
        if not _is_number(earned) or not _is_number(total):
            self.errors.append("Summary score fields are missing or not numbers")
            return False

        exercise_sum = sum(e["points_earned"] for e in self.data["exercises"])
        if exercise_sum != earned:
            self.errors.append(
                f"Points do not add up (exercises: {exercise_sum}, summary: {earned})"
            )
            return False

        if total != self.points_total:
            self.errors.append(
                f"Wrong points total (expected {self.points_total}, found {total})"
            )
            return False

        if earned < 0 or earned > total:
            self.errors.append(f"Points out of range (0-{total}): {earned}")
            return False

        self._log("[ok] Score is consistent")
        return True

    def _check_plausibility(self) -> bool:
        now = self.now or datetime.now(timezone.utc)
        executed_at = parse_timestamp(self.data["executed_at"])

        if executed_at is None:
            self.warnings.append(f"Invalid execution date: {self.data['executed_at']!r}")
        elif executed_at > now:
            self.errors.append("Execution date is in the future; the report may have been edited")
            return False
        elif now - executed_at > timedelta(days=STALE_AFTER_DAYS):
            age_days = (now - executed_at).days
            self.warnings.append(
                f"Results are more than {STALE_AFTER_DAYS} days old ({age_days} days)"
            )

        # Summary counters come from the runner, not from the exercise entries
        exercise_tests = sum(
            e["tests_total"] for e in self.data["exercises"] if _is_number(e["tests_total"])
        )
        if self.data["summary"].get("total_tests") != exercise_tests:
            self.warnings.append(
                f"Total tests ({self.data['summary'].get('total_tests')}) "
                f"do not match the sum over exercises ({exercise_tests})"
            )

        self._log("[ok] Plausibility checks done")
        return True

    def _failure(self) -> ValidationVerdict:
        return ValidationVerdict(
            valid=False,
            points=0,
            percent=0,
            passed=False,
            errors=list(self.errors),
            warnings=list(self.warnings),
        )

    def _success(self) -> ValidationVerdict:
        summary = self.data["summary"]
        points = int(summary["points_earned"])
        percent = summary.get("percent_final")
        if not _is_number(percent) or not 0 <= percent <= 100:
            percent = 100 * points // self.points_total

        return ValidationVerdict(
            valid=True,
            points=points,
            percent=int(percent),
            passed=points >= PASSING_POINTS,
            errors=[],
            warnings=list(self.warnings),
            exercises=self.data["exercises"],
        )


def validate_report(report_path: Path = DEFAULT_REPORT_PATH, now: datetime | None = None) -> ValidationVerdict:
    """
    Validate a report file against the default catalog.

    Args:
        report_path: Path to the persisted report.
        now: Reference time for the timestamp checks.

    Returns:
        ValidationVerdict.
    """
    return ReportValidator(report_path, now=now).validate()
