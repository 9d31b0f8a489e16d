"""
Score aggregator turning a test run into a scoring report.

Each catalog exercise is matched to the result set of its test file, scored
proportionally to its passed tests, and the report is saved as the canonical
``test-results.json`` artifact.
"""

import os
from datetime import datetime, timezone
from pathlib import Path

from .catalog import EXERCISE_CATALOG
from .config import DEFAULT_REPORT_PATH, TOTAL_POINTS
from .models import (
    ExerciseReport,
    ExerciseSpec,
    ExerciseState,
    RawRunResult,
    ReportSummary,
    ResultSet,
    ScoringReport,
    TestDetail,
    TestStatus,
)


def exercise_state(tests_passed: int, tests_failed: int) -> ExerciseState:
    """
    Derive the grading state of a matched exercise.

    Args:
        tests_passed: Number of passed tests.
        tests_failed: Number of tests that did not pass.

    Returns:
        approved when nothing failed, partial when some passed, else failed.
    """
    if tests_failed == 0:
        return ExerciseState.APPROVED
    if tests_passed > 0:
        return ExerciseState.PARTIAL
    return ExerciseState.FAILED


def not_run_report(spec: ExerciseSpec) -> ExerciseReport:
    """Report for an exercise whose tests were not found in the run."""
    return ExerciseReport(
        exercise=spec.id,
        name=spec.name,
        state=ExerciseState.NOT_RUN,
        points_possible=spec.points_possible,
    )


def score_exercise(spec: ExerciseSpec, result_set: ResultSet) -> ExerciseReport:
    """
    Score one exercise from the outcomes of its test file.

    Points are ``floor(points_possible * passed / total)``; anything that is
    not ``passed`` counts against the exercise.

    Args:
        spec: Catalog entry of the exercise.
        result_set: Outcomes of the exercise's test file.

    Returns:
        ExerciseReport for the exercise.
    """
    tests_total = len(result_set.outcomes)
    tests_passed = sum(1 for o in result_set.outcomes if o.status == TestStatus.PASSED)
    tests_failed = tests_total - tests_passed

    if tests_total > 0:
        points_earned = spec.points_possible * tests_passed // tests_total
        percent = 100 * tests_passed // tests_total
    else:
        points_earned = 0
        percent = 0

    return ExerciseReport(
        exercise=spec.id,
        name=spec.name,
        state=exercise_state(tests_passed, tests_failed),
        tests_total=tests_total,
        tests_passed=tests_passed,
        tests_failed=tests_failed,
        points_possible=spec.points_possible,
        points_earned=points_earned,
        percent=percent,
        details=[
            TestDetail(name=o.title, status=o.status.value, duration_ms=o.duration_ms)
            for o in result_set.outcomes
        ],
    )


class ScoreAggregator:
    """
    Builds scoring reports against a fixed exercise catalog.
    """

    def __init__(
        self,
        catalog: tuple[ExerciseSpec, ...] = EXERCISE_CATALOG,
        points_total: int = TOTAL_POINTS,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            catalog: Exercises to score, in report order.
            points_total: Maximum points of the whole catalog.
        """
        self.catalog = catalog
        self.points_total = points_total

    def find_result_set(self, spec: ExerciseSpec, raw: RawRunResult) -> ResultSet | None:
        """Return the first result set whose identifier contains the exercise's selector."""
        for result_set in raw.result_sets:
            if spec.result_selector in result_set.identifier:
                return result_set
        return None

    def aggregate(self, raw: RawRunResult | None) -> ScoringReport:
        """
        Convert a test run into a scoring report.

        The summary's test counters are copied from the run's own counters
        rather than summed over the exercises.

        Args:
            raw: Normalized test-run payload, or None if the run produced none.

        Returns:
            ScoringReport with one entry per catalog exercise.
        """
        if raw is None:
            return self.empty_report()

        exercises: list[ExerciseReport] = []
        points_earned = 0

        for spec in self.catalog:
            result_set = self.find_result_set(spec, raw)
            if result_set is None:
                exercises.append(not_run_report(spec))
                continue

            report = score_exercise(spec, result_set)
            points_earned += report.points_earned
            exercises.append(report)

        summary = ReportSummary(
            total_exercises=len(self.catalog),
            complete_count=_count_state(exercises, ExerciseState.APPROVED),
            partial_count=_count_state(exercises, ExerciseState.PARTIAL),
            failed_count=_count_state(exercises, ExerciseState.FAILED),
            total_tests=raw.total_tests,
            tests_passed=raw.passed_tests,
            tests_failed=raw.failed_tests,
            points_total=self.points_total,
            points_earned=points_earned,
            percent_final=self._percent(points_earned),
        )

        return ScoringReport(
            success=raw.success,
            executed_at=datetime.now(timezone.utc),
            exercises=exercises,
            summary=summary,
        )

    def empty_report(self) -> ScoringReport:
        """
        Build the report used when the test run produced no usable payload.

        Every exercise is not-run and every counter is zero.
        """
        return ScoringReport(
            success=False,
            executed_at=datetime.now(timezone.utc),
            exercises=[not_run_report(spec) for spec in self.catalog],
            summary=ReportSummary(
                total_exercises=len(self.catalog),
                points_total=self.points_total,
            ),
        )

    def save_report(self, report: ScoringReport, output_path: Path = DEFAULT_REPORT_PATH) -> Path:
        """
        Write the report as indented JSON, replacing any previous file.

        Args:
            report: Report to save.
            output_path: Destination file.

        Returns:
            Path the report was written to.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        # Readers never see a half-written report
        tmp_path = output_path.with_name(f".{output_path.name}.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(report.model_dump_json(indent=2))
                f.write("\n")
            os.replace(tmp_path, output_path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
        return output_path

    def generate(self, raw: RawRunResult | None, output_path: Path = DEFAULT_REPORT_PATH) -> ScoringReport:
        """
        Aggregate and save in one step, so a report always exists on disk.

        Args:
            raw: Normalized test-run payload, or None.
            output_path: Destination file.

        Returns:
            The saved ScoringReport.
        """
        report = self.aggregate(raw)
        self.save_report(report, output_path)
        return report

    def _percent(self, points_earned: int) -> int:
        if self.points_total <= 0:
            return 0
        return 100 * points_earned // self.points_total


def _count_state(exercises: list[ExerciseReport], state: ExerciseState) -> int:
    return sum(1 for e in exercises if e.state == state)
