"""
Pydantic models for the autograding system.

Defines the normalized raw test-run payload, the persisted scoring report,
and the verdict produced when that report is validated.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TestStatus(str, Enum):
    """Outcome of a single test case, as far as scoring is concerned."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    OTHER = "other"


class ExerciseState(str, Enum):
    """Grading state of one exercise."""

    APPROVED = "approved"
    PARTIAL = "partial"
    FAILED = "failed"
    NOT_RUN = "not-run"


class ExerciseSpec(BaseModel):
    """
    Static definition of one gradable exercise.

    Attributes:
        id: Exercise number (1-based).
        name: Short exercise name.
        points_possible: Weight of the exercise in the final score.
        result_selector: Substring identifying the exercise's test file.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1, description="Exercise number")
    name: str = Field(..., description="Short exercise name")
    points_possible: int = Field(..., ge=0, description="Points available for the exercise")
    result_selector: str = Field(..., description="Substring matched against result-set identifiers")


class TestOutcome(BaseModel):
    """
    Result of one atomic test case.

    Attributes:
        title: Test title as reported by the runner.
        status: Normalized status.
        duration_ms: Time taken by the test, in milliseconds.
    """

    __test__ = False

    title: str = Field(..., description="Test title")
    status: TestStatus = Field(..., description="Normalized test status")
    duration_ms: float = Field(default=0.0, ge=0, description="Test duration in milliseconds")


class ResultSet(BaseModel):
    """Outcomes grouped by the test file (or suite) that produced them."""

    identifier: str = Field(..., description="Test file path or suite name")
    outcomes: list[TestOutcome] = Field(default_factory=list, description="Test case outcomes")


class RawRunResult(BaseModel):
    """
    Normalized payload of one test-runner invocation.

    The run-wide counters are the runner's own numbers, not sums over
    ``result_sets``.
    """

    success: bool = Field(default=False, description="Whether the whole run passed")
    total_tests: int = Field(default=0, ge=0, description="Tests executed in the run")
    passed_tests: int = Field(default=0, ge=0, description="Tests that passed")
    failed_tests: int = Field(default=0, ge=0, description="Tests that failed")
    result_sets: list[ResultSet] = Field(default_factory=list, description="Per-file outcomes")


class ExecutionResult(BaseModel):
    """
    Result of invoking the test command.

    Attributes:
        raw: Normalized payload, or None if the run produced nothing usable.
        test_log: Combined stdout/stderr of the test command, or an error message.
        exit_code: Process exit code (-1 if the process could not run).
        timeout_exceeded: Whether the execution timed out.
    """

    raw: RawRunResult | None = Field(default=None, description="Normalized test-run payload")
    test_log: str = Field(default="", description="Test command output")
    exit_code: int = Field(default=-1, description="Process exit code")
    timeout_exceeded: bool = Field(default=False, description="Whether timeout was exceeded")


class TestDetail(BaseModel):
    """Per-test line in an exercise report."""

    __test__ = False

    name: str = Field(..., description="Test title")
    status: str = Field(..., description="Status as reported by the runner")
    duration_ms: float = Field(default=0.0, description="Test duration in milliseconds")


class ExerciseReport(BaseModel):
    """
    Scoring result for a single exercise.

    Attributes:
        exercise: Exercise number.
        name: Exercise name.
        state: approved, partial, failed or not-run.
        tests_total: Tests found for the exercise.
        tests_passed: Tests that passed.
        tests_failed: Tests that did not pass.
        points_possible: Weight of the exercise.
        points_earned: Points credited, floor-proportional to passed tests.
        percent: Floor of the pass percentage.
        details: Individual test results.
    """

    exercise: int = Field(..., description="Exercise number")
    name: str = Field(..., description="Exercise name")
    state: ExerciseState = Field(..., description="Grading state")
    tests_total: int = Field(default=0, ge=0, description="Tests found")
    tests_passed: int = Field(default=0, ge=0, description="Tests passed")
    tests_failed: int = Field(default=0, ge=0, description="Tests not passed")
    points_possible: int = Field(..., ge=0, description="Points available")
    points_earned: int = Field(default=0, ge=0, description="Points credited")
    percent: int = Field(default=0, ge=0, le=100, description="Pass percentage")
    details: list[TestDetail] = Field(default_factory=list, description="Per-test results")


class ReportSummary(BaseModel):
    """Catalog-wide totals of a scoring report."""

    total_exercises: int = Field(..., description="Number of exercises in the catalog")
    complete_count: int = Field(default=0, description="Exercises in approved state")
    partial_count: int = Field(default=0, description="Exercises in partial state")
    failed_count: int = Field(default=0, description="Exercises in failed state")
    total_tests: int = Field(default=0, description="Tests in the run (runner counter)")
    tests_passed: int = Field(default=0, description="Passed tests (runner counter)")
    tests_failed: int = Field(default=0, description="Failed tests (runner counter)")
    points_total: int = Field(..., description="Maximum possible points")
    points_earned: int = Field(default=0, description="Points credited")
    percent_final: int = Field(default=0, description="Final percentage")


class ScoringReport(BaseModel):
    """
    The persisted grading artifact (``test-results.json``).

    Attributes:
        success: Whether the underlying test run passed.
        executed_at: When the report was produced (UTC).
        exercises: One entry per catalog exercise, in catalog order.
        summary: Totals across the catalog.
    """

    success: bool = Field(..., description="Whether the test run passed")
    executed_at: datetime = Field(..., description="Report creation time")
    exercises: list[ExerciseReport] = Field(default_factory=list, description="Per-exercise results")
    summary: ReportSummary = Field(..., description="Catalog-wide totals")


class ValidationVerdict(BaseModel):
    """
    Outcome of validating a persisted scoring report.

    ``passed`` is informational only; the grade consumed downstream is
    ``points``.
    """

    valid: bool = Field(..., description="Whether the report can be trusted")
    points: int = Field(default=0, description="Credited points (0 when invalid)")
    percent: int = Field(default=0, description="Final percentage (0 when invalid)")
    passed: bool = Field(default=False, description="Whether points reach the passing mark")
    errors: list[str] = Field(default_factory=list, description="Fatal problems found")
    warnings: list[str] = Field(default_factory=list, description="Non-fatal problems found")
    exercises: list[dict[str, Any]] = Field(
        default_factory=list, description="Validated exercise entries"
    )
