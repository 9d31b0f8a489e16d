"""Pytest configuration and fixtures."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from autograding.catalog import EXERCISE_CATALOG


def assertion(title: str, status: str = "passed", duration: float | None = 5) -> dict:
    return {"title": title, "status": status, "duration": duration}


def jest_file(selector: str, statuses: list[str]) -> dict:
    """Result set in the `jest --json` shape."""
    return {
        "name": f"/home/student/repo/tests/ejercicio/{selector}",
        "assertionResults": [
            assertion(f"test {i}", status) for i, status in enumerate(statuses, 1)
        ],
    }


def jest_payload(files: list[dict], success: bool | None = None) -> dict:
    statuses = [a["status"] for f in files for a in f["assertionResults"]]
    passed = statuses.count("passed")
    failed = statuses.count("failed")
    return {
        "success": (failed == 0) if success is None else success,
        "numTotalTests": len(statuses),
        "numPassedTests": passed,
        "numFailedTests": failed,
        "testResults": files,
    }


def valid_report_data(executed_at: datetime | None = None) -> dict:
    """A consistent report: every exercise fully passing with 4 tests."""
    executed_at = executed_at or datetime.now(timezone.utc) - timedelta(hours=1)
    exercises = [
        {
            "exercise": spec.id,
            "name": spec.name,
            "state": "approved",
            "tests_total": 4,
            "tests_passed": 4,
            "tests_failed": 0,
            "points_possible": spec.points_possible,
            "points_earned": spec.points_possible,
            "percent": 100,
            "details": [],
        }
        for spec in EXERCISE_CATALOG
    ]
    return {
        "success": True,
        "executed_at": executed_at.isoformat(),
        "exercises": exercises,
        "summary": {
            "total_exercises": 7,
            "complete_count": 7,
            "partial_count": 0,
            "failed_count": 0,
            "total_tests": 28,
            "tests_passed": 28,
            "tests_failed": 0,
            "points_total": 100,
            "points_earned": 100,
            "percent_final": 100,
        },
    }


@pytest.fixture
def report_data() -> dict:
    return valid_report_data()


@pytest.fixture
def write_report(tmp_path):
    """Helper that writes report data as JSON and returns its path."""

    def _write(data, name: str = "test-results.json") -> Path:
        path = tmp_path / name
        if isinstance(data, str):
            path.write_text(data, encoding="utf-8")
        else:
            path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    return _write
