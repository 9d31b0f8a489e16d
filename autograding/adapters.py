"""
Adapters from test-runner output to the normalized RawRunResult.

Jest reports results in two shapes depending on where they are captured:
the ``--json`` CLI output (``testResults[].name`` + ``assertionResults``) and
the reporter ``onRunComplete`` results (``testResults[].testFilePath`` +
``testResults``). Both are normalized here so the aggregator only ever sees
one shape. JUnit XML (pytest ``--junitxml``) is supported for Python courses.
"""

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

from .models import RawRunResult, ResultSet, TestOutcome, TestStatus


class MalformedPayloadError(ValueError):
    """Raised when a test-runner payload lacks the per-result-set detail."""


def normalize_status(status: Any) -> TestStatus:
    """
    Map a runner-specific status string to a TestStatus.

    Jest's ``pending``, ``skipped``, ``todo`` and ``disabled`` all count as
    ``other``.
    """
    if status == "passed":
        return TestStatus.PASSED
    if status == "failed":
        return TestStatus.FAILED
    return TestStatus.OTHER


def _to_outcome(entry: dict[str, Any]) -> TestOutcome:
    try:
        duration = max(float(entry.get("duration") or 0), 0.0)
    except (TypeError, ValueError):
        duration = 0.0
    return TestOutcome(
        title=str(entry.get("title", "")),
        status=normalize_status(entry.get("status")),
        duration_ms=duration,
    )


def _to_result_set(entry: Any) -> ResultSet:
    """Normalize a single Jest result set, whichever shape it comes in."""
    if not isinstance(entry, dict):
        raise MalformedPayloadError("Result set is not an object")

    # Shape produced by `jest --json`
    if isinstance(entry.get("assertionResults"), list):
        identifier = entry.get("name") or entry.get("testFilePath") or ""
        outcomes = entry["assertionResults"]
    # Shape handed to custom reporters
    elif isinstance(entry.get("testResults"), list):
        identifier = entry.get("testFilePath") or entry.get("name") or ""
        outcomes = entry["testResults"]
    else:
        raise MalformedPayloadError(
            f"Result set {entry.get('name') or entry.get('testFilePath') or '?'} has no test outcomes"
        )

    return ResultSet(
        identifier=str(identifier),
        outcomes=[_to_outcome(o) for o in outcomes if isinstance(o, dict)],
    )


def normalize_jest_results(payload: Any) -> RawRunResult:
    """
    Normalize a Jest results payload.

    Args:
        payload: Decoded JSON from ``jest --json`` or the results object a
            Jest reporter receives.

    Returns:
        RawRunResult with one ResultSet per test file.

    Raises:
        MalformedPayloadError: If the payload is not an object or carries no
            ``testResults`` list.
    """
    if not isinstance(payload, dict):
        raise MalformedPayloadError("Test results payload is not an object")

    test_results = payload.get("testResults")
    if not isinstance(test_results, list):
        raise MalformedPayloadError("Test results payload has no 'testResults' list")

    return RawRunResult(
        success=bool(payload.get("success", False)),
        total_tests=payload.get("numTotalTests") or 0,
        passed_tests=payload.get("numPassedTests") or 0,
        failed_tests=payload.get("numFailedTests") or 0,
        result_sets=[_to_result_set(entry) for entry in test_results],
    )


def parse_junit_xml(xml_path: Path) -> RawRunResult:
    """
    Parse a JUnit XML report into a RawRunResult.

    Test cases are grouped by their ``file`` attribute (pytest sets it with
    ``junit_family=xunit1``), falling back to ``classname``.

    Args:
        xml_path: Path to the JUnit XML file.

    Returns:
        RawRunResult with one ResultSet per test file.

    Raises:
        MalformedPayloadError: If the file is missing or not valid XML.
    """
    if not xml_path.exists():
        raise MalformedPayloadError(f"JUnit report not found: {xml_path}")

    try:
        root = ET.parse(xml_path).getroot()
    except ET.ParseError as e:
        raise MalformedPayloadError(f"Invalid JUnit report {xml_path}: {e}") from e

    grouped: dict[str, list[TestOutcome]] = {}

    for testcase in root.iter("testcase"):
        identifier = testcase.get("file") or testcase.get("classname") or "unknown"
        try:
            duration = float(testcase.get("time") or 0)
        except ValueError:
            duration = 0.0

        if testcase.find("failure") is not None or testcase.find("error") is not None:
            status = TestStatus.FAILED
        elif testcase.find("skipped") is not None:
            status = TestStatus.OTHER
        else:
            status = TestStatus.PASSED

        grouped.setdefault(identifier, []).append(
            TestOutcome(
                title=testcase.get("name", "unknown"),
                status=status,
                duration_ms=duration * 1000,
            )
        )

    outcomes = [o for group in grouped.values() for o in group]
    passed = sum(1 for o in outcomes if o.status == TestStatus.PASSED)
    failed = sum(1 for o in outcomes if o.status == TestStatus.FAILED)

    return RawRunResult(
        success=failed == 0,
        total_tests=len(outcomes),
        passed_tests=passed,
        failed_tests=failed,
        result_sets=[
            ResultSet(identifier=identifier, outcomes=group)
            for identifier, group in grouped.items()
        ],
    )
