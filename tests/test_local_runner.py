"""Tests for invoking the test command."""

import json
import subprocess
from unittest.mock import patch

import pytest

from autograding.adapters import MalformedPayloadError
from autograding.local_runner import LocalRunner, extract_json_payload
from tests.conftest import jest_file, jest_payload


def _completed(stdout: str = "", stderr: str = "", returncode: int = 0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def test_extract_json_payload_skips_npm_banner():
    output = '\n> git-exercises@1.0.0 test\n> jest "--json"\n\n{"testResults": []}\n'
    assert extract_json_payload(output) == {"testResults": []}


@pytest.mark.parametrize("output", ["", "no json here", "{broken"])
def test_extract_json_payload_errors(output):
    with pytest.raises(MalformedPayloadError):
        extract_json_payload(output)


def test_run_parses_stdout(tmp_path):
    payload = jest_payload([jest_file("1-git-init.test.js", ["passed", "passed"])])
    runner = LocalRunner(command=["npm", "test"], project_dir=tmp_path)

    with patch("autograding.local_runner.subprocess.run", return_value=_completed(json.dumps(payload))) as run:
        result = runner.run()

    assert result.exit_code == 0
    assert result.raw is not None
    assert result.raw.passed_tests == 2
    kwargs = run.call_args.kwargs
    assert kwargs["cwd"] == str(tmp_path)
    assert kwargs["env"]["CI"] == "true"
    assert kwargs["timeout"] == runner.timeout_seconds


def test_failing_tests_still_yield_payload(tmp_path):
    payload = jest_payload([jest_file("1-git-init.test.js", ["passed", "failed"])])
    runner = LocalRunner(project_dir=tmp_path)

    with patch(
        "autograding.local_runner.subprocess.run",
        return_value=_completed(json.dumps(payload), "1 test failed", returncode=1),
    ):
        result = runner.run()

    assert result.exit_code == 1
    assert result.raw is not None
    assert result.raw.failed_tests == 1
    assert "1 test failed" in result.test_log


def test_unparsable_output_gives_no_payload(tmp_path):
    runner = LocalRunner(project_dir=tmp_path)

    with patch(
        "autograding.local_runner.subprocess.run",
        return_value=_completed("sh: jest: not found", returncode=127),
    ):
        result = runner.run()

    assert result.raw is None
    assert result.exit_code == 127
    assert "Error parsing test results" in result.test_log


def test_timeout(tmp_path):
    runner = LocalRunner(project_dir=tmp_path, timeout_seconds=1)

    with patch(
        "autograding.local_runner.subprocess.run",
        side_effect=subprocess.TimeoutExpired(cmd="npm", timeout=1),
    ):
        result = runner.run()

    assert result.raw is None
    assert result.timeout_exceeded
    assert result.exit_code == -1


def test_missing_command(tmp_path):
    runner = LocalRunner(command=["definitely-not-a-command"], project_dir=tmp_path)

    with patch(
        "autograding.local_runner.subprocess.run",
        side_effect=FileNotFoundError("definitely-not-a-command"),
    ):
        result = runner.run()

    assert result.raw is None
    assert "Could not run" in result.test_log


def test_junit_format_reads_report_file(tmp_path):
    report = tmp_path / "test_report.xml"
    runner = LocalRunner(
        command=["pytest", "--junitxml=test_report.xml"],
        result_format="junit-xml",
        project_dir=tmp_path,
    )

    def fake_run(*args, **kwargs):
        report.write_text(
            '<testsuite><testcase file="tests/test_ex1.py" name="test_a" time="0.1"/></testsuite>'
        )
        return _completed("1 passed")

    with patch("autograding.local_runner.subprocess.run", side_effect=fake_run):
        result = runner.run()

    assert result.raw is not None
    assert result.raw.total_tests == 1
    assert result.raw.result_sets[0].identifier == "tests/test_ex1.py"


def test_junit_format_ignores_stale_report(tmp_path):
    report = tmp_path / "test_report.xml"
    report.write_text('<testsuite><testcase name="old" time="0"/></testsuite>')
    runner = LocalRunner(result_format="junit-xml", project_dir=tmp_path)

    with patch("autograding.local_runner.subprocess.run", return_value=_completed("crashed", returncode=2)):
        result = runner.run()

    assert result.raw is None
    assert not report.exists()
