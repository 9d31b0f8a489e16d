"""Tests for the autograde command line."""

import json
import subprocess
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from autograde import main
from tests.conftest import jest_file, jest_payload, valid_report_data


def _completed(stdout: str, returncode: int = 0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr="")


def test_run_writes_report_and_returns_zero_when_all_pass(tmp_path, capsys):
    report_path = tmp_path / "test-results.json"
    payload = jest_payload([jest_file("1-git-init.test.js", ["passed"] * 5)])

    with patch("autograding.local_runner.subprocess.run", return_value=_completed(json.dumps(payload))):
        code = main(["run", f"--report={report_path}"])

    assert code == 0
    data = json.loads(report_path.read_text())
    assert data["exercises"][0]["state"] == "approved"
    assert data["exercises"][1]["state"] == "not-run"
    assert data["summary"]["points_earned"] == 15
    assert "FINAL SCORE: 15/100 points" in capsys.readouterr().out


def test_run_returns_one_when_tests_fail(tmp_path):
    report_path = tmp_path / "test-results.json"
    payload = jest_payload([jest_file("1-git-init.test.js", ["passed", "failed"])])

    with patch(
        "autograding.local_runner.subprocess.run",
        return_value=_completed(json.dumps(payload), returncode=1),
    ):
        code = main(["run", f"--report={report_path}"])

    assert code == 1
    assert json.loads(report_path.read_text())["summary"]["points_earned"] == 7


def test_run_without_payload_writes_empty_report(tmp_path, capsys):
    report_path = tmp_path / "test-results.json"

    with patch("autograding.local_runner.subprocess.run", return_value=_completed("npm ERR!", returncode=1)):
        code = main(["run", f"--report={report_path}", "--verbose"])

    assert code == 1
    data = json.loads(report_path.read_text())
    assert data["success"] is False
    assert data["summary"]["points_earned"] == 0
    out = capsys.readouterr().out
    assert "could not obtain test results" in out
    assert "--- Test Log ---" in out


def test_run_then_validate(tmp_path):
    report_path = tmp_path / "test-results.json"
    payload = jest_payload([jest_file(f"{i}-x", ["passed"]) for i in range(1, 3)])
    payload["testResults"][0]["name"] = "/r/tests/ejercicio/4-ramas.test.js"

    with patch("autograding.local_runner.subprocess.run", return_value=_completed(json.dumps(payload))):
        assert main(["run", f"--report={report_path}"]) == 0

    # The second result set matches no exercise, so the counters diverge
    assert main(["validate", f"--report={report_path}"]) == 0


def test_validate_valid_report(tmp_path, capsys):
    report_path = tmp_path / "test-results.json"
    report_path.write_text(json.dumps(valid_report_data()))

    code = main(["validate", f"--report={report_path}", "--ci-output"])

    assert code == 0
    out = capsys.readouterr().out
    assert "VALIDATION PASSED" in out
    assert "points=100" in out


def test_validate_writes_github_output(tmp_path):
    report_path = tmp_path / "test-results.json"
    report_path.write_text(json.dumps(valid_report_data()))
    github_output = tmp_path / "gh_output"

    code = main(["validate", f"--report={report_path}", f"--github-output={github_output}"])

    assert code == 0
    assert "passed=true" in github_output.read_text()


def test_validate_reports_unwritable_github_output(tmp_path, capsys):
    report_path = tmp_path / "test-results.json"
    report_path.write_text(json.dumps(valid_report_data()))
    github_output = tmp_path / "missing" / "gh_output"

    code = main(["validate", f"--report={report_path}", f"--github-output={github_output}"])

    assert code == 1
    assert "Error writing CI outputs" in capsys.readouterr().out


def test_validate_rejects_tampered_total(tmp_path, capsys):
    report_path = tmp_path / "test-results.json"
    data = valid_report_data()
    data["summary"]["points_total"] = 90
    report_path.write_text(json.dumps(data))

    code = main(["validate", f"--report={report_path}", "--ci-output"])

    assert code == 1
    out = capsys.readouterr().out
    assert "VALIDATION FAILED" in out
    assert "points=" not in out


def test_validate_rejects_future_report(tmp_path):
    report_path = tmp_path / "test-results.json"
    report_path.write_text(
        json.dumps(valid_report_data(executed_at=datetime.now(timezone.utc) + timedelta(days=1)))
    )

    assert main(["validate", f"--report={report_path}"]) == 1


def test_validate_missing_report(tmp_path):
    assert main(["validate", f"--report={tmp_path / 'missing.json'}"]) == 1


def test_report_path_from_config(tmp_path):
    config = tmp_path / "course.yml"
    config.write_text("report_path: results/out.json\n")
    (tmp_path / "results").mkdir()
    (tmp_path / "results" / "out.json").write_text(json.dumps(valid_report_data()))

    assert main(["validate", f"--config={config}"]) == 0


def test_missing_explicit_config(tmp_path, capsys):
    code = main(["validate", f"--config={tmp_path / 'nope.yml'}"])

    assert code == 1
    assert "Error loading config" in capsys.readouterr().out


def test_invalid_config(tmp_path, capsys):
    config = tmp_path / "course.yml"
    config.write_text("result_format: tap\n")

    assert main(["run", f"--config={config}"]) == 1
    assert "Error loading config" in capsys.readouterr().out
