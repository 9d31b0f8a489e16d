"""
Runner for the exercise test suite.

Invokes the configured test command as a subprocess and turns its output into
a RawRunResult. Test failures make the command exit non-zero, but the results
payload is still there, so the exit code alone never discards a run.
"""

import json
import os
import subprocess
from pathlib import Path

from pydantic import ValidationError

from .adapters import MalformedPayloadError, normalize_jest_results, parse_junit_xml
from .config import EXECUTION_TIMEOUT_SECONDS, JUNIT_REPORT_FILENAME, TEST_COMMAND
from .models import ExecutionResult, RawRunResult


def extract_json_payload(output: str) -> dict:
    """
    Decode the JSON object in the test command's stdout.

    ``npm test`` prints a banner before Jest's JSON, so anything before the
    first ``{`` is skipped.

    Raises:
        MalformedPayloadError: If no JSON object can be decoded.
    """
    start = output.find("{")
    if start == -1:
        raise MalformedPayloadError("No JSON payload in test output")
    try:
        payload, _ = json.JSONDecoder().raw_decode(output[start:])
    except json.JSONDecodeError as e:
        raise MalformedPayloadError(f"Could not parse test output: {e}") from e
    return payload


class LocalRunner:
    """
    Runs the exercise tests on the host machine.

    Uses subprocess to execute the test command and captures its results.
    """

    def __init__(
        self,
        command: list[str] | None = None,
        result_format: str = "jest-json",
        project_dir: Path | None = None,
        junit_report_path: Path | None = None,
        timeout_seconds: int = EXECUTION_TIMEOUT_SECONDS,
    ) -> None:
        """
        Initialize the runner.

        Args:
            command: Test command and arguments.
            result_format: "jest-json" (payload on stdout) or "junit-xml"
                (payload in junit_report_path).
            project_dir: Working directory for the command.
            junit_report_path: JUnit XML file written by the command.
            timeout_seconds: Maximum execution time.
        """
        self.command = command or list(TEST_COMMAND)
        self.result_format = result_format
        self.project_dir = project_dir or Path.cwd()
        self.junit_report_path = junit_report_path or self.project_dir / JUNIT_REPORT_FILENAME
        self.timeout_seconds = timeout_seconds

    def run(self) -> ExecutionResult:
        """
        Run the test command and normalize its results.

        Returns:
            ExecutionResult; ``raw`` is None when no usable payload was
            produced.
        """
        if self.result_format == "junit-xml":
            # A report left over from an earlier run must not be scored
            self.junit_report_path.unlink(missing_ok=True)

        env = os.environ.copy()
        env["CI"] = "true"

        try:
            process = subprocess.run(
                self.command,
                cwd=str(self.project_dir),
                env=env,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired:
            return ExecutionResult(
                test_log=f"Execution timed out after {self.timeout_seconds} seconds",
                timeout_exceeded=True,
            )
        except OSError as e:
            return ExecutionResult(test_log=f"Could not run {' '.join(self.command)}: {e}")

        test_log = process.stdout + process.stderr

        try:
            raw = self._parse_results(process.stdout)
        except (MalformedPayloadError, ValidationError) as e:
            return ExecutionResult(
                test_log=f"{test_log}\nError parsing test results: {e}",
                exit_code=process.returncode,
            )

        return ExecutionResult(raw=raw, test_log=test_log, exit_code=process.returncode)

    def _parse_results(self, stdout: str) -> RawRunResult:
        if self.result_format == "junit-xml":
            return parse_junit_xml(self.junit_report_path)
        return normalize_jest_results(extract_json_payload(stdout))
