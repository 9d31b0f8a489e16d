"""
Exercise Autograding: score test runs and validate the results file

Usage:
  autograde run [--config=PATH] [--report=PATH] [--verbose]
  autograde validate [--config=PATH] [--report=PATH] [--ci-output] [--github-output=PATH]
  autograde (-h | --help)

Options:
  --config=PATH         Path to YAML configuration file [default: autograding.yml].
  --report=PATH         Path of the scoring report (overrides the configuration).
  --verbose             Print the test command and the start of its output.
  --ci-output           Print machine-readable points/percent/passed lines.
  --github-output=PATH  Append the machine-readable lines to this file instead.
  -h --help             Show this screen.
"""

import sys
from pathlib import Path

from docopt import docopt
from pydantic import ValidationError
from yaml import YAMLError

from autograding.aggregator import ScoreAggregator
from autograding.config import DEFAULT_CONFIG_PATH
from autograding.config_loader import AutogradingConfig, load_config
from autograding.local_runner import LocalRunner
from autograding.reporting import print_run_report, print_save_notice, print_verdict, write_ci_outputs
from autograding.validator import ReportValidator


def run_and_generate(config: AutogradingConfig, report_path: Path, verbose: bool = False) -> int:
    """
    Run the exercise tests, score them and save the report.

    A report is written even when the tests could not run, so the
    validator always has something to examine.

    Args:
        config: Loaded configuration.
        report_path: Where to save the scoring report.
        verbose: Print verbose output.

    Returns:
        Exit code (0 if every test passed, 1 otherwise).
    """
    runner = LocalRunner(
        command=config.test_command,
        result_format=config.result_format,
        project_dir=config.project_dir,
        junit_report_path=config.junit_report_file(),
        timeout_seconds=config.timeout_seconds,
    )

    print("Running exercise tests...")
    if verbose:
        print(f"  Executing: {' '.join(runner.command)}")

    execution_result = runner.run()

    if verbose and execution_result.test_log:
        print("  --- Test Log ---")
        for line in execution_result.test_log.split("\n")[:20]:
            print(f"  {line}")
        print("  ----------------")

    if execution_result.raw is None:
        if execution_result.timeout_exceeded:
            print("Error: the tests timed out")
        else:
            print("Error: could not obtain test results")
        print(execution_result.test_log.strip().split("\n")[-1])

    aggregator = ScoreAggregator()
    report = aggregator.generate(execution_result.raw, report_path)

    print_save_notice(report_path, report)
    print_run_report(report)

    return 0 if report.success else 1


def validate(
    report_path: Path,
    ci_output: bool = False,
    github_output: Path | None = None,
) -> int:
    """
    Validate a saved scoring report and print the verdict.

    Args:
        report_path: Path to the scoring report.
        ci_output: Print machine-readable output lines.
        github_output: File to append the machine-readable lines to.

    Returns:
        Exit code (0 if the report is valid, 1 otherwise).
    """
    print(f"Validating {report_path}...\n")
    verdict = ReportValidator(report_path).validate()
    print_verdict(verdict)

    if verdict.valid and (ci_output or github_output):
        try:
            write_ci_outputs(verdict, github_output)
        except OSError as e:
            print(f"Error writing CI outputs: {e}")
            return 1

    return 0 if verdict.valid else 1


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entrypoint.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    arguments = docopt(__doc__, argv=argv)
    config_path = Path(arguments["--config"])

    try:
        # Only a config file named explicitly has to exist
        config = load_config(config_path, required=config_path != DEFAULT_CONFIG_PATH)
    except (FileNotFoundError, ValueError, YAMLError, ValidationError) as e:
        print(f"Error loading config: {e}")
        return 1

    report_path = Path(arguments["--report"]) if arguments["--report"] else config.report_path

    if arguments["run"]:
        try:
            return run_and_generate(config, report_path, verbose=arguments["--verbose"])
        except KeyboardInterrupt:
            print("\nTest run interrupted by user.")
            return 1
        except OSError as e:
            print(f"Error saving report: {e}")
            return 1

    github_output = Path(arguments["--github-output"]) if arguments["--github-output"] else None
    return validate(report_path, ci_output=arguments["--ci-output"], github_output=github_output)


if __name__ == "__main__":
    sys.exit(main())
