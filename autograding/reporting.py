"""
Console output for scoring reports and validation verdicts.
"""

from pathlib import Path

from .config import PASSING_POINTS
from .models import ExerciseState, ScoringReport, ValidationVerdict

STATE_MARKERS: dict[str, str] = {
    ExerciseState.APPROVED.value: "+",
    ExerciseState.PARTIAL.value: "~",
    ExerciseState.FAILED.value: "-",
    ExerciseState.NOT_RUN.value: "-",
}


def _marker(state: object) -> str:
    return STATE_MARKERS.get(getattr(state, "value", state), "-")


def print_run_report(report: ScoringReport) -> None:
    """
    Print the per-exercise results and the final score of a run.

    Args:
        report: ScoringReport to summarize.
    """
    print(f"\n{'=' * 70}")
    print("EXERCISE RESULTS")
    print(f"{'=' * 70}\n")

    for exercise in report.exercises:
        print(f"[{_marker(exercise.state)}] Exercise {exercise.exercise}: {exercise.name}")
        print(f"    Tests: {exercise.tests_passed}/{exercise.tests_total} passed")
        print(
            f"    Points: {exercise.points_earned}/{exercise.points_possible} ({exercise.percent}%)"
        )
        print()

    summary = report.summary
    print("=" * 70)
    print("FINAL SUMMARY")
    print("-" * 70)
    print(f"Tests passed: {summary.tests_passed}/{summary.total_tests}")
    print(f"Exercises complete: {summary.complete_count}/{summary.total_exercises}")
    print(f"\nFINAL SCORE: {summary.points_earned}/{summary.points_total} points")
    print(f"  Percentage: {summary.percent_final}%")
    print("=" * 70 + "\n")


def print_save_notice(report_path: Path, report: ScoringReport) -> None:
    """Tell the student where the report went and that it must be committed."""
    print(f"Saved results to {report_path}")
    print(f"Score: {report.summary.points_earned}/{report.summary.points_total} points")
    print("\nCommit this file so it can be graded:")
    print(f"  git add {report_path.name}")
    print('  git commit -m "Update test results"')


def print_verdict(verdict: ValidationVerdict) -> None:
    """
    Print the outcome of validating a report.

    Args:
        verdict: ValidationVerdict to display.
    """
    print(f"\n{'=' * 70}")
    print("VALIDATION PASSED" if verdict.valid else "VALIDATION FAILED")
    print("=" * 70)

    for error in verdict.errors:
        print(f"Error: {error}")

    if verdict.warnings:
        print("\nWarnings:")
        for warning in verdict.warnings:
            print(f"  {warning}")

    if not verdict.valid:
        print("\nTo generate a valid results file, run:")
        print("  autograde run")
        print("  git add test-results.json")
        print('  git commit -m "Add test results"')
        print("  git push")
        print("=" * 70 + "\n")
        return

    print("\nGRADE SUMMARY:")
    print("-" * 70)
    for exercise in verdict.exercises:
        name = str(exercise.get("name", "?"))
        print(
            f"[{_marker(exercise.get('state'))}] Exercise {exercise.get('exercise')}: "
            f"{name:<20} {exercise.get('points_earned')}/{exercise.get('points_possible')} pts"
        )
    print("-" * 70)
    print(f"FINAL SCORE: {verdict.points} points ({verdict.percent}%)")
    if verdict.passed:
        print("PASSED")
    else:
        print(f"Keep working on the exercises ({PASSING_POINTS} points needed to pass)")
    print("=" * 70 + "\n")


def ci_outputs(verdict: ValidationVerdict) -> dict[str, str]:
    """
    Key/value pairs published to the CI workflow.

    Args:
        verdict: ValidationVerdict of a valid report.

    Returns:
        Dictionary of output names to string values.
    """
    return {
        "points": str(verdict.points),
        "percent": str(verdict.percent),
        "passed": "true" if verdict.passed else "false",
    }


def write_ci_outputs(verdict: ValidationVerdict, output_path: Path | None = None) -> None:
    """
    Emit ``name=value`` lines for the CI workflow.

    Args:
        verdict: ValidationVerdict of a valid report.
        output_path: File to append the lines to (e.g. the one named by
            ``$GITHUB_OUTPUT``); printed to stdout when omitted.
    """
    lines = [f"{name}={value}" for name, value in ci_outputs(verdict).items()]

    if output_path is None:
        print("\nCI outputs:")
        for line in lines:
            print(line)
        return

    with open(output_path, "a", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")
    print(f"Wrote CI outputs to {output_path}")
