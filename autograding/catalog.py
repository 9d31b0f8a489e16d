"""
Exercise catalog for the Git course.

The table is built once at import time and never mutated; weights add up to
``TOTAL_POINTS``.
"""

from .models import ExerciseSpec


EXERCISE_CATALOG: tuple[ExerciseSpec, ...] = (
    ExerciseSpec(id=1, name="git-init", points_possible=15, result_selector="1-git-init.test.js"),
    ExerciseSpec(id=2, name="primer-commit", points_possible=15, result_selector="2-primer-commit.test.js"),
    ExerciseSpec(id=3, name="modificar-commits", points_possible=15, result_selector="3-modificar-commits.test.js"),
    ExerciseSpec(id=4, name="ramas", points_possible=15, result_selector="4-ramas.test.js"),
    ExerciseSpec(id=5, name="github-push", points_possible=15, result_selector="5-github-push.test.js"),
    ExerciseSpec(id=6, name="pull-clone", points_possible=10, result_selector="6-pull-clone.test.js"),
    ExerciseSpec(id=7, name="conflictos", points_possible=15, result_selector="7-conflictos.test.js"),
)


def expected_points(catalog: tuple[ExerciseSpec, ...]) -> dict[int, int]:
    """
    Build the id -> weight table for a catalog.

    Args:
        catalog: Exercise specs.

    Returns:
        Mapping of exercise id to points possible.
    """
    return {spec.id: spec.points_possible for spec in catalog}


# Exercise id -> points, as the validator expects them in a report
EXPECTED_POINTS: dict[int, int] = expected_points(EXERCISE_CATALOG)
