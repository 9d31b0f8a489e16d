"""
Exercise Autograding: scoring reports for GitHub Classroom

Turns the outcome of an automated test run into a weighted per-exercise
scoring report, and validates that report before a grading platform trusts it.
"""

__version__ = "0.1.0"
