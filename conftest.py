"""Pytest configuration applied to the entire test suite."""

from __future__ import annotations


# Step definitions must be registered before feature files are parsed.
pytest_plugins = [
    "tests.e2e.steps.conversion",
]
