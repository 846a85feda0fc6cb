"""End-to-end command-line conversion scenarios."""

from __future__ import annotations

from pytest_bdd import scenarios


scenarios("cli_conversion.feature")
