# === NAVMAP v1 ===
# {
#   "module": "tests.conftest",
#   "purpose": "Shared pytest fixtures for suite",
#   "sections": [
#     {
#       "id": "backoff-spec",
#       "name": "backoff_spec",
#       "anchor": "function-backoff-spec",
#       "kind": "function"
#     },
#     {
#       "id": "toggled-spec",
#       "name": "toggled_spec",
#       "anchor": "function-toggled-spec",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Pytest Configuration

Puts ``src`` on ``sys.path`` so the suite runs from a plain checkout, and
provides specs declaring backoff sections that most modules exercise.

Usage:
    pytest tests/config_spec -q
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from ConfigSpec import ConfigSpec, new_backoff_field, new_backoff_toggled_field  # noqa: E402


@pytest.fixture
def backoff_spec() -> ConfigSpec:
    """Spec with a bounded, always-enabled backoff section named ``backoff``."""
    return ConfigSpec(new_backoff_field("backoff", allow_unbounded=False))


@pytest.fixture
def toggled_spec() -> ConfigSpec:
    """Spec with a toggled backoff section that allows unbounded retries."""
    return ConfigSpec(new_backoff_toggled_field("backoff", allow_unbounded=True))
