"""
Shared test fixtures and helpers for the Vetta test suite.
"""

import os

import pytest

from vetta import ConstraintRegistry, Validator


# ============================================================================
# Registry / Validator
# ============================================================================

@pytest.fixture
def registry():
    """A fresh registry with the built-in kinds, isolated per test."""
    return ConstraintRegistry.with_builtins()


@pytest.fixture
def validator(registry):
    return Validator(registry)


# ============================================================================
# Environment
# ============================================================================

@pytest.fixture
def clean_env(monkeypatch):
    """Remove VETTA_* variables so config tests see only what they set."""
    for key in list(os.environ):
        if key.startswith("VETTA_"):
            monkeypatch.delenv(key)
    return monkeypatch
