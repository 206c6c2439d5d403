"""Fixtures for smoke tests.

Smoke tests check that the package compiles, imports and type checks.
"""

from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
SRC_DIR = PROJECT_ROOT / "src"
PACKAGE_DIR = SRC_DIR / "rabbitmq_messaging"


@pytest.fixture
def src_dir() -> Path:
    return SRC_DIR


@pytest.fixture
def package_dir() -> Path:
    """Return the rabbitmq_messaging package directory path."""
    return PACKAGE_DIR
