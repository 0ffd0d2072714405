"""
Pytest configuration and shared fixtures for merklekit tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Isolates every test from MERKLEKIT_* environment variables
3. Provides commonly-used fixtures via pytest's autodiscovery
4. Configures pytest markers
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

import importlib

from merklekit.config.runtime import set_default_config

_common = importlib.import_module("fixtures.common")

make_elements = _common.make_elements
make_tree = _common.make_tree
make_config = _common.make_config


# =============================================================================
# Environment Isolation
# =============================================================================

_ENV_VARS = (
    "MERKLEKIT_DIGEST_ALGORITHM",
    "MERKLEKIT_PARALLEL",
    "MERKLEKIT_PARALLEL_THRESHOLD",
    "MERKLEKIT_MAX_WORKERS",
    "MERKLEKIT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Clear MERKLEKIT_* variables and reset the cached default config."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    set_default_config(None)
    yield
    set_default_config(None)


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def elements():
    """Seven distinct byte elements."""
    return make_elements(7)


@pytest.fixture
def tree(elements):
    """SHA-256 tree over the seven default elements."""
    from merklekit.merkle.merkle_tree import build_tree

    return build_tree(elements, config=make_config())


@pytest.fixture
def parallel_config():
    """Config that forces the threaded build path even for tiny inputs."""
    return make_config(parallel=True, parallel_threshold=0, max_workers=4, chunk_size=3)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
