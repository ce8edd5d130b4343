"""Root conftest — shared test configuration."""

import os

import pytest

from computeops.config import get_settings

# Ensure tests never reach the real compute API
os.environ.setdefault("COMPUTE_API_BASE_URL", "http://compute.test/compute/")


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
