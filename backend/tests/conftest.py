from collections.abc import Generator

import pytest

import sqlint


@pytest.fixture(autouse=True)
def reset_process_defaults() -> Generator[None, None, None]:
    """Process-wide settings and credentials are module state; isolate every test."""
    sqlint.reset_defaults()
    yield
    sqlint.reset_defaults()
