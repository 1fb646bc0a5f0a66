"""Shared fixtures: every test runs against the default configuration."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from canonical_values.config import default_config, set_active_config


@pytest.fixture(autouse=True)
def _default_active_config() -> Iterator[None]:
    set_active_config(default_config())
    yield
    set_active_config(None)
