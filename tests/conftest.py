"""Shared pytest fixtures for cms-client tests.

Fixture summary
---------------
isolated_settings: autouse; strips ``CMS_*`` variables from the environment
                    and clears the cached settings so tests never pick up a
                    developer's real credentials.

All tests run without network access.  HTTP is mocked with ``respx`` or an
injected ``httpx.MockTransport``.
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from cms_client.config.settings import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    """Run each test with no ``CMS_*`` environment and no ``.env`` file."""
    for key in list(os.environ):
        if key.upper().startswith("CMS_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
