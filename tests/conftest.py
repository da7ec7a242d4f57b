# tests/conftest.py
from __future__ import annotations

import pytest

from functions.utils.settings import Settings
from scripted_transport import GITEA_URL, TOKEN, ScriptedTransport


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def settings() -> Settings:
    return Settings(gitea_url=GITEA_URL, token=TOKEN)
