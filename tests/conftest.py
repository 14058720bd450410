import os

import pytest

from cogwork.app import Cogwork
from cogwork.event_manager import EventManager
from cogwork.settings import CogworkSettings
from tests.fakes import FakeLibrary


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path) -> None:
    for key in list(os.environ):
        if key.startswith("COGWORK__"):
            monkeypatch.delenv(key)
    monkeypatch.setattr("cogwork.config.HOME_CONFIG_PATH", tmp_path / "cogwork.toml")


@pytest.fixture
def library() -> FakeLibrary:
    return FakeLibrary()


@pytest.fixture
def event_manager(library: FakeLibrary) -> EventManager:
    return EventManager(library)


@pytest.fixture
def app(library: FakeLibrary) -> Cogwork:
    return Cogwork(CogworkSettings(), library=library)
