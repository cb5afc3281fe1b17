"""
Pytest configuration and fixtures for depman tests.
"""

import json
import threading
from pathlib import Path
from typing import Callable, Optional

import pytest

from depman.app.commands import Services
from depman.app.controller import Controller
from depman.app.events import KeyPressed, Resized
from depman.app.state import AppState
from depman.config import Config
from depman.domain.exceptions import CommandError
from depman.domain.models import (
    EnvType,
    FileType,
    ManagerType,
    PackageDetail,
    PackageManager,
    Project,
    RunResult,
    SearchResult,
    Virtualenv,
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "tui: marks Textual pilot tests")


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch):
    """Keep every test away from the real config, state dir and active virtualenv."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    for name in (
        "VIRTUAL_ENV",
        "DEPMAN_PYPI_MIRROR",
        "DEPMAN_PACKAGE_MANAGER",
        "DEPMAN_LOG_LEVEL",
        "DEPMAN_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    yield tmp_path


# -- HTTP fakes ----------------------------------------------------------------


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, payload=None, invalid_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json
        self.closed = False

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload

    def close(self):
        self.closed = True


class FakeSession:
    """
    Session whose GET answers come from a handler or a per-URL queue.

    Unknown URLs answer 404 so fan-out lookups miss cleanly.
    """

    def __init__(self, handler: Optional[Callable[[str], FakeResponse]] = None):
        self.handler = handler
        self.queues: dict[str, list] = {}
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def queue(self, url: str, *responses) -> None:
        self.queues.setdefault(url, []).extend(responses)

    def get(self, url, timeout=None):
        with self._lock:
            self.calls.append(url)
            pending = self.queues.get(url)
            answer = pending.pop(0) if pending else None
        if isinstance(answer, Exception):
            raise answer
        if answer is not None:
            return answer
        if self.handler is not None:
            return self.handler(url)
        return FakeResponse(404)


def pypi_document(name: str, version: str, releases=(), **info) -> dict:
    """Build a PyPI JSON document."""
    return {
        "info": {"name": name, "version": version, "summary": info.pop("summary", f"{name} summary"), **info},
        "releases": {release: [] for release in releases},
    }


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def sleeps() -> list:
    return []


# -- runner and index fakes -----------------------------------------------------


class FakeRunner:
    """Records package manager calls and answers from canned data."""

    def __init__(self, installed=None, outdated=None, failing=()):
        self.installed = installed if installed is not None else []
        self.outdated = outdated if outdated is not None else []
        self.failing = set(failing)
        self.calls: list[tuple[str, str]] = []
        self.list_error: Optional[Exception] = None

    def _result(self, verb: str, target: str) -> RunResult:
        self.calls.append((verb, target))
        if target in self.failing:
            return RunResult(stderr="boom", error=CommandError(f"{verb} {target} failed", stderr="boom"))
        return RunResult()

    def install(self, spec):
        return self._result("install", spec)

    def uninstall(self, name):
        return self._result("uninstall", name)

    def upgrade(self, name):
        return self._result("upgrade", name)

    def list_packages(self):
        self.calls.append(("list", ""))
        if self.list_error is not None:
            return RunResult(error=self.list_error)
        return RunResult(stdout=json.dumps(self.installed))

    def list_outdated(self):
        self.calls.append(("outdated", ""))
        return RunResult(stdout=json.dumps(self.outdated))


class FakeIndex:
    """Index client answering from dictionaries."""

    def __init__(self, results=None, details=None):
        self.results: dict[str, list[SearchResult]] = results or {}
        self.details: dict[str, PackageDetail] = details or {}
        self.calls: list[tuple[str, str]] = []

    def get_package(self, name, cancel=None):
        self.calls.append(("get", name))
        detail = self.details.get(name)
        return SearchResult(detail.name, detail.version, detail.summary) if detail else None

    def get_package_detail(self, name, cancel=None):
        self.calls.append(("detail", name))
        return self.details.get(name)

    def search(self, query, cancel=None):
        self.calls.append(("search", query))
        return list(self.results.get(query, []))


def installed_entries(count: int) -> list[dict]:
    return [{"name": f"pkg{i:02d}", "version": "1.0.0"} for i in range(count)]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner(
        installed=[
            {"name": "flask", "version": "2.0.1"},
            {"name": "requests", "version": "2.31.0"},
            {"name": "rich", "version": "13.7.0"},
        ],
        outdated=[
            {"name": "flask", "version": "2.0.1", "latest_version": "3.0.0"},
            {"name": "requests", "version": "2.31.0", "latest_version": "2.32.3"},
        ],
    )


@pytest.fixture
def fake_index() -> FakeIndex:
    flask = PackageDetail(
        name="flask",
        version="3.0.0",
        summary="A simple framework for building complex web applications.",
        author="Armin Ronacher",
        license="BSD-3-Clause",
        home_page="https://palletsprojects.com/p/flask",
        requires_python=">=3.8",
        versions=("3.0.0", "2.3.3", "2.0.1"),
    )
    return FakeIndex(
        results={"flask": [SearchResult("flask", "3.0.0", flask.summary)]},
        details={"flask": flask},
    )


def make_state(tmp_path: Path, detected: bool = True) -> AppState:
    project = (
        Project(tmp_path, tmp_path / "pyproject.toml", FileType.PYPROJECT_TOML)
        if detected
        else Project(tmp_path)
    )
    venv = Virtualenv(EnvType.VIRTUALENV, tmp_path / ".venv", tmp_path / ".venv" / "bin" / "python")
    manager = PackageManager(ManagerType.PIP, "/usr/bin/pip")
    return AppState.initial(project, venv, manager, Config())


def drain(controller: Controller, commands) -> None:
    """Run commands synchronously, feeding results back until nothing is left."""
    pending = list(commands)
    while pending:
        command = pending.pop(0)
        pending.extend(controller.handle(command.execute()))


@pytest.fixture
def controller(tmp_path, fake_runner, fake_index) -> Controller:
    """Controller on the Dashboard with packages loaded and a 100x30 terminal."""
    ctrl = Controller(make_state(tmp_path), Services(runner=fake_runner, index=fake_index))
    ctrl.handle(Resized(100, 30))
    drain(ctrl, ctrl.start())
    return ctrl


def press(controller: Controller, *keys: str) -> list:
    """Press keys in order, running every produced command to completion."""
    produced = []
    for key in keys:
        commands = controller.handle(KeyPressed(key))
        produced.extend(commands)
        drain(controller, commands)
    return produced
