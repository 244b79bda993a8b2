"""Pytest fixtures for l2portal tests."""

import asyncio
import sys
import time
from pathlib import Path

import pytest
import yaml

# Ensure project root is in path for l2portal imports
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from l2portal.captcha.issuer import ChallengeIssuer  # noqa: E402
from l2portal.captcha.store import ExpiringTokenStore  # noqa: E402


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingRenderer:
    """Stand-in for the PNG renderer that remembers each answer it was asked to draw."""

    def __init__(self):
        self.answers = []

    def __call__(self, text: str) -> str:
        self.answers.append(text)
        return f"image:{len(self.answers)}"

    @property
    def last(self) -> str:
        return self.answers[-1]


def wait_until(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Poll predicate from a sync test (e.g. against TestClient) until true or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


async def async_wait_until(predicate, timeout: float = 2.0, interval: float = 0.005) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()


@pytest.fixture
def project_root() -> Path:
    return _project_root


@pytest.fixture
def example_config_path(project_root: Path) -> Path:
    return project_root / "config" / "config.yaml.example"


@pytest.fixture
def example_config(example_config_path: Path) -> dict:
    """Load example config dict from YAML."""
    with open(example_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def token_store(clock: ManualClock) -> ExpiringTokenStore:
    return ExpiringTokenStore(clock=clock)


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def issuer(token_store: ExpiringTokenStore, renderer: RecordingRenderer) -> ChallengeIssuer:
    """Issuer with a 10 minute TTL, manual clock, and a renderer that exposes answers."""
    return ChallengeIssuer(token_store, ttl=600.0, renderer=renderer)
