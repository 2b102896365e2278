import sys
from pathlib import Path

import pytest

# Ensure repository root is importable for tests
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from backend.app.config import get_settings  # noqa: E402
from backend.app.journal.service import JournalService  # noqa: E402
from backend.app.journal.store import InMemoryBackend, SessionStore  # noqa: E402

DEFAULT_REPLY = "What has this week actually looked like for you?"


class FakeGateway:
    """Records every prompt; replays queued replies (exceptions are raised)."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.prompts = []

    def queue(self, *replies):
        self.replies.extend(replies)

    def call(self, prompt):
        self.prompts.append(prompt)
        if not self.replies:
            return DEFAULT_REPLY
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FakeClock:
    def __init__(self, start=1_700_000_000_000, step=1_000):
        self.now = start
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("JOURNAL_STORE_DIR", str(tmp_path / "store"))
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("MODE_PROBE_ENABLED", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store(backend):
    return SessionStore(backend)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(gateway, store, clock):
    return JournalService(gateway, store, clock=clock)
