import json
import os
from typing import Callable, List, Optional

import pytest

from ghost_lens.app_config import AppConfig
from ghost_lens.engine import GhostLensEngine


class FakeTimerHandle:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeTimer:
    """Manual clock: scheduled callbacks only run when the test advances time."""

    def __init__(self):
        self.now = 0.0
        self._scheduled: List[FakeTimerHandle] = []

    def call_later(self, delay, callback):
        handle = FakeTimerHandle(self.now + delay, callback)
        self._scheduled.append(handle)
        return handle

    @property
    def pending(self) -> List[FakeTimerHandle]:
        return [h for h in self._scheduled if not h.cancelled]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = sorted((h for h in self.pending if h.when <= self.now), key=lambda h: h.when)
        self._scheduled = [h for h in self.pending if h.when > self.now]
        for handle in due:
            handle.callback()


class FakeSubscription:
    def __init__(self, backend, path, on_event):
        self.backend = backend
        self.path = os.path.abspath(path)
        self.on_event = on_event
        self.closed = False

    def close(self):
        self.closed = True
        if self.backend.fail_close:
            raise OSError("watch handle already gone")


class FakeWatchBackend:
    """Watch backend whose events are synthesized by the test."""

    def __init__(self):
        self.subscriptions: List[FakeSubscription] = []
        self.fail_close = False

    def watch(self, path, on_event):
        subscription = FakeSubscription(self, path, on_event)
        self.subscriptions.append(subscription)
        return subscription

    @property
    def live(self) -> List[FakeSubscription]:
        return [s for s in self.subscriptions if not s.closed]

    def emit(self, change, path):
        path = os.path.abspath(path)
        for subscription in list(self.live):
            if subscription.closed:
                continue
            if path == subscription.path or path.startswith(subscription.path + os.sep):
                subscription.on_event(change, path)


class RecordingHost:
    """Host surface that remembers everything the engine renders."""

    def __init__(self, text: Optional[str] = None):
        self.text = text
        self.renders = []
        self.cleared = 0

    def get_active_text(self):
        return self.text

    def render(self, annotations):
        self.renders.append(list(annotations))

    def clear(self):
        self.cleared += 1

    @property
    def last(self):
        return self.renders[-1] if self.renders else None


def write_json(path, data) -> str:
    os.makedirs(os.path.dirname(str(path)), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False)
    return str(path)


@pytest.fixture
def write_locale():
    """Write a JSON locale file, creating parent directories."""
    return write_json


@pytest.fixture
def fake_timer():
    return FakeTimer()


@pytest.fixture
def watch_backend():
    return FakeWatchBackend()


@pytest.fixture
def host():
    return RecordingHost()


@pytest.fixture
def workspace(tmp_path):
    """An empty workspace directory."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def make_engine(workspace, host, watch_backend, fake_timer):
    """Factory building an engine wired to the fakes; disposed after the test."""
    engines = []

    def _make(**overrides):
        config = AppConfig(workspace_root=str(workspace), **overrides)
        engine = GhostLensEngine(config, host, watch_backend, fake_timer)
        engines.append(engine)
        return engine

    yield _make

    for engine in engines:
        engine.dispose()
