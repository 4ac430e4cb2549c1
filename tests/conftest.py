from __future__ import annotations

from concurrent.futures import Executor, Future
from typing import Callable, List, Optional

import pytest

from quota_menubar.host import Host
from quota_menubar.models import (
    ClaudeQuotaSnapshot,
    CodexAccountSnapshot,
    CodexRateLimitSnapshot,
    CodexStatsSnapshot,
)
from quota_menubar.preferences import PreferenceStore
from quota_menubar.providers import ProviderClient


class FakeTimer:
    def __init__(self, callback: Callable, interval: float):
        self.callback = callback
        self.interval = interval
        self.running = False
        self.stopped = False

    def start(self) -> None:
        self.running = True

    def stop(self) -> None:
        self.running = False
        self.stopped = True

    def fire(self) -> None:
        assert self.running, "fired a stopped timer"
        self.callback(self)


class FakeTimerFactory:
    def __init__(self) -> None:
        self.timers: List[FakeTimer] = []

    def __call__(self, callback: Callable, interval: float) -> FakeTimer:
        timer = FakeTimer(callback, interval)
        self.timers.append(timer)
        return timer

    def running(self, interval: Optional[float] = None) -> List[FakeTimer]:
        return [
            timer
            for timer in self.timers
            if timer.running and (interval is None or timer.interval == interval)
        ]


class ManualExecutor(Executor):
    """Runs submitted work in the test thread, immediately or when told to.

    With ``immediate=False`` jobs queue up so a test can settle them in any
    order with ``run(index)``.
    """

    def __init__(self, immediate: bool = True) -> None:
        self.immediate = immediate
        self.pending: List[tuple] = []
        self.is_shutdown = False

    def submit(self, fn, /, *args, **kwargs) -> Future:
        if self.is_shutdown:
            raise RuntimeError("cannot schedule new futures after shutdown")
        future: Future = Future()
        job = (future, fn, args, kwargs)
        if self.immediate:
            self._execute(job)
        else:
            self.pending.append(job)
        return future

    def run(self, index: int = 0) -> None:
        self._execute(self.pending.pop(index))

    def run_all(self) -> None:
        while self.pending:
            self.run()

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        self.is_shutdown = True

    @staticmethod
    def _execute(job: tuple) -> None:
        future, fn, args, kwargs = job
        try:
            result = fn(*args, **kwargs)
        except Exception as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)


class FakeHost(Host):
    def __init__(self) -> None:
        self.tray: List[int] = []
        self.heights: List[int] = []
        self.dock: List[bool] = []
        self.quit_calls = 0
        self.fail_resize = False
        self.fail_tray = False

    def update_tray(self, percentage: int) -> None:
        if self.fail_tray:
            raise RuntimeError("tray unavailable")
        self.tray.append(percentage)

    def resize_window(self, height: int) -> None:
        if self.fail_resize:
            raise RuntimeError("no window")
        self.heights.append(height)

    def set_dock_visibility(self, visible: bool) -> None:
        self.dock.append(visible)

    def quit(self) -> None:
        self.quit_calls += 1


class FakeClient(ProviderClient):
    def __init__(self) -> None:
        self.quota: object = ClaudeQuotaSnapshot(connected=True)
        self.info: object = CodexAccountSnapshot(connected=True, plan_type="plus")
        self.stats: object = CodexStatsSnapshot(total_sessions=3, today_sessions=1)
        self.limits: object = CodexRateLimitSnapshot(connected=True)
        self.calls = {"quota": 0, "info": 0, "stats": 0, "limits": 0}
        self.dashboard_error: Optional[Exception] = None
        self.opened: List[str] = []

    @staticmethod
    def _resolve(value):
        if isinstance(value, Exception):
            raise value
        return value

    def get_quota(self):
        self.calls["quota"] += 1
        return self._resolve(self.quota)

    def get_codex_info(self):
        self.calls["info"] += 1
        return self._resolve(self.info)

    def get_codex_stats(self):
        self.calls["stats"] += 1
        return self._resolve(self.stats)

    def get_codex_rate_limits(self):
        self.calls["limits"] += 1
        return self._resolve(self.limits)

    def open_claude_dashboard(self) -> None:
        if self.dashboard_error:
            raise self.dashboard_error
        self.opened.append("claude")

    def open_codex_dashboard(self) -> None:
        if self.dashboard_error:
            raise self.dashboard_error
        self.opened.append("codex")


@pytest.fixture
def timers() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture
def executor() -> ManualExecutor:
    return ManualExecutor()


@pytest.fixture
def deferred() -> ManualExecutor:
    return ManualExecutor(immediate=False)


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def store(tmp_path) -> PreferenceStore:
    return PreferenceStore(tmp_path / "preferences.json")
