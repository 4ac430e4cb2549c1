"""Per-provider pollers.

Each unit owns its latest snapshots plus loading/error flags and notifies a
single ``on_change`` callback after every mutation. Timers come from the
injected factory (``rumps.Timer`` in the app). Provider queries run on the
injected executor; their results are handed back through ``post`` so state is
only ever written on the UI run loop.

Every fetch takes a request id. A result that settles after a newer fetch was
started is dropped, so the last request issued is the one that lands.
"""
from __future__ import annotations

import time
from concurrent.futures import Executor, Future
from enum import Enum
from functools import partial
from typing import Callable, List, Optional

from .host import MainThreadPost, TimerFactory, TimerLike, call_inline
from .models import (
    ClaudeQuotaSnapshot,
    CodexAccountSnapshot,
    CodexRateLimitSnapshot,
    CodexStatsSnapshot,
)
from .providers import ProviderClient
from .utils import logger

CLAUDE_REFRESH_INTERVAL = 60.0
CODEX_REFRESH_INTERVAL = 15 * 60.0
UNKNOWN_ERROR = "Unknown error"
CODEX_FETCH_FAILED = "Failed to fetch Codex data"


class SyncPhase(str, Enum):
    DORMANT = "dormant"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


def _error_message(exc: BaseException, fallback: str) -> str:
    return str(exc) or fallback


def _submit(executor: Executor, query: Callable[[], object]) -> Future:
    try:
        return executor.submit(query)
    except RuntimeError as exc:
        # Executor already shut down; report it like any other failed query.
        failed: Future = Future()
        failed.set_exception(exc)
        return failed


def derive_used_percent(limits: Optional[CodexRateLimitSnapshot]) -> Optional[float]:
    """Headline Codex usage: the longer (secondary) window wins over primary."""

    if limits is None:
        return None
    if limits.secondary is not None and limits.secondary.used_percent is not None:
        return limits.secondary.used_percent
    if limits.primary is not None and limits.primary.used_percent is not None:
        return limits.primary.used_percent
    return None


class ClaudeSyncUnit:
    def __init__(
        self,
        client: ProviderClient,
        timer_factory: TimerFactory,
        executor: Executor,
        post: MainThreadPost = call_inline,
        interval: float = CLAUDE_REFRESH_INTERVAL,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self._client = client
        self._timer_factory = timer_factory
        self._executor = executor
        self._post = post
        self.interval = interval
        self.on_change = on_change

        self.data: Optional[ClaudeQuotaSnapshot] = None
        self.loading = False
        self.error: Optional[str] = None
        self.loaded = False
        self._timer: Optional[TimerLike] = None
        self._request_id = 0
        self._started_at = 0.0

    @property
    def active(self) -> bool:
        return self._timer is not None

    @property
    def phase(self) -> SyncPhase:
        if self.loading:
            return SyncPhase.LOADING
        if self.error:
            return SyncPhase.ERROR
        if self.loaded:
            return SyncPhase.LOADED
        return SyncPhase.DORMANT

    def fetch(self) -> None:
        self._request_id += 1
        request_id = self._request_id
        self.loading = True
        self.error = None
        self._started_at = time.monotonic()
        self._notify()
        future = _submit(self._executor, self._client.get_quota)
        future.add_done_callback(
            lambda done: self._post(partial(self._complete, request_id, done))
        )

    def _complete(self, request_id: int, future: Future) -> None:
        if request_id != self._request_id:
            logger.debug("dropping stale claude result #%d", request_id)
            return
        try:
            data = future.result()
            if data.error:
                self.error = data.error
                self.data = None
            else:
                self.data = data
            self.loaded = True
        except Exception as exc:
            logger.warning("claude quota fetch failed: %s", exc)
            self.error = _error_message(exc, UNKNOWN_ERROR)
        finally:
            self.loading = False
            logger.debug("claude fetch finished in %.2fs", time.monotonic() - self._started_at)
            self._notify()

    def activate(self) -> None:
        """Tab became visible: lazy first fetch, then the recurring timer."""

        if not self.loaded and not self.loading:
            self.fetch()
        if self._timer is None:
            self._timer = self._timer_factory(self._tick, self.interval)
            self._timer.start()

    def deactivate(self) -> None:
        # An in-flight query is left to finish and still lands.
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

    def _tick(self, _sender) -> None:
        self.fetch()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()


class CodexSyncUnit:
    def __init__(
        self,
        client: ProviderClient,
        timer_factory: TimerFactory,
        executor: Executor,
        post: MainThreadPost = call_inline,
        interval: float = CODEX_REFRESH_INTERVAL,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self._client = client
        self._timer_factory = timer_factory
        self._executor = executor
        self._post = post
        self.interval = interval
        self.on_change = on_change

        self.account: Optional[CodexAccountSnapshot] = None
        self.stats: Optional[CodexStatsSnapshot] = None
        self.limits: Optional[CodexRateLimitSnapshot] = None
        self.loading = True
        self.error: Optional[str] = None
        self.connected = False
        self.used_percent: Optional[float] = None
        self.fetch_count = 0
        self.closed = False
        self._refresh_nonce = 0
        self._request_id = 0
        self._started_at = 0.0
        self._timer: Optional[TimerLike] = None

    @property
    def mounted(self) -> bool:
        return self._timer is not None

    @property
    def plan_type(self) -> Optional[str]:
        if self.limits is not None and self.limits.plan_type:
            return self.limits.plan_type
        if self.account is not None:
            return self.account.plan_type
        return None

    def mount(self) -> None:
        if self._timer is not None or self.closed:
            return
        self.fetch()
        self._timer = self._timer_factory(self._tick, self.interval)
        self._timer.start()

    def unmount(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

    def close(self) -> None:
        """Stop polling for good; ``mount()`` is a no-op afterwards."""

        self.unmount()
        self.closed = True

    def request_refresh(self, nonce: int) -> None:
        """Manual trigger: any new counter value above zero forces a fetch."""

        if nonce <= 0 or nonce == self._refresh_nonce:
            return
        self._refresh_nonce = nonce
        self.fetch()

    def fetch(self) -> None:
        self.fetch_count += 1
        self._request_id += 1
        request_id = self._request_id
        self.loading = True
        self.error = None
        self._started_at = time.monotonic()
        self._notify()

        futures = [
            _submit(self._executor, query)
            for query in (
                self._client.get_codex_info,
                self._client.get_codex_stats,
                self._client.get_codex_rate_limits,
            )
        ]
        pending = set(futures)

        def settled(done: Future) -> None:
            pending.discard(done)
            if not pending:
                self._complete(request_id, futures)

        for future in futures:
            future.add_done_callback(lambda done: self._post(partial(settled, done)))

    def _complete(self, request_id: int, futures: List[Future]) -> None:
        if request_id != self._request_id:
            logger.debug("dropping stale codex result #%d", request_id)
            return
        try:
            # Every query has settled here; the first failure sinks the attempt.
            for future in futures:
                failure = future.exception()
                if failure is not None:
                    raise failure
            info, stats, limits = (future.result() for future in futures)

            self.account = info
            self.stats = stats
            self.limits = limits
            if limits.error:
                self.error = limits.error
            elif info.error:
                self.error = info.error
            self.connected = bool(limits.connected or info.connected)
            self.used_percent = derive_used_percent(limits)
        except Exception as exc:
            logger.warning("codex fetch failed: %s", exc)
            self.error = _error_message(exc, CODEX_FETCH_FAILED)
            self.connected = False
            self.used_percent = None
        finally:
            self.loading = False
            logger.debug("codex fetch finished in %.2fs", time.monotonic() - self._started_at)
            self._notify()

    def _tick(self, _sender) -> None:
        self.fetch()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()


__all__ = [
    "CLAUDE_REFRESH_INTERVAL",
    "CODEX_REFRESH_INTERVAL",
    "ClaudeSyncUnit",
    "CodexSyncUnit",
    "SyncPhase",
    "derive_used_percent",
]
