from __future__ import annotations

from typing import Any, Callable, List, Optional

from .host import Host, TimerFactory, TimerLike
from .utils import clamp, logger

CONTENT_PADDING = 24
MIN_HEIGHT = 300
MAX_HEIGHT = 600
SETTLE_DELAYS = (0.05, 0.3)


def target_height(content_height: float) -> int:
    return int(clamp(content_height + CONTENT_PADDING, MIN_HEIGHT, MAX_HEIGHT))


class ViewportSizer:
    """Keeps the host window sized to the rendered panel.

    ``watch`` is called with the values the layout depends on (active tab,
    Claude snapshot, Codex connection flag); a change drops the previous
    checks and arms two one-shot checks to catch late layout. ``on_layout``
    is the continuous observer hook the panel calls after each layout pass.
    """

    def __init__(
        self,
        measure: Callable[[], Optional[float]],
        host: Host,
        timer_factory: TimerFactory,
    ):
        self._measure = measure
        self._host = host
        self._timer_factory = timer_factory
        self._timers: List[TimerLike] = []
        self._deps: Optional[tuple] = None
        self.observing = False
        self.last_height: Optional[int] = None

    def watch(self, *deps: Any) -> None:
        if self.observing and deps == self._deps:
            return
        self.release()
        self._deps = deps
        self.observing = True
        for delay in SETTLE_DELAYS:
            timer = self._timer_factory(self._settle_check, delay)
            self._timers.append(timer)
            timer.start()

    def on_layout(self) -> None:
        if self.observing:
            self.update_height()

    def release(self) -> None:
        for timer in self._timers:
            timer.stop()
        self._timers = []
        self.observing = False

    def update_height(self) -> Optional[int]:
        try:
            content = self._measure()
        except Exception as exc:
            logger.debug("panel measurement failed: %s", exc)
            return None
        if content is None:
            return None
        height = target_height(content)
        try:
            self._host.resize_window(height)
        except Exception as exc:
            logger.error("Failed to resize window: %s", exc)
            return None
        self.last_height = height
        return height

    def _settle_check(self, timer: TimerLike) -> None:
        timer.stop()
        if timer in self._timers:
            self._timers.remove(timer)
        self.update_height()


__all__ = ["ViewportSizer", "target_height"]
