from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Protocol


class TimerLike(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...


# Same shape as ``rumps.Timer(callback, interval)``; the callback receives the timer.
TimerFactory = Callable[[Callable[[Any], None], float], TimerLike]

# Hands a callback to the UI run loop (``AppHelper.callAfter`` in the app).
MainThreadPost = Callable[[Callable[[], None]], None]


def call_inline(callback: Callable[[], None]) -> None:
    callback()


class Host(ABC):
    """Native side of the panel: tray title, window, dock and process."""

    @abstractmethod
    def update_tray(self, percentage: int) -> None: ...

    @abstractmethod
    def resize_window(self, height: int) -> None: ...

    @abstractmethod
    def set_dock_visibility(self, visible: bool) -> None: ...

    @abstractmethod
    def quit(self) -> None: ...


__all__ = ["Host", "MainThreadPost", "TimerFactory", "TimerLike", "call_inline"]
