"""Top-level panel state: active tab, preferences and the two pollers.

Claude only polls while its tab is selected; Codex polls from ``start()``
until ``stop()`` regardless of tab. The tray indicator and viewport sizer are
recomputed from the controller's state after every change.
"""
from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, List, Optional

from .config import MenubarConfig
from .host import Host, MainThreadPost, TimerFactory, TimerLike, call_inline
from .models import Tab, Theme
from .preferences import (
    PreferenceStore,
    load_ui_preferences,
    save_active_tab,
    save_dock_hidden,
    save_theme,
)
from .providers import ProviderClient
from .render import PanelLine, render_panel
from .sync import ClaudeSyncUnit, CodexSyncUnit
from .tray import TrayIndicator
from .utils import logger
from .viewport import ViewportSizer

TOAST_SECONDS = 2.0
DASHBOARD_FAILED = "Failed to open dashboard"


class PanelController:
    def __init__(
        self,
        client: ProviderClient,
        host: Host,
        store: PreferenceStore,
        timer_factory: TimerFactory,
        config: Optional[MenubarConfig] = None,
        measure: Optional[Callable[[], Optional[float]]] = None,
        executor: Optional[Executor] = None,
        post: MainThreadPost = call_inline,
    ):
        self.config = config or MenubarConfig()
        self.client = client
        self.host = host
        self.store = store
        self._timer_factory = timer_factory
        self._listeners: List[Callable[[], None]] = []
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="quota-fetch")

        prefs = load_ui_preferences(store)
        self.active_tab: Tab = prefs.active_tab
        self.theme: Theme = prefs.theme
        self.dock_hidden: bool = prefs.dock_hidden
        self.toast: Optional[str] = None
        self._toast_timer: Optional[TimerLike] = None
        self.refresh_nonce = 0
        self.started = False
        self.closed = False

        self.claude = ClaudeSyncUnit(
            client,
            timer_factory,
            self._executor,
            post,
            interval=self.config.claude_refresh_interval,
            on_change=self._state_changed,
        )
        self.codex = CodexSyncUnit(
            client,
            timer_factory,
            self._executor,
            post,
            interval=self.config.codex_refresh_interval,
            on_change=self._state_changed,
        )
        self.tray = TrayIndicator(host)
        self.viewport = ViewportSizer(measure or (lambda: None), host, timer_factory)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self.started or self.closed:
            return
        self.started = True
        if self.dock_hidden:
            self._set_dock_visibility(False)
        self.codex.mount()
        if self.active_tab == Tab.CLAUDE:
            self.claude.activate()
        self._state_changed()

    def stop(self) -> None:
        """Tear down timers and workers. A stopped controller cannot be restarted."""

        self.claude.deactivate()
        self.codex.close()
        self.viewport.release()
        self._clear_toast_timer()
        self.started = False
        self.closed = True
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def subscribe(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------
    def switch_tab(self, tab: Tab) -> None:
        tab = Tab(tab)
        if tab == self.active_tab:
            return
        self.active_tab = tab
        save_active_tab(self.store, tab)
        if tab == Tab.CLAUDE:
            self.claude.activate()
        else:
            self.claude.deactivate()
        self._state_changed()

    def set_theme(self, theme: Theme) -> None:
        self.theme = Theme(theme)
        save_theme(self.store, self.theme)
        self._state_changed()

    def toggle_dock(self) -> None:
        self.dock_hidden = not self.dock_hidden
        self._set_dock_visibility(not self.dock_hidden)
        save_dock_hidden(self.store, self.dock_hidden)
        self._state_changed()

    def refresh(self) -> None:
        if self.active_tab == Tab.CLAUDE:
            self.claude.fetch()
        else:
            self.refresh_nonce += 1
            self.codex.request_refresh(self.refresh_nonce)

    def open_dashboard(self) -> None:
        try:
            if self.active_tab == Tab.CLAUDE:
                self.client.open_claude_dashboard()
            else:
                self.client.open_codex_dashboard()
        except Exception as exc:
            logger.warning("dashboard open failed: %s", exc)
            self.show_toast(str(exc) or DASHBOARD_FAILED)

    def quit(self) -> None:
        try:
            self.host.quit()
        except Exception as exc:
            logger.error("Failed to quit: %s", exc)

    def show_toast(self, message: str) -> None:
        self._clear_toast_timer()
        self.toast = message
        self._toast_timer = self._timer_factory(self._dismiss_toast, TOAST_SECONDS)
        self._toast_timer.start()
        self._notify()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------
    @property
    def loading(self) -> bool:
        if self.active_tab == Tab.CLAUDE:
            return self.claude.loading
        return self.codex.loading

    def render(self) -> List[PanelLine]:
        return render_panel(self.active_tab, self.claude, self.codex, self.toast)

    def _state_changed(self) -> None:
        if self.started:
            self.tray.update(self.active_tab, self.claude.data, self.codex.used_percent)
            self.viewport.watch(self.active_tab, self.claude.data, self.codex.connected)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("panel listener failed")

    def _set_dock_visibility(self, visible: bool) -> None:
        try:
            self.host.set_dock_visibility(visible)
        except Exception as exc:
            logger.error("Failed to set dock visibility: %s", exc)

    def _dismiss_toast(self, timer: TimerLike) -> None:
        timer.stop()
        self._toast_timer = None
        self.toast = None
        self._notify()

    def _clear_toast_timer(self) -> None:
        if self._toast_timer is not None:
            self._toast_timer.stop()
            self._toast_timer = None


__all__ = ["PanelController"]
