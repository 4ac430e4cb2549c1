from __future__ import annotations

from typing import Dict, Optional

import rumps
from PyObjCTools import AppHelper

try:
    import AppKit
except ImportError:  # pragma: no cover - macOS only integration
    AppKit = None

if __package__ in (None, ""):
    # Handle execution as a top-level script inside the py2app bundle.
    from quota_menubar.config import MenubarConfig, load_config
    from quota_menubar.controller import PanelController
    from quota_menubar.host import Host
    from quota_menubar.models import THEME_LABELS, Tab, Theme
    from quota_menubar.panel import PanelWindowController
    from quota_menubar.preferences import PreferenceStore
    from quota_menubar.providers import DefaultProviderClient
    from quota_menubar.tray import tray_title
    from quota_menubar.utils import logger
else:
    from .config import MenubarConfig, load_config
    from .controller import PanelController
    from .host import Host
    from .models import THEME_LABELS, Tab, Theme
    from .panel import PanelWindowController
    from .preferences import PreferenceStore
    from .providers import DefaultProviderClient
    from .tray import tray_title
    from .utils import logger


class QuotaMenubarApp(rumps.App, Host):  # pragma: no cover - UI heavy
    def __init__(self, config: Optional[MenubarConfig] = None):
        self.config = config or load_config()
        super().__init__("", title=tray_title(0), quit_button=None)

        self.panel: Optional[PanelWindowController] = None
        try:
            self.panel = PanelWindowController(self.config.panel_width, on_layout=self._on_panel_layout)
        except RuntimeError as exc:
            logger.info("panel window unavailable: %s", exc)

        self.controller = PanelController(
            DefaultProviderClient(self.config),
            host=self,
            store=PreferenceStore(),
            timer_factory=rumps.Timer,
            config=self.config,
            measure=self.panel.content_height if self.panel else None,
            post=AppHelper.callAfter,
        )

        self.claude_item = rumps.MenuItem("Claude", callback=self._on_tab_clicked)
        self.codex_item = rumps.MenuItem("Codex", callback=self._on_tab_clicked)
        self.theme_item = rumps.MenuItem("Theme")
        self.theme_items: Dict[Theme, rumps.MenuItem] = {}
        for theme in Theme:
            item = rumps.MenuItem(THEME_LABELS[theme], callback=self._on_theme_clicked)
            item._theme = theme  # type: ignore[attr-defined]
            self.theme_items[theme] = item
            self.theme_item.add(item)
        self.dock_item = rumps.MenuItem("Hide Dock", callback=self._on_dock_clicked)
        self.panel_item = rumps.MenuItem("Show Panel", callback=self._on_panel_clicked)
        self.refresh_item = rumps.MenuItem("Refresh", callback=self._on_refresh_clicked)
        self.dashboard_item = rumps.MenuItem("Dashboard", callback=self._on_dashboard_clicked)
        self.quit_item = rumps.MenuItem("Quit", callback=self._on_quit_clicked)

        self.menu = [
            self.claude_item,
            self.codex_item,
            rumps.separator,
            self.panel_item,
            self.theme_item,
            self.dock_item,
            rumps.separator,
            self.refresh_item,
            self.dashboard_item,
            self.quit_item,
        ]

        self.controller.subscribe(self._render)
        self._start_timer = rumps.Timer(self._initial_start, 0.1)
        self._start_timer.start()

    # ------------------------------------------------------------------
    # Host boundary
    # ------------------------------------------------------------------
    def update_tray(self, percentage: int) -> None:
        self.title = tray_title(percentage)

    def resize_window(self, height: int) -> None:
        if self.panel is not None:
            self.panel.set_height(height)

    def set_dock_visibility(self, visible: bool) -> None:
        if AppKit is None:
            raise RuntimeError("Dock visibility requires macOS AppKit")
        policy = (
            AppKit.NSApplicationActivationPolicyRegular
            if visible
            else AppKit.NSApplicationActivationPolicyAccessory
        )
        AppKit.NSApplication.sharedApplication().setActivationPolicy_(policy)

    def quit(self) -> None:
        self.controller.stop()
        rumps.quit_application()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def _initial_start(self, timer: rumps.Timer) -> None:
        timer.stop()
        self.controller.start()

    def _render(self) -> None:
        controller = self.controller
        claude_connected = bool(controller.claude.data and controller.claude.data.connected)
        self.claude_item.state = controller.active_tab == Tab.CLAUDE
        self.codex_item.state = controller.active_tab == Tab.CODEX
        self.claude_item.title = f"{'●' if claude_connected else '○'} Claude"
        self.codex_item.title = f"{'●' if controller.codex.connected else '○'} Codex"
        for theme, item in self.theme_items.items():
            item.state = theme == controller.theme
        self.dock_item.state = controller.dock_hidden
        self.refresh_item.title = "Loading…" if controller.loading else "Refresh"
        if self.panel is not None:
            self.panel.render(controller.render(), controller.theme)

    def _on_panel_layout(self) -> None:
        self.controller.viewport.on_layout()

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------
    def _on_tab_clicked(self, sender: rumps.MenuItem) -> None:
        self.controller.switch_tab(Tab.CLAUDE if sender is self.claude_item else Tab.CODEX)

    def _on_theme_clicked(self, sender: rumps.MenuItem) -> None:
        self.controller.set_theme(getattr(sender, "_theme", Theme.LIGHT))

    def _on_dock_clicked(self, _sender) -> None:
        self.controller.toggle_dock()

    def _on_panel_clicked(self, _sender) -> None:
        if self.panel is not None:
            self.panel.toggle()

    def _on_refresh_clicked(self, _sender) -> None:
        if self.controller.loading:
            return
        self.controller.refresh()

    def _on_dashboard_clicked(self, _sender) -> None:
        self.controller.open_dashboard()
        if self.controller.toast:
            rumps.notification("Quota Menubar", "", self.controller.toast)

    def _on_quit_clicked(self, _sender) -> None:
        self.controller.quit()


def main() -> None:
    if AppKit is not None:
        # Dock starts visible; a saved "Hide Dock" preference is applied on start.
        ns_app = AppKit.NSApplication.sharedApplication()
        ns_app.setActivationPolicy_(AppKit.NSApplicationActivationPolicyRegular)
    app = QuotaMenubarApp()
    app.run()


if __name__ == "__main__":
    main()


__all__ = ["main", "QuotaMenubarApp"]
