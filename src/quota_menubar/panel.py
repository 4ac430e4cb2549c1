from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

try:
    import AppKit
except ImportError:  # pragma: no cover - macOS only UI
    AppKit = None  # type: ignore

from .models import Theme
from .render import PanelLine

# (background, text, muted, good, warning, critical) as RGB triples.
THEME_PALETTES: Dict[Theme, Tuple[Tuple[int, int, int], ...]] = {
    Theme.LIGHT: ((250, 250, 250), (28, 28, 30), (120, 120, 128), (34, 197, 94), (245, 158, 11), (239, 68, 68)),
    Theme.DARK: ((28, 28, 30), (235, 235, 240), (150, 150, 160), (34, 197, 94), (245, 158, 11), (239, 68, 68)),
    Theme.CLAUDE: ((250, 246, 240), (61, 57, 41), (140, 128, 110), (34, 197, 94), (217, 119, 87), (239, 68, 68)),
    Theme.CLAUDE_DARK: ((38, 34, 30), (240, 232, 220), (170, 158, 140), (34, 197, 94), (217, 119, 87), (239, 68, 68)),
    Theme.MINIMAL: ((255, 255, 255), (0, 0, 0), (110, 110, 110), (60, 60, 60), (120, 120, 120), (0, 0, 0)),
    Theme.MINIMAL_DARK: ((0, 0, 0), (255, 255, 255), (150, 150, 150), (200, 200, 200), (160, 160, 160), (255, 255, 255)),
    Theme.OCEAN: ((232, 244, 250), (12, 52, 75), (90, 130, 150), (20, 184, 166), (245, 158, 11), (239, 68, 68)),
}

STYLE_SLOTS = {"body": 1, "title": 1, "section": 2, "muted": 2, "good": 3, "warning": 4, "critical": 5, "error": 5, "toast": 4}
BOLD_STYLES = {"title", "section", "error", "toast"}


def _make_rect(frame: Sequence[float]) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    x, y, w, h = frame
    return ((float(x), float(y)), (float(w), float(h)))


def _color(rgb: Tuple[int, int, int]):
    r, g, b = rgb
    return AppKit.NSColor.colorWithCalibratedRed_green_blue_alpha_(r / 255.0, g / 255.0, b / 255.0, 1.0)


class PanelWindowController:  # pragma: no cover - UI heavy
    """Floating panel that shows the rendered rows and reports its height."""

    def __init__(self, width: int, on_layout: Optional[Callable[[], None]] = None):
        if AppKit is None:
            raise RuntimeError("Panel UI requires macOS AppKit")
        self.width = width
        self.on_layout = on_layout
        self.window = None
        self.text_view = None
        self._theme = Theme.LIGHT
        self._build_window()

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------
    def _build_window(self) -> None:
        frame = (0.0, 0.0, float(self.width), 300.0)
        style = (
            getattr(AppKit, "NSWindowStyleMaskTitled", AppKit.NSTitledWindowMask)
            | getattr(AppKit, "NSWindowStyleMaskClosable", AppKit.NSClosableWindowMask)
        )
        window = AppKit.NSPanel.alloc().initWithContentRect_styleMask_backing_defer_(
            _make_rect(frame),
            style,
            AppKit.NSBackingStoreBuffered,
            False,
        )
        window.setTitle_("Quota Menubar")
        window.setFloatingPanel_(True)
        window.setHidesOnDeactivate_(True)
        window.center()

        text_view = AppKit.NSTextView.alloc().initWithFrame_(_make_rect(frame))
        text_view.setEditable_(False)
        text_view.setSelectable_(False)
        text_view.setRichText_(True)
        text_view.setTextContainerInset_((12.0, 12.0))
        text_view.setAutoresizingMask_(AppKit.NSViewWidthSizable | AppKit.NSViewHeightSizable)
        window.setContentView_(text_view)

        self.window = window
        self.text_view = text_view

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def render(self, lines: List[PanelLine], theme: Theme) -> None:
        if self.text_view is None:
            return
        self._theme = theme
        palette = THEME_PALETTES[theme]
        font = AppKit.NSFont.monospacedSystemFontOfSize_weight_(12.0, 0.0)
        bold = AppKit.NSFont.monospacedSystemFontOfSize_weight_(12.0, 0.4)
        attributed = AppKit.NSMutableAttributedString.alloc().initWithString_("")
        for line in lines:
            attrs = {
                AppKit.NSFontAttributeName: bold if line.style in BOLD_STYLES else font,
                AppKit.NSForegroundColorAttributeName: _color(palette[STYLE_SLOTS.get(line.style, 1)]),
            }
            fragment = AppKit.NSAttributedString.alloc().initWithString_attributes_(
                line.text + "\n",
                attrs,
            )
            attributed.appendAttributedString_(fragment)
        self.text_view.setBackgroundColor_(_color(palette[0]))
        self.text_view.textStorage().setAttributedString_(attributed)
        if self.on_layout is not None:
            self.on_layout()

    def content_height(self) -> Optional[float]:
        if self.text_view is None:
            return None
        manager = self.text_view.layoutManager()
        container = self.text_view.textContainer()
        manager.ensureLayoutForTextContainer_(container)
        used = manager.usedRectForTextContainer_(container)
        inset = self.text_view.textContainerInset()
        return float(used.size.height) + 2 * float(inset.height)

    def set_height(self, height: int) -> None:
        if self.window is None:
            return
        self.window.setContentSize_((float(self.width), float(height)))

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def toggle(self) -> None:
        if self.window is None:
            return
        if self.window.isVisible():
            self.window.orderOut_(None)
            return
        self.window.makeKeyAndOrderFront_(None)
        AppKit.NSApp.activateIgnoringOtherApps_(True)


__all__ = ["PanelWindowController", "THEME_PALETTES"]
