"""Window stacking, focus and composition onto a display."""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from bafios.framebuffer import DisplayServer

WINDOW_SLOTS = 16
KEYBOARD_BUFFER_SIZE = 64
NULL_Z = 255
WALLPAPER_Z = 254


class WindowType(Enum):
    """What a window slot holds."""

    WALLPAPER = "wallpaper"
    BAR = "bar"
    POPUP = "popup"
    WINDOW = "window"
    NULL = "null"


@dataclass(eq=False)
class Window:
    """A rectangle on screen with its own pixel buffer and event handlers."""

    wid: int = 0
    x: int = 0
    y: int = 0
    z: int = 0
    width: int = 0
    height: int = 0
    draw: Callable | None = None
    mouse: Callable | None = None
    keyboard: bytearray | None = None
    resize: Callable | None = None
    movable: bool = False
    buffer: bytearray = field(default_factory=bytearray)
    wtype: WindowType = WindowType.WINDOW

    @property
    def is_null(self) -> bool:
        return self.wtype is WindowType.NULL


def _null_window() -> Window:
    return Window(z=NULL_Z, wtype=WindowType.NULL)


def add_delta(n: int, m: int) -> int:
    """Move ``n`` by ``m``, stopping at zero."""
    total = n + m
    return 0 if total < 0 else total & 0xFFFF


class Composer:
    """A fixed set of window slots kept sorted by depth, front first.

    The composer also holds the state of a window drag or resize in
    progress, which adding a window cancels.
    """

    def __init__(self, display: DisplayServer, rng: random.Random | None = None,
                 slots: int = WINDOW_SLOTS) -> None:
        if slots <= 0:
            raise ValueError("a composer needs at least one window slot")
        self.display = display
        self.rng = rng if rng is not None else random.Random()
        self.windows: list[Window] = [_null_window() for _ in range(slots)]
        self.dragging: int | None = None
        self.resizing: int | None = None
        self.resize_width = 0
        self.resize_height = 0

    def reset_drag(self) -> None:
        """Forget any drag or resize in progress."""
        self.dragging = None
        self.resizing = None
        self.resize_width = 0
        self.resize_height = 0

    def _sort(self) -> None:
        self.windows.sort(key=lambda w: w.z)

    def _bytes_per_pixel(self) -> int:
        return max(self.display.depth // 8, 1)

    def new_buffer(self, width: int, height: int) -> bytearray:
        """Allocate a pixel buffer for a window of the given size."""
        return bytearray(width * height * self._bytes_per_pixel())

    def check_id(self, rng: random.Random) -> int:
        """Draw identifiers from ``rng`` until one no slot uses."""
        used = {w.wid for w in self.windows}
        while True:
            wid = rng.randrange(0, 65545) & 0xFFFF
            if wid not in used:
                return wid

    def add_window(self, window: Window) -> tuple[int, bytearray]:
        """Place ``window`` in front of the others; return its id and buffer.

        Raises RuntimeError when every slot is taken.
        """
        free = next((i for i, w in enumerate(self.windows) if w.is_null), None)
        if free is None:
            raise RuntimeError("no free window slot")

        if window.wtype is WindowType.WALLPAPER:
            window.z = WALLPAPER_Z
        elif window.wtype in (WindowType.BAR, WindowType.POPUP):
            window.z = 0

        window.buffer = self.new_buffer(window.width, window.height)
        window.wid = self.check_id(self.rng)
        self.windows[free] = window

        for other in self.windows:
            if other.wid != window.wid:
                other.z = (other.z + 1) & 0xFFFF

        self._sort()
        self.reset_drag()
        return window.wid, window.buffer

    def redraw_all(self) -> None:
        """Compose every window back to front and show the result."""
        for window in reversed(self.windows):
            if not window.is_null:
                self.display.copy_to_db(
                    window.width, window.height, window.buffer, window.x, window.y
                )
        self.display.copy()

    def remove_window(self, wid: int) -> None:
        """Free the slots of window ``wid`` and redraw the screen."""
        for window in self.windows:
            if window.wid == wid:
                window.buffer = bytearray()
                window.wtype = WindowType.NULL
                window.z = NULL_Z
        self._sort()
        self.redraw_all()

    def find_window(self, x: int, y: int) -> Window | None:
        """Return the frontmost window containing the point, edges included."""
        for window in self.windows:
            if (
                not window.is_null
                and window.x <= x <= window.x + window.width
                and window.y <= y <= window.y + window.height
            ):
                return window
        return None

    def find_window_id(self, wid: int) -> Window | None:
        for window in self.windows:
            if window.wid == wid and not window.is_null:
                return window
        return None

    def copy_window(self, wid: int) -> None:
        """Compose window ``wid`` into the back buffer."""
        for window in self.windows:
            if window.wid == wid and not window.is_null:
                self.display.copy_to_db(
                    window.width, window.height, window.buffer, window.x, window.y
                )

    def copy_window_fb(self, wid: int) -> None:
        """Blend window ``wid`` straight onto the screen."""
        for window in self.windows:
            if window.wid == wid and not window.is_null:
                self.display.copy_to_fb_a(
                    window.width, window.height, window.buffer, window.x, window.y
                )

    def write_kb(self, char: str) -> None:
        """Append ``char`` to the keyboard buffer of the focused window."""
        for window in self.windows:
            if (
                window.z == 0
                and window.wtype not in (WindowType.BAR, WindowType.WALLPAPER, WindowType.NULL)
                and window.keyboard is not None
            ):
                limit = min(KEYBOARD_BUFFER_SIZE, len(window.keyboard))
                for index in range(limit):
                    if window.keyboard[index] == 0:
                        window.keyboard[index] = ord(char) & 0xFF
                        break