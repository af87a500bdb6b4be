"""Mouse pointer handling: movement, focus, window dragging and resizing."""

from __future__ import annotations

from collections.abc import Callable

from bafios.color import Color
from bafios.composer import Composer, WindowType, add_delta
from bafios.framebuffer import CURSOR_HEIGHT, CURSOR_WIDTH

TITLE_BAR_HEIGHT = 25
RESIZE_HANDLE = 8
OUTLINE_COLOR = Color.rgb(245, 245, 247)


def _signed_byte(value: int) -> int:
    value &= 0xFF
    return value - 0x100 if value & 0x80 else value


class Mouse:
    """The pointer state driven by three-byte PS/2 packets.

    Handler calls that a click produces are queued in :attr:`tasks` as
    ``(handler, args)`` pairs for the caller to run.
    """

    def __init__(self, composer: Composer, x: int = 0, y: int = 0) -> None:
        self.composer = composer
        self.x = x
        self.y = y
        self.left = False
        self.center = False
        self.right = False
        self.last_input = 0
        self.drags = 0
        self.drag = False
        self.tasks: list[tuple[Callable, tuple]] = []

    @property
    def display(self):
        return self.composer.display

    def cursor(self, packet: bytes | tuple[int, int, int]) -> None:
        """Apply one movement packet: move, redraw and act on the buttons."""
        if len(packet) != 3:
            raise ValueError(f"a mouse packet has 3 bytes, got {len(packet)}")
        status, raw_x, raw_y = packet
        composer = self.composer
        display = self.display

        display.copy_to_fb(self.x, self.y, CURSOR_WIDTH, CURSOR_HEIGHT)

        x_vec = _signed_byte(raw_x)
        y_vec = _signed_byte(raw_y)
        self.x = self.clamp_mx(x_vec)
        self.y = self.clamp_my(-y_vec)

        self.left = bool(status & 0b001)
        self.right = bool(status & 0b010)
        self.center = bool(status & 0b100)
        self.last_input = status
        display.draw_mouse(self.x, self.y)

        if status & 0b001:
            self.drags = (self.drags + 1) & 0xFF
            if self.drags > 1:
                self.drag = True
        else:
            self._release()
            return

        if self.left:
            self._press(x_vec, y_vec)

    def _release(self) -> None:
        composer = self.composer
        self.drags = 0
        self.drag = False
        if composer.resizing is not None:
            window = composer.find_window_id(composer.resizing)
            if window is None:
                composer.reset_drag()
                return
            window.width = composer.resize_width
            window.height = composer.resize_height
            window.buffer = composer.new_buffer(window.width, window.height)
            composer.reset_drag()
            if window.resize is not None:
                self.tasks.append(
                    (window.resize, (window.wid, window.width, window.height, window.buffer))
                )
        elif composer.dragging is not None:
            composer.reset_drag()
            composer.redraw_all()

    def _press(self, x_vec: int, y_vec: int) -> None:
        composer = self.composer
        display = self.display
        target = composer.find_window(self.x, self.y)

        if composer.resizing is not None:
            window = composer.find_window_id(composer.resizing)
            if window is None:
                return
            final_width = abs(composer.resize_width + x_vec)
            final_height = abs(composer.resize_height - y_vec)
            if composer.resize_width <= final_width and composer.resize_height <= final_height:
                display.copy_to_fb(window.x, window.y, final_width, final_height)
            else:
                clear_width = final_width
                clear_height = final_height
                if composer.resize_width > final_width:
                    clear_width = composer.resize_width + 1
                if composer.resize_height > final_height:
                    clear_height = composer.resize_height + 1
                display.copy_to_fb(window.x, window.y, clear_width, clear_height)
            composer.resize_width = min(final_width, max(display.width - window.x, 0))
            composer.resize_height = min(final_height, max(display.height - window.y, 0))
            self.draw_square_outline(
                window.y, window.x, composer.resize_height, composer.resize_width,
                OUTLINE_COLOR,
            )
            return

        if composer.dragging is not None:
            window = composer.find_window_id(composer.dragging)
            if window is None:
                return
            old_x, old_y = window.x, window.y
            new_x = add_delta(old_x, x_vec)
            new_y = add_delta(old_y, -y_vec)
            updated_x = new_x if new_x + window.width <= display.width - 1 else old_x
            updated_y = new_y if new_y + window.height <= display.height + 24 else old_y
            display.copy_to_fb(
                *self.union_rect(old_x, old_y, window.width, window.height, updated_x, updated_y)
            )
            window.x, window.y = updated_x, updated_y
            composer.copy_window_fb(composer.dragging)
            return

        if target is None:
            return

        if target.wtype is WindowType.WINDOW and target.z != 0 and not self.drag:
            self._raise(target)
        elif target.movable and target.y <= self.y <= target.y + TITLE_BAR_HEIGHT:
            if self.drag:
                composer.reset_drag()
                composer.dragging = target.wid
            elif target.mouse is not None:
                self._click(target)
        elif target.movable and self.is_bottom_right(
            target.x, target.y, target.width, target.height, self.x, self.y
        ):
            if self.drag and composer.resizing is None:
                composer.resize_width = target.width
                composer.resize_height = target.height
                composer.resizing = target.wid
        elif target.mouse is not None and not self.drag:
            self._click(target)

    def _raise(self, target) -> None:
        composer = self.composer
        for window in composer.windows:
            if window.wid != target.wid:
                window.z = (window.z + 1) & 0xFFFF
            else:
                window.z = 0
        composer.windows.sort(key=lambda w: w.z)
        composer.copy_window(target.wid)
        self.display.copy_to_fb(target.x, target.y, target.width, target.height)

    def _click(self, target) -> None:
        self.tasks.append((target.mouse, (target.wid, self.x - target.x, self.y - target.y)))

    def union_rect(self, x: int, y: int, width: int, height: int,
                   x2: int, y2: int) -> tuple[int, int, int, int]:
        """Return the rectangle covering a box at (x, y) and the same box at (x2, y2)."""
        min_x = min(x, x2)
        max_x = max(x + width, x2 + width)
        min_y = min(y, y2)
        max_y = max(y + height, y2 + height)
        return min_x, min_y, max_x - min_x, max_y - min_y

    def is_bottom_right(self, w_x: int, w_y: int, w_width: int, w_height: int,
                        mouse_x: int, mouse_y: int) -> bool:
        """True when the pointer is on the resize handle of a window."""
        x_min = w_x + ((w_width - RESIZE_HANDLE) & 0xFFFF)
        x_max = w_x + w_width
        y_min = w_y + ((w_height - RESIZE_HANDLE) & 0xFFFF)
        y_max = w_y + w_height
        return x_min <= mouse_x <= x_max and y_min <= mouse_y <= y_max

    def clamp_mx(self, n: int) -> int:
        """Move the pointer horizontally by ``n``, kept on screen."""
        limit = self.display.width & 0xFFFF
        moved = self.x + n
        if moved >= limit - CURSOR_WIDTH:
            return (limit - CURSOR_WIDTH) & 0xFFFF
        if moved <= 0:
            return 0
        return moved

    def clamp_my(self, n: int) -> int:
        """Move the pointer vertically by ``n``, kept on screen."""
        limit = self.display.height & 0xFFFF
        moved = self.y + n
        if moved >= limit - CURSOR_HEIGHT:
            return (limit - CURSOR_HEIGHT) & 0xFFFF
        if moved <= 0:
            return 0
        return moved

    def draw_square_outline(self, x: int, y: int, width: int, height: int,
                            color: Color) -> None:
        """Draw a rectangle border; ``x`` is the first row and ``y`` the first column."""
        if width <= 0 or height <= 0:
            return
        max_x = x + width - 1
        max_y = y + height - 1
        for i in range(x, max_x + 1):
            self.display.write_pixel(i, y, color)
            self.display.write_pixel(i, max_y, color)
        for i in range(y, max_y + 1):
            self.display.write_pixel(x, i, color)
            self.display.write_pixel(max_x, i, color)