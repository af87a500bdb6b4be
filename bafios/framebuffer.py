"""A linear framebuffer with a back buffer, pixel writes and blits."""

from __future__ import annotations

import struct

from bafios.color import Color

_O = 0x0000_0000
_B = 0x0000_00FF
_T = 0xFFFF_FFFF

CURSOR_WIDTH = 8
CURSOR_HEIGHT = 12

MOUSE_CURSOR = (
    _B, _O, _O, _O, _O, _O, _O, _O,
    _B, _B, _O, _O, _O, _O, _O, _O,
    _B, _T, _B, _O, _O, _O, _O, _O,
    _B, _T, _T, _B, _O, _O, _O, _O,
    _B, _T, _T, _T, _B, _O, _O, _O,
    _B, _T, _T, _T, _T, _B, _O, _O,
    _B, _T, _T, _T, _T, _T, _B, _O,
    _B, _T, _T, _T, _T, _T, _T, _B,
    _B, _T, _T, _T, _B, _B, _B, _B,
    _B, _T, _B, _B, _T, _B, _O, _O,
    _B, _B, _O, _O, _B, _T, _B, _O,
    _B, _O, _O, _O, _O, _B, _B, _O,
)
"""Cursor bitmap as 0xRRGGBBAA words; zero is transparent."""


class DisplayServer:
    """A screen of ``width`` x ``height`` pixels of ``depth`` bits.

    ``framebuffer`` is what is shown; ``double_buffer`` is where windows are
    composed before being copied out.
    """

    def __init__(self, width: int, height: int, depth: int = 32, pitch: int | None = None) -> None:
        if width < 0 or height < 0:
            raise ValueError("screen size must not be negative")
        if depth <= 0 or depth % 8:
            raise ValueError(f"unsupported colour depth {depth}")
        self.width = width
        self.height = height
        self.depth = depth
        row = width * (depth // 8)
        self.pitch = row if pitch is None else pitch
        if self.pitch < row:
            raise ValueError(f"pitch {self.pitch} is shorter than a row of {row} bytes")
        self.framebuffer = bytearray(self.pitch * height)
        self.double_buffer = bytearray(self.pitch * height)

    @property
    def _blit_bpp(self) -> int | None:
        return {32: 4, 24: 3}.get(self.depth)

    def copy(self) -> None:
        """Show the whole back buffer."""
        self.framebuffer[:] = self.double_buffer

    def copy_to_fb(self, x: int, y: int, width: int, height: int) -> None:
        """Show one rectangle of the back buffer (24 and 32 bpp only)."""
        bpp = self._blit_bpp
        if bpp is None:
            return
        for row in range(height):
            start = (y + row) * self.pitch + x * bpp
            end = start + width * bpp
            self.framebuffer[start:end] = self.double_buffer[start:end]

    def _visible(self, width: int, height: int, buffer: bytes, x: int, y: int, bpp: int) -> tuple[int, int]:
        if x < 0 or y < 0:
            raise ValueError("blit position must not be negative")
        if len(buffer) < width * height * bpp:
            raise ValueError(
                f"buffer holds {len(buffer)} bytes, {width * height * bpp} needed"
            )
        cols = max(0, min(width, self.width - x))
        rows = max(0, min(height, self.height - y))
        return cols, rows

    def copy_to_db(self, width: int, height: int, buffer: bytes, x: int, y: int) -> None:
        """Copy a ``width`` x ``height`` pixel image into the back buffer at (x, y)."""
        bpp = self._blit_bpp
        if bpp is None:
            return
        cols, rows = self._visible(width, height, buffer, x, y, bpp)
        span = cols * bpp
        for row in range(rows):
            dst = (y + row) * self.pitch + x * bpp
            src = row * width * bpp
            self.double_buffer[dst : dst + span] = buffer[src : src + span]

    def copy_to_fb_a(self, width: int, height: int, buffer: bytes, x: int, y: int) -> None:
        """Draw an image straight onto the screen, alpha-blended at 32 bpp."""
        bpp = self._blit_bpp
        if bpp is None:
            return
        cols, rows = self._visible(width, height, buffer, x, y, bpp)
        fb = self.framebuffer
        for row in range(rows):
            for col in range(cols):
                src = row * width * bpp + col * bpp
                dst = (y + row) * self.pitch + (x + col) * bpp
                if bpp == 4:
                    alpha = buffer[src + 3]
                    inverse = 255 - alpha
                    for channel in range(3):
                        fb[dst + channel] = (
                            buffer[src + channel] * alpha + fb[dst + channel] * inverse
                        ) // 255
                else:
                    fb[dst : dst + 3] = buffer[src : src + 3]

    def write_pixel(self, row: int, col: int, color: Color) -> None:
        """Set one screen pixel; positions off the screen are ignored."""
        if not (0 <= col < self.width and 0 <= row < self.height):
            return
        index = row * self.width + col
        if self.depth == 16:
            struct.pack_into("<H", self.framebuffer, index * 2, color.to_u16())
        elif self.depth == 24:
            self.framebuffer[index * 3 : index * 3 + 3] = color.to_u24()
        elif self.depth == 32:
            struct.pack_into("<I", self.framebuffer, index * 4, color.to_u32())

    def draw_mouse(self, x: int, y: int) -> None:
        """Draw the cursor with its tip at (x, y)."""
        for i in range(CURSOR_HEIGHT):
            for j in range(CURSOR_WIDTH):
                value = MOUSE_CURSOR[i * CURSOR_WIDTH + j]
                if value != _O:
                    self.write_pixel(
                        (y + i) & 0xFFFF, (x + j) & 0xFFFF, Color.from_u32(value)
                    )