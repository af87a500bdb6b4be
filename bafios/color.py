"""Pixel colours and their packed framebuffer encodings."""

from __future__ import annotations

from dataclasses import dataclass


def _check_range(name: str, value: int, bits: int) -> None:
    if not 0 <= value < (1 << bits):
        raise ValueError(f"{name} must fit in {bits} bits, got {value!r}")


@dataclass(frozen=True)
class Color:
    """An RGBA colour with 8-bit channels."""

    r: int = 0
    g: int = 0
    b: int = 0
    a: int = 0

    def __post_init__(self) -> None:
        for name in ("r", "g", "b", "a"):
            _check_range(name, getattr(self, name), 8)

    @classmethod
    def rgb(cls, r: int, g: int, b: int) -> Color:
        """Build an opaque-less colour (alpha 0) from red, green and blue."""
        return cls(r, g, b, 0)

    @classmethod
    def rgba(cls, r: int, g: int, b: int, a: int) -> Color:
        return cls(r, g, b, a)

    def to_u16(self) -> int:
        """Pack into RGB565."""
        return ((self.r >> 3) << 11) | ((self.g >> 2) << 5) | (self.b >> 3)

    def to_u24(self) -> bytes:
        """Return the three bytes of a 24-bit pixel, blue first."""
        return bytes((self.b, self.g, self.r))

    def to_u32(self) -> int:
        """Pack into a 0xAARRGGBB word."""
        return (self.a << 24) | (self.r << 16) | (self.g << 8) | self.b

    @classmethod
    def from_u16(cls, value: int) -> Color:
        """Expand an RGB565 value; the result is fully opaque."""
        _check_range("value", value, 16)
        r5 = (value >> 11) & 0x1F
        g6 = (value >> 5) & 0x3F
        b5 = value & 0x1F
        return cls(
            (r5 << 3) | (r5 >> 2),
            (g6 << 2) | (g6 >> 4),
            (b5 << 3) | (b5 >> 2),
            0xFF,
        )

    @classmethod
    def from_u24(cls, value: int) -> Color:
        """Unpack a 0xRRGGBB value; the result is fully opaque."""
        _check_range("value", value, 32)
        return cls((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF, 0xFF)

    @classmethod
    def from_u32(cls, value: int) -> Color:
        """Unpack a 0xRRGGBBAA value."""
        _check_range("value", value, 32)
        return cls(
            (value >> 24) & 0xFF,
            (value >> 16) & 0xFF,
            (value >> 8) & 0xFF,
            value & 0xFF,
        )