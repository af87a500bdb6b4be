"""Scancode translation for an Italian PS/2 keyboard layout."""

from __future__ import annotations

from dataclasses import dataclass

MODIFIER = "\x02"
"""Character produced by keys that only change the keyboard state."""

_FIXED = {
    0x01: "x",
    0x0E: "\x08",
    0x1C: "\n",
    0x39: " ",
    0x53: ".",
    0x4E: "+",
    0x4A: "-",
    0x37: "*",
    **{code: MODIFIER for code in (*range(0x3B, 0x45), 0x57, 0x58)},
}

_TWO_WAYS = {
    0x02: ("!", "1"),
    0x03: ('"', "2"),
    0x04: ("£", "3"),
    0x05: ("$", "4"),
    0x06: ("%", "5"),
    0x07: ("&", "6"),
    0x08: ("/", "7"),
    0x09: ("(", "8"),
    0x0A: (")", "9"),
    0x0B: ("=", "0"),
    0x0C: ("?", "'"),
    0x0D: ("^", "ì"),
    0x29: ("|", "\\"),
    0x2B: ("§", "ù"),
    0x56: (">", "<"),
    0x33: (";", ","),
    0x34: (":", "."),
    0x35: ("_", "-"),
}

_LETTERS = {
    0x10: "q", 0x11: "w", 0x12: "e", 0x13: "r", 0x14: "t",
    0x15: "y", 0x16: "u", 0x17: "i", 0x18: "o", 0x19: "p",
    0x1E: "a", 0x1F: "s", 0x20: "d", 0x21: "f", 0x22: "g",
    0x23: "h", 0x24: "j", 0x25: "k", 0x26: "l",
    0x2C: "z", 0x2D: "x", 0x2E: "c", 0x2F: "v", 0x30: "b",
    0x31: "n", 0x32: "m",
}

_THREE_WAYS = {
    0x27: ("ò", "@", "ç"),
    0x28: ("à", "#", "°"),
}

_FOUR_WAYS = {
    0x1A: ("è", "[", "é", "{"),
    0x1B: ("+", "]", "*", "}"),
}

_NUMPAD = {
    0x52: "0", 0x4F: "1", 0x50: "2", 0x51: "3", 0x4B: "4",
    0x4C: "5", 0x4D: "6", 0x47: "7", 0x48: "8", 0x49: "9",
}


@dataclass
class Keyboard:
    """Modifier state plus the scancode-to-character translation."""

    maiusc: bool = False
    shift: bool = False
    shift2: bool = False
    ctrl: bool = False
    numpad: bool = True
    alt: bool = False
    alt2: bool = False

    @property
    def _shifted(self) -> bool:
        return self.shift or self.shift2

    @property
    def _alted(self) -> bool:
        return self.alt or self.alt2

    def _apply_modifier(self, scancode: int) -> bool:
        match scancode:
            case 0x0F | 0x38:
                self.alt = True
            case 0xB8:
                self.alt = False
            case 0x3A:
                self.maiusc = not self.maiusc
            case 0x2A:
                self.shift = True
            case 0xAA:
                self.shift = False
            case 0x36:
                self.shift2 = True
            case 0xB6:
                self.shift2 = False
            case 0x1D:
                self.ctrl = True
            case 0x45:
                self.numpad = not self.numpad
            case _:
                return False
        return True

    def translate(self, scancode: int) -> str | None:
        """Update the state for ``scancode`` and return the character it types.

        Keys that only change state yield :data:`MODIFIER`; unknown scancodes
        yield ``None``.
        """
        if self._apply_modifier(scancode):
            return MODIFIER
        if scancode in _FIXED:
            return _FIXED[scancode]
        if scancode in _LETTERS:
            lower = _LETTERS[scancode]
            return lower.upper() if self._shifted != self.maiusc else lower
        if scancode in _TWO_WAYS:
            shifted, plain = _TWO_WAYS[scancode]
            return shifted if self._shifted else plain
        if scancode in _THREE_WAYS:
            plain, alted, shifted = _THREE_WAYS[scancode]
            if self._shifted:
                return shifted
            return alted if self._alted else plain
        if scancode in _FOUR_WAYS:
            plain, alted, shifted, both = _FOUR_WAYS[scancode]
            if self._shifted and self._alted:
                return both
            if self._shifted:
                return shifted
            return alted if self._alted else plain
        if scancode in _NUMPAD:
            return _NUMPAD[scancode] if self.numpad else " "
        return None