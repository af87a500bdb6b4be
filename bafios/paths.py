"""Conversion of long path names into FAT 8.3 short-name form."""

from __future__ import annotations

_NAME_LEN = 8
_EXT_LEN = 3


def _fit(text: str, limit: int) -> str:
    """Keep at most ``limit`` characters, then pad with spaces to ``limit`` bytes."""
    short = text[:limit]
    padding = limit - len(short.encode("utf-8"))
    return short + " " * max(padding, 0)


def format_path_8_3(path: str) -> str:
    """Rewrite the last component of ``path`` as an 11-character 8.3 name.

    The directory part is kept as it is. The name is cut to 8 characters and
    the extension to 3, each padded with spaces, and the dot is dropped. A
    last component that is already 11 bytes long without a dot is returned
    unchanged.
    """
    slash = path.rfind("/")
    directory, filename = path[: slash + 1], path[slash + 1 :]

    if len(filename.encode("utf-8")) == 11 and "." not in filename:
        return path

    name, dot, ext = filename.rpartition(".")
    if not dot:
        name, ext = filename, ""

    return directory + _fit(name, _NAME_LEN) + _fit(ext, _EXT_LEN)