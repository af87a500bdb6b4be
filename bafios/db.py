"""A small line-oriented key/value database format."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from os import PathLike
from pathlib import Path
from typing import Union

Value = Union[str, float, bool, list, dict]


@dataclass
class DataEntry:
    """One record: an identifier and its named values."""

    id: str
    values: dict[str, Value] = field(default_factory=dict)


def _format_number(n: float) -> str:
    if math.isnan(n):
        return "NaN"
    if math.isinf(n):
        return "inf" if n > 0 else "-inf"
    if n.is_integer():
        if n == 0:
            return "-0" if math.copysign(1.0, n) < 0 else "0"
        return str(int(n))
    text = repr(n)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    return text


def _parse_number(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0


def serialize_value(value: Value) -> str:
    """Encode a value with its type tag, e.g. ``str:abc`` or ``num:2``."""
    if isinstance(value, bool):
        return f"bool:{'true' if value else 'false'}"
    if isinstance(value, (int, float)):
        return f"num:{_format_number(float(value))}"
    if isinstance(value, str):
        return f"str:{value}"
    if isinstance(value, (list, tuple)):
        return "arr:[" + ",".join(serialize_value(v) for v in value) + "]"
    if isinstance(value, dict):
        items = ",".join(f"{k}={serialize_value(v)}" for k, v in value.items())
        return "obj:{" + items + "}"
    raise TypeError(f"cannot serialize {type(value).__name__}")


def deserialize_value(text: str) -> Value:
    """Decode a tagged value; malformed input degrades to a string or default."""
    tag, sep, content = text.partition(":")
    if not sep:
        return text
    if tag == "str":
        return content
    if tag == "num":
        return _parse_number(content)
    if tag == "bool":
        return content == "true"
    if tag == "arr":
        if len(content) >= 2 and content.startswith("[") and content.endswith("]"):
            return [deserialize_value(item) for item in content[1:-1].split(",") if item]
        return []
    if tag == "obj":
        result: dict[str, Value] = {}
        if len(content) >= 2 and content.startswith("{") and content.endswith("}"):
            for item in content[1:-1].split(","):
                key, eq, raw = item.partition("=")
                if eq:
                    result[key] = deserialize_value(raw)
        return result
    return content


@dataclass
class CustomFormat:
    """A database: free-form metadata plus a list of entries."""

    metadata: dict[str, str] = field(default_factory=dict)
    data: list[DataEntry] = field(default_factory=list)

    def add_metadata(self, key: str, value: str) -> None:
        self.metadata[key] = value

    def add_entry(self, entry: DataEntry) -> None:
        self.data.append(entry)

    def to_bytes(self) -> bytes:
        lines = ["METADATA_START"]
        lines.extend(f"{k}={v}" for k, v in self.metadata.items())
        lines.append("METADATA_END")
        lines.append("DATA_START")
        for entry in self.data:
            lines.append("ENTRY_START")
            lines.append(f"ID={entry.id}")
            lines.extend(f"{k}={serialize_value(v)}" for k, v in entry.values.items())
            lines.append("ENTRY_END")
        lines.append("DATA_END")
        return ("\n".join(lines) + "\n").encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> CustomFormat:
        """Parse a database; raises ValueError if the bytes are not UTF-8."""
        try:
            content = bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueError("database is not valid UTF-8") from exc

        result = cls()
        section = ""
        current: DataEntry | None = None

        for raw_line in content.split("\n"):
            line = raw_line.strip()
            if not line:
                continue
            if line == "METADATA_START":
                section = "metadata"
            elif line in ("METADATA_END", "DATA_END"):
                section = ""
            elif line == "DATA_START":
                section = "data"
            elif line == "ENTRY_START":
                current = DataEntry(id="")
            elif line == "ENTRY_END":
                if current is not None:
                    result.data.append(current)
                    current = None
            else:
                key, eq, value = line.partition("=")
                if not eq:
                    continue
                if section == "metadata":
                    result.metadata[key] = value
                elif section == "data" and current is not None:
                    if key == "ID":
                        current.id = value
                    else:
                        current.values[key] = deserialize_value(value)
        return result

    def save_to_file(self, path: str | PathLike[str]) -> None:
        Path(path).write_bytes(self.to_bytes())

    @classmethod
    def load_from_file(cls, path: str | PathLike[str]) -> CustomFormat:
        return cls.from_bytes(Path(path).read_bytes())

    def get(self, key: str) -> Value | None:
        """Return the value of ``key`` from the first entry that has it."""
        for entry in self.data:
            if key in entry.values:
                return entry.values[key]
        return None


def load(path: str | PathLike[str]) -> CustomFormat:
    """Load a database file."""
    return CustomFormat.load_from_file(path)