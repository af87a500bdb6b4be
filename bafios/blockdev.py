"""An in-memory sector-addressed disk with 28-bit LBA addressing."""

from __future__ import annotations

SECTOR_SIZE = 512
MAX_LBA = (1 << 28) - 1


class BlockDevice:
    """A disk image addressed in 512-byte sectors.

    Reads return whole sectors; writes are padded with zero bytes up to the
    next sector boundary, so the tail of the last written sector is cleared.
    """

    def __init__(self, image: bytes | bytearray = b"", sectors: int | None = None) -> None:
        if len(image) % SECTOR_SIZE:
            raise ValueError(
                f"image length {len(image)} is not a multiple of {SECTOR_SIZE}"
            )
        self._data = bytearray(image)
        if sectors is not None:
            if sectors < 0:
                raise ValueError("sector count must not be negative")
            wanted = sectors * SECTOR_SIZE
            if wanted < len(self._data):
                raise ValueError("sector count is smaller than the image")
            self._data.extend(bytes(wanted - len(self._data)))

    @property
    def sector_count(self) -> int:
        return len(self._data) // SECTOR_SIZE

    def __len__(self) -> int:
        return len(self._data)

    def _check_span(self, lba: int, sectors: int) -> None:
        if not 0 <= lba <= MAX_LBA:
            raise ValueError(f"LBA {lba} outside the 28-bit address range")
        if sectors < 0:
            raise ValueError("sector count must not be negative")
        if lba + sectors > self.sector_count:
            raise IndexError(
                f"sectors {lba}..{lba + sectors} beyond the end of a "
                f"{self.sector_count}-sector device"
            )

    def read(self, lba: int, sectors: int) -> bytes:
        """Return ``sectors`` whole sectors starting at ``lba``."""
        self._check_span(lba, sectors)
        start = lba * SECTOR_SIZE
        return bytes(self._data[start : start + sectors * SECTOR_SIZE])

    def write(self, lba: int, data: bytes | bytearray) -> None:
        """Write ``data`` from ``lba`` on, zero-filling the last sector."""
        sectors = (len(data) + SECTOR_SIZE - 1) // SECTOR_SIZE
        self._check_span(lba, sectors)
        start = lba * SECTOR_SIZE
        padded = bytes(data) + bytes(sectors * SECTOR_SIZE - len(data))
        self._data[start : start + len(padded)] = padded

    def to_bytes(self) -> bytes:
        """Return the whole disk image."""
        return bytes(self._data)