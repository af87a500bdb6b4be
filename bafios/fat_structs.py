"""On-disk structures of a FAT16 volume and short-name helpers."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from bafios.blockdev import SECTOR_SIZE

OFFSET_LBA = 9216
"""Sector at which the FAT16 partition starts on the disk."""

ATTR_READ_ONLY = 0x01
ATTR_HIDDEN = 0x02
ATTR_SYSTEM = 0x04
ATTR_VOLUME_ID = 0x08
ATTR_DIRECTORY = 0x10
ATTR_ARCHIVE = 0x20

ENTRY_SIZE = 32
DELETED_MARKER = 0xE5
FAT_NAME_LEN = 11
ROOT_NAME = b" " * FAT_NAME_LEN
"""Name used for the synthetic entry that stands for the root directory."""


class FatError(Exception):
    """A FAT16 structure or path could not be handled."""


_BOOT_FORMAT = struct.Struct("<3s8sHBHBHHBHHHIIBBBI11s8s")
_ENTRY_FORMAT = struct.Struct("<11sBBBHHHHHHHI")


@dataclass
class BootSector:
    """The BIOS parameter block at the start of the volume."""

    boot_jmp: bytes = bytes(3)
    oem_id: bytes = bytes(8)
    bytes_per_sector: int = 0
    sectors_per_cluster: int = 0
    reserved_sectors: int = 0
    fat_count: int = 0
    dir_entries_count: int = 0
    total_sectors: int = 0
    media_descriptor_type: int = 0
    sectors_per_fat: int = 0
    sectors_per_track: int = 0
    heads: int = 0
    hidden_sectors: int = 0
    large_sector_count: int = 0
    drive_number: int = 0
    reserved: int = 0
    signature: int = 0
    volume_id: int = 0
    volume_label: bytes = bytes(11)
    system_id: bytes = bytes(8)

    @classmethod
    def parse(cls, data: bytes) -> BootSector:
        if len(data) < _BOOT_FORMAT.size:
            raise FatError(
                f"boot sector needs {_BOOT_FORMAT.size} bytes, got {len(data)}"
            )
        return cls(*_BOOT_FORMAT.unpack_from(data))

    def pack(self) -> bytes:
        """Encode as one full sector, zero-padded."""
        try:
            header = _BOOT_FORMAT.pack(
                self.boot_jmp, self.oem_id, self.bytes_per_sector,
                self.sectors_per_cluster, self.reserved_sectors, self.fat_count,
                self.dir_entries_count, self.total_sectors,
                self.media_descriptor_type, self.sectors_per_fat,
                self.sectors_per_track, self.heads, self.hidden_sectors,
                self.large_sector_count, self.drive_number, self.reserved,
                self.signature, self.volume_id, self.volume_label, self.system_id,
            )
        except struct.error as exc:
            raise FatError(f"boot sector field out of range: {exc}") from exc
        return header + bytes(SECTOR_SIZE - len(header))

    @property
    def root_dir_lba(self) -> int:
        return self.reserved_sectors + self.sectors_per_fat * self.fat_count

    @property
    def root_dir_sectors(self) -> int:
        bps = self.bytes_per_sector
        return (self.dir_entries_count * ENTRY_SIZE + bps - 1) // bps

    @property
    def data_lba(self) -> int:
        return (
            self.root_dir_lba
            + self.dir_entries_count * ENTRY_SIZE // self.bytes_per_sector
        )

    @property
    def cluster_size(self) -> int:
        return self.sectors_per_cluster * self.bytes_per_sector


@dataclass
class DirEntry:
    """A 32-byte directory entry."""

    name: bytes = bytes(FAT_NAME_LEN)
    attributes: int = 0
    reserved: int = 0
    created_time_tenths: int = 0
    created_time: int = 0
    created_date: int = 0
    accessed_date: int = 0
    first_cluster_high: int = 0
    modified_time: int = 0
    modified_date: int = 0
    first_cluster_low: int = 0
    size: int = 0

    def __post_init__(self) -> None:
        self.name = bytes(self.name)
        if len(self.name) != FAT_NAME_LEN:
            raise FatError(f"entry name must be {FAT_NAME_LEN} bytes, got {len(self.name)}")

    @classmethod
    def for_cluster(cls, name: bytes, attributes: int, cluster: int) -> DirEntry:
        """Build an empty entry whose data starts at ``cluster``."""
        return cls(
            name=name,
            attributes=attributes,
            first_cluster_high=(cluster >> 16) & 0xFFFF,
            first_cluster_low=cluster & 0xFFFF,
        )

    @classmethod
    def parse(cls, data: bytes) -> DirEntry:
        if len(data) != ENTRY_SIZE:
            raise FatError(f"directory entry needs {ENTRY_SIZE} bytes, got {len(data)}")
        return cls(*_ENTRY_FORMAT.unpack(data))

    def pack(self) -> bytes:
        try:
            return _ENTRY_FORMAT.pack(
                self.name, self.attributes, self.reserved,
                self.created_time_tenths, self.created_time, self.created_date,
                self.accessed_date, self.first_cluster_high, self.modified_time,
                self.modified_date, self.first_cluster_low, self.size,
            )
        except struct.error as exc:
            raise FatError(f"directory entry field out of range: {exc}") from exc

    @property
    def first_cluster(self) -> int:
        return (self.first_cluster_high << 16) | self.first_cluster_low

    @property
    def is_end(self) -> bool:
        """True for the entry that marks the end of a directory listing."""
        return self.name[0] == 0x00

    @property
    def is_deleted(self) -> bool:
        return self.name[0] == DELETED_MARKER

    @property
    def is_directory(self) -> bool:
        return bool(self.attributes & ATTR_DIRECTORY)

    @property
    def is_volume_id(self) -> bool:
        return bool(self.attributes & ATTR_VOLUME_ID)

    @property
    def is_dot(self) -> bool:
        """True for the ``.`` and ``..`` entries of a subdirectory."""
        return self.name[0] == ord(".") and self.name[1] in (ord(" "), ord("."))


def split_path(path: str) -> list[str]:
    """Split ``path`` on slashes, dropping empty components."""
    return [part for part in path.split("/") if part]


def to_fat_name(name: str) -> bytes:
    """Encode up to 11 characters, one byte each, padded with spaces."""
    encoded = bytes(ord(ch) & 0xFF for ch in name[:FAT_NAME_LEN])
    return encoded.ljust(FAT_NAME_LEN, b" ")


def path_to_fat_name(path: str) -> bytes:
    """Return the FAT name of the last component of ``path``."""
    parts = split_path(path)
    if not parts:
        raise FatError(f"path {path!r} has no components")
    return to_fat_name(parts[-1])