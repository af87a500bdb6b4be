"""Read access to a FAT16 volume stored on a block device."""

from __future__ import annotations

import struct
from collections.abc import Iterator

from bafios.blockdev import SECTOR_SIZE, BlockDevice
from bafios.fat_structs import (
    ATTR_DIRECTORY,
    ENTRY_SIZE,
    OFFSET_LBA,
    ROOT_NAME,
    BootSector,
    DirEntry,
    FatError,
    split_path,
    to_fat_name,
)

_FAT_ENTRIES_PER_SECTOR = SECTOR_SIZE // 2
_FAT_WINDOW_SECTORS = 4
_FIRST_DATA_CLUSTER = 0x0002
_END_OF_CHAIN = 0xFFF0


def _entries(block: bytes) -> Iterator[DirEntry]:
    for offset in range(0, len(block) - ENTRY_SIZE + 1, ENTRY_SIZE):
        yield DirEntry.parse(block[offset : offset + ENTRY_SIZE])


def _is_data_cluster(cluster: int) -> bool:
    return _FIRST_DATA_CLUSTER <= cluster < _END_OF_CHAIN


class Fat16:
    """A FAT16 partition starting ``offset_lba`` sectors into ``device``.

    The allocation table is read through a small cache of four sectors;
    writes go to the first FAT copy only.
    """

    def __init__(self, device: BlockDevice, offset_lba: int = OFFSET_LBA) -> None:
        self.device = device
        self.offset_lba = offset_lba
        self.header = BootSector()
        self._fat_base = 0
        self._fat: list[int] = []
        self.reload()

    def _read(self, lba: int, count: int) -> bytes:
        return self.device.read(self.offset_lba + lba, count)

    def reload(self) -> None:
        """Re-read the boot sector and the first window of the FAT."""
        header = BootSector.parse(self._read(0, 1))
        if header.bytes_per_sector != SECTOR_SIZE:
            raise FatError(
                f"unsupported sector size {header.bytes_per_sector}, "
                f"expected {SECTOR_SIZE}"
            )
        if header.sectors_per_cluster == 0:
            raise FatError("boot sector declares zero sectors per cluster")
        if header.sectors_per_fat == 0:
            raise FatError("boot sector declares an empty FAT")
        self.header = header
        self._load_fat_window(0)

    @property
    def _fat_entry_count(self) -> int:
        return self.header.sectors_per_fat * _FAT_ENTRIES_PER_SECTOR

    def _check_fat_index(self, index: int) -> None:
        if not 0 <= index < self._fat_entry_count:
            raise FatError(
                f"FAT index {index} outside 0..{self._fat_entry_count - 1}"
            )

    def _load_fat_window(self, sector: int) -> None:
        count = min(_FAT_WINDOW_SECTORS, self.header.sectors_per_fat - sector)
        raw = self._read(self.header.reserved_sectors + sector, count)
        self._fat = list(struct.unpack(f"<{len(raw) // 2}H", raw))
        self._fat_base = sector

    def get_fat(self, index: int) -> int:
        """Return FAT entry ``index``."""
        self._check_fat_index(index)
        sector = index // _FAT_ENTRIES_PER_SECTOR
        if not self._fat_base <= sector < self._fat_base + _FAT_WINDOW_SECTORS:
            self._load_fat_window(sector)
        return self._fat[index - self._fat_base * _FAT_ENTRIES_PER_SECTOR]

    def set_fat(self, index: int, value: int) -> None:
        """Store ``value`` in FAT entry ``index`` of the first FAT copy."""
        self._check_fat_index(index)
        if not 0 <= value <= 0xFFFF:
            raise ValueError(f"FAT value {value} does not fit in 16 bits")
        lba = self.header.reserved_sectors + index // _FAT_ENTRIES_PER_SECTOR
        sector = bytearray(self._read(lba, 1))
        struct.pack_into("<H", sector, (index % _FAT_ENTRIES_PER_SECTOR) * 2, value)
        self.device.write(self.offset_lba + lba, sector)
        cached = index - self._fat_base * _FAT_ENTRIES_PER_SECTOR
        if 0 <= cached < len(self._fat):
            self._fat[cached] = value

    def cluster_to_lba(self, cluster: int) -> int:
        """Return the partition-relative sector of ``cluster``; 0 is the root."""
        if cluster == 0:
            return self.header.root_dir_lba
        if cluster < _FIRST_DATA_CLUSTER:
            raise FatError(f"cluster {cluster} is reserved")
        return (
            self.header.data_lba
            + (cluster - _FIRST_DATA_CLUSTER) * self.header.sectors_per_cluster
        )

    def _chain(self, first: int) -> Iterator[int]:
        seen: set[int] = set()
        cluster = first
        while _is_data_cluster(cluster):
            if cluster in seen:
                raise FatError(f"cluster chain loops back to {cluster}")
            seen.add(cluster)
            yield cluster
            cluster = self.get_fat(cluster)

    def _read_cluster(self, cluster: int) -> bytes:
        return self._read(self.cluster_to_lba(cluster), self.header.sectors_per_cluster)

    def read(self, entry: DirEntry) -> bytes:
        """Return the data of ``entry``'s cluster chain.

        For files the result is cut to the entry's size; directories come
        back as whole clusters.
        """
        data = b"".join(self._read_cluster(c) for c in self._chain(entry.first_cluster))
        return data if entry.is_directory else data[: entry.size]

    def read_file(self, path: str) -> bytes:
        """Return the contents of the file at ``path``."""
        entry = self.find_entry(path)
        if entry is None:
            raise FatError(f"{path!r} not found")
        return self.read(entry)

    @staticmethod
    def _search(blocks: Iterator[bytes], fat_name: bytes) -> DirEntry | None:
        for block in blocks:
            for entry in _entries(block):
                if entry.is_end:
                    break
                if not entry.is_deleted and entry.name == fat_name:
                    return entry
        return None

    def _root_sectors(self) -> Iterator[bytes]:
        for sector in range(self.header.root_dir_sectors):
            yield self._read(self.header.root_dir_lba + sector, 1)

    def find(self, fat_name: bytes) -> DirEntry | None:
        """Look ``fat_name`` up in the root directory."""
        return self._search(self._root_sectors(), bytes(fat_name))

    def find_in_dir(self, dir_entry: DirEntry, fat_name: bytes) -> DirEntry | None:
        """Look ``fat_name`` up in the directory described by ``dir_entry``."""
        clusters = (self._read_cluster(c) for c in self._chain(dir_entry.first_cluster))
        return self._search(clusters, bytes(fat_name))

    def find_entry(self, path: str) -> DirEntry | None:
        """Resolve a slash-separated path of short names to its entry."""
        parts = split_path(path)
        if not parts:
            return None
        current = self.find(to_fat_name(parts[0]))
        for part in parts[1:]:
            if current is None:
                return None
            current = self.find_in_dir(current, to_fat_name(part))
        return current

    def find_dir(self, path: str) -> DirEntry | None:
        """Return the entry of the directory that holds ``path``.

        The root is represented by a synthetic entry named with spaces.
        """
        parts = split_path(path)
        if len(parts) <= 1:
            return DirEntry.for_cluster(
                ROOT_NAME, ATTR_DIRECTORY, self.header.root_dir_lba
            )
        current = self.find(to_fat_name(parts[0]))
        for part in parts[1:-1]:
            if current is None:
                return None
            current = self.find_in_dir(current, to_fat_name(part))
        return current

    def get_cluster_free(self) -> int | None:
        """Return the first cluster whose FAT entry is zero."""
        for index in range(self._fat_entry_count):
            if self.get_fat(index) == 0:
                return index
        return None

    def _dir_sectors(self, directory: DirEntry | None) -> Iterator[bytes]:
        if directory is None:
            yield from self._root_sectors()
            return
        for cluster in self._chain(directory.first_cluster):
            lba = self.cluster_to_lba(cluster)
            for sector in range(self.header.sectors_per_cluster):
                yield self._read(lba + sector, 1)

    def _listing(self, path: str) -> Iterator[DirEntry]:
        # A path that names nothing lists the root directory.
        directory = self.find_entry(path)
        if directory is not None and not directory.is_directory:
            return
        for sector in self._dir_sectors(directory):
            for entry in _entries(sector):
                if entry.is_end:
                    break
                if entry.is_deleted or entry.is_volume_id or entry.is_dot:
                    continue
                yield entry

    def count_entries_in_dir(self, path: str) -> int:
        """Count the visible entries of a directory; a file counts as empty."""
        return sum(1 for _ in self._listing(path))

    def get_entries_by_id(self, path: str, index: int) -> DirEntry | None:
        """Return the ``index``-th visible entry of a directory."""
        if index < 0:
            raise ValueError("entry index must not be negative")
        for position, entry in enumerate(self._listing(path)):
            if position == index:
                return entry
        return None