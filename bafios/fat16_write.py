"""Write access to a FAT16 volume: creating, overwriting and appending files."""

from __future__ import annotations

from bafios.fat16 import Fat16
from bafios.fat_structs import (
    ATTR_ARCHIVE,
    ATTR_DIRECTORY,
    DELETED_MARKER,
    ENTRY_SIZE,
    FAT_NAME_LEN,
    ROOT_NAME,
    DirEntry,
    FatError,
    path_to_fat_name,
)

END_OF_CHAIN = 0xFFFF
"""FAT value given to the only or first cluster of a fresh chain."""

LINK_END_OF_CHAIN = 0xFFF8
"""FAT value given to a cluster appended to an existing chain."""

_FIRST_DATA_CLUSTER = 0x0002
_CHAIN_LIMIT = 0xFFF0
_DOT_NAME = b".".ljust(FAT_NAME_LEN, b" ")
_DOTDOT_NAME = b"..".ljust(FAT_NAME_LEN, b" ")


def _is_data_cluster(cluster: int) -> bool:
    return _FIRST_DATA_CLUSTER <= cluster < _CHAIN_LIMIT


def _read(fs: Fat16, lba: int, count: int) -> bytes:
    return fs.device.read(fs.offset_lba + lba, count)


def _write(fs: Fat16, lba: int, data: bytes | bytearray) -> None:
    fs.device.write(fs.offset_lba + lba, data)


def _dir_region(fs: Fat16, folder: DirEntry) -> tuple[int, int]:
    """Return the sector and sector count holding the entries of ``folder``.

    Only the first cluster of a subdirectory is considered.
    """
    if folder.name == ROOT_NAME:
        return fs.header.root_dir_lba, fs.header.root_dir_sectors
    return fs.cluster_to_lba(folder.first_cluster), fs.header.sectors_per_cluster


def _slots(buffer: bytearray) -> range:
    return range(0, len(buffer) - ENTRY_SIZE + 1, ENTRY_SIZE)


def _free_cluster(fs: Fat16) -> int:
    cluster = fs.get_cluster_free()
    if cluster is None or not _is_data_cluster(cluster):
        raise FatError("No free clusters available")
    return cluster


def _extend_chain(fs: Fat16, last: int) -> int:
    """Allocate a cluster, link it after ``last`` and return it."""
    cluster = _free_cluster(fs)
    fs.set_fat(last, cluster)
    fs.set_fat(cluster, LINK_END_OF_CHAIN)
    return cluster


def _last_cluster(fs: Fat16, first: int) -> int:
    seen = {first}
    current = first
    while True:
        following = fs.get_fat(current)
        if not _is_data_cluster(following):
            return current
        if following in seen:
            raise FatError(f"cluster chain loops back to {following}")
        seen.add(following)
        current = following


def _require_entry(fs: Fat16, path: str) -> DirEntry:
    entry = fs.find_entry(path)
    if entry is None:
        raise FatError(f"{path!r} not found")
    if not _is_data_cluster(entry.first_cluster):
        raise FatError(f"{path!r} has no data cluster")
    return entry


def _require_parent(fs: Fat16, path: str) -> DirEntry:
    parent = fs.find_dir(path)
    if parent is None:
        raise FatError(f"parent directory of {path!r} not found")
    return parent


def make_file(fs: Fat16, folder: DirEntry, new_entry: DirEntry) -> None:
    """Store ``new_entry`` in the first free slot of ``folder``.

    Raises FatError when the directory has no free slot.
    """
    lba, sectors = _dir_region(fs, folder)
    buffer = bytearray(_read(fs, lba, sectors))
    for offset in _slots(buffer):
        if buffer[offset] in (0x00, DELETED_MARKER):
            buffer[offset : offset + ENTRY_SIZE] = new_entry.pack()
            _write(fs, lba, buffer)
            return
    raise FatError("directory is full")


def create_file(fs: Fat16, path: str) -> DirEntry:
    """Create an empty file at ``path`` and return its entry."""
    name = path_to_fat_name(path)
    parent = _require_parent(fs, path)
    cluster = _free_cluster(fs)
    entry = DirEntry.for_cluster(name, ATTR_ARCHIVE, cluster)
    make_file(fs, parent, entry)
    fs.set_fat(cluster, END_OF_CHAIN)
    return entry


def create_dir(fs: Fat16, path: str) -> DirEntry:
    """Create a directory at ``path`` holding ``.`` and ``..``; return its entry."""
    name = path_to_fat_name(path)
    parent = _require_parent(fs, path)
    cluster = _free_cluster(fs)
    entry = DirEntry.for_cluster(name, ATTR_DIRECTORY, cluster)
    make_file(fs, parent, entry)
    fs.set_fat(cluster, END_OF_CHAIN)
    _write(fs, fs.cluster_to_lba(cluster), bytes(fs.header.cluster_size))

    dot = DirEntry.for_cluster(_DOT_NAME, ATTR_ARCHIVE, cluster)
    dotdot = DirEntry(
        name=_DOTDOT_NAME,
        attributes=ATTR_DIRECTORY,
        first_cluster_high=parent.first_cluster_high,
        first_cluster_low=parent.first_cluster_low,
    )
    make_file(fs, entry, dot)
    make_file(fs, entry, dotdot)
    return entry


def update_directory_entry(fs: Fat16, path: str, entry: DirEntry) -> None:
    """Replace the directory record of ``path`` with ``entry``."""
    parent = _require_parent(fs, path)
    lba, sectors = _dir_region(fs, parent)
    buffer = bytearray(_read(fs, lba, sectors))
    target = path_to_fat_name(path)
    for offset in _slots(buffer):
        if bytes(buffer[offset : offset + FAT_NAME_LEN]) == target:
            buffer[offset : offset + ENTRY_SIZE] = entry.pack()
            _write(fs, lba, buffer)
            return
    raise FatError(f"no directory record for {path!r}")


def _write_clusters(fs: Fat16, cluster: int, offset: int, payload: bytes) -> None:
    """Write ``payload`` from ``offset`` in ``cluster`` on, growing the chain."""
    size = fs.header.cluster_size
    spc = fs.header.sectors_per_cluster
    view = memoryview(payload)
    while view:
        lba = fs.cluster_to_lba(cluster)
        buffer = bytearray(_read(fs, lba, spc))
        count = min(size - offset, len(view))
        buffer[offset : offset + count] = view[:count]
        _write(fs, lba, buffer)
        view = view[count:]
        offset = 0
        if view:
            cluster = _extend_chain(fs, cluster)


def append_to_file(fs: Fat16, path: str, data: bytes) -> DirEntry:
    """Append ``data`` and a terminating NUL byte to the file at ``path``.

    Returns the updated entry.
    """
    entry = _require_entry(fs, path)
    payload = bytes(data) + b"\x00"
    cluster_size = fs.header.cluster_size

    if entry.size == 0:
        current = entry.first_cluster
        fs.set_fat(current, END_OF_CHAIN)
        offset = 0
    else:
        current = _last_cluster(fs, entry.first_cluster)
        offset = entry.size % cluster_size
        if offset == 0:
            current = _extend_chain(fs, current)

    _write_clusters(fs, current, offset, payload)
    entry.size += len(payload)
    update_directory_entry(fs, path, entry)
    return entry


def overwrite_file(fs: Fat16, path: str, data: bytes) -> DirEntry:
    """Replace the contents of the file at ``path`` with ``data``.

    Clusters past the first are released before writing. Returns the
    updated entry.
    """
    entry = _require_entry(fs, path)
    first = entry.first_cluster

    following = fs.get_fat(first)
    while _is_data_cluster(following):
        after = fs.get_fat(following)
        fs.set_fat(following, 0x0000)
        following = after
    fs.set_fat(first, END_OF_CHAIN)

    payload = bytes(data)
    _write_clusters(fs, first, 0, payload)
    entry.size = len(payload)
    update_directory_entry(fs, path, entry)
    return entry