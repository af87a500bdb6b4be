import struct

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from bafios.blockdev import BlockDevice
from bafios.fat16 import Fat16
from bafios.fat16_write import (
    END_OF_CHAIN,
    append_to_file,
    create_dir,
    create_file,
    make_file,
    overwrite_file,
    update_directory_entry,
)
from bafios.fat_structs import (
    ATTR_ARCHIVE,
    BootSector,
    DirEntry,
    FatError,
    to_fat_name,
)

NAME = "HELLO   TXT"
PATH = "/" + NAME
ROOT_ENTRIES = 16


def make_fs(sectors_per_cluster=1):
    clusters = 256 - 2
    total = 4 + clusters * sectors_per_cluster + 8
    boot = BootSector(
        bytes_per_sector=512,
        sectors_per_cluster=sectors_per_cluster,
        reserved_sectors=1,
        fat_count=2,
        dir_entries_count=ROOT_ENTRIES,
        total_sectors=total,
        sectors_per_fat=1,
    )
    device = BlockDevice(sectors=total)
    device.write(0, boot.pack())
    fat = bytearray(512)
    struct.pack_into("<HH", fat, 0, 0xFFF8, 0xFFFF)
    device.write(1, fat)
    device.write(2, fat)
    return Fat16(device, offset_lba=0)


def chain(fs, first):
    clusters = [first]
    while 2 <= fs.get_fat(clusters[-1]) < 0xFFF0:
        clusters.append(fs.get_fat(clusters[-1]))
    return clusters


def test_create_file_adds_empty_archive_entry():
    fs = make_fs()
    entry = create_file(fs, PATH)
    found = fs.find_entry(PATH)
    assert found == entry
    assert found.attributes == ATTR_ARCHIVE
    assert found.size == 0
    assert fs.get_fat(entry.first_cluster) == END_OF_CHAIN


def test_create_file_writes_name_into_root_sector():
    fs = make_fs()
    create_file(fs, PATH)
    root = fs.device.read(fs.header.root_dir_lba, 1)
    assert root[:11] == NAME.encode()


def test_files_get_distinct_clusters():
    fs = make_fs()
    first = create_file(fs, "/A")
    second = create_file(fs, "/B")
    assert first.first_cluster != second.first_cluster
    assert fs.count_entries_in_dir("/") == 2


def test_create_file_in_missing_directory_fails():
    fs = make_fs()
    with pytest.raises(FatError):
        create_file(fs, "/NOPE/FILE")


def test_root_directory_full():
    fs = make_fs()
    for i in range(ROOT_ENTRIES):
        create_file(fs, f"/F{i:02d}")
    with pytest.raises(FatError):
        create_file(fs, "/EXTRA")
    assert fs.count_entries_in_dir("/") == ROOT_ENTRIES


def test_make_file_into_root():
    fs = make_fs()
    root = fs.find_dir(PATH)
    entry = DirEntry.for_cluster(to_fat_name(NAME), ATTR_ARCHIVE, 7)
    make_file(fs, root, entry)
    assert fs.find(to_fat_name(NAME)) == entry


def test_overwrite_round_trip():
    fs = make_fs()
    create_file(fs, PATH)
    result = overwrite_file(fs, PATH, b"hello world")
    assert result.size == len(b"hello world")
    assert fs.read_file(PATH) == b"hello world"
    assert fs.find_entry(PATH).size == len(b"hello world")


def test_overwrite_spanning_clusters():
    fs = make_fs()
    create_file(fs, PATH)
    data = bytes(range(256)) * 5 + b"tail"
    overwrite_file(fs, PATH, data)
    assert fs.read_file(PATH) == data
    assert len(chain(fs, fs.find_entry(PATH).first_cluster)) > 1


def test_overwrite_shorter_releases_clusters():
    fs = make_fs()
    entry = create_file(fs, PATH)
    overwrite_file(fs, PATH, b"z" * 1300)
    used = chain(fs, entry.first_cluster)
    overwrite_file(fs, PATH, b"short")
    assert fs.read_file(PATH) == b"short"
    assert fs.get_fat(entry.first_cluster) == END_OF_CHAIN
    assert all(fs.get_fat(c) == 0 for c in used[1:])


def test_overwrite_missing_file_fails():
    fs = make_fs()
    with pytest.raises(FatError):
        overwrite_file(fs, PATH, b"data")


def test_append_to_empty_file_adds_terminator():
    fs = make_fs()
    create_file(fs, PATH)
    result = append_to_file(fs, PATH, b"abc")
    assert result.size == len(b"abc") + 1
    assert fs.read_file(PATH) == b"abc\x00"


def test_append_twice_crossing_cluster():
    fs = make_fs()
    create_file(fs, PATH)
    first, second = b"a" * 500, b"b" * 100
    append_to_file(fs, PATH, first)
    append_to_file(fs, PATH, second)
    assert fs.read_file(PATH) == first + b"\x00" + second + b"\x00"


def test_append_after_full_cluster():
    fs = make_fs()
    create_file(fs, PATH)
    overwrite_file(fs, PATH, b"x" * 512)
    append_to_file(fs, PATH, b"yz")
    assert fs.read_file(PATH) == b"x" * 512 + b"yz\x00"


def test_append_missing_file_fails():
    fs = make_fs()
    with pytest.raises(FatError):
        append_to_file(fs, PATH, b"data")


def test_create_dir_and_file_inside():
    fs = make_fs()
    directory = create_dir(fs, "/DOCS")
    found = fs.find_entry("/DOCS")
    assert found == directory
    assert found.is_directory
    assert fs.count_entries_in_dir("/DOCS") == 0
    dot = fs.find_in_dir(directory, to_fat_name("."))
    assert dot.first_cluster == directory.first_cluster

    inner = "/DOCS/NOTE    TXT"
    create_file(fs, inner)
    assert fs.count_entries_in_dir("/DOCS") == 1
    overwrite_file(fs, inner, b"inside")
    assert fs.read_file(inner) == b"inside"


def test_update_directory_entry_changes_record():
    fs = make_fs()
    entry = create_file(fs, PATH)
    entry.size = 42
    update_directory_entry(fs, PATH, entry)
    assert fs.find_entry(PATH).size == 42


def test_update_directory_entry_missing_fails():
    fs = make_fs()
    with pytest.raises(FatError):
        update_directory_entry(fs, PATH, DirEntry(name=to_fat_name(NAME)))


@settings(max_examples=25, deadline=None)
@given(st.binary(max_size=3000))
def test_overwrite_round_trip_property(data):
    fs = make_fs(sectors_per_cluster=2)
    create_file(fs, PATH)
    overwrite_file(fs, PATH, data)
    assert fs.read_file(PATH) == data
    assert fs.find_entry(PATH).size == len(data)