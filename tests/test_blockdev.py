import pytest
from hypothesis import given
from hypothesis import strategies as st

from bafios.blockdev import SECTOR_SIZE, BlockDevice


def test_new_device_is_zeroed():
    dev = BlockDevice(sectors=4)
    assert dev.sector_count == 4
    assert len(dev) == 4 * SECTOR_SIZE
    assert dev.to_bytes() == bytes(4 * SECTOR_SIZE)


def test_read_returns_whole_sectors():
    image = bytes(range(256)) * 4
    dev = BlockDevice(image)
    assert dev.read(1, 1) == image[SECTOR_SIZE:]
    assert dev.read(0, 2) == image
    assert dev.read(1, 0) == b""


def test_write_pads_last_sector_with_zeros():
    dev = BlockDevice(b"\xff" * (3 * SECTOR_SIZE))
    dev.write(1, b"abc")
    sector = dev.read(1, 1)
    assert sector[:3] == b"abc"
    assert sector[3:] == bytes(SECTOR_SIZE - 3)
    assert dev.read(0, 1) == b"\xff" * SECTOR_SIZE
    assert dev.read(2, 1) == b"\xff" * SECTOR_SIZE


def test_write_spanning_several_sectors():
    dev = BlockDevice(sectors=300)
    payload = bytes(i % 251 for i in range(260 * SECTOR_SIZE))
    dev.write(10, payload)
    assert dev.read(10, 260) == payload
    assert dev.read(9, 1) == bytes(SECTOR_SIZE)


def test_sectors_extend_existing_image():
    dev = BlockDevice(b"\x01" * SECTOR_SIZE, sectors=2)
    assert dev.to_bytes() == b"\x01" * SECTOR_SIZE + bytes(SECTOR_SIZE)


def test_image_must_be_sector_aligned():
    with pytest.raises(ValueError):
        BlockDevice(b"\x00" * 100)


def test_sector_count_smaller_than_image_rejected():
    with pytest.raises(ValueError):
        BlockDevice(bytes(2 * SECTOR_SIZE), sectors=1)


def test_read_past_end_raises():
    dev = BlockDevice(sectors=2)
    with pytest.raises(IndexError):
        dev.read(1, 2)


def test_write_past_end_raises():
    dev = BlockDevice(sectors=1)
    with pytest.raises(IndexError):
        dev.write(0, bytes(SECTOR_SIZE + 1))


def test_lba_outside_28_bits_raises():
    dev = BlockDevice(sectors=1)
    with pytest.raises(ValueError):
        dev.read(1 << 28, 0)
    with pytest.raises(ValueError):
        dev.read(-1, 1)


@given(
    lba=st.integers(min_value=0, max_value=7),
    data=st.binary(min_size=1, max_size=3 * SECTOR_SIZE),
)
def test_write_then_read_round_trip(lba, data):
    dev = BlockDevice(sectors=12)
    dev.write(lba, data)
    sectors = (len(data) + SECTOR_SIZE - 1) // SECTOR_SIZE
    back = dev.read(lba, sectors)
    assert back[: len(data)] == data
    assert back[len(data):] == bytes(len(back) - len(data))
    assert len(dev.to_bytes()) == 12 * SECTOR_SIZE