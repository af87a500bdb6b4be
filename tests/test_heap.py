import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from bafios.heap import (
    DANGLING,
    DEFAULT_BASE,
    DEFAULT_SIZE,
    HEADER_SIZE,
    Allocator,
    HeapError,
)


def test_initial_free_list_covers_region():
    heap = Allocator()
    assert heap.free_segments() == [(DEFAULT_BASE, DEFAULT_SIZE - HEADER_SIZE)]


def test_allocation_is_aligned_and_inside_region():
    heap = Allocator()
    ptr = heap.alloc(100, 16)
    assert ptr % 16 == 0
    assert DEFAULT_BASE + HEADER_SIZE <= ptr
    assert ptr + 100 <= DEFAULT_BASE + DEFAULT_SIZE


def test_allocation_is_carved_from_segment_end():
    heap = Allocator(base=0, size=1024)
    ptr = heap.alloc(100, 8)
    [(addr, size)] = heap.free_segments()
    assert addr == 0
    assert addr + HEADER_SIZE + size == ptr - HEADER_SIZE


def test_alloc_then_free_restores_free_list():
    heap = Allocator()
    before = heap.free_segments()
    ptr = heap.alloc(100, 8)
    heap.dealloc(ptr)
    assert heap.free_segments() == before


def test_zero_size_returns_dangling():
    heap = Allocator()
    before = heap.free_segments()
    assert heap.alloc(0) == DANGLING
    heap.dealloc(DANGLING)
    heap.dealloc(0)
    assert heap.free_segments() == before


def test_out_of_memory_raises():
    heap = Allocator(base=0, size=1024)
    with pytest.raises(MemoryError):
        heap.alloc(2048)


def test_leftover_too_small_for_free_segment_raises():
    heap = Allocator(base=0, size=1024)
    with pytest.raises(MemoryError):
        heap.alloc(1000)


def test_exact_fit_is_a_heap_error():
    heap = Allocator(base=0, size=1024)
    with pytest.raises(HeapError):
        heap.alloc(1024 - 2 * HEADER_SIZE)


def test_bad_alignment_rejected():
    heap = Allocator()
    with pytest.raises(ValueError):
        heap.alloc(10, 3)


def test_double_free_warns_and_keeps_state():
    heap = Allocator()
    ptr = heap.alloc(64, 4)
    heap.dealloc(ptr)
    after_first = heap.free_segments()
    with pytest.warns(RuntimeWarning):
        heap.dealloc(ptr)
    assert heap.free_segments() == after_first


def test_partial_free_leaves_gap():
    heap = Allocator()
    a = heap.alloc(200, 8)
    b = heap.alloc(200, 8)
    c = heap.alloc(200, 8)
    heap.dealloc(b)
    segments = heap.free_segments()
    assert len(segments) == 2
    assert segments[1][0] == b - HEADER_SIZE
    assert heap.alloc(1, 1) not in (a, c)


@settings(max_examples=60, deadline=None)
@given(
    requests=st.lists(
        st.tuples(st.integers(1, 300), st.sampled_from([1, 2, 4, 8, 16, 32])),
        min_size=1,
        max_size=12,
    ),
    data=st.data(),
)
def test_allocations_disjoint_and_full_free_restores(requests, data):
    heap = Allocator()
    before = heap.free_segments()
    spans = []
    for size, align in requests:
        ptr = heap.alloc(size, align)
        assert ptr % align == 0
        spans.append((ptr - HEADER_SIZE, ptr + size))
    ordered = sorted(spans)
    for (_, end), (start, _) in zip(ordered, ordered[1:]):
        assert end <= start
    assert ordered[0][0] >= DEFAULT_BASE
    assert ordered[-1][1] <= DEFAULT_BASE + DEFAULT_SIZE

    for start, _ in data.draw(st.permutations(spans)):
        heap.dealloc(start + HEADER_SIZE)
    assert heap.free_segments() == before