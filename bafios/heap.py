"""A first-fit heap allocator that hands out addresses from one memory region.

Free memory is kept as a list of segments ordered by address. Every segment,
free or used, starts with an 8-byte header. Allocations are carved from the
top end of a free segment.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass

MIN_FREE_SEGMENT_SIZE = 64
USED_SEGMENT_MAGIC = 0xBAF10500
HEADER_SIZE = 8
DANGLING = 1
"""Address handed out for zero-sized allocations."""

DEFAULT_BASE = 0x30_0000
DEFAULT_SIZE = 0x10_0000


class HeapError(RuntimeError):
    """The heap reached a state it cannot represent."""


@dataclass
class _Segment:
    addr: int
    size: int

    @property
    def start(self) -> int:
        return self.addr + HEADER_SIZE

    @property
    def end(self) -> int:
        return self.start + self.size

    def set_end(self, end: int) -> None:
        diff = end - self.start
        if diff <= 0:
            raise HeapError("end < start")
        self.size = diff


class Allocator:
    """Allocate and free address ranges inside ``[base, base + size)``."""

    def __init__(self, base: int = DEFAULT_BASE, size: int = DEFAULT_SIZE) -> None:
        if base < 0:
            raise ValueError("base address must not be negative")
        if size <= HEADER_SIZE:
            raise ValueError(f"region must be larger than {HEADER_SIZE} bytes")
        self.base = base
        self.size = size
        self._free: list[_Segment] = [_Segment(base, size - HEADER_SIZE)]
        self._used: dict[int, int] = {}

    @staticmethod
    def _header_for(segment: _Segment, size: int, align: int) -> int | None:
        start, end = segment.start, segment.end
        if end - start < HEADER_SIZE + size:
            return None
        payload_start = (end - size) & ~(align - 1)
        header = payload_start - HEADER_SIZE
        if header < start:
            return None
        free_space = header - start
        if 0 < free_space < MIN_FREE_SEGMENT_SIZE:
            # Too little left for a free segment in front of the header.
            return None
        return header

    def alloc(self, size: int, align: int = 1) -> int:
        """Return the address of ``size`` bytes aligned to ``align``.

        Raises MemoryError when no free segment can hold the request.
        """
        if align <= 0 or align & (align - 1):
            raise ValueError(f"alignment must be a power of two, got {align}")
        if size < 0:
            raise ValueError("size must not be negative")
        if size == 0:
            return DANGLING

        for index, segment in enumerate(self._free):
            header = self._header_for(segment, size, align)
            if header is None:
                continue
            used_end = segment.end
            segment.set_end(header)
            if segment.size < MIN_FREE_SEGMENT_SIZE:
                del self._free[index]
            self._used[header] = used_end - (header + HEADER_SIZE)
            return header + HEADER_SIZE

        raise MemoryError(f"out of memory allocating {size} bytes aligned to {align}")

    def dealloc(self, ptr: int) -> None:
        """Return the allocation at ``ptr`` to the free list.

        Unknown addresses, including repeated frees, only raise a
        RuntimeWarning and leave the heap untouched.
        """
        if ptr in (0, DANGLING):
            return
        header = ptr - HEADER_SIZE
        size = self._used.pop(header, None)
        if size is None:
            warnings.warn(
                "detected invalid memory segment during deallocation",
                RuntimeWarning,
                stacklevel=2,
            )
            return
        segment = _Segment(header, size)
        if not self._free:
            self._free.append(segment)
        else:
            self._insert(segment)

    def _insert(self, segment: _Segment) -> None:
        for index, current in enumerate(self._free):
            following = self._free[index + 1] if index + 1 < len(self._free) else None
            if following is None or following.addr > segment.addr:
                self._free.insert(index + 1, segment)
                self._merge(index + 1)
                self._merge(index)
                return

    def _merge(self, index: int) -> None:
        if index + 1 >= len(self._free):
            return
        first, second = self._free[index], self._free[index + 1]
        if first.end == second.addr:
            first.set_end(second.end)
            del self._free[index + 1]

    def free_segments(self) -> list[tuple[int, int]]:
        """Return the free list as ``(header address, payload size)`` pairs."""
        return [(segment.addr, segment.size) for segment in self._free]