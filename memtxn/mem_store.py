"""Address-space bookkeeping for memory stores."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class MemStoreType(enum.Enum):
    HASH = 0
    BPLUS_TREE = 1


class OutOfSpaceError(Exception):
    """Raised when a memory store area has no room left."""


@dataclass
class MemStoreAllocParam:
    """Carves store instances out of the store space.

    Addresses are plain integers in one address space; ``region_start`` is
    the base used to compute remote offsets.
    """

    region_start: int
    store_start: int
    alloc_offset: int
    reserve_start: int

    def allocate(self, size):
        """Claim ``size`` bytes and return their start address."""
        addr = self.store_start + self.alloc_offset
        if addr + size > self.reserve_start:
            raise OutOfSpaceError(
                f"store space exhausted: need {size} bytes at {addr}, limit {self.reserve_start}"
            )
        self.alloc_offset += size
        return addr


@dataclass
class MemStoreReserveParam:
    """Hands out overflow space, e.g. for hash bucket chains."""

    reserve_start: int
    reserve_offset: int
    end: int

    def reserve(self, size):
        """Claim ``size`` bytes of reserved space and return their start address."""
        addr = self.reserve_start + self.reserve_offset
        if addr + size > self.end:
            raise OutOfSpaceError(
                f"reserved space exhausted: need {size} bytes at {addr}, end {self.end}"
            )
        self.reserve_offset += size
        return addr