"""First-fit heap allocator over the MPU sub-regions of a 28 KB SRAM window.

The heap starts at HEAP_ADDRESS and is made of five MPU regions, each split
into eight sub-regions:

    bits  0-7   4 KB region at 0x20001000, 512 B sub-regions
    bits  8-15  8 KB region at 0x20002000, 1024 B sub-regions
    bits 16-23  4 KB region at 0x20004000, 512 B sub-regions
    bits 24-31  4 KB region at 0x20005000, 512 B sub-regions
    bits 32-39  8 KB region at 0x20006000, 1024 B sub-regions

Requests of 1536 bytes may straddle a 4 KB / 8 KB boundary (one 512 B and
one 1024 B sub-region). The edge sub-regions used for that are kept free
while smaller requests can be served elsewhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

SRAM_BASE = 0x20000000
HEAP_ADDRESS = 0x20001000
SRAM_END = 0x20008000

MAX_1536B_BLOCK = 3
MAX_1024B_BLOCK = 16
MAX_512B_BLOCK = 24
MAX_SUBREGION = 40
MAX_ALLOCATIONS = 14
MAX_REQUEST_BLOCKS = 16  # in 512 B units: at most 8 KB per request

_EDGE_RUN = 6  # runs up to this many blocks leave the edge sub-regions alone

# region base -> (index of its first sub-region counted from SRAM_BASE, sub-region size)
_REGIONS = {
    0x20000000: (0, 512),
    0x20001000: (8, 512),
    0x20002000: (16, 1024),
    0x20003000: (20, 1024),
    0x20004000: (24, 512),
    0x20005000: (32, 512),
    0x20006000: (40, 1024),
    0x20007000: (44, 1024),
}


class SubregionIndex(NamedTuple):
    """Position of an address among the SRAM sub-regions."""

    index: int
    subregion_size: int


def calculate_index(address: int) -> SubregionIndex:
    """Return the sub-region index (counted from SRAM_BASE) holding ``address``.

    Addresses in the 4 KB page starting at SRAM_END map to index 48 with a
    sub-region size of 0. Anything else outside SRAM raises ValueError.
    """
    region = address & 0xFFFFF000
    if region == SRAM_END:
        return SubregionIndex(48, 0)
    try:
        first, size = _REGIONS[region]
    except KeyError:
        raise ValueError(f"address 0x{address:08X} is outside SRAM") from None
    return SubregionIndex(first + (address & 0xFFF) // size, size)


def calculate_blocks(requested_size: int) -> tuple[int, int]:
    """Return how many (1024 B, 512 B) blocks a request of ``requested_size`` needs."""
    if requested_size < 0:
        raise ValueError("requested size must not be negative")
    blocks_1024, remainder = divmod(requested_size, 1024)
    blocks_512 = 0
    if remainder > 0:
        if remainder > 512 or blocks_1024 > 1:
            blocks_1024 += 1
        else:
            blocks_512 = 1
    return blocks_1024, blocks_512


def malloc_address(index: int) -> int:
    """Return the start address of heap sub-region ``index`` (0 to 39)."""
    if not 0 <= index < MAX_SUBREGION:
        raise ValueError(f"heap sub-region index {index} out of range")
    region = (index // 8) * 0x1000
    if index >= 16:
        region += 0x1000
    if index < 8 or 16 <= index < 32:
        subregion = (index % 8) * 512
    else:
        subregion = (index % 8) * 1024
    return HEAP_ADDRESS + region + subregion


@dataclass
class Allocation:
    """One slot of the allocation table."""

    in_use: bool = False
    pid: int = 0
    size: int = 0
    address: int = 0


class HeapAllocator:
    """Tracks heap sub-region usage and the owner of each allocation."""

    def __init__(self, active_pid: int = 0) -> None:
        self.active_pid = active_pid
        self._used = 0
        self._in_use = {512: 0, 1024: 0, 1536: 0}
        self._slots = [Allocation() for _ in range(MAX_ALLOCATIONS)]

    # -- state ------------------------------------------------------------

    @property
    def used_mask(self) -> int:
        """Bit i set means heap sub-region i is taken."""
        return self._used

    @property
    def in_use_512(self) -> int:
        return self._in_use[512]

    @property
    def in_use_1024(self) -> int:
        return self._in_use[1024]

    @property
    def in_use_1536(self) -> int:
        return self._in_use[1536]

    @property
    def subregion_use_data(self) -> int:
        """The usage bits and block counters packed into one 64-bit word."""
        return (
            self._used
            | self._in_use[512] << 40
            | self._in_use[1024] << 48
            | self._in_use[1536] << 56
        )

    @property
    def allocations(self) -> tuple[Allocation, ...]:
        return tuple(self._slots)

    def _bit(self, index: int) -> bool:
        return bool(self._used >> index & 1)

    def _count(self, kind: int, delta: int) -> None:
        self._in_use[kind] = (self._in_use[kind] + delta) & 0xFF

    # -- searching --------------------------------------------------------

    def _claim_run(self, base: int, needed: int, skipped: set[int]) -> int | None:
        count = 0
        for j in range(8):
            if j in skipped:
                continue
            count = 0 if self._bit(base + j) else count + 1
            if count == needed:
                start = base + j - needed + 1
                self._used |= ((1 << needed) - 1) << start
                return start
        return None

    def _find_1536(self) -> int | None:
        for lower in (7, 15, 31):
            if not self._bit(lower) and not self._bit(lower + 1):
                for kind in (512, 1024, 1536):
                    self._count(kind, 1)
                self._used |= 3 << lower
                return lower
        return None

    def _find_1024(self, needed_1024: int, needed_512: int) -> int | None:
        for attempt in range(2):
            if attempt == 1 and needed_512 > _EDGE_RUN:
                return None
            for base, lower_edge, upper_edge in ((8, 7, 16), (32, 31, None)):
                skipped: set[int] = set()
                if attempt == 0 and needed_1024 <= _EDGE_RUN:
                    if not self._bit(lower_edge):
                        skipped.add(0)
                    if upper_edge is None or not self._bit(upper_edge):
                        skipped.add(7)
                index = self._claim_run(base, needed_1024, skipped)
                if index is not None:
                    self._count(1024, needed_1024)
                    return index
        return None

    def _find_512(self, needed_512: int) -> int | None:
        for attempt in range(2):
            if attempt == 1 and needed_512 > _EDGE_RUN:
                return None
            for block, base in enumerate((0, 16, 24)):
                lower_8kb_edge = self._bit(15)
                upper_8kb_edge = self._bit(8) if block == 0 else self._bit(32)
                skipped: set[int] = set()
                if attempt == 0 and needed_512 <= _EDGE_RUN:
                    if block in (0, 2) and not upper_8kb_edge:
                        skipped.add(7)
                    if block == 1 and not lower_8kb_edge:
                        skipped.add(0)
                index = self._claim_run(base, needed_512, skipped)
                if index is not None:
                    self._count(512, needed_512)
                    return index
        return None

    def _find_space(self, needed_1024: int, needed_512: int) -> int | None:
        if needed_1024 == 1 and needed_512 == 1:
            return self._find_1536()
        if needed_1024:
            return self._find_1024(needed_1024, needed_512)
        if needed_512:
            return self._find_512(needed_512)
        return None

    # -- public operations ------------------------------------------------

    def malloc(self, size: int) -> int | None:
        """Allocate ``size`` bytes for the active pid.

        Returns the start address, or None when no suitable space is left,
        the request is empty, or it exceeds 8 KB.
        """
        needed_1024, needed_512 = calculate_blocks(size)
        total = needed_1024 * 2 + needed_512
        free_1024 = (MAX_1024B_BLOCK - self._in_use[1024]) & 0xFF
        free_512 = (MAX_512B_BLOCK - self._in_use[512]) & 0xFF

        if total > free_1024 * 2 + free_512 or total > MAX_REQUEST_BLOCKS:
            return None

        if needed_1024 > free_1024 and total <= free_512:
            needed_1024, needed_512 = 0, total
        elif needed_512 > free_512 and needed_1024 + 1 <= free_1024:
            needed_1024, needed_512 = needed_1024 + 1, 0

        index: int | None = None
        if needed_1024 == 1 and needed_512 == 1:
            if self._in_use[1536] < MAX_1536B_BLOCK:
                index = self._find_space(1, 1)
            if index is None:
                index = self._find_space(0, 3)
            if index is None:
                index = self._find_space(2, 0)
        elif needed_1024:
            index = self._find_space(needed_1024, needed_512)
            if index is None:
                index = self._find_space(0, total)
        elif needed_512:
            index = self._find_space(0, needed_512)
            if index is None:
                index = self._find_space((total + 1) // 2, 0)

        if index is None:
            return None
        address = malloc_address(index)
        self._record(address, total * 512)
        return address

    def _record(self, address: int, size: int) -> None:
        for slot in self._slots:
            if not slot.in_use:
                slot.in_use = True
                slot.pid = self.active_pid
                slot.size = size
                slot.address = address
                return

    def free(self, address: int, size: int) -> None:
        """Mark the sub-regions covering ``size`` bytes at ``address`` as free."""
        if size <= 0:
            raise ValueError("size must be positive")
        if address < HEAP_ADDRESS or address + size - 1 >= SRAM_END:
            raise ValueError(f"block at 0x{address:08X} is outside the heap")
        start_index, start_size = calculate_index(address)
        end_index, end_size = calculate_index(address + size - 1)
        start = start_index - 8
        end = end_index - 7
        self._used &= ~(((1 << (end - start)) - 1) << start)

        if {start_size, end_size} == {512, 1024}:
            for kind in (512, 1024, 1536):
                self._count(kind, -1)
        else:
            self._count(start_size, -(size // start_size))

    def check_ownership(self, address: int, from_kill: bool = False) -> int | None:
        """Release the table entry for ``address`` owned by the active pid.

        Returns the recorded size, or None if no matching entry exists.
        With ``from_kill`` the first unused entry of the active pid matches.
        """
        for slot in self._slots:
            if from_kill:
                match = not slot.in_use and slot.pid == self.active_pid
            else:
                match = (
                    slot.in_use
                    and slot.address == address
                    and slot.pid == self.active_pid
                )
            if match:
                slot.in_use = False
                return slot.size
        return None

    def release(self, address: int) -> int:
        """Free an allocation of the active pid and return its size.

        Raises PermissionError if the active pid does not own ``address``.
        """
        size = self.check_ownership(address, False)
        if size is None:
            raise PermissionError(
                f"pid {self.active_pid} does not own 0x{address:08X}"
            )
        self.free(address, size)
        return size