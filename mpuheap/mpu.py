"""MPU region settings and sub-region disable masks for the SRAM window.

The SRAM mask is a 64-bit word. Byte ``j`` holds the sub-region disable
(SRD) bits of MPU region ``j + 2``; a set bit denies unprivileged access to
that sub-region. Bit ``i`` of the word matches the sub-region index that
:func:`mpuheap.heap.calculate_index` gives, counted from the SRAM base.
"""

from __future__ import annotations

from dataclasses import dataclass

from mpuheap.heap import SRAM_END, calculate_index

_MASK64 = 0xFFFFFFFFFFFFFFFF
_ATTR_ENABLE = 0x1
FIRST_SRAM_REGION = 2
LAST_SRAM_REGION = 7


@dataclass(frozen=True)
class MpuRegion:
    """One MPU region as written to the region number, base and attribute registers."""

    number: int
    base: int
    attr: int

    @property
    def address(self) -> int:
        return self.base & 0xFFFFFFE0

    @property
    def size(self) -> int:
        """Region size in bytes, 2 ** (SIZE field + 1)."""
        return 1 << (((self.attr >> 1) & 0x1F) + 1)

    @property
    def srd(self) -> int:
        return (self.attr >> 8) & 0xFF

    @property
    def enabled(self) -> bool:
        return bool(self.attr & _ATTR_ENABLE)

    @property
    def execute_never(self) -> bool:
        return bool((self.attr >> 28) & 1)

    @property
    def access_permission(self) -> int:
        return (self.attr >> 24) & 0x7

    @property
    def tex(self) -> int:
        return (self.attr >> 19) & 0x7

    @property
    def shareable(self) -> bool:
        return bool((self.attr >> 18) & 1)

    @property
    def cacheable(self) -> bool:
        return bool((self.attr >> 17) & 1)

    @property
    def bufferable(self) -> bool:
        return bool((self.attr >> 16) & 1)


def _attr(
    *,
    xn: int,
    ap: int,
    tex: int,
    s: int,
    c: int,
    b: int,
    srd: int,
    size_field: int,
) -> int:
    return (
        (xn << 28)
        | (ap << 24)
        | (tex << 19)
        | (s << 18)
        | (c << 17)
        | (b << 16)
        | (srd << 8)
        | (size_field << 1)
        | _ATTR_ENABLE
    )


def _check_mask(mask: int) -> int:
    if not 0 <= mask <= _MASK64:
        raise ValueError(f"mask {mask!r} does not fit in 64 bits")
    return mask


def no_sram_access_mask() -> int:
    """Return a mask that disables every SRAM sub-region."""
    return _MASK64


def add_sram_access_window(mask: int, base: int, size: int) -> int:
    """Return ``mask`` with the sub-regions covering ``size`` bytes at ``base`` enabled.

    A window that would run past the end of SRAM leaves the mask unchanged.
    Raises ValueError for a negative size or a base outside SRAM.
    """
    _check_mask(mask)
    if size < 0:
        raise ValueError("size must not be negative")
    start = calculate_index(base).index
    end_address = base + size
    if end_address > SRAM_END:
        return mask
    end = calculate_index(end_address).index
    if end <= start:
        return mask
    return mask & ~(((1 << (end - start)) - 1) << start) & _MASK64


def region_srd_masks(mask: int) -> dict[int, int]:
    """Split ``mask`` into the SRD byte for each SRAM MPU region (2 to 7)."""
    _check_mask(mask)
    return {
        number: (mask >> ((number - FIRST_SRAM_REGION) * 8)) & 0xFF
        for number in range(FIRST_SRAM_REGION, LAST_SRAM_REGION + 1)
    }


def flash_region() -> MpuRegion:
    """Region 0: 256 KB of flash, read/write/execute privileged, read/execute user."""
    return MpuRegion(
        number=0,
        base=0x00000000,
        attr=_attr(xn=0, ap=0b010, tex=0, s=0, c=1, b=0, srd=0x00, size_field=0x11),
    )


def peripheral_region() -> MpuRegion:
    """Region 1: the peripheral space, read/write for all, never executable."""
    return MpuRegion(
        number=1,
        base=0x4 << 28,
        attr=_attr(xn=1, ap=0b011, tex=0, s=1, c=0, b=1, srd=0x00, size_field=0x1B),
    )


def sram_regions() -> tuple[MpuRegion, ...]:
    """Regions 2 to 7 covering SRAM, all sub-regions disabled for user access."""
    layout = (
        (2, 0x20000 << 12, 0xB),  # 4 KB OS kernel
        (3, 0x20001 << 12, 0xB),  # 4 KB
        (4, 0x10001 << 13, 0xC),  # 8 KB
        (5, 0x20004 << 12, 0xB),  # 4 KB
        (6, 0x20005 << 12, 0xB),  # 4 KB
        (7, 0x10003 << 13, 0xC),  # 8 KB
    )
    return tuple(
        MpuRegion(
            number=number,
            base=base,
            attr=_attr(
                xn=0, ap=0b011, tex=0, s=1, c=1, b=0, srd=0xFF, size_field=size_field
            ),
        )
        for number, base, size_field in layout
    )