import pytest

from mpuheap.heap import SRAM_END, calculate_index
from mpuheap.mpu import (
    add_sram_access_window,
    flash_region,
    no_sram_access_mask,
    peripheral_region,
    region_srd_masks,
    sram_regions,
)

FULL = 0xFFFFFFFFFFFFFFFF


def test_no_access_mask_disables_everything():
    assert no_sram_access_mask() == FULL


def test_whole_sram_window_clears_all_sram_bits():
    mask = add_sram_access_window(no_sram_access_mask(), 0x20000000, 32768)
    assert mask & ((1 << 48) - 1) == 0
    assert mask >> 48 == 0xFFFF
    assert all(srd == 0 for srd in region_srd_masks(mask).values())


def test_single_subregion_window():
    address = 0x20002000
    mask = add_sram_access_window(FULL, address, 1024)
    assert mask ^ FULL == 1 << calculate_index(address).index


def test_window_spanning_two_subregions_of_512():
    address = 0x20001000
    mask = add_sram_access_window(FULL, address, 1024)
    first = calculate_index(address).index
    assert mask ^ FULL == 0b11 << first


def test_window_past_sram_end_leaves_mask():
    mask = add_sram_access_window(FULL, 0x20007C00, 2048)
    assert mask == FULL


def test_window_ending_at_sram_end_is_applied():
    mask = add_sram_access_window(FULL, 0x20007C00, SRAM_END - 0x20007C00)
    assert mask ^ FULL == 1 << calculate_index(0x20007C00).index


def test_empty_window_leaves_mask():
    assert add_sram_access_window(FULL, 0x20004000, 0) == FULL


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        add_sram_access_window(FULL, 0x20004000, -1)


def test_base_outside_sram_rejected():
    with pytest.raises(ValueError):
        add_sram_access_window(FULL, 0x10000000, 512)


def test_mask_out_of_range_rejected():
    with pytest.raises(ValueError):
        add_sram_access_window(1 << 64, 0x20004000, 512)
    with pytest.raises(ValueError):
        region_srd_masks(-1)


def test_windows_accumulate():
    mask = add_sram_access_window(FULL, 0x20004000, 512)
    mask = add_sram_access_window(mask, 0x20005000, 512)
    expected = (1 << calculate_index(0x20004000).index) | (
        1 << calculate_index(0x20005000).index
    )
    assert mask ^ FULL == expected


def test_region_srd_masks_full():
    masks = region_srd_masks(FULL)
    assert list(masks) == [2, 3, 4, 5, 6, 7]
    assert all(srd == 0xFF for srd in masks.values())


def test_region_srd_masks_only_touched_region_changes():
    mask = add_sram_access_window(FULL, 0x20002000, 8192)
    masks = region_srd_masks(mask)
    assert masks[4] == 0
    assert all(masks[n] == 0xFF for n in (2, 3, 5, 6, 7))


def test_region_srd_masks_reassemble():
    mask = add_sram_access_window(FULL, 0x20001200, 3000)
    masks = region_srd_masks(mask)
    rebuilt = sum(srd << ((n - 2) * 8) for n, srd in masks.items())
    assert rebuilt == mask & ((1 << 48) - 1)


def test_flash_region():
    region = flash_region()
    assert region.number == 0
    assert region.address == 0
    assert region.size == 256 * 1024
    assert region.enabled
    assert not region.execute_never
    assert region.access_permission == 0b010
    assert region.srd == 0


def test_peripheral_region():
    region = peripheral_region()
    assert region.number == 1
    assert region.address == 0x40000000
    assert region.execute_never
    assert region.access_permission == 0b011
    assert region.shareable and region.bufferable and not region.cacheable


def test_sram_regions_are_contiguous_and_cover_sram():
    regions = sram_regions()
    assert [r.number for r in regions] == [2, 3, 4, 5, 6, 7]
    assert regions[0].address == 0x20000000
    for lower, upper in zip(regions, regions[1:]):
        assert lower.address + lower.size == upper.address
    assert regions[-1].address + regions[-1].size == SRAM_END


def test_sram_regions_start_fully_disabled():
    for region in sram_regions():
        assert region.srd == 0xFF
        assert region.enabled
        assert not region.execute_never
        assert region.shareable and region.cacheable


def test_sram_region_sizes_match_mask_bytes():
    for region in sram_regions():
        first = calculate_index(region.address).index
        last = calculate_index(region.address + region.size - 1).index
        assert first == (region.number - 2) * 8
        assert last == first + 7