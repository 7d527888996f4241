import pytest

from memtxn.allocators import (
    LOG_BUFFER_SIZE,
    NUM_MEMORY_NODES,
    BufferAllocator,
    LogOffsetAllocator,
    RegionAllocator,
)


def test_buffer_allocator_bumps_and_wraps():
    alloc = BufferAllocator(0, 100)
    assert alloc.alloc(40) == 0
    assert alloc.alloc(40) == 40
    assert alloc.alloc(40) == 0
    assert alloc.alloc(20) == 40


def test_buffer_allocator_exact_fit_does_not_wrap():
    alloc = BufferAllocator(1000, 1100)
    assert alloc.alloc(50) == 1000
    assert alloc.alloc(50) == 1050
    assert alloc.alloc(1) == 1000


def test_buffer_free_keeps_position():
    alloc = BufferAllocator(0, 100)
    first = alloc.alloc(10)
    alloc.free(first)
    assert alloc.alloc(10) == 10


def test_log_defaults_used_by_allocator():
    assert LOG_BUFFER_SIZE == 1024 * 1024 * 1024
    alloc = LogOffsetAllocator(1, 2)
    assert alloc.next_log_offset(NUM_MEMORY_NODES - 1, 8) == LOG_BUFFER_SIZE // 2
    with pytest.raises(IndexError):
        alloc.next_log_offset(NUM_MEMORY_NODES, 8)


def test_log_offsets_stay_in_thread_share():
    alloc = LogOffsetAllocator(1, 4, log_buffer_size=1000)
    assert alloc.next_log_offset(0, 100) == 250
    assert alloc.next_log_offset(0, 100) == 350
    assert alloc.next_log_offset(0, 100) == 250
    assert alloc.next_log_offset(2, 100) == 250


def test_log_nodes_are_independent():
    alloc = LogOffsetAllocator(0, 2, log_buffer_size=1000)
    alloc.next_log_offset(0, 300)
    assert alloc.next_log_offset(1, 10) == 0
    assert alloc.next_log_offset(0, 10) == 300


def test_log_unknown_node():
    alloc = LogOffsetAllocator(0, 1, log_buffer_size=100, num_memory_nodes=2)
    with pytest.raises(IndexError):
        alloc.next_log_offset(5, 1)


def test_region_ranges_are_adjacent():
    regions = RegionAllocator(4, per_thread_size=10)
    assert regions.thread_local_region(2) == (20, 30)
    ends = [regions.thread_local_region(t)[1] for t in range(3)]
    starts = [regions.thread_local_region(t)[0] for t in range(1, 4)]
    assert ends == starts
    assert regions.size == 40


def test_region_bad_tid():
    regions = RegionAllocator(2, per_thread_size=10)
    with pytest.raises(ValueError):
        regions.thread_local_region(2)