"""Offset allocators for per-thread buffers, remote logs and memory regions."""

from __future__ import annotations

from memtxn.common import BACKUP_DEGREE

LOG_BUFFER_SIZE = 1024 * 1024 * 1024
NUM_MEMORY_NODES = BACKUP_DEGREE + 1
PER_THREAD_ALLOC_SIZE = 500 * 1024 * 1024


class BufferAllocator:
    """Bump allocator over ``[start, end)`` that wraps to the front when full.

    Buffers at the front have long finished serving their requests by the time
    the region wraps, so they are simply reused.
    """

    def __init__(self, start, end):
        self.start = start
        self.end = end
        self.cur_offset = 0

    def alloc(self, size):
        if self.start + self.cur_offset + size > self.end:
            self.cur_offset = 0
        address = self.start + self.cur_offset
        self.cur_offset += size
        return address

    def free(self, offset):
        """Release a buffer; space is reclaimed by wrapping, so this changes nothing."""


class LogOffsetAllocator:
    """Hands out remote log offsets within a thread's share of each node's log buffer."""

    def __init__(self, tid, num_thread, log_buffer_size=LOG_BUFFER_SIZE,
                 num_memory_nodes=NUM_MEMORY_NODES):
        per_thread = log_buffer_size // num_thread
        self._start = [tid * per_thread] * num_memory_nodes
        self._end = [(tid + 1) * per_thread] * num_memory_nodes
        self._current = [0] * num_memory_nodes

    def next_log_offset(self, node_id, log_entry_size):
        if self._start[node_id] + self._current[node_id] + log_entry_size > self._end[node_id]:
            self._current[node_id] = 0
        offset = self._start[node_id] + self._current[node_id]
        self._current[node_id] += log_entry_size
        return offset


class RegionAllocator:
    """Splits a machine-wide region into equal per-thread ranges."""

    def __init__(self, thread_num, per_thread_size=PER_THREAD_ALLOC_SIZE):
        self.thread_num = thread_num
        self.per_thread_size = per_thread_size
        self.size = thread_num * per_thread_size

    def thread_local_region(self, tid):
        """The ``(start, end)`` range owned by thread ``tid``."""
        if not 0 <= tid < self.thread_num:
            raise ValueError(f"thread id {tid} out of range for {self.thread_num} threads")
        return tid * self.per_thread_size, (tid + 1) * self.per_thread_size