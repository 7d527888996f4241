"""Local lock tables: open-addressing hash tables of per-key lock words."""

from __future__ import annotations

import threading

from memtxn.common import MAX_DB_TABLE_NUM, STATE_CLEAN, STATE_LOCKED, mix64


class LockTableFullError(RuntimeError):
    """Raised when a lock table has no slot left for a new key."""


class _LockTable:
    def __init__(self):
        self.keys = {}
        self.locks = {}


class LockCache:
    """Locks keys locally by probing linearly from their mixed hash.

    Slots are stored sparsely; an absent slot holds key 0 and a clean lock.
    """

    def __init__(self, num_tables=MAX_DB_TABLE_NUM, num_buckets=1 << 20, slots_per_bucket=1):
        if num_buckets <= 0 or slots_per_bucket <= 0:
            raise ValueError("table dimensions must be positive")
        self.total_slot = num_buckets * slots_per_bucket
        self._tables = [_LockTable() for _ in range(num_tables)]
        self._mutex = threading.Lock()

    def _cas_lock(self, table, slot):
        if table.locks.get(slot, STATE_CLEAN) != STATE_CLEAN:
            return False
        table.locks[slot] = STATE_LOCKED
        return True

    def _lock_one(self, entry):
        key = entry.item.key
        table = self._tables[entry.item.table_id]
        start = mix64(key) % self.total_slot
        with self._mutex:
            for step in range(self.total_slot):
                slot = (start + step) % self.total_slot
                probed = table.keys.get(slot, 0)
                if probed == key:
                    if not self._cas_lock(table, slot):
                        return False
                    entry.bkt_idx = slot
                    return True
                if probed != 0:
                    continue
                table.keys[slot] = key
                if not self._cas_lock(table, slot):
                    return False
                entry.bkt_idx = slot
                return True
        raise LockTableFullError(f"no free slot for key {key} in table {entry.item.table_id}")

    def try_lock(self, read_write_set):
        """Lock every item; False as soon as one is held by someone else.

        Items locked before a failure keep their slot in ``bkt_idx`` so the
        caller can release them with unlock().
        """
        return all(self._lock_one(entry) for entry in read_write_set)

    def unlock(self, read_write_set):
        """Release the slots held by the items of the set."""
        for entry in read_write_set:
            if entry.bkt_idx == -1:
                continue
            table = self._tables[entry.item.table_id]
            with self._mutex:
                table.locks[entry.bkt_idx] = STATE_CLEAN