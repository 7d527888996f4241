"""Local version cache used to skip remote validation of read-only items."""

from __future__ import annotations

import enum

from memtxn.common import MAX_DB_TABLE_NUM


class VersionStatus(enum.IntEnum):
    NO_VERSION_CHANGED = 0
    VERSION_CHANGED = 1
    VERSION_EVICTED = 2


class _Slot:
    __slots__ = ("key", "version")

    def __init__(self):
        self.key = 0
        self.version = 0


class VersionCache:
    """Per-table buckets of ``(key, version)`` slots recording the latest writer.

    A key's bucket is ``key % num_buckets``; a slot with key 0 is empty.
    """

    def __init__(self, num_tables=MAX_DB_TABLE_NUM, num_buckets=1 << 20, slots_per_bucket=4):
        if num_buckets <= 0 or slots_per_bucket <= 0:
            raise ValueError("table dimensions must be positive")
        self.num_buckets = num_buckets
        self.slots_per_bucket = slots_per_bucket
        self._tables = [{} for _ in range(num_tables)]

    def _bucket(self, table_id, key):
        buckets = self._tables[table_id]
        index = key % self.num_buckets
        bucket = buckets.get(index)
        if bucket is None:
            bucket = [_Slot() for _ in range(self.slots_per_bucket)]
            buckets[index] = bucket
        return bucket

    def set_version(self, read_write_set, tx_id):
        """Record ``tx_id`` as the version of every written key.

        A key not yet cached takes the first empty slot of its bucket, or
        evicts the first slot when the bucket is full.
        """
        for entry in read_write_set:
            key = entry.item.key
            bucket = self._bucket(entry.item.table_id, key)
            target = None
            for slot in bucket:
                if target is None and slot.key == 0:
                    target = slot
                elif slot.key == key:
                    slot.version = tx_id
                    break
            else:
                target = target if target is not None else bucket[0]
                target.version = tx_id
                target.key = key

    def check_version(self, read_only_set, my_tx_id):
        """VERSION_CHANGED if any read key was written by a later transaction.

        Keys that are not cached count as unchanged.
        """
        for entry in read_only_set:
            key = entry.item.key
            bucket = self._bucket(entry.item.table_id, key)
            for slot in bucket:
                if slot.key == key:
                    if slot.version > my_tx_id:
                        return VersionStatus.VERSION_CHANGED
                    break
        return VersionStatus.NO_VERSION_CHANGED