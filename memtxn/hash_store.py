"""Chained hash table of fixed-size data items laid out in a memory region."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field

from memtxn.common import U64_MASK
from memtxn.data_item import DATA_ITEM_SIZE, DataItem

log = logging.getLogger(__name__)

ITEM_NUM_PER_NODE = 22
HASH_NODE_SIZE = ITEM_NUM_PER_NODE * DATA_ITEM_SIZE + 8
HASH_SEED = 0xDEADBEEF

OFFSET_NOT_FOUND = -1
OFFSET_FOUND = 0
VERSION_TOO_OLD = -2

SLOT_NOT_FOUND = -1
SLOT_INV = -2
SLOT_LOCKED = -3
SLOT_FOUND = 0


def _murmur64a(key, seed):
    """MurmurHash64A over the 8 little-endian bytes of ``key``."""
    m = 0xC6A4A7935BD1E995
    r = 47
    h = (seed ^ (8 * m)) & U64_MASK
    k = (key & U64_MASK) * m & U64_MASK
    k ^= k >> r
    k = k * m & U64_MASK
    h ^= k
    h = h * m & U64_MASK
    h ^= h >> r
    h = h * m & U64_MASK
    h ^= h >> r
    return h


@dataclass(frozen=True)
class HashMeta:
    """What a remote reader needs to address a hash table."""

    table_id: int
    data_ptr: int
    bucket_num: int
    node_size: int
    base_off: int


@dataclass
class HashNode:
    """A bucket: a fixed number of item slots and a link to the next bucket."""

    address: int
    items: list = field(default_factory=lambda: [DataItem() for _ in range(ITEM_NUM_PER_NODE)])
    next: HashNode | None = None

    def chain(self):
        node = self
        while node is not None:
            yield node
            node = node.next


class HashStore:
    """A hash table whose buckets live at fixed addresses of a memory region."""

    def __init__(self, table_id, bucket_num, alloc_param):
        if bucket_num <= 0:
            raise ValueError("bucket_num must be positive")
        self.table_id = table_id
        self.bucket_num = bucket_num
        self.table_size = bucket_num * HASH_NODE_SIZE
        self.node_size = HASH_NODE_SIZE
        self.node_num = 0
        self._region_start = alloc_param.region_start
        self.data_ptr = alloc_param.allocate(self.table_size)
        self.base_off = self.data_ptr - self._region_start
        self._buckets = {}
        self._addresses = {}
        log.info(
            "Table %d size: %d MB. Start address: 0x%x, base_off: 0x%x, bucket_size: %d B",
            table_id, self.table_size // 1024 // 1024, self.data_ptr, self.base_off,
            ITEM_NUM_PER_NODE * DATA_ITEM_SIZE,
        )

    def get_hash(self, key):
        """Bucket index of ``key``."""
        return _murmur64a(key, HASH_SEED) % self.bucket_num

    def meta(self):
        return HashMeta(self.table_id, self.data_ptr, self.bucket_num, self.node_size, self.base_off)

    def item_remote_offset(self, item):
        """Offset of a stored item relative to the start of the region."""
        try:
            return self._addresses[id(item)] - self._region_start
        except KeyError:
            raise ValueError("item is not stored in this table") from None

    def _bucket(self, key, create):
        index = self.get_hash(key)
        node = self._buckets.get(index)
        if node is None and create:
            node = HashNode(self.data_ptr + index * HASH_NODE_SIZE)
            self._buckets[index] = node
        return node

    def _place(self, node, slot, item):
        old = node.items[slot]
        self._addresses.pop(id(old), None)
        node.items[slot] = item
        self._addresses[id(item)] = node.address + slot * DATA_ITEM_SIZE
        return item

    def _locate(self, key):
        node = self._bucket(key, create=False)
        if node is None:
            return None
        for current in node.chain():
            for slot, item in enumerate(current.items):
                if item.valid and item.key == key:
                    return current, slot
        return None

    def local_get(self, key):
        """The valid item with ``key``, or None."""
        found = self._locate(key)
        return None if found is None else found[0].items[found[1]]

    def local_insert(self, key, item, reserve_param):
        """Store a copy of ``item`` in the first free slot of the key's bucket chain."""
        node = self._bucket(key, create=True)
        last = node
        for current in node.chain():
            for slot, existing in enumerate(current.items):
                if not existing.valid:
                    stored = dataclasses.replace(item, value=bytearray(item.value), valid=1)
                    return self._place(current, slot, stored)
            last = current

        log.info(
            "Table %d alloc a new bucket for key: %d. Current slotnum/bucket: %d",
            self.table_id, key, ITEM_NUM_PER_NODE,
        )
        new_node = HashNode(reserve_param.reserve(HASH_NODE_SIZE))
        stored = dataclasses.replace(item, value=bytearray(item.value), valid=1)
        self._place(new_node, 0, stored)
        last.next = new_node
        self.node_num += 1
        return stored

    def local_put(self, key, item, reserve_param):
        """Overwrite the item with ``key`` if present, otherwise insert it."""
        found = self._locate(key)
        if found is not None:
            node, slot = found
            return self._place(node, slot, dataclasses.replace(item, value=bytearray(item.value)))
        return self.local_insert(key, item, reserve_param)

    def local_delete(self, key):
        """Mark the item with ``key`` deleted; False if there is none."""
        item = self.local_get(key)
        if item is None:
            return False
        item.valid = 0
        return True