import pytest

from memtxn.data_item import DATA_ITEM_SIZE, DataItem
from memtxn.hash_store import HASH_NODE_SIZE, ITEM_NUM_PER_NODE, HashStore
from memtxn.mem_store import MemStoreAllocParam, MemStoreReserveParam, OutOfSpaceError

RESERVE_START = 10_000_000


def make_store(bucket_num=4, region_start=0, store_start=4096):
    alloc = MemStoreAllocParam(region_start, store_start, 0, RESERVE_START)
    reserve = MemStoreReserveParam(RESERVE_START, 0, RESERVE_START + 10 * HASH_NODE_SIZE)
    return HashStore(7, bucket_num, alloc), reserve


def test_insert_then_get():
    store, reserve = make_store()
    stored = store.local_insert(5, DataItem.with_value(7, 5, b"abc"), reserve)
    got = store.local_get(5)
    assert got is stored
    assert got.payload == b"abc"
    assert got.valid == 1


def test_get_missing_returns_none():
    store, _ = make_store()
    assert store.local_get(12345) is None


def test_insert_copies_item():
    store, reserve = make_store()
    original = DataItem.with_value(7, 1, b"a")
    stored = store.local_insert(1, original, reserve)
    original.value[0] = ord("z")
    assert stored.payload == b"a"


def test_put_updates_existing():
    store, reserve = make_store()
    first = store.local_insert(9, DataItem.with_value(7, 9, b"old"), reserve)
    offset = store.item_remote_offset(first)
    updated = store.local_put(9, DataItem.with_value(7, 9, b"new"), reserve)
    assert store.local_get(9).payload == b"new"
    assert store.item_remote_offset(updated) == offset


def test_delete():
    store, reserve = make_store()
    store.local_insert(3, DataItem.with_value(7, 3, b"x"), reserve)
    assert store.local_delete(3) is True
    assert store.local_get(3) is None
    assert store.local_delete(3) is False


def test_deleted_slot_is_reused():
    store, reserve = make_store(bucket_num=1)
    first = store.local_insert(1, DataItem.with_value(7, 1, b"a"), reserve)
    offset = store.item_remote_offset(first)
    store.local_delete(1)
    second = store.local_insert(2, DataItem.with_value(7, 2, b"b"), reserve)
    assert store.item_remote_offset(second) == offset


def test_overflow_chains_into_reserve():
    store, reserve = make_store(bucket_num=1)
    items = [store.local_insert(k, DataItem.with_value(7, k, b"v"), reserve)
             for k in range(1, ITEM_NUM_PER_NODE + 2)]
    assert store.node_num == 1
    assert store.item_remote_offset(items[0]) == store.base_off
    assert store.item_remote_offset(items[1]) == store.base_off + DATA_ITEM_SIZE
    assert store.item_remote_offset(items[-1]) == RESERVE_START
    assert all(store.local_get(k) is not None for k in range(1, ITEM_NUM_PER_NODE + 2))


def test_overflow_without_reserve_space():
    alloc = MemStoreAllocParam(0, 0, 0, RESERVE_START)
    reserve = MemStoreReserveParam(RESERVE_START, 0, RESERVE_START)
    store = HashStore(1, 1, alloc)
    for k in range(1, ITEM_NUM_PER_NODE + 1):
        store.local_insert(k, DataItem.with_value(1, k, b"v"), reserve)
    with pytest.raises(OutOfSpaceError):
        store.local_insert(99, DataItem.with_value(1, 99, b"v"), reserve)


def test_base_off_relative_to_region():
    store, _ = make_store(region_start=1000, store_start=5000)
    assert store.base_off == 4000
    assert store.table_size == 4 * HASH_NODE_SIZE


def test_hash_in_range():
    store, _ = make_store(bucket_num=13)
    assert all(0 <= store.get_hash(k) < 13 for k in range(500))


def test_meta():
    store, _ = make_store(bucket_num=8)
    meta = store.meta()
    assert (meta.table_id, meta.bucket_num, meta.node_size, meta.base_off) == (
        7, 8, HASH_NODE_SIZE, store.base_off)


def test_zero_buckets_rejected():
    with pytest.raises(ValueError):
        make_store(bucket_num=0)


def test_foreign_item_offset_rejected():
    store, _ = make_store()
    with pytest.raises(ValueError):
        store.item_remote_offset(DataItem.empty(7, 1))