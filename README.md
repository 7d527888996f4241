# memtxn

Building blocks for experiments with distributed in-memory transactions. The
package has no dependencies outside the standard library.

## What is in it

- `memtxn.data_item.DataItem`: a record with table id, value size, key,
  remote offset, version, lock, a fixed 504-byte value buffer and `valid` /
  `user_insert` flags. Build one with `DataItem.empty`, `DataItem.for_insert`
  or `DataItem.with_value`. `serialize()` and `DataItem.from_bytes()` convert
  to and from its fixed 560-byte layout. `remote_lock_addr()` and
  `remote_version_addr()` give the addresses of the lock and version fields.
- `memtxn.mem_store`: `MemStoreAllocParam.allocate(size)` and
  `MemStoreReserveParam.reserve(size)` hand out integer addresses and raise
  `OutOfSpaceError` when their area is exhausted.
- `memtxn.hash_store.HashStore`: a hash table of 22-slot buckets placed at
  addresses taken from a `MemStoreAllocParam`, with overflow buckets taken from
  a `MemStoreReserveParam`. It offers `local_get`, `local_insert`, `local_put`,
  `local_delete`, `item_remote_offset` and `meta()` (a `HashMeta`).
- `memtxn.allocators`: `BufferAllocator` (a bump allocator that wraps to the
  front of its range), `LogOffsetAllocator` (per-thread, per-node log offsets
  that wrap within the thread's share) and `RegionAllocator` (equal per-thread
  ranges, `thread_local_region(tid)`).
- `memtxn.structs`: the enums `DtxSystem`, `TxStatus` and `ValStatus`, and the
  records `DataSetItem`, `OldVersionForInsert`, `LockAddr` and `CommitWrite`.
- `memtxn.addr_cache.AddrCache`: cached remote offsets by node, table and key
  (`insert`, `search`, `find`, `total_addr_size`).
- `memtxn.lock_cache.LockCache`: local lock tables; `try_lock(read_write_set)`
  and `unlock(read_write_set)` work on lists of `DataSetItem`.
- `memtxn.version_cache.VersionCache`: `set_version(read_write_set, tx_id)` and
  `check_version(read_only_set, my_tx_id)`, which returns a `VersionStatus`.
- Table loaders for three benchmarks: `memtxn.micro.Micro`,
  `memtxn.smallbank.SmallBank` and `memtxn.tatp.Tatp`, with TATP keys and
  value layouts in `memtxn.tatp_keys`. Shared helpers (`load_record`,
  `replica_roles`, `load_bucket_num`) are in `memtxn.loading`.

## Install

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Example

```python
from memtxn.data_item import DataItem
from memtxn.hash_store import HashStore
from memtxn.mem_store import MemStoreAllocParam, MemStoreReserveParam

alloc = MemStoreAllocParam(region_start=0, store_start=0, alloc_offset=0,
                           reserve_start=1 << 30)
reserve = MemStoreReserveParam(reserve_start=1 << 30, reserve_offset=0, end=2 << 30)
store = HashStore(table_id=0, bucket_num=64, alloc_param=alloc)

stored = store.local_insert(42, DataItem.with_value(0, 42, b"hello"), reserve)
assert store.local_get(42).payload == b"hello"
offset = store.item_remote_offset(stored)
```

## Benchmark tables

Each benchmark class can be built directly or from JSON files:

- `Micro.from_config(config_path, table_config_path, table_id)` reads
  `{"micro": {"num_keys": ...}}`; the key count is rounded up to a power of two.
- `SmallBank.from_config(config_path, savings_config_path,
  checking_config_path, base_table_id)` reads
  `{"smallbank": {"num_accounts": ..., "num_hot_accounts": ...}}`.
- `Tatp.from_config(config_path, table_config_dir, base_table_id,
  rand_factory)` reads `{"tatp": {"num_subscriber": ...}}` and one file per
  table in `table_config_dir` (`subscriber.json`, `sec_subscriber.json`,
  `special_facility.json`, `access_info.json`, `call_forwarding.json`).
  `rand_factory(seed)` must return a callable giving 64-bit random integers;
  pass `None` to use `random.Random`.

Every table configuration file holds `{"table": {"bkt_num": ...}}`.

`load_table(node_id, num_server, alloc_param, reserve_param)` then builds and
fills the tables that a node holds: the primary of a table lives on node
`table_id % num_server`, and its backups on the following nodes when there are
more servers than backups. The results are in `primary_tables` and
`backup_tables`. `SmallBank` and `Tatp` also provide `create_workgen_array()`
and random account or subscriber selection.

## What it does not do

memtxn does not move data between machines and does not run transactions.
Addresses and offsets are plain integers and nothing is sent over a network;
there is no coordinator that executes the benchmark transactions against the
tables, and there is no command-line program or server. The package supplies
the tables, data-set records, allocators and caches that such a system uses.