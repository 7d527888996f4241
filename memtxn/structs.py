"""Transaction states and the records kept in a transaction's data sets."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from memtxn.data_item import DataItem


class DtxSystem(enum.IntEnum):
    """Which distributed transaction protocol is in use."""

    FARM = 0
    DRTMH = 1
    FORD = 2
    LOCAL = 3  # FORD with localized metadata, including locks and versions


class TxStatus(enum.IntEnum):
    INIT = 0  # Transaction initialization
    EXE = 1  # Execution, read only
    LOCK = 2  # Execution, read and lock
    VAL = 3  # Validation
    COMMIT = 4  # Commit primary and backups
    ABORT = 5  # Aborted transaction


class ValStatus(enum.IntEnum):
    RDMA_ERROR = -1  # Validation network error
    NO_NEED_VAL = 0  # No validation needed; the coroutine need not yield
    NEED_VAL = 1  # Validation needed; the coroutine must yield
    MUST_ABORT = 2  # A version has certainly changed; no validation needed


@dataclass
class DataSetItem:
    """An item in a read-only or read-write set, with its per-transaction state."""

    item: DataItem
    is_fetched: bool = False
    is_logged: bool = False
    read_which_node: int = -1  # Node the item was read from
    bkt_idx: int = -1  # Slot held in the local lock table, -1 if none


@dataclass(frozen=True)
class OldVersionForInsert:
    table_id: int
    key: int
    version: int


@dataclass(frozen=True)
class LockAddr:
    node_id: int
    lock_addr: int


@dataclass(frozen=True)
class CommitWrite:
    node_id: int
    lock_off: int