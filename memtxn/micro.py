"""Micro-benchmark workload: a single table of fixed 40-byte records."""

from __future__ import annotations

import enum
import json
import logging
import struct

from memtxn.common import U64_MASK
from memtxn.hash_store import HashStore
from memtxn.loading import load_bucket_num, load_record, replica_roles

log = logging.getLogger(__name__)

MICRO_MAGIC = 97
_VALUE = struct.Struct("<5Q")
MICRO_VALUE_SIZE = _VALUE.size


def align_pow2(v):
    """Round a 64-bit value up to the next power of two (0 stays 0)."""
    v = (v - 1) & U64_MASK
    for shift in (1, 2, 4, 8, 16, 32):
        v |= v >> shift
    return (v + 1) & U64_MASK


class MicroTxType(enum.IntEnum):
    LOCK_CONTENTION = 0


class Micro:
    """Builds and populates the micro-benchmark table on a memory node."""

    bench_name = "MICRO"

    def __init__(self, num_keys, table_id, bucket_num):
        self.num_keys_global = align_pow2(num_keys)
        self.table_id = table_id
        self.bucket_num = bucket_num
        self.micro_table = None
        self.primary_tables = []
        self.backup_tables = []

    @classmethod
    def from_config(cls, config_path, table_config_path, table_id):
        """Create the workload from its configuration and table configuration files."""
        with open(config_path, encoding="utf-8") as fh:
            config = json.load(fh)
        try:
            num_keys = int(config["micro"]["num_keys"])
        except (KeyError, TypeError) as exc:
            raise ValueError(f"{config_path}: missing micro.num_keys") from exc
        return cls(num_keys, table_id, load_bucket_num(table_config_path))

    def pack_value(self):
        """The value every record is loaded with."""
        return _VALUE.pack(*(MICRO_MAGIC + i for i in range(5)))

    def _build(self, alloc_param, reserve_param):
        self.micro_table = HashStore(self.table_id, self.bucket_num, alloc_param)
        self.populate_micro_table(reserve_param)
        return self.micro_table

    def load_table(self, node_id, num_server, alloc_param, reserve_param):
        """Create and populate the replicas of the table that this node holds."""
        roles = replica_roles(self.table_id, node_id, num_server)
        if 0 in roles:
            log.info("Primary: Initializing MICRO table")
            self.primary_tables.append(self._build(alloc_param, reserve_param))
        for _ in (role for role in roles if role > 0):
            log.info("Backup: Initializing MICRO table")
            self.backup_tables.append(self._build(alloc_param, reserve_param))

    def populate_micro_table(self, reserve_param):
        """Load one record for every key of the key space."""
        if self.micro_table is None:
            raise RuntimeError("the micro table has not been created")
        log.debug("NUM KEYS TOTAL: %d", self.num_keys_global)
        value = self.pack_value()
        for key in range(self.num_keys_global):
            load_record(self.micro_table, key, value, self.table_id, reserve_param)