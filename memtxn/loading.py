"""Helpers shared by the workloads for loading tables onto memory nodes."""

from __future__ import annotations

import json

from memtxn.common import BACKUP_DEGREE
from memtxn.data_item import MAX_ITEM_SIZE, DataItem


def load_record(table, key, value, table_id, reserve_param):
    """Insert a record holding ``value`` into ``table`` and install its remote offset.

    Returns the stored item.
    """
    if len(value) > MAX_ITEM_SIZE:
        raise ValueError(f"value of {len(value)} bytes exceeds {MAX_ITEM_SIZE}")
    item = DataItem.with_value(table_id, key, value)
    stored = table.local_insert(key, item, reserve_param)
    stored.remote_offset = table.item_remote_offset(stored)
    return stored


def replica_roles(table_id, node_id, num_server):
    """Replicas of a table that a node holds: 0 is the primary, ``i`` the i-th backup.

    The primary lives on node ``table_id % num_server``; its backups follow it
    on the next nodes, but only when there are more servers than backups.
    """
    if num_server <= 0:
        raise ValueError("num_server must be positive")
    home = table_id % num_server
    roles = []
    if home == node_id:
        roles.append(0)
    if BACKUP_DEGREE < num_server:
        roles.extend(
            i
            for i in range(1, BACKUP_DEGREE + 1)
            if home == (node_id - i + num_server) % num_server
        )
    return roles


def load_bucket_num(path):
    """Read the bucket count from a table configuration file."""
    with open(path, encoding="utf-8") as fh:
        config = json.load(fh)
    try:
        return int(config["table"]["bkt_num"])
    except (KeyError, TypeError) as exc:
        raise ValueError(f"{path}: missing table.bkt_num") from exc