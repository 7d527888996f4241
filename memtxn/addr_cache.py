"""Cache of remote item offsets, keyed by node, table and key."""

from __future__ import annotations

from memtxn.common import ITEMKEY_SIZE, NODE_ID_SIZE, OFFSET_SIZE, TABLE_ID_SIZE

NOT_FOUND = -1


class AddrCache:
    """Remembers where items live on remote nodes for fast address lookup."""

    def __init__(self):
        self._addr_map = {}

    def insert(self, remote_node_id, table_id, key, remote_offset):
        """Record or update the offset of ``key`` on a node."""
        tables = self._addr_map.setdefault(remote_node_id, {})
        tables.setdefault(table_id, {})[key] = remote_offset

    def search(self, remote_node_id, table_id, key):
        """The cached offset on the given node, or NOT_FOUND."""
        return self._addr_map.get(remote_node_id, {}).get(table_id, {}).get(key, NOT_FOUND)

    def find(self, table_id, key):
        """``(node_id, offset)`` of the first node caching the table, or None.

        Only the first node that holds the table is consulted; if the key is not
        cached there, the lookup gives up.
        """
        for node_id, tables in self._addr_map.items():
            keys = tables.get(table_id)
            if keys is None:
                continue
            if key not in keys:
                return None
            return node_id, keys[key]
        return None

    def total_addr_size(self):
        """Bytes the cached entries would take in their fixed-width form."""
        total = 0
        for tables in self._addr_map.values():
            total += NODE_ID_SIZE
            for keys in tables.values():
                total += TABLE_ID_SIZE + len(keys) * (ITEMKEY_SIZE + OFFSET_SIZE)
        return total