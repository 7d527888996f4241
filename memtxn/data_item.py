"""Fixed-layout data item stored in hash buckets and shipped to remote nodes."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

MAX_ITEM_SIZE = 504

_LAYOUT = struct.Struct(f"<QQQqQQ{MAX_ITEM_SIZE}sBB")
DATA_ITEM_SIZE = (_LAYOUT.size + 7) // 8 * 8
_PADDING = DATA_ITEM_SIZE - _LAYOUT.size

# Byte offsets of the version and lock fields inside a serialized item.
VERSION_FIELD_OFFSET = 32
LOCK_FIELD_OFFSET = 40

# Size of the read issued after a write to emulate a remote flush.
R_FLUSH_READ_SIZE = 1


@dataclass
class DataItem:
    """A record: metadata, a fixed-size value buffer and state flags."""

    table_id: int = 0
    value_size: int = 0
    key: int = 0
    remote_offset: int = 0
    version: int = 0
    lock: int = 0
    value: bytearray = field(default_factory=lambda: bytearray(MAX_ITEM_SIZE))
    valid: int = 0
    user_insert: int = 0

    def __post_init__(self):
        data = bytearray(self.value)
        if len(data) > MAX_ITEM_SIZE:
            raise ValueError(f"value of {len(data)} bytes exceeds {MAX_ITEM_SIZE}")
        data.extend(bytes(MAX_ITEM_SIZE - len(data)))
        self.value = data

    @classmethod
    def empty(cls, table_id, key):
        """An item to be filled by a remote fetch."""
        return cls(table_id=table_id, key=key, valid=1)

    @classmethod
    def for_insert(cls, table_id, value_size, key, version, user_insert):
        """An item created by a user insert operation."""
        if value_size > MAX_ITEM_SIZE:
            raise ValueError(f"value size {value_size} exceeds {MAX_ITEM_SIZE}")
        return cls(
            table_id=table_id,
            value_size=value_size,
            key=key,
            version=version,
            valid=1,
            user_insert=user_insert,
        )

    @classmethod
    def with_value(cls, table_id, key, value):
        """An item holding the given value bytes, as used when loading tables."""
        if len(value) > MAX_ITEM_SIZE:
            raise ValueError(f"value of {len(value)} bytes exceeds {MAX_ITEM_SIZE}")
        return cls(
            table_id=table_id,
            value_size=len(value),
            key=key,
            value=bytearray(value),
            valid=1,
        )

    @property
    def payload(self):
        """The meaningful part of the value buffer."""
        return bytes(self.value[: self.value_size])

    def serialize(self):
        """Encode the item in its fixed binary layout."""
        return (
            _LAYOUT.pack(
                self.table_id,
                self.value_size,
                self.key,
                self.remote_offset,
                self.version,
                self.lock,
                bytes(self.value),
                self.valid,
                self.user_insert,
            )
            + bytes(_PADDING)
        )

    @classmethod
    def from_bytes(cls, data):
        """Decode an item produced by serialize()."""
        if len(data) != DATA_ITEM_SIZE:
            raise ValueError(f"expected {DATA_ITEM_SIZE} bytes, got {len(data)}")
        (table_id, value_size, key, remote_offset, version, lock, value, valid,
         user_insert) = _LAYOUT.unpack_from(data)
        return cls(
            table_id=table_id,
            value_size=value_size,
            key=key,
            remote_offset=remote_offset,
            version=version,
            lock=lock,
            value=bytearray(value),
            valid=valid,
            user_insert=user_insert,
        )

    def remote_lock_addr(self, remote_item_off=None):
        """Remote address of the lock field, by default of this item."""
        base = self.remote_offset if remote_item_off is None else remote_item_off
        return base + LOCK_FIELD_OFFSET

    def remote_version_addr(self, remote_item_off=None):
        """Remote address of the version field, by default of this item."""
        base = self.remote_offset if remote_item_off is None else remote_item_off
        return base + VERSION_FIELD_OFFSET