"""Shared constants and the 64-bit key mixer."""

U64_MASK = (1 << 64) - 1

# Field widths in bytes, used for size accounting of cached metadata.
NODE_ID_SIZE = 4
TABLE_ID_SIZE = 8
ITEMKEY_SIZE = 8
OFFSET_SIZE = 8
VERSION_SIZE = 8
LOCK_SIZE = 8

# Memory region ids for the server's hash store buffer and undo log buffer.
SERVER_HASH_BUFF_ID = 97
SERVER_LOG_BUFF_ID = 98

# Memory region id for a client's local region.
CLIENT_MR_ID = 100

# Marks that all memory store metadata has been transmitted.
MEM_STORE_META_END = 0xE0FF0E0F

# Number of backup memory nodes; must never be zero.
BACKUP_DEGREE = 2
MAX_REMOTE_NODE_NUM = 100
MAX_DB_TABLE_NUM = 15

# Data states.
STATE_INVISIBLE = 0x8000000000000000
STATE_LOCKED = 1
STATE_CLEAN = 0


def mix64(key):
    """Scramble a 64-bit key with the murmur3 finaliser."""
    k = key & U64_MASK
    k ^= k >> 33
    k = (k * 0xFF51AFD7ED558CCD) & U64_MASK
    k ^= k >> 33
    k = (k * 0xC4CEB9FE1A85EC53) & U64_MASK
    k ^= k >> 33
    return k