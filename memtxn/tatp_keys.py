"""TATP record keys and fixed-layout record values."""

from __future__ import annotations

import struct
from dataclasses import dataclass

# Up to one billion subscribers, so a subscriber number needs only nine digits.
TATP_MAX_SUBSCRIBERS = 1_000_000_000

# Magic numbers written into records to detect mismatched reads.
TATP_MAGIC = 97
SUB_MSC_LOCATION_MAGIC = TATP_MAGIC
SEC_SUB_MAGIC = TATP_MAGIC + 1
ACCINF_DATA1_MAGIC = TATP_MAGIC + 2
SPECFAC_DATA_B0_MAGIC = TATP_MAGIC + 3
CALLFWD_NUMBERX0_MAGIC = TATP_MAGIC + 4

_U8 = 0xFF
_U32 = 0xFFFF_FFFF

# Each entry packs three decimal digits of 0..999 into 12 bits, 4 bits a digit.
_MAP_1000 = tuple(
    ((i // 100) % 10) << 8 | ((i // 10) % 10) << 4 | (i % 10) for i in range(1000)
)


def _check(value, bits, name):
    if not 0 <= value < (1 << bits):
        raise ValueError(f"{name} {value} does not fit in {bits} bits")
    return value


def _fixed(data, size, name):
    raw = bytes(data)
    if len(raw) > size:
        raise ValueError(f"{name} holds {len(raw)} bytes, at most {size} allowed")
    return raw + bytes(size - len(raw))


def _take(layout, data, name):
    raw = bytes(data)
    if len(raw) < layout.size:
        raise ValueError(f"{name} needs {layout.size} bytes, got {len(raw)}")
    return layout.unpack(raw[: layout.size])


def _int8(value):
    return ((value & _U8) ^ 0x80) - 0x80


def _int16(value):
    return ((value & 0xFFFF) ^ 0x8000) - 0x8000


def simple_sub_number(s_id):
    """Encode the decimal digits of ``s_id`` as 4-bit nibbles, lowest digit first."""
    s_id = _check(s_id, 32, "subscriber id")
    number = 0
    shift = 0
    while True:
        number |= (s_id % 10) << shift
        s_id //= 10
        shift += 4
        if s_id == 0:
            return number


def fast_sub_number(s_id):
    """Encode the lowest nine decimal digits of ``s_id`` three at a time."""
    s_id = _check(s_id, 32, "subscriber id")
    number = 0
    for shift in (0, 12, 24):
        number |= _MAP_1000[s_id % 1000] << shift
        s_id //= 1000
    return number


def sub_key(s_id):
    """Key of a SUBSCRIBER row."""
    return _check(s_id, 32, "subscriber id")


def accinf_key(s_id, ai_type):
    """Key of an ACCESS INFO row."""
    return _check(s_id, 32, "subscriber id") | _check(ai_type, 8, "ai_type") << 32


def specfac_key(s_id, sf_type):
    """Key of a SPECIAL FACILITY row."""
    return _check(s_id, 32, "subscriber id") | _check(sf_type, 8, "sf_type") << 32


def callfwd_key(s_id, sf_type, start_time):
    """Key of a CALL FORWARDING row."""
    return (
        _check(s_id, 32, "subscriber id")
        | _check(sf_type, 8, "sf_type") << 32
        | _check(start_time, 8, "start_time") << 40
    )


_SUBSCRIBER = struct.Struct("<Q7s5s10shII")
_SEC_SUBSCRIBER = struct.Struct("<IB3x")
_ACCESS_INFO = struct.Struct("<BB3s5s6x")
_SPECIAL_FACILITY = struct.Struct("<BBB5s")
_CALL_FORWARDING = struct.Struct("<B15s")

SUBSCRIBER_VALUE_SIZE = _SUBSCRIBER.size
SEC_SUBSCRIBER_VALUE_SIZE = _SEC_SUBSCRIBER.size
ACCESS_INFO_VALUE_SIZE = _ACCESS_INFO.size
SPECIAL_FACILITY_VALUE_SIZE = _SPECIAL_FACILITY.size
CALL_FORWARDING_VALUE_SIZE = _CALL_FORWARDING.size


@dataclass
class SubscriberValue:
    """Value of a SUBSCRIBER row (40 bytes).

    Integer fields are truncated to their stored width when packed.
    """

    sub_number: int = 0
    hex: bytes = b""
    data: bytes = b""
    bits: int = 0
    msc_location: int = 0
    vlr_location: int = 0

    def pack(self):
        return _SUBSCRIBER.pack(
            self.sub_number & 0xFFFF_FFFF_FFFF_FFFF,
            bytes(7),
            _fixed(self.hex, 5, "hex"),
            _fixed(self.data, 10, "data"),
            _int16(self.bits),
            self.msc_location & _U32,
            self.vlr_location & _U32,
        )

    @classmethod
    def unpack(cls, data):
        sub_number, _, hex_, raw, bits, msc, vlr = _take(_SUBSCRIBER, data, "subscriber value")
        return cls(sub_number, hex_, raw, bits, msc, vlr)


@dataclass
class SecSubscriberValue:
    """Value of a secondary SUBSCRIBER row (8 bytes)."""

    s_id: int = 0
    magic: int = 0

    def pack(self):
        return _SEC_SUBSCRIBER.pack(self.s_id & _U32, self.magic & _U8)

    @classmethod
    def unpack(cls, data):
        return cls(*_take(_SEC_SUBSCRIBER, data, "secondary subscriber value"))


@dataclass
class AccessInfoValue:
    """Value of an ACCESS INFO row (16 bytes)."""

    data1: int = 0
    data2: int = 0
    data3: bytes = b""
    data4: bytes = b""

    def pack(self):
        return _ACCESS_INFO.pack(
            self.data1 & _U8,
            self.data2 & _U8,
            _fixed(self.data3, 3, "data3"),
            _fixed(self.data4, 5, "data4"),
        )

    @classmethod
    def unpack(cls, data):
        return cls(*_take(_ACCESS_INFO, data, "access info value"))


@dataclass
class SpecialFacilityValue:
    """Value of a SPECIAL FACILITY row (8 bytes)."""

    is_active: int = 0
    error_cntl: int = 0
    data_a: int = 0
    data_b: bytes = b""

    def pack(self):
        return _SPECIAL_FACILITY.pack(
            self.is_active & _U8,
            self.error_cntl & _U8,
            self.data_a & _U8,
            _fixed(self.data_b, 5, "data_b"),
        )

    @classmethod
    def unpack(cls, data):
        return cls(*_take(_SPECIAL_FACILITY, data, "special facility value"))


@dataclass
class CallForwardingValue:
    """Value of a CALL FORWARDING row (16 bytes)."""

    end_time: int = 0
    numberx: bytes = b""

    def pack(self):
        return _CALL_FORWARDING.pack(self.end_time & _U8, _fixed(self.numberx, 15, "numberx"))

    @classmethod
    def unpack(cls, data):
        return cls(*_take(_CALL_FORWARDING, data, "call forwarding value"))