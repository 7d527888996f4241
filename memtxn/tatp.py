"""TATP workload: subscriber, access, special facility and call forwarding tables."""

from __future__ import annotations

import enum
import json
import logging
import os
import random

from memtxn.common import BACKUP_DEGREE, U64_MASK
from memtxn.hash_store import HashStore
from memtxn.loading import load_bucket_num, load_record, replica_roles
from memtxn.tatp_keys import (
    ACCINF_DATA1_MAGIC,
    CALLFWD_NUMBERX0_MAGIC,
    SEC_SUB_MAGIC,
    SPECFAC_DATA_B0_MAGIC,
    SUB_MSC_LOCATION_MAGIC,
    TATP_MAX_SUBSCRIBERS,
    AccessInfoValue,
    CallForwardingValue,
    SecSubscriberValue,
    SpecialFacilityValue,
    SubscriberValue,
    accinf_key,
    callfwd_key,
    simple_sub_number,
    specfac_key,
    sub_key,
)

log = logging.getLogger(__name__)

# Stored procedure execution frequencies, in percent.
FREQUENCY_GET_SUBSCRIBER_DATA = 35
FREQUENCY_GET_ACCESS_DATA = 35
FREQUENCY_GET_NEW_DESTINATION = 10
FREQUENCY_UPDATE_SUBSCRIBER_DATA = 2
FREQUENCY_UPDATE_LOCATION = 14
FREQUENCY_INSERT_CALL_FORWARDING = 2
FREQUENCY_DELETE_CALL_FORWARDING = 2

# Seed used by every populate step, so all replicas load identical data.
POPULATE_SEED = 0xDEADBEEF

TABLE_NAMES = (
    "subscriber",
    "sec_subscriber",
    "special_facility",
    "access_info",
    "call_forwarding",
)


class TatpTxType(enum.IntEnum):
    GET_SUBSCRIBER_DATA = 0
    GET_ACCESS_DATA = 1
    GET_NEW_DESTINATION = 2
    UPDATE_SUBSCRIBER_DATA = 3
    UPDATE_LOCATION = 4
    INSERT_CALL_FORWARDING = 5
    DELETE_CALL_FORWARDING = 6


TX_NAMES = (
    "GetSubsciberData",
    "GetAccessData",
    "GetNewDestination",
    "UpdateSubscriberData",
    "UpdateLocation",
    "InsertCallForwarding",
    "DeleteCallForwarding",
)

_FREQUENCIES = (
    (TatpTxType.GET_SUBSCRIBER_DATA, FREQUENCY_GET_SUBSCRIBER_DATA),
    (TatpTxType.GET_ACCESS_DATA, FREQUENCY_GET_ACCESS_DATA),
    (TatpTxType.GET_NEW_DESTINATION, FREQUENCY_GET_NEW_DESTINATION),
    (TatpTxType.UPDATE_SUBSCRIBER_DATA, FREQUENCY_UPDATE_SUBSCRIBER_DATA),
    (TatpTxType.UPDATE_LOCATION, FREQUENCY_UPDATE_LOCATION),
    (TatpTxType.INSERT_CALL_FORWARDING, FREQUENCY_INSERT_CALL_FORWARDING),
    (TatpTxType.DELETE_CALL_FORWARDING, FREQUENCY_DELETE_CALL_FORWARDING),
)


def _default_rand_factory(seed):
    generator = random.Random(seed)
    return lambda: generator.getrandbits(64)


def select_unique_items(rand, values, n, m):
    """Pick between ``n`` and ``m`` distinct entries of ``values`` at random.

    Values must be below 32.
    """
    if m < n:
        raise ValueError("m must not be smaller than n")
    if m < len(values):
        raise ValueError("m must not be smaller than the number of values")
    if not values:
        raise ValueError("values must not be empty")
    if any(not 0 <= value < 32 for value in values):
        raise ValueError("values must lie in 0..31")
    to_select = rand() % (m - n + 1) + n
    if to_select > len(set(values)):
        raise ValueError(f"cannot select {to_select} distinct items from {len(set(values))}")
    chosen = []
    used = set()
    while len(chosen) < to_select:
        value = values[rand() % len(values)]
        if value in used:
            continue
        used.add(value)
        chosen.append(value)
    return chosen


class Tatp:
    """Builds the TATP tables and draws subscriber ids for transactions.

    ``rand_factory(seed)`` returns a callable giving unsigned 64-bit random
    numbers; it drives the deterministic table population.
    """

    bench_name = "TATP"

    def __init__(self, subscriber_size, bucket_nums, base_table_id=0, rand_factory=None):
        if subscriber_size > TATP_MAX_SUBSCRIBERS:
            raise ValueError(f"at most {TATP_MAX_SUBSCRIBERS} subscribers are supported")
        missing = [name for name in TABLE_NAMES if name not in bucket_nums]
        if missing:
            raise ValueError(f"missing bucket numbers for: {', '.join(missing)}")
        self.subscriber_size = subscriber_size
        self.bucket_nums = dict(bucket_nums)
        self.table_ids = {name: base_table_id + i for i, name in enumerate(TABLE_NAMES)}
        self.rand_factory = rand_factory or _default_rand_factory
        if subscriber_size <= 1_000_000:
            self.A = 65535
        elif subscriber_size <= 10_000_000:
            self.A = 1048575
        else:
            self.A = 2097151
        self.subscriber_table = None
        self.sec_subscriber_table = None
        self.special_facility_table = None
        self.access_info_table = None
        self.call_forwarding_table = None
        self.primary_tables = []
        self.backup_tables = []

    @classmethod
    def from_config(cls, config_path, table_config_dir, base_table_id, rand_factory):
        """Create the workload from its configuration and a directory of table files."""
        with open(config_path, encoding="utf-8") as fh:
            config = json.load(fh)
        try:
            subscriber_size = int(config["tatp"]["num_subscriber"])
        except (KeyError, TypeError) as exc:
            raise ValueError(f"{config_path}: missing tatp.num_subscriber") from exc
        bucket_nums = {
            name: load_bucket_num(os.path.join(table_config_dir, f"{name}.json"))
            for name in TABLE_NAMES
        }
        return cls(subscriber_size, bucket_nums, base_table_id, rand_factory)

    def create_workgen_array(self):
        """A list of 100 transaction types laid out by execution frequency."""
        workgen = [tx for tx, frequency in _FREQUENCIES for _ in range(frequency)]
        assert len(workgen) == 100
        return workgen

    def non_uniform_random_subscriber(self, rand):
        """A subscriber id drawn with the spec's non-uniform distribution."""
        if self.subscriber_size <= 0:
            raise ValueError("there are no subscribers to draw from")
        first = rand() % self.subscriber_size
        second = rand() & self.A
        return ((first | second) & U64_MASK) % self.subscriber_size

    def _new_table(self, name, alloc_param):
        return HashStore(self.table_ids[name], self.bucket_nums[name], alloc_param)

    def _build_subscriber(self, alloc_param, reserve_param):
        self.subscriber_table = self._new_table("subscriber", alloc_param)
        self.populate_subscriber_table(reserve_param)
        return [self.subscriber_table]

    def _build_sec_subscriber(self, alloc_param, reserve_param):
        self.sec_subscriber_table = self._new_table("sec_subscriber", alloc_param)
        self.populate_secondary_subscriber_table(reserve_param)
        return [self.sec_subscriber_table]

    def _build_access_info(self, alloc_param, reserve_param):
        self.access_info_table = self._new_table("access_info", alloc_param)
        self.populate_access_info_table(reserve_param)
        return [self.access_info_table]

    def _build_specfac_callfwd(self, alloc_param, reserve_param):
        self.special_facility_table = self._new_table("special_facility", alloc_param)
        self.call_forwarding_table = self._new_table("call_forwarding", alloc_param)
        self.populate_specfac_and_callfwd_table(reserve_param)
        return [self.special_facility_table, self.call_forwarding_table]

    def load_table(self, node_id, num_server, alloc_param, reserve_param):
        """Create and populate the replicas of the tables that this node holds.

        Call forwarding rows depend on special facility rows, so the two
        tables are always placed together with the special facility table.
        """
        groups = (
            ("subscriber", "SUBSCRIBER", self._build_subscriber),
            ("sec_subscriber", "SECONDARY SUBSCRIBER", self._build_sec_subscriber),
            ("access_info", "ACCESS INFO", self._build_access_info),
            ("special_facility", "SPECIAL FACILITY and CALL FORWARDING",
             self._build_specfac_callfwd),
        )
        roles = {
            name: replica_roles(self.table_ids[name], node_id, num_server)
            for name, _, _ in groups
        }
        for name, label, build in groups:
            if 0 in roles[name]:
                log.info("Primary: Initializing %s table", label)
                self.primary_tables.extend(build(alloc_param, reserve_param))
        for replica in range(1, BACKUP_DEGREE + 1):
            for name, label, build in groups:
                if replica in roles[name]:
                    log.info("Backup: Initializing %s table", label)
                    self.backup_tables.extend(build(alloc_param, reserve_param))

    @staticmethod
    def _require(table, name):
        if table is None:
            raise RuntimeError(f"the {name} table has not been created")
        return table

    def populate_subscriber_table(self, reserve_param):
        """Load one SUBSCRIBER row per subscriber."""
        table = self._require(self.subscriber_table, "subscriber")
        table_id = self.table_ids["subscriber"]
        rand = self.rand_factory(POPULATE_SEED)
        for s_id in range(self.subscriber_size):
            hex_ = bytes(rand() & 0xFF for _ in range(5))
            raw = bytes(rand() & 0xFF for _ in range(10))
            bits = rand()
            value = SubscriberValue(
                sub_number=simple_sub_number(s_id),
                hex=hex_,
                data=raw,
                bits=bits,
                msc_location=SUB_MSC_LOCATION_MAGIC,
                vlr_location=rand(),
            )
            load_record(table, sub_key(s_id), value.pack(), table_id, reserve_param)

    def populate_secondary_subscriber_table(self, reserve_param):
        """Load one secondary SUBSCRIBER row per subscriber, keyed by its number."""
        table = self._require(self.sec_subscriber_table, "secondary subscriber")
        table_id = self.table_ids["sec_subscriber"]
        for s_id in range(self.subscriber_size):
            value = SecSubscriberValue(s_id=s_id, magic=SEC_SUB_MAGIC)
            load_record(table, simple_sub_number(s_id), value.pack(), table_id, reserve_param)

    def populate_access_info_table(self, reserve_param):
        """Load one to four ACCESS INFO rows per subscriber."""
        table = self._require(self.access_info_table, "access info")
        table_id = self.table_ids["access_info"]
        rand = self.rand_factory(POPULATE_SEED)
        value = AccessInfoValue(data1=ACCINF_DATA1_MAGIC).pack()
        for s_id in range(self.subscriber_size):
            for ai_type in select_unique_items(rand, [1, 2, 3, 4], 1, 4):
                load_record(table, accinf_key(s_id, ai_type), value, table_id, reserve_param)

    def populate_specfac_and_callfwd_table(self, reserve_param):
        """Load SPECIAL FACILITY rows and the CALL FORWARDING rows that hang off them.

        Each start time of a facility is present with probability one half,
        the steady-state distribution.
        """
        specfac_table = self._require(self.special_facility_table, "special facility")
        callfwd_table = self._require(self.call_forwarding_table, "call forwarding")
        specfac_id = self.table_ids["special_facility"]
        callfwd_id = self.table_ids["call_forwarding"]
        rand = self.rand_factory(POPULATE_SEED)
        for s_id in range(self.subscriber_size):
            for sf_type in select_unique_items(rand, [1, 2, 3, 4], 1, 4):
                specfac = SpecialFacilityValue(
                    is_active=1 if rand() % 100 < 85 else 0,
                    data_b=bytes([SPECFAC_DATA_B0_MAGIC]),
                )
                load_record(specfac_table, specfac_key(s_id, sf_type), specfac.pack(),
                            specfac_id, reserve_param)
                for start_time in (0, 8, 16):
                    if rand() % 2 == 0:
                        continue
                    callfwd = CallForwardingValue(
                        end_time=rand() % 24 + 1,
                        numberx=bytes([CALLFWD_NUMBERX0_MAGIC]),
                    )
                    load_record(callfwd_table, callfwd_key(s_id, sf_type, start_time),
                                callfwd.pack(), callfwd_id, reserve_param)