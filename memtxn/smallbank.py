"""SmallBank workload: savings and checking accounts."""

from __future__ import annotations

import enum
import json
import logging
import struct

from memtxn.common import BACKUP_DEGREE
from memtxn.hash_store import HashStore
from memtxn.loading import load_bucket_num, load_record, replica_roles

log = logging.getLogger(__name__)

# Stored procedure execution frequencies, in percent.
FREQUENCY_AMALGAMATE = 15
FREQUENCY_BALANCE = 15
FREQUENCY_DEPOSIT_CHECKING = 15
FREQUENCY_SEND_PAYMENT = 25
FREQUENCY_TRANSACT_SAVINGS = 15
FREQUENCY_WRITE_CHECK = 15

# Percentage of transactions that use accounts from the hotspot.
TX_HOT = 90

SMALLBANK_MAGIC = 97
SAVINGS_MAGIC = SMALLBANK_MAGIC
CHECKING_MAGIC = SMALLBANK_MAGIC + 1

INITIAL_BALANCE = 1_000_000_000
MAX_ACCOUNTS = 2 * 1024 * 1024 * 1024

_ACCOUNT_VALUE = struct.Struct("<If")
ACCOUNT_VALUE_SIZE = _ACCOUNT_VALUE.size


class SmallBankTxType(enum.IntEnum):
    AMALGAMATE = 0
    BALANCE = 1
    DEPOSIT_CHECKING = 2
    SEND_PAYMENT = 3
    TRANSACT_SAVING = 4
    WRITE_CHECK = 5


TX_NAMES = (
    "Amalgamate",
    "Balance",
    "DepositChecking",
    "SendPayment",
    "TransactSaving",
    "WriteCheck",
)

_FREQUENCIES = (
    (SmallBankTxType.AMALGAMATE, FREQUENCY_AMALGAMATE),
    (SmallBankTxType.BALANCE, FREQUENCY_BALANCE),
    (SmallBankTxType.DEPOSIT_CHECKING, FREQUENCY_DEPOSIT_CHECKING),
    (SmallBankTxType.SEND_PAYMENT, FREQUENCY_SEND_PAYMENT),
    (SmallBankTxType.TRANSACT_SAVING, FREQUENCY_TRANSACT_SAVINGS),
    (SmallBankTxType.WRITE_CHECK, FREQUENCY_WRITE_CHECK),
)


def pack_account_value(magic, balance):
    """Encode an account value: a 32-bit magic and a 32-bit float balance."""
    return _ACCOUNT_VALUE.pack(magic, balance)


def unpack_account_value(data):
    """Decode an account value into ``(magic, balance)``."""
    return _ACCOUNT_VALUE.unpack(bytes(data[:ACCOUNT_VALUE_SIZE]))


class SmallBank:
    """Builds the SmallBank tables and draws account ids for transactions."""

    bench_name = "SmallBank"

    def __init__(self, num_accounts, num_hot, savings_bucket_num, checking_bucket_num,
                 base_table_id=0):
        if num_accounts > MAX_ACCOUNTS:
            raise ValueError(f"at most {MAX_ACCOUNTS} accounts are supported")
        self.num_accounts_global = num_accounts
        self.num_hot_global = num_hot
        self.savings_table_id = base_table_id
        self.checking_table_id = base_table_id + 1
        self.savings_bucket_num = savings_bucket_num
        self.checking_bucket_num = checking_bucket_num
        self.savings_table = None
        self.checking_table = None
        self.primary_tables = []
        self.backup_tables = []

    @classmethod
    def from_config(cls, config_path, savings_config_path, checking_config_path, base_table_id):
        """Create the workload from its configuration and table configuration files."""
        with open(config_path, encoding="utf-8") as fh:
            config = json.load(fh)
        try:
            section = config["smallbank"]
            num_accounts = int(section["num_accounts"])
            num_hot = int(section["num_hot_accounts"])
        except (KeyError, TypeError) as exc:
            raise ValueError(f"{config_path}: incomplete smallbank section") from exc
        return cls(
            num_accounts,
            num_hot,
            load_bucket_num(savings_config_path),
            load_bucket_num(checking_config_path),
            base_table_id,
        )

    def create_workgen_array(self):
        """A list of 100 transaction types laid out by execution frequency."""
        workgen = [tx for tx, frequency in _FREQUENCIES for _ in range(frequency)]
        assert len(workgen) == 100
        return workgen

    def _pool(self, rand):
        return self.num_hot_global if rand() % 100 < TX_HOT else self.num_accounts_global

    def get_account(self, rand):
        """Draw one account id, from the hotspot with probability TX_HOT percent."""
        return rand() % self._pool(rand)

    def get_two_accounts(self, rand):
        """Draw two distinct account ids from the same pool."""
        pool = self._pool(rand)
        if pool < 2:
            raise ValueError("at least two accounts are needed to draw a distinct pair")
        first = rand() % pool
        second = rand() % pool
        while second == first:
            second = rand() % pool
        return first, second

    def _build_savings(self, alloc_param, reserve_param):
        self.savings_table = HashStore(self.savings_table_id, self.savings_bucket_num, alloc_param)
        self.populate_savings_table(reserve_param)
        return self.savings_table

    def _build_checking(self, alloc_param, reserve_param):
        self.checking_table = HashStore(
            self.checking_table_id, self.checking_bucket_num, alloc_param
        )
        self.populate_checking_table(reserve_param)
        return self.checking_table

    def load_table(self, node_id, num_server, alloc_param, reserve_param):
        """Create and populate the replicas of both tables that this node holds."""
        tables = (
            (self.savings_table_id, "SAVINGS", self._build_savings),
            (self.checking_table_id, "CHECKING", self._build_checking),
        )
        roles = {table_id: replica_roles(table_id, node_id, num_server) for table_id, _, _ in tables}
        for table_id, name, build in tables:
            if 0 in roles[table_id]:
                log.info("Primary: Initializing %s table", name)
                self.primary_tables.append(build(alloc_param, reserve_param))
        for replica in range(1, BACKUP_DEGREE + 1):
            for table_id, name, build in tables:
                if replica in roles[table_id]:
                    log.info("Backup: Initializing %s table", name)
                    self.backup_tables.append(build(alloc_param, reserve_param))

    def _populate(self, table, table_id, magic, reserve_param):
        if table is None:
            raise RuntimeError(f"table {table_id} has not been created")
        value = pack_account_value(magic, INITIAL_BALANCE)
        for acct_id in range(self.num_accounts_global):
            load_record(table, acct_id, value, table_id, reserve_param)

    def populate_savings_table(self, reserve_param):
        """Load a savings record with the initial balance for every account."""
        self._populate(self.savings_table, self.savings_table_id, SAVINGS_MAGIC, reserve_param)

    def populate_checking_table(self, reserve_param):
        """Load a checking record with the initial balance for every account."""
        self._populate(self.checking_table, self.checking_table_id, CHECKING_MAGIC, reserve_param)