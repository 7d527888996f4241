import json
from collections import Counter

import pytest

from memtxn.mem_store import MemStoreAllocParam, MemStoreReserveParam
from memtxn.smallbank import (
    ACCOUNT_VALUE_SIZE,
    CHECKING_MAGIC,
    FREQUENCY_AMALGAMATE,
    FREQUENCY_SEND_PAYMENT,
    INITIAL_BALANCE,
    MAX_ACCOUNTS,
    SAVINGS_MAGIC,
    SmallBank,
    SmallBankTxType,
    pack_account_value,
    unpack_account_value,
)


def _params():
    alloc = MemStoreAllocParam(region_start=0, store_start=0, alloc_offset=0, reserve_start=1 << 32)
    reserve = MemStoreReserveParam(reserve_start=1 << 32, reserve_offset=0, end=1 << 40)
    return alloc, reserve


def _scripted(values):
    return iter(values).__next__


def test_account_value_round_trip():
    data = pack_account_value(SAVINGS_MAGIC, 1.5)
    assert len(data) == ACCOUNT_VALUE_SIZE == 8
    assert unpack_account_value(data) == (SAVINGS_MAGIC, 1.5)


def test_initial_balance_is_exact():
    assert unpack_account_value(pack_account_value(CHECKING_MAGIC, INITIAL_BALANCE))[1] == INITIAL_BALANCE


def test_workgen_array_follows_frequencies():
    bank = SmallBank(10, 4, 2, 2)
    workgen = bank.create_workgen_array()
    assert len(workgen) == 100
    counts = Counter(workgen)
    assert counts[SmallBankTxType.AMALGAMATE] == FREQUENCY_AMALGAMATE
    assert counts[SmallBankTxType.SEND_PAYMENT] == FREQUENCY_SEND_PAYMENT
    assert workgen[0] == SmallBankTxType.AMALGAMATE
    assert workgen[-1] == SmallBankTxType.WRITE_CHECK


def test_get_two_accounts_redraws_duplicates():
    bank = SmallBank(100, 10, 2, 2)
    assert bank.get_two_accounts(_scripted([0, 3, 3, 3, 4])) == (3, 4)


def test_get_two_accounts_needs_two():
    bank = SmallBank(100, 1, 2, 2)
    with pytest.raises(ValueError):
        bank.get_two_accounts(_scripted([0, 0, 0]))


def test_too_many_accounts():
    with pytest.raises(ValueError):
        SmallBank(MAX_ACCOUNTS + 1, 10, 2, 2)


def test_from_config(tmp_path):
    config = tmp_path / "smallbank_config.json"
    config.write_text(json.dumps({"smallbank": {"num_accounts": 50, "num_hot_accounts": 5}}))
    savings = tmp_path / "savings.json"
    savings.write_text(json.dumps({"table": {"bkt_num": 8}}))
    checking = tmp_path / "checking.json"
    checking.write_text(json.dumps({"table": {"bkt_num": 16}}))
    bank = SmallBank.from_config(config, savings, checking, 4)
    assert bank.num_accounts_global == 50
    assert bank.num_hot_global == 5
    assert bank.savings_bucket_num == 8
    assert bank.checking_bucket_num == 16
    assert (bank.savings_table_id, bank.checking_table_id) == (4, 5)


def test_load_table_populates_balances():
    bank = SmallBank(6, 2, 4, 4)
    alloc, reserve = _params()
    bank.load_table(0, 1, alloc, reserve)
    assert len(bank.primary_tables) == 2
    assert bank.backup_tables == []
    for acct in range(6):
        sav = bank.savings_table.local_get(acct)
        chk = bank.checking_table.local_get(acct)
        assert unpack_account_value(sav.payload) == (SAVINGS_MAGIC, INITIAL_BALANCE)
        assert unpack_account_value(chk.payload) == (CHECKING_MAGIC, INITIAL_BALANCE)
        assert sav.table_id == bank.savings_table_id


def test_replicas_across_three_nodes():
    primaries = Counter()
    backups = Counter()
    for node in range(3):
        bank = SmallBank(3, 2, 2, 2)
        alloc, reserve = _params()
        bank.load_table(node, 3, alloc, reserve)
        primaries.update(t.table_id for t in bank.primary_tables)
        backups.update(t.table_id for t in bank.backup_tables)
    assert primaries == Counter({0: 1, 1: 1})
    assert backups == Counter({0: 2, 1: 2})


def test_populate_without_table_fails():
    bank = SmallBank(3, 2, 2, 2)
    _, reserve = _params()
    with pytest.raises(RuntimeError):
        bank.populate_savings_table(reserve)