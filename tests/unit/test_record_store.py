"""Unit tests for the record store."""
import json
import pytest
from staking_ledger.core.errors import AlreadyExistsError, RecordNotFoundError
from staking_ledger.core.identity import DEFAULT_NAMESPACE, derive_address
from staking_ledger.core.stake import StakeRecord
from staking_ledger.core.store import RecordStore


@pytest.fixture
def address():
    return derive_address(DEFAULT_NAMESPACE, "alice")


@pytest.fixture
def record():
    return StakeRecord(owner="alice", staked_amount=10, total_points=20, last_updated_time=30)


def test_create_and_get(store, address, record):
    """Test creating and reading back a record."""
    store.create(address, record)
    assert store.exists(address)
    assert store.get(address) == record


def test_create_twice_fails(store, address, record):
    store.create(address, record)
    with pytest.raises(AlreadyExistsError):
        store.create(address, record.model_copy(update={"staked_amount": 99}))
    # Original record untouched
    assert store.get(address).staked_amount == 10


def test_get_missing(store, address):
    with pytest.raises(RecordNotFoundError):
        store.get(address)


def test_put_overwrites(store, address, record):
    store.create(address, record)
    updated = record.model_copy(update={"total_points": 500})
    store.put(address, updated)
    assert store.get(address).total_points == 500


def test_persists_across_instances(data_dir, address, record):
    RecordStore(data_dir).create(address, record)
    assert RecordStore(data_dir).get(address) == record


def test_no_temp_files_left_behind(store, address, record):
    store.create(address, record)
    store.put(address, record)
    files = [p.name for p in store.records_dir.iterdir()]
    assert files == [f"{address}.json"]


def test_persisted_layout(store, address, record):
    store.create(address, record)
    data = json.loads((store.records_dir / f"{address}.json").read_text())
    assert data == {
        "owner": "alice",
        "staked_amount": 10,
        "total_points": 20,
        "last_updated_time": 30,
    }


def test_addresses(store, record):
    a = derive_address(DEFAULT_NAMESPACE, "alice")
    b = derive_address(DEFAULT_NAMESPACE, "bob")
    store.create(a, record)
    store.create(b, record.model_copy(update={"owner": "bob"}))
    assert sorted(store.addresses()) == sorted([a, b])


@pytest.mark.parametrize("bad", ["../escape", "", "abc"])
def test_malformed_address_rejected(store, record, bad):
    with pytest.raises(ValueError):
        store.put(bad, record)
