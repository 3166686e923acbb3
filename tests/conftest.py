"""Test configuration and fixtures for Stake Ledger."""
import os
import pytest
from staking_ledger.core.ledger import StakeLedger
from staking_ledger.core.store import RecordStore
from staking_ledger.core.vault import LocalVault

START_TIME = 1_700_000_000


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: int = START_TIME):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def data_dir(tmp_path):
    """Create and return a temporary ledger data directory."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def store(data_dir):
    return RecordStore(data_dir)


@pytest.fixture
def vault(data_dir):
    return LocalVault(data_dir)


@pytest.fixture
def ledger(store, vault, clock):
    return StakeLedger(store=store, vault=vault, clock=clock)


@pytest.fixture
def alice(ledger, vault):
    """Owner with a record and 10 billion units of external balance."""
    vault.fund("alice", 10_000_000_000)
    ledger.create("alice")
    return "alice"


@pytest.fixture
def env_setup(tmp_path):
    """Point the CLI at temporary config and data directories."""
    os.environ["STAKE_LEDGER_CONFIG_DIR"] = str(tmp_path / "config")
    os.environ["STAKE_LEDGER_DATA_DIR"] = str(tmp_path / "ledger")
    os.environ["STAKE_LEDGER_LOG_LEVEL"] = "DEBUG"
    yield tmp_path
    del os.environ["STAKE_LEDGER_CONFIG_DIR"]
    del os.environ["STAKE_LEDGER_DATA_DIR"]
    del os.environ["STAKE_LEDGER_LOG_LEVEL"]
