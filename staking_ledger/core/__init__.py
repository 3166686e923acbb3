"""Core staking ledger components."""
from typing import Optional

from .config import ConfigManager, LedgerConfig
from .errors import LedgerError
from .identity import DEFAULT_NAMESPACE, derive_address
from .ledger import StakeLedger
from .stake import StakeRecord
from .store import RecordStore
from .vault import LocalVault, Vault


def open_ledger(manager: ConfigManager, vault: Optional[Vault] = None) -> StakeLedger:
    """Build a ledger over the configured data directory.

    Args:
        manager: Loaded configuration
        vault: Custodial vault, defaults to a ``LocalVault`` in the data directory

    Returns:
        Ready to use ledger
    """
    data_dir = manager.data_dir
    return StakeLedger(
        store=RecordStore(data_dir),
        vault=vault or LocalVault(data_dir),
        namespace=manager.config.namespace,
        rate=manager.config.rate,
    )


__all__ = [
    "ConfigManager",
    "DEFAULT_NAMESPACE",
    "LedgerConfig",
    "LedgerError",
    "LocalVault",
    "RecordStore",
    "StakeLedger",
    "StakeRecord",
    "Vault",
    "derive_address",
    "open_ledger",
]
