"""Custodial pool holding staked value."""
import json
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Union

from loguru import logger

from .accrual import checked_add, checked_sub
from .errors import InsufficientExternalFundsError, InsufficientStakeError, InvalidAmountError
from .store import atomic_write


class Vault(ABC):
    """External value movement the ledger relies on.

    Every call either applies completely or raises without side effects.
    Pools are keyed by record address and never exchange value with each
    other.
    """

    @abstractmethod
    def deposit(self, owner: str, address: str, amount: int) -> None:
        """Move ``amount`` from the owner's external balance into the pool at ``address``.

        Raises:
            InsufficientExternalFundsError: If the owner cannot cover ``amount``
        """

    @abstractmethod
    def release(self, owner: str, address: str, amount: int) -> None:
        """Move ``amount`` from the pool at ``address`` back to the owner."""

    @abstractmethod
    def pay_points(self, owner: str, address: str, points: int) -> None:
        """Record a payout of claimed points to the owner."""

    @abstractmethod
    def revoke_points(self, owner: str, address: str, points: int) -> None:
        """Reverse a payout made by ``pay_points``."""

    @abstractmethod
    def balance_of(self, owner: str) -> int:
        """External balance available to ``owner``."""

    @abstractmethod
    def pool_of(self, address: str) -> int:
        """Value custodied for the record at ``address``."""


class LocalVault(Vault):
    """File-backed vault for local use and development.

    Updates are serialized by a lock held within one process only. Two
    processes sharing a data directory (e.g. concurrent CLI invocations)
    can each read the same state and the later write wins, losing the
    earlier update. Run a single writer process per data directory.
    """

    def __init__(self, data_dir: Union[str, Path]):
        """Initialize local vault.

        Args:
            data_dir: Root data directory; state lives in ``vault.json``
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.data_dir / "vault.json"
        self._lock = threading.RLock()

    def _load(self) -> Dict[str, Dict[str, int]]:
        state = {"balances": {}, "pools": {}, "paid_points": {}}
        if self.path.exists():
            with open(self.path) as f:
                state.update(json.load(f))
        return state

    def _save(self, state: Dict[str, Dict[str, int]]) -> None:
        atomic_write(self.path, json.dumps(state, indent=2, sort_keys=True))

    def fund(self, owner: str, amount: int) -> int:
        """Credit an owner's external balance.

        Returns:
            New balance
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmountError(f"Funding amount must be a positive integer, got {amount!r}")
        with self._lock:
            state = self._load()
            balance = checked_add(state["balances"].get(owner, 0), amount)
            state["balances"][owner] = balance
            self._save(state)
        logger.info(f"Funded {owner} with {amount} (balance {balance})")
        return balance

    def deposit(self, owner: str, address: str, amount: int) -> None:
        with self._lock:
            state = self._load()
            balance = state["balances"].get(owner, 0)
            if balance < amount:
                raise InsufficientExternalFundsError(
                    f"{owner} has {balance} available, {amount} required"
                )
            state["balances"][owner] = balance - amount
            state["pools"][address] = checked_add(state["pools"].get(address, 0), amount)
            self._save(state)
        logger.debug(f"Deposited {amount} from {owner} into pool {address}")

    def release(self, owner: str, address: str, amount: int) -> None:
        with self._lock:
            state = self._load()
            pool = state["pools"].get(address, 0)
            if pool < amount:
                raise InsufficientStakeError(f"Pool {address} holds {pool}, {amount} requested")
            state["pools"][address] = checked_sub(pool, amount)
            state["balances"][owner] = checked_add(state["balances"].get(owner, 0), amount)
            self._save(state)
        logger.debug(f"Released {amount} from pool {address} to {owner}")

    def pay_points(self, owner: str, address: str, points: int) -> None:
        if points == 0:
            return
        with self._lock:
            state = self._load()
            state["paid_points"][owner] = checked_add(state["paid_points"].get(owner, 0), points)
            self._save(state)
        logger.debug(f"Paid {points} points to {owner} for {address}")

    def revoke_points(self, owner: str, address: str, points: int) -> None:
        if points == 0:
            return
        with self._lock:
            state = self._load()
            state["paid_points"][owner] = checked_sub(state["paid_points"].get(owner, 0), points)
            self._save(state)
        logger.debug(f"Revoked {points} points from {owner} for {address}")

    def balance_of(self, owner: str) -> int:
        with self._lock:
            return self._load()["balances"].get(owner, 0)

    def pool_of(self, address: str) -> int:
        with self._lock:
            return self._load()["pools"].get(address, 0)

    def points_paid(self, owner: str) -> int:
        """Total points paid out to ``owner`` across all claims."""
        with self._lock:
            return self._load()["paid_points"].get(owner, 0)
