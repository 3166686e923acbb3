"""Stake operations on owner records."""
import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from loguru import logger

from .accrual import RATE, accrue, checked_add, checked_sub, elapsed
from .errors import (
    InsufficientStakeError,
    InvalidAmountError,
    LedgerError,
    UnauthorizedError,
)
from .identity import DEFAULT_NAMESPACE, derive_address
from .stake import StakeRecord
from .store import RecordStore
from .vault import Vault


def system_clock() -> int:
    """Current time in whole seconds since the epoch."""
    return int(time.time())


class StakeLedger:
    """Applies create, stake, unstake, points and claim operations.

    Each operation resolves the caller's derived address, checks ownership,
    checkpoints accrued points and then applies its mutation. The new record
    is computed before anything external happens; the vault transfer and
    the store write follow, and a failed write reverses the transfer.
    """

    def __init__(self,
                 store: RecordStore,
                 vault: Vault,
                 namespace: str = DEFAULT_NAMESPACE,
                 rate: int = RATE,
                 clock: Optional[Callable[[], int]] = None):
        """Initialize the ledger.

        Args:
            store: Record store, the only source of record state
            vault: Custodial pool for staked value
            namespace: Namespace addresses are derived under
            rate: Scaled points per staked unit-second
            clock: Returns the current time in seconds
        """
        if rate < 0:
            raise ValueError("Accrual rate must not be negative")
        self.store = store
        self.vault = vault
        self.namespace = namespace
        self.rate = rate
        self.clock = clock or system_clock
        # address -> [lock, number of operations holding or waiting on it]
        self._locks: Dict[str, List] = {}
        self._locks_guard = threading.Lock()

    def address_of(self, owner: str) -> str:
        """Derived record address for ``owner``."""
        return derive_address(self.namespace, owner)

    @contextmanager
    def _serialized(self, address: str) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.setdefault(address, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[address]

    def _now(self) -> int:
        now = int(self.clock())
        if now < 0:
            raise ValueError(f"Clock returned a negative time: {now}")
        return now

    def _resolve(self, owner: str, address: Optional[str]) -> str:
        derived = self.address_of(owner)
        if address is not None and address != derived:
            raise UnauthorizedError("Caller is not authorized for this record")
        return derived

    def _load_owned(self, owner: str, address: str) -> StakeRecord:
        record = self.store.get(address)
        if record.owner != owner:
            raise UnauthorizedError("Caller is not authorized for this record")
        return record

    def _checkpoint(self, record: StakeRecord, now: int) -> StakeRecord:
        points = accrue(
            record.staked_amount,
            elapsed(now, record.last_updated_time),
            record.total_points,
            self.rate,
        )
        return record.evolve(
            total_points=points,
            last_updated_time=max(now, record.last_updated_time),
        )

    def _commit(self, address: str, record: StakeRecord, undo: Optional[Callable[[], None]] = None) -> None:
        try:
            self.store.put(address, record)
        except Exception as e:
            logger.error(f"Failed to write record {address}: {e}")
            if undo is not None:
                try:
                    undo()
                except Exception as undo_error:
                    logger.error(f"Failed to reverse transfer for {address}: {undo_error}")
            raise e

    @staticmethod
    def _check_amount(amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidAmountError(f"Amount must be a whole number of units, got {amount!r}")
        if amount <= 0:
            raise InvalidAmountError(f"Amount must be positive, got {amount}")

    @contextmanager
    def _operation(self, name: str, owner: str) -> Iterator[None]:
        try:
            yield
        except LedgerError as e:
            logger.warning(f"{name} rejected for {owner}: {e.code}: {e.message}")
            raise

    def create(self, owner: str) -> StakeRecord:
        """Create the record for ``owner``.

        Raises:
            AlreadyExistsError: If the owner already has a record
        """
        with self._operation("create", owner):
            address = self.address_of(owner)
            with self._serialized(address):
                record = StakeRecord(owner=owner, last_updated_time=self._now())
                self.store.create(address, record)
        logger.info(f"Created stake record {address} for {owner}")
        return record

    def stake(self, owner: str, amount: int, address: Optional[str] = None) -> StakeRecord:
        """Stake ``amount`` from the owner's external balance.

        Raises:
            InvalidAmountError: If ``amount`` is not a positive integer
            UnauthorizedError: If the caller does not own the target record
            RecordNotFoundError: If the caller has no record
            InsufficientExternalFundsError: If the vault cannot take ``amount``
            ArithmeticOverflowError: If accrual or the new balance overflows
        """
        with self._operation("stake", owner):
            self._check_amount(amount)
            address = self._resolve(owner, address)
            with self._serialized(address):
                record = self._load_owned(owner, address)
                updated = self._checkpoint(record, self._now())
                updated = updated.evolve(staked_amount=checked_add(updated.staked_amount, amount))
                self.vault.deposit(owner, address, amount)
                self._commit(address, updated, lambda: self.vault.release(owner, address, amount))
        logger.info(f"{owner} staked {amount} (total {updated.staked_amount})")
        return updated

    def unstake(self, owner: str, amount: int, address: Optional[str] = None) -> StakeRecord:
        """Withdraw ``amount`` of stake back to the owner.

        Raises:
            InvalidAmountError: If ``amount`` is not a positive integer
            InsufficientStakeError: If ``amount`` exceeds the staked amount
            UnauthorizedError: If the caller does not own the target record
            RecordNotFoundError: If the caller has no record
            ArithmeticOverflowError: If accrual overflows
        """
        with self._operation("unstake", owner):
            self._check_amount(amount)
            address = self._resolve(owner, address)
            with self._serialized(address):
                record = self._load_owned(owner, address)
                if amount > record.staked_amount:
                    raise InsufficientStakeError(
                        f"Requested {amount}, only {record.staked_amount} staked"
                    )
                updated = self._checkpoint(record, self._now())
                updated = updated.evolve(staked_amount=checked_sub(updated.staked_amount, amount))
                self.vault.release(owner, address, amount)
                self._commit(address, updated, lambda: self.vault.deposit(owner, address, amount))
        logger.info(f"{owner} unstaked {amount} (total {updated.staked_amount})")
        return updated

    def get_points(self, owner: str, address: Optional[str] = None) -> int:
        """Checkpoint and return the owner's accumulated points."""
        with self._operation("get_points", owner):
            address = self._resolve(owner, address)
            with self._serialized(address):
                record = self._load_owned(owner, address)
                updated = self._checkpoint(record, self._now())
                self._commit(address, updated)
        logger.debug(f"{owner} has {updated.total_points} points")
        return updated.total_points

    def claim_points(self, owner: str, address: Optional[str] = None) -> StakeRecord:
        """Pay out accumulated points and reset them to zero."""
        with self._operation("claim_points", owner):
            address = self._resolve(owner, address)
            with self._serialized(address):
                record = self._load_owned(owner, address)
                checkpointed = self._checkpoint(record, self._now())
                points = checkpointed.total_points
                updated = checkpointed.evolve(total_points=0)
                self.vault.pay_points(owner, address, points)
                self._commit(address, updated, lambda: self.vault.revoke_points(owner, address, points))
        logger.info(f"{owner} claimed {points} points")
        return updated

    def inspect(self, address: str) -> StakeRecord:
        """Read a record without authorization, checkpointing or writing."""
        return self.store.get(address)
