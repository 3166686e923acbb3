"""Durable record storage keyed by derived address."""
import os
import tempfile
import threading
from pathlib import Path
from typing import Iterator, Union

from loguru import logger

from .errors import AlreadyExistsError, RecordNotFoundError
from .identity import is_valid_address
from .stake import StakeRecord


def atomic_write(path: Path, data: str) -> None:
    """Write ``data`` to ``path`` so readers see either the old or new content."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class RecordStore:
    """One JSON file per record under ``<data_dir>/records``.

    Single writes are atomic across processes, but the ledger's
    read-modify-write of a record is serialized within one process only.
    """

    def __init__(self, data_dir: Union[str, Path]):
        """Initialize the record store.

        Args:
            data_dir: Root data directory, created if missing
        """
        self.records_dir = Path(data_dir) / "records"
        self.records_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, address: str) -> Path:
        if not is_valid_address(address):
            raise ValueError(f"Malformed address: {address!r}")
        return self.records_dir / f"{address}.json"

    def exists(self, address: str) -> bool:
        return self._path(address).exists()

    def create(self, address: str, record: StakeRecord) -> StakeRecord:
        """Persist a new record, failing if one is already present.

        The record is written to a temp file first and then hard-linked into
        place, which fails atomically if another writer got there first.

        Raises:
            AlreadyExistsError: If a record exists at ``address``
        """
        path = self._path(address)
        fd, tmp = tempfile.mkstemp(dir=self.records_dir, prefix=f".{address}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(record.to_json())
                f.flush()
                os.fsync(f.fileno())
            with self._lock:
                os.link(tmp, path)
        except FileExistsError:
            raise AlreadyExistsError(f"Record already exists at {address}") from None
        finally:
            os.unlink(tmp)
        logger.debug(f"Created record {address}")
        return record

    def get(self, address: str) -> StakeRecord:
        """Load the record at ``address``.

        Raises:
            RecordNotFoundError: If nothing is stored there
        """
        path = self._path(address)
        try:
            data = path.read_text()
        except FileNotFoundError:
            raise RecordNotFoundError(f"No record at {address}") from None
        return StakeRecord.from_json(data)

    def put(self, address: str, record: StakeRecord) -> None:
        """Atomically overwrite the record at ``address``.

        Business rules are the caller's responsibility.
        """
        path = self._path(address)
        with self._lock:
            atomic_write(path, record.to_json())
        logger.debug(f"Wrote record {address}")

    def addresses(self) -> Iterator[str]:
        """Iterate over every stored address."""
        for file in sorted(self.records_dir.glob("*.json")):
            yield file.stem
