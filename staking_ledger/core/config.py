"""Stake ledger configuration."""
import os
import json
import platform
from pathlib import Path
from typing import Optional
from loguru import logger
from pydantic import BaseModel, Field

from .accrual import RATE
from .identity import DEFAULT_NAMESPACE


class LedgerConfig(BaseModel):
    """Ledger configuration."""
    namespace: str = DEFAULT_NAMESPACE
    rate: int = Field(default=RATE, ge=0)
    data_dir: Optional[str] = None
    owner: Optional[str] = None  # Identity saved by `login`
    log_level: str = "INFO"


def get_config_dir() -> Path:
    """Get platform-specific config directory."""
    if os.name == 'nt':  # Windows
        return Path(os.getenv('APPDATA')) / 'stake-ledger'
    elif platform.system() == 'Darwin':  # macOS
        return Path.home() / 'Library' / 'Application Support' / 'stake-ledger'
    else:  # Linux and others
        return Path.home() / '.config' / 'stake-ledger'


class ConfigManager:
    """Loads and saves ``config.json`` with environment overrides."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding ``config.json``, defaults to the platform location
        """
        self.config_dir = Path(config_dir) if config_dir else get_config_dir()
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_path = self.config_dir / 'config.json'
        self.config = LedgerConfig()
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from disk."""
        if self.config_path.exists():
            try:
                with open(self.config_path) as f:
                    data = json.load(f)
                self.config = LedgerConfig(**data)
            except Exception as e:
                logger.error(f"Failed to load ledger config: {e}")

    def save(self) -> None:
        """Save configuration to disk."""
        with open(self.config_path, 'w') as f:
            json.dump(self.config.model_dump(), f, indent=2)
        self.config_path.chmod(0o600)

    @property
    def data_dir(self) -> Path:
        """Ledger data directory; ``STAKE_LEDGER_DATA_DIR`` wins over the saved value."""
        env_dir = os.getenv("STAKE_LEDGER_DATA_DIR")
        if env_dir:
            return Path(env_dir)
        if self.config.data_dir:
            return Path(self.config.data_dir).expanduser()
        return self.config_dir / 'data'

    @property
    def log_level(self) -> str:
        return os.getenv("STAKE_LEDGER_LOG_LEVEL", self.config.log_level).upper()

    @property
    def owner(self) -> Optional[str]:
        return os.getenv("STAKE_LEDGER_OWNER") or self.config.owner
