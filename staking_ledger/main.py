"""Stake Ledger CLI."""
import sys
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Optional

import click
from loguru import logger

from .core import ConfigManager, LedgerError, LocalVault, open_ledger
from .core.accrual import to_display_points
from .core.identity import derive_address, is_valid_address
from .core.stake import StakeRecord


class LedgerContext:
    """Per-invocation state shared by all commands."""

    def __init__(self, config_dir: Optional[Path] = None, owner: Optional[str] = None):
        self.manager = ConfigManager(config_dir)
        self._owner = owner
        self._vault = None
        self._ledger = None

    @property
    def vault(self) -> LocalVault:
        if self._vault is None:
            self._vault = LocalVault(self.manager.data_dir)
        return self._vault

    @property
    def ledger(self):
        if self._ledger is None:
            self._ledger = open_ledger(self.manager, vault=self.vault)
        return self._ledger

    def require_owner(self) -> str:
        """Resolve the caller identity or exit with instructions."""
        owner = self._owner or self.manager.owner
        if not owner:
            logger.error("No identity set. Pass --owner or run: stake-ledger login")
            sys.exit(1)
        return owner


def configure_logging(level: str) -> None:
    """Route loguru output to stderr at ``level``."""
    logger.remove()
    logger.add(sys.stderr, level=level)


def ledger_command(func):
    """Turn ledger failures into a logged error and exit status 1."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except LedgerError as e:
            logger.error(f"{e.code}: {e.message}")
            sys.exit(1)
    return wrapper


def echo_record(record: StakeRecord, address: str) -> None:
    updated = datetime.fromtimestamp(record.last_updated_time).strftime('%Y-%m-%d %H:%M:%S')
    click.echo(f"\nStake record {address}:")
    click.echo("-" * 80)
    click.echo(f"Owner: {record.owner}")
    click.echo(f"Staked Amount: {record.staked_amount}")
    click.echo(f"Total Points: {to_display_points(record.total_points)} ({record.total_points} scaled)")
    click.echo(f"Last Updated: {updated} ({record.last_updated_time})")


@click.group()
@click.version_option(package_name="stake-ledger")
@click.option('--config-dir', type=click.Path(file_okay=False, path_type=Path),
              envvar='STAKE_LEDGER_CONFIG_DIR', help='Directory holding config.json')
@click.option('--owner', help='Caller identity (overrides the saved login)')
@click.option('--log-level', help='Log level (DEBUG, INFO, WARNING, ERROR)')
@click.pass_context
def cli(ctx, config_dir: Optional[Path], owner: Optional[str], log_level: Optional[str]):
    """Stake Ledger CLI for staking funds and earning time-based points."""
    ctx.obj = LedgerContext(config_dir, owner)
    configure_logging((log_level or ctx.obj.manager.log_level).upper())


@cli.command()
@click.option('--owner', 'account', prompt='Owner identity', help='Identity to save')
@click.pass_obj
def login(obj: LedgerContext, account: str):
    """Save an identity for later commands."""
    if not account.strip():
        logger.error("Identity must not be empty")
        sys.exit(1)
    obj.manager.config.owner = account
    obj.manager.save()
    logger.info(f"Logged in as {account}")


@cli.command()
@click.pass_obj
def logout(obj: LedgerContext):
    """Forget the saved identity."""
    obj.manager.config.owner = None
    obj.manager.save()
    logger.info("Successfully logged out")


@cli.command()
@click.pass_obj
@ledger_command
def whoami(obj: LedgerContext):
    """Show the current identity and its record address."""
    owner = obj.require_owner()
    click.echo(f"Owner: {owner}")
    click.echo(f"Address: {obj.ledger.address_of(owner)}")


@cli.command()
@click.argument('owner', required=False)
@click.pass_obj
@ledger_command
def address(obj: LedgerContext, owner: Optional[str]):
    """Print the derived record address for OWNER."""
    owner = owner or obj.require_owner()
    click.echo(derive_address(obj.manager.config.namespace, owner))


@cli.command()
@click.pass_obj
@ledger_command
def init(obj: LedgerContext):
    """Create your stake record."""
    owner = obj.require_owner()
    record = obj.ledger.create(owner)
    echo_record(record, obj.ledger.address_of(owner))


@cli.command()
@click.argument('amount', type=click.IntRange(min=0))
@click.pass_obj
@ledger_command
def stake(obj: LedgerContext, amount: int):
    """Stake AMOUNT units from your vault balance."""
    owner = obj.require_owner()
    record = obj.ledger.stake(owner, amount)
    echo_record(record, obj.ledger.address_of(owner))


@cli.command()
@click.argument('amount', type=click.IntRange(min=0))
@click.pass_obj
@ledger_command
def unstake(obj: LedgerContext, amount: int):
    """Withdraw AMOUNT units of stake."""
    owner = obj.require_owner()
    record = obj.ledger.unstake(owner, amount)
    echo_record(record, obj.ledger.address_of(owner))


@cli.command()
@click.pass_obj
@ledger_command
def points(obj: LedgerContext):
    """Show accumulated points."""
    owner = obj.require_owner()
    total = obj.ledger.get_points(owner)
    click.echo(f"Points: {to_display_points(total)} ({total} scaled)")


@cli.command()
@click.pass_obj
@ledger_command
def claim(obj: LedgerContext):
    """Claim accumulated points."""
    owner = obj.require_owner()
    before = obj.vault.points_paid(owner)
    record = obj.ledger.claim_points(owner)
    paid = obj.vault.points_paid(owner) - before
    click.echo(f"Claimed: {to_display_points(paid)} ({paid} scaled)")
    echo_record(record, obj.ledger.address_of(owner))


@cli.command()
@click.option('--address', 'target', help='Record address to inspect')
@click.pass_obj
@ledger_command
def show(obj: LedgerContext, target: Optional[str]):
    """Show a stake record without modifying it."""
    if target is None:
        target = obj.ledger.address_of(obj.require_owner())
    elif not is_valid_address(target):
        logger.error(f"Malformed address: {target}")
        sys.exit(1)
    echo_record(obj.ledger.inspect(target), target)


@cli.group()
def vault():
    """Manage vault balances."""
    pass


@vault.command()
@click.argument('amount', type=click.IntRange(min=1))
@click.pass_obj
@ledger_command
def fund(obj: LedgerContext, amount: int):
    """Credit AMOUNT units to your external balance."""
    owner = obj.require_owner()
    balance = obj.vault.fund(owner, amount)
    click.echo(f"Balance: {balance}")


@vault.command()
@click.pass_obj
@ledger_command
def balance(obj: LedgerContext):
    """Show your external balance and custodied stake."""
    owner = obj.require_owner()
    click.echo(f"Balance: {obj.vault.balance_of(owner)}")
    click.echo(f"Custodied: {obj.vault.pool_of(obj.ledger.address_of(owner))}")
    click.echo(f"Points Paid: {to_display_points(obj.vault.points_paid(owner))}")


if __name__ == '__main__':
    cli()
