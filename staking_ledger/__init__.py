"""Stake Ledger CLI."""

__version__ = "0.1.0"
