"""Derived record addresses."""
import hashlib
import struct

import base58

from .errors import InvalidIdentityError

# Fixed namespace every record address is derived under
DEFAULT_NAMESPACE = "stake_account"

ADDRESS_BYTES = 32


def _encode_part(value: str) -> bytes:
    raw = value.encode("utf-8")
    return struct.pack(">I", len(raw)) + raw


def derive_address(namespace: str, owner: str) -> str:
    """Derive the record address for an owner.

    The address is the base58 SHA-256 digest of the length-prefixed
    namespace followed by the length-prefixed owner identity, so distinct
    (namespace, owner) pairs cannot produce the same preimage.

    Args:
        namespace: Fixed namespace the ledger operates under
        owner: Owner identity

    Returns:
        Base58 encoded 32 byte address

    Raises:
        InvalidIdentityError: If either input is empty
    """
    if not namespace:
        raise InvalidIdentityError("Namespace must not be empty")
    if not owner or not owner.strip():
        raise InvalidIdentityError("Owner identity must not be empty")

    digest = hashlib.sha256(_encode_part(namespace) + _encode_part(owner)).digest()
    return base58.b58encode(digest).decode("ascii")


def is_valid_address(value: str) -> bool:
    """Check that a string decodes to a 32 byte base58 address."""
    if not value:
        return False
    try:
        return len(base58.b58decode(value)) == ADDRESS_BYTES
    except ValueError:
        return False
