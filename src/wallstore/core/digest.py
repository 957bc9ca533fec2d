# src/wallstore/core/digest.py
"""Content addressing for message bodies.

An address is the Keccak-256 digest of the body's UTF-8 encoding, rendered
as 0x-prefixed lowercase hex. This is the same digest the ledger client
records, so an address read from a ledger record can be used directly as a
Content Store key.
"""

import hmac
import re

from Crypto.Hash import keccak

from wallstore.contracts.errors import MalformedAddressError

__all__ = ["ADDRESS_LENGTH", "digest", "is_valid_address", "validate_address", "verify"]

# "0x" + 64 hex characters (256-bit digest)
ADDRESS_LENGTH = 66

_ADDRESS_PATTERN = re.compile(r"0x[0-9a-f]{64}")


def digest(body: str) -> str:
    """Compute the content address of a body.

    Pure and total: equal bodies always produce equal addresses, and every
    str (including "") has one.
    """
    hasher = keccak.new(digest_bits=256)
    hasher.update(body.encode("utf-8"))
    return "0x" + hasher.hexdigest()


def is_valid_address(value: object) -> bool:
    """Check whether value is a well-formed address (case-insensitive)."""
    return isinstance(value, str) and _ADDRESS_PATTERN.fullmatch(value.lower()) is not None


def validate_address(value: object) -> str:
    """Validate and normalise an address to lowercase.

    Ledger clients may render hex in either case; the store always keys on
    lowercase.

    Raises:
        MalformedAddressError: If value has the wrong type, width or alphabet
    """
    if not isinstance(value, str):
        raise MalformedAddressError(value)
    normalised = value.lower()
    if not _ADDRESS_PATTERN.fullmatch(normalised):
        raise MalformedAddressError(value)
    return normalised


def verify(body: str, address: str) -> bool:
    """Check that body hashes to address.

    Uses timing-safe comparison, same as the durable tiers' integrity checks.
    """
    if not is_valid_address(address):
        return False
    return hmac.compare_digest(digest(body), address.lower())
