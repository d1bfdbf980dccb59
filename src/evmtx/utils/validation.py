"""
Validation utilities for evmtx.

Provides input validation functions for:
- Ethereum addresses
- Wei amounts
- Gas limits and gas prices
- Transaction hashes

All validate_* functions raise ValidationError (or subclasses) on failure
and never touch the network.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Union

from evmtx.constants import (
    ADDRESS_PATTERN,
    MAX_BLOCK_GAS_LIMIT,
    MAX_UINT256,
    TX_HASH_PATTERN,
    ZERO_ADDRESS,
)
from evmtx.errors import InvalidAddressError, InvalidAmountError, ValidationError

_ADDRESS_RE = re.compile(ADDRESS_PATTERN)
_TX_HASH_RE = re.compile(TX_HASH_PATTERN)


def is_valid_address(address: Any) -> bool:
    """Return True iff ``address`` is ``0x`` followed by exactly 40 hex digits."""
    return isinstance(address, str) and _ADDRESS_RE.fullmatch(address) is not None


def validate_address(address: Any, field_name: str = "address") -> str:
    """
    Validate Ethereum address format.

    Args:
        address: Address to validate
        field_name: Field name for error messages

    Returns:
        The address, unchanged

    Raises:
        InvalidAddressError: If address is invalid
    """
    if not address:
        raise InvalidAddressError("", field=field_name, reason=f"{field_name} is required")

    if not isinstance(address, str):
        raise InvalidAddressError(str(address), field=field_name, reason="must be a string")

    if not _ADDRESS_RE.fullmatch(address):
        raise InvalidAddressError(
            address,
            field=field_name,
            reason="must be 0x followed by 40 hex characters",
        )

    return address


def validate_optional_address(address: Optional[str], field_name: str = "to") -> Optional[str]:
    """Like validate_address, but None (contract creation) passes through."""
    if address is None:
        return None
    return validate_address(address, field_name)


def is_zero_address(address: str) -> bool:
    return is_valid_address(address) and address.lower() == ZERO_ADDRESS


def compare_addresses(first: str, second: str) -> bool:
    """Case-insensitive address equality; False if either side is malformed."""
    if not is_valid_address(first) or not is_valid_address(second):
        return False
    return first.lower() == second.lower()


def validate_amount(
    amount: Union[int, str],
    field_name: str = "amount",
    min_amount: int = 0,
    max_amount: int = MAX_UINT256,
) -> int:
    """
    Validate an amount in wei.

    Args:
        amount: Amount in wei (integer or decimal string)
        field_name: Field name for error messages
        min_amount: Minimum allowed amount (default: 0)
        max_amount: Maximum allowed amount (default: uint256 max)

    Returns:
        Validated amount as integer

    Raises:
        InvalidAmountError: If amount is invalid
    """
    if isinstance(amount, bool):
        raise InvalidAmountError(str(amount), field=field_name, reason="must be an integer")
    try:
        amount_int = int(amount) if isinstance(amount, str) else amount
    except (ValueError, TypeError):
        raise InvalidAmountError(str(amount), field=field_name, reason="must be a valid number")

    if not isinstance(amount_int, int):
        raise InvalidAmountError(str(amount), field=field_name, reason="must be an integer")

    if amount_int < 0:
        raise InvalidAmountError(str(amount_int), field=field_name, reason="cannot be negative")

    if amount_int < min_amount:
        raise InvalidAmountError(
            str(amount_int),
            field=field_name,
            reason=f"must be at least {min_amount}",
        )

    if amount_int > max_amount:
        raise InvalidAmountError(
            str(amount_int),
            field=field_name,
            reason=f"exceeds maximum allowed ({max_amount})",
        )

    return amount_int


def validate_gas_limit(gas_limit: int, field_name: str = "gas_limit") -> int:
    if not isinstance(gas_limit, int) or isinstance(gas_limit, bool):
        raise ValidationError(f"{field_name} must be an integer", field=field_name)
    if gas_limit <= 0:
        raise ValidationError(f"{field_name} must be greater than zero", field=field_name)
    if gas_limit > MAX_BLOCK_GAS_LIMIT:
        raise ValidationError(
            f"{field_name} ({gas_limit}) exceeds block gas limit ({MAX_BLOCK_GAS_LIMIT})",
            field=field_name,
        )
    return gas_limit


def validate_gas_price(gas_price: Optional[int], field_name: str = "gas_price") -> int:
    if gas_price is None:
        raise ValidationError(f"{field_name} is required", field=field_name)
    if not isinstance(gas_price, int) or isinstance(gas_price, bool):
        raise ValidationError(f"{field_name} must be an integer", field=field_name)
    if gas_price <= 0:
        raise ValidationError(f"{field_name} must be greater than zero", field=field_name)
    return gas_price


def validate_tx_hash(tx_hash: Any, field_name: str = "tx_hash") -> str:
    """
    Validate a transaction hash (32 bytes, hex).

    Returns:
        Normalized (lowercase) hash

    Raises:
        ValidationError: If tx_hash is invalid
    """
    if not tx_hash:
        raise ValidationError(f"{field_name} is required", field=field_name)

    if isinstance(tx_hash, (bytes, bytearray)):
        tx_hash = "0x" + bytes(tx_hash).hex()

    if not isinstance(tx_hash, str) or not _TX_HASH_RE.fullmatch(tx_hash):
        raise ValidationError(
            f"Invalid {field_name}: must be 0x followed by 64 hex characters",
            field=field_name,
            details={"value": str(tx_hash)},
        )

    return tx_hash.lower()
