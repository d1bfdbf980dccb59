"""
Unit conversion and display helpers.

Conversions go through web3's exact Decimal arithmetic; floats are never
used for wei amounts.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from web3 import Web3

from evmtx.errors import InvalidAmountError

Number = Union[int, str, Decimal]


def _parse(amount: Optional[Number], unit: str) -> int:
    if amount is None or amount == "":
        return 0
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise InvalidAmountError(str(amount), reason=f"not a valid {unit} amount") from None
    if value < 0:
        raise InvalidAmountError(str(amount), reason="cannot be negative")
    try:
        return int(Web3.to_wei(value, unit))
    except ValueError as e:
        raise InvalidAmountError(str(amount), reason=str(e)) from None


def parse_eth(amount: Optional[Number]) -> int:
    """Convert an ETH amount (e.g. ``"0.05"``) to wei."""
    return _parse(amount, "ether")


def parse_gwei(amount: Optional[Number]) -> int:
    """Convert a gwei amount (e.g. ``"1.5"``) to wei."""
    return _parse(amount, "gwei")


def format_eth(wei: Optional[int]) -> str:
    """Render wei as ETH with full 18-decimal precision."""
    if wei is None:
        return "0"
    return f"{Web3.from_wei(wei, 'ether'):.18f}"


def format_gwei(wei: Optional[int]) -> str:
    if wei is None:
        return "0"
    return f"{Web3.from_wei(wei, 'gwei'):.9f}"


def truncate_address(address: str) -> str:
    """``0x7161ada3EA6e53E5652A45988DdfF1cE595E09c2`` -> ``0x7161...09c2``"""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


def truncate_hash(tx_hash: str) -> str:
    if len(tx_hash) <= 18:
        return tx_hash
    return f"{tx_hash[:10]}...{tx_hash[-8:]}"
