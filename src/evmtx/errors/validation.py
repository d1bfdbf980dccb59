"""
Input validation exceptions.

Raised before any node call is made, so a validation error always means
nothing was sent anywhere.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from evmtx.errors.base import EvmTxError


class ValidationError(EvmTxError):
    """
    Raised when caller input fails validation.

    Example:
        >>> raise ValidationError("amount must be greater than zero")
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, code="VALIDATION_ERROR", details=details)
        self.field = field


class InvalidAddressError(ValidationError):
    """
    Raised when an address is not 0x followed by exactly 40 hex characters.

    Example:
        >>> raise InvalidAddressError("0x123", field="to")
    """

    def __init__(
        self,
        address: str,
        *,
        field: str = "address",
        reason: Optional[str] = None,
    ) -> None:
        message = f"Invalid {field}: {address!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, field=field, details={"address": address})
        self.code = "INVALID_ADDRESS"
        self.address = address
        self.reason = reason


class InvalidAmountError(ValidationError):
    """Raised when a wei amount is negative, zero where forbidden, or not a number."""

    def __init__(
        self,
        amount: str,
        *,
        field: str = "amount",
        reason: Optional[str] = None,
    ) -> None:
        message = f"Invalid {field}: {amount}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, field=field, details={"amount": amount})
        self.code = "INVALID_AMOUNT"
        self.amount = amount
        self.reason = reason


class InvalidGasParamsError(ValidationError):
    """Raised when gas parameters violate their invariants."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, field="gas_params", details=details)
        self.code = "INVALID_GAS_PARAMS"
