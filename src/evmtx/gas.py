"""Gas parameter resolution.

Turns caller hints into concrete ``GasParams``:

- gas limit: a hint of 0 means "estimate"; any other hint is used verbatim
  and no estimation call is made.
- legacy price: ``None`` means "ask the node".
- dynamic fee: tip from hint or node; fee cap from hint or
  ``suggested legacy price * max_fee_multiplier``, never below the tip.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .constants import MAX_FEE_MULTIPLIER, OPTIMAL_GAS_PRICE_PERCENT
from .errors import EstimationError, QuoteError, ValidationError
from .node import NodeClient
from .types import CallRequest, DynamicFee, GasParams, LegacyFee
from .utils.logging import get_logger
from .utils.validation import (
    validate_amount,
    validate_gas_limit,
    validate_gas_price,
    validate_optional_address,
)

__all__ = ["GasResolver", "GasSuggestions"]

_logger = get_logger(__name__)


@dataclass(frozen=True)
class GasSuggestions:
    """Node fee suggestions. Dynamic fields are None on chains without EIP-1559."""

    gas_price: int
    max_priority_fee_per_gas: Optional[int]
    max_fee_per_gas: Optional[int]


class GasResolver:
    """Computes gas limit and fee parameters for an intended transaction."""

    def __init__(
        self,
        node: NodeClient,
        sender: Optional[str] = None,
        *,
        max_fee_multiplier: int = MAX_FEE_MULTIPLIER,
    ) -> None:
        self.node = node
        self.sender = sender
        self.max_fee_multiplier = max_fee_multiplier

    def resolve(
        self,
        gas_limit_hint: int = 0,
        price_hint: Optional[int] = None,
        to: Optional[str] = None,
        value: int = 0,
        data: Union[bytes, str] = b"",
    ) -> GasParams:
        """Resolve legacy gas parameters.

        Args:
            gas_limit_hint: Gas limit, or 0 to estimate
            price_hint: Gas price in wei, or None for the node's suggestion
            to: Recipient, or None for contract creation
            value: Value in wei
            data: Call data or init code

        Returns:
            GasParams with a LegacyFee

        Raises:
            InvalidAddressError: If ``to`` is malformed (before any node call)
            EstimationError: If the node refuses to simulate the call
            QuoteError: If the node cannot suggest a gas price
        """
        validate_optional_address(to, "to")
        validate_amount(value, "value")
        gas_limit = self.resolve_gas_limit(gas_limit_hint, to, value, data)
        gas_price = self.resolve_gas_price(price_hint)
        return GasParams(gas_limit=gas_limit, fee=LegacyFee(gas_price=gas_price))

    def resolve_gas_limit(
        self,
        gas_limit_hint: int,
        to: Optional[str],
        value: int,
        data: Union[bytes, str],
    ) -> int:
        if gas_limit_hint:
            if not isinstance(gas_limit_hint, int) or gas_limit_hint < 0:
                raise ValidationError("gas_limit must be a positive integer", field="gas_limit")
            return gas_limit_hint

        estimated = self.node.estimate_gas(
            CallRequest(to=to, value=value, data=data, sender=self.sender)
        )
        if estimated <= 0:
            raise EstimationError(f"node estimated a non-positive gas limit ({estimated})")
        _logger.debug("Estimated gas limit", extra={"to": to, "gas_limit": estimated})
        return estimated

    def resolve_gas_price(self, price_hint: Optional[int] = None) -> int:
        if price_hint is not None:
            return validate_gas_price(price_hint)
        price = self.node.suggested_gas_price()
        if price <= 0:
            raise QuoteError(f"node suggested a non-positive gas price ({price})")
        return price

    def resolve_priority_fee(self, priority_hint: Optional[int] = None) -> int:
        if priority_hint is not None:
            if not isinstance(priority_hint, int) or priority_hint < 0:
                raise ValidationError(
                    "max_priority_fee_per_gas must be a non-negative integer",
                    field="max_priority_fee_per_gas",
                )
            return priority_hint
        tip = self.node.suggested_priority_fee()
        if tip < 0:
            raise QuoteError(
                f"node suggested a negative priority fee ({tip})",
                operation="suggested_priority_fee",
            )
        return tip

    def resolve_dynamic_fee(
        self,
        max_fee_hint: Optional[int] = None,
        priority_hint: Optional[int] = None,
    ) -> DynamicFee:
        """Resolve an EIP-1559 fee pair; the cap is clamped up to the tip."""
        tip = self.resolve_priority_fee(priority_hint)
        if max_fee_hint is not None:
            if not isinstance(max_fee_hint, int) or max_fee_hint <= 0:
                raise ValidationError(
                    "max_fee_per_gas must be a positive integer",
                    field="max_fee_per_gas",
                )
            max_fee = max_fee_hint
        else:
            max_fee = self.resolve_gas_price() * self.max_fee_multiplier
        if max_fee < tip:
            _logger.debug(
                "Raising max fee to cover priority fee",
                extra={"max_fee_per_gas": max_fee, "max_priority_fee_per_gas": tip},
            )
            max_fee = tip
        return DynamicFee(max_priority_fee_per_gas=tip, max_fee_per_gas=max_fee)

    @staticmethod
    def total_cost(value: int, params: GasParams) -> int:
        """value + gas_limit * price (fee cap for the dynamic model)."""
        return params.total_cost(value)

    @staticmethod
    def validate(params: GasParams) -> GasParams:
        """Check gas parameters against chain bounds (block gas limit, positive price)."""
        validate_gas_limit(params.gas_limit)
        validate_gas_price(params.price_per_gas, "price_per_gas")
        return params

    def suggestions(self) -> GasSuggestions:
        """Current legacy price plus, where supported, the dynamic tip and fee cap."""
        gas_price = self.resolve_gas_price()
        try:
            tip = self.resolve_priority_fee()
        except QuoteError as e:
            _logger.debug("Node has no priority fee suggestion", extra={"error": str(e)})
            return GasSuggestions(gas_price=gas_price, max_priority_fee_per_gas=None, max_fee_per_gas=None)
        return GasSuggestions(
            gas_price=gas_price,
            max_priority_fee_per_gas=tip,
            max_fee_per_gas=max(gas_price * self.max_fee_multiplier, tip),
        )

    def optimal_gas_price(self) -> int:
        """The node's suggestion raised by 10% for faster inclusion."""
        price = self.resolve_gas_price()
        return max(price, -(-price * OPTIMAL_GAS_PRICE_PERCENT // 100))
