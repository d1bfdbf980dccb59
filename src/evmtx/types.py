"""
Value types for the transaction lifecycle.

Fee models are a tagged union: ``FeeModel = LegacyFee | DynamicFee``.
Encoding for signing matches on the variant; there is no third kind.
All types are frozen dataclasses and validate their invariants on
construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Mapping, Optional, Union

from hexbytes import HexBytes
from web3 import Web3

from evmtx.errors import InvalidGasParamsError, ValidationError
from evmtx.utils.validation import validate_amount, validate_optional_address

__all__ = [
    "TxHash",
    "LegacyFee",
    "DynamicFee",
    "FeeModel",
    "GasParams",
    "FeeHints",
    "CallRequest",
    "PendingTransaction",
    "SignedTransaction",
    "ReceiptStatus",
    "Receipt",
    "TxState",
    "bump_amount",
]

TxHash = str
"""0x-prefixed, lowercase, 64 hex characters."""


def bump_amount(amount: int, percent: int) -> int:
    """Raise ``amount`` by ``percent``, rounding up, and always by at least 1 wei."""
    bumped = -(-amount * (100 + percent) // 100)
    return max(bumped, amount + 1)


@dataclass(frozen=True)
class LegacyFee:
    """Single gas-price fee model (type 0, EIP-155 signed)."""

    gas_price: int

    def __post_init__(self) -> None:
        if not isinstance(self.gas_price, int) or self.gas_price <= 0:
            raise InvalidGasParamsError(
                f"gas_price must be a positive integer, got {self.gas_price!r}",
                details={"gas_price": self.gas_price},
            )

    @property
    def kind(self) -> str:
        return "legacy"

    @property
    def max_price_per_gas(self) -> int:
        return self.gas_price

    def bumped(self, percent: int) -> "LegacyFee":
        return LegacyFee(gas_price=bump_amount(self.gas_price, percent))


@dataclass(frozen=True)
class DynamicFee:
    """EIP-1559 fee model (type 2): priority tip plus a total fee cap."""

    max_priority_fee_per_gas: int
    max_fee_per_gas: int

    def __post_init__(self) -> None:
        if not isinstance(self.max_priority_fee_per_gas, int) or self.max_priority_fee_per_gas < 0:
            raise InvalidGasParamsError(
                "max_priority_fee_per_gas must be a non-negative integer",
                details={"max_priority_fee_per_gas": self.max_priority_fee_per_gas},
            )
        if not isinstance(self.max_fee_per_gas, int) or self.max_fee_per_gas <= 0:
            raise InvalidGasParamsError(
                "max_fee_per_gas must be a positive integer",
                details={"max_fee_per_gas": self.max_fee_per_gas},
            )
        if self.max_fee_per_gas < self.max_priority_fee_per_gas:
            raise InvalidGasParamsError(
                "max_fee_per_gas must be >= max_priority_fee_per_gas",
                details={
                    "max_fee_per_gas": self.max_fee_per_gas,
                    "max_priority_fee_per_gas": self.max_priority_fee_per_gas,
                },
            )

    @property
    def kind(self) -> str:
        return "dynamic"

    @property
    def max_price_per_gas(self) -> int:
        return self.max_fee_per_gas

    def bumped(self, percent: int) -> "DynamicFee":
        # Replacement rules require both fields to rise.
        return DynamicFee(
            max_priority_fee_per_gas=bump_amount(self.max_priority_fee_per_gas, percent),
            max_fee_per_gas=bump_amount(self.max_fee_per_gas, percent),
        )


FeeModel = Union[LegacyFee, DynamicFee]


@dataclass(frozen=True)
class GasParams:
    """Resolved gas limit plus fee model."""

    gas_limit: int
    fee: FeeModel

    def __post_init__(self) -> None:
        if not isinstance(self.gas_limit, int) or self.gas_limit <= 0:
            raise InvalidGasParamsError(
                f"gas_limit must be a positive integer, got {self.gas_limit!r}",
                details={"gas_limit": self.gas_limit},
            )

    @property
    def price_per_gas(self) -> int:
        """Worst-case price per unit of gas (gas price, or the max fee cap)."""
        return self.fee.max_price_per_gas

    @property
    def max_gas_cost(self) -> int:
        return self.gas_limit * self.price_per_gas

    def total_cost(self, value: int) -> int:
        """value + gas_limit * price: the balance needed to send."""
        return value + self.max_gas_cost


@dataclass(frozen=True)
class FeeHints:
    """
    Caller-supplied fee overrides. ``None`` means "ask the node".

    ``gas_price`` applies to the legacy model; the two ``max_*`` fields
    apply to the dynamic model.
    """

    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None


def _coerce_data(data: Union[bytes, bytearray, str, None]) -> bytes:
    if data is None:
        return b""
    if isinstance(data, str) and data in ("", "0x"):
        return b""
    try:
        return bytes(HexBytes(data))
    except (TypeError, ValueError):
        raise ValidationError("data must be bytes or a hex string", field="data") from None


@dataclass(frozen=True)
class CallRequest:
    """A read-only call or gas-estimation request."""

    to: Optional[str]
    value: int = 0
    data: bytes = b""
    sender: Optional[str] = None

    def __post_init__(self) -> None:
        validate_optional_address(self.to, "to")
        if self.sender is not None:
            validate_optional_address(self.sender, "from")
        object.__setattr__(self, "data", _coerce_data(self.data))

    def to_dict(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {"value": self.value, "data": "0x" + self.data.hex()}
        if self.to is not None:
            params["to"] = Web3.to_checksum_address(self.to)
        if self.sender is not None:
            params["from"] = Web3.to_checksum_address(self.sender)
        return params


@dataclass(frozen=True)
class PendingTransaction:
    """
    Unsigned, fully resolved transaction.

    ``to is None`` means contract creation; ``data`` is then init code.
    """

    to: Optional[str]
    value: int
    data: bytes
    nonce: int
    gas: GasParams
    chain_id: int

    def __post_init__(self) -> None:
        validate_optional_address(self.to, "to")
        validate_amount(self.value, "value")
        object.__setattr__(self, "data", _coerce_data(self.data))
        if not isinstance(self.nonce, int) or self.nonce < 0:
            raise ValidationError(
                f"nonce must be a non-negative integer, got {self.nonce!r}", field="nonce"
            )
        if not isinstance(self.chain_id, int) or self.chain_id < 0:
            raise ValidationError("chain_id must be a non-negative integer", field="chain_id")

    @property
    def is_contract_creation(self) -> bool:
        return self.to is None

    @property
    def fee_kind(self) -> str:
        return self.gas.fee.kind

    def to_tx_dict(self) -> Dict[str, Any]:
        """
        Encode as an eth_account transaction dict.

        The presence of ``gasPrice`` selects EIP-155 legacy signing; ``type: 2``
        with the two ``max*`` fields selects the EIP-1559 envelope.
        """
        tx: Dict[str, Any] = {
            "nonce": self.nonce,
            "gas": self.gas.gas_limit,
            "value": self.value,
            "data": self.data,
            "chainId": self.chain_id,
        }
        if self.to is not None:
            tx["to"] = Web3.to_checksum_address(self.to)

        match self.gas.fee:
            case LegacyFee(gas_price=gas_price):
                tx["gasPrice"] = gas_price
            case DynamicFee(
                max_priority_fee_per_gas=max_priority_fee_per_gas,
                max_fee_per_gas=max_fee_per_gas,
            ):
                tx["type"] = 2
                tx["maxPriorityFeePerGas"] = max_priority_fee_per_gas
                tx["maxFeePerGas"] = max_fee_per_gas
                tx["accessList"] = []
            case other:
                raise TypeError(f"Unsupported fee model: {other!r}")
        return tx


@dataclass(frozen=True)
class SignedTransaction:
    """A PendingTransaction plus its signed, ready-to-broadcast encoding."""

    pending: PendingTransaction
    raw: bytes = field(repr=False)
    hash: TxHash
    sender: str

    @property
    def nonce(self) -> int:
        return self.pending.nonce

    @property
    def to(self) -> Optional[str]:
        return self.pending.to

    @property
    def value(self) -> int:
        return self.pending.value

    @property
    def data(self) -> bytes:
        return self.pending.data

    @property
    def gas(self) -> GasParams:
        return self.pending.gas

    @property
    def fee(self) -> FeeModel:
        return self.pending.gas.fee

    @property
    def raw_hex(self) -> str:
        return "0x" + self.raw.hex()


class ReceiptStatus(IntEnum):
    FAILED = 0
    SUCCESS = 1


@dataclass(frozen=True)
class Receipt:
    """
    The node's record of a mined transaction. Terminal once it exists.

    Attributes:
        tx_hash: Transaction hash
        status: SUCCESS or FAILED (reverted)
        block_number: Block the transaction was included in
        gas_used: Gas consumed by execution
        effective_gas_price: Price actually paid per gas, when the node reports it
    """

    tx_hash: TxHash
    status: ReceiptStatus
    block_number: int
    gas_used: int
    effective_gas_price: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == ReceiptStatus.SUCCESS

    @property
    def fee_paid(self) -> Optional[int]:
        if self.effective_gas_price is None:
            return None
        return self.gas_used * self.effective_gas_price

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Receipt":
        """Build from a web3 ``TxReceipt`` (or any mapping with the same keys)."""
        raw_hash = data["transactionHash"]
        tx_hash = raw_hash if isinstance(raw_hash, str) else "0x" + bytes(raw_hash).hex()
        if not tx_hash.startswith("0x"):
            tx_hash = "0x" + tx_hash
        effective = data.get("effectiveGasPrice")
        return cls(
            tx_hash=tx_hash.lower(),
            status=ReceiptStatus(int(data["status"])),
            block_number=int(data["blockNumber"]),
            gas_used=int(data["gasUsed"]),
            effective_gas_price=int(effective) if effective is not None else None,
        )


class TxState(str, Enum):
    """Broadcast/confirmation lifecycle states."""

    SUBMITTED = "submitted"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"
    TIMED_OUT = "timed_out"
    SUBMISSION_FAILED = "submission_failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {TxState.CONFIRMED, TxState.REVERTED, TxState.TIMED_OUT, TxState.SUBMISSION_FAILED}
)
