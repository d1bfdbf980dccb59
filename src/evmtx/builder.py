"""Transaction assembly and signing.

``build`` tries the EIP-1559 fee model first and falls back to a legacy
transaction if anything in the dynamic path fails (not every chain or
node supports type-2 transactions). That fallback is the only place a
lifecycle error is caught without being surfaced. If both paths fail,
the legacy error is raised.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Union

from .errors import EvmTxError
from .gas import GasResolver
from .node import NodeClient
from .signer import Signer
from .types import (
    FeeHints,
    FeeModel,
    GasParams,
    LegacyFee,
    PendingTransaction,
    SignedTransaction,
)
from .utils.logging import get_logger
from .utils.validation import validate_amount, validate_optional_address

__all__ = ["TransactionBuilder"]

_logger = get_logger(__name__)

Data = Union[bytes, str]


class TransactionBuilder:
    """Builds signed transactions for one signer on one chain."""

    def __init__(
        self,
        node: NodeClient,
        signer: Signer,
        chain_id: int,
        resolver: Optional[GasResolver] = None,
    ) -> None:
        self.node = node
        self.signer = signer
        self.chain_id = chain_id
        self.resolver = resolver or GasResolver(node, signer.address)

    def build(
        self,
        to: Optional[str],
        value: int = 0,
        data: Data = b"",
        gas_limit_hint: int = 0,
        fee_hints: Optional[FeeHints] = None,
        nonce_hint: Optional[int] = None,
    ) -> SignedTransaction:
        """Build and sign, preferring the dynamic fee model.

        Args:
            to: Recipient, or None for contract creation (``data`` is init code)
            value: Value in wei
            data: Call data
            gas_limit_hint: Gas limit, or 0 to estimate
            fee_hints: Optional fee overrides for either model
            nonce_hint: Explicit nonce, or None for the pending nonce

        Returns:
            Signed dynamic-fee transaction, or a signed legacy one on fallback

        Raises:
            InvalidAddressError: If ``to`` is malformed (no node call is made)
            NetworkError: If the node is unreachable
            EstimationError / QuoteError: From the legacy path when both fail
        """
        validate_optional_address(to, "to")
        validate_amount(value, "value")
        hints = fee_hints or FeeHints()

        # Both paths share one nonce.
        nonce = self.resolve_nonce(nonce_hint)

        try:
            return self.build_dynamic(
                to,
                value,
                data,
                gas_limit_hint,
                max_fee_per_gas=hints.max_fee_per_gas,
                max_priority_fee_per_gas=hints.max_priority_fee_per_gas,
                nonce_hint=nonce,
            )
        except EvmTxError as dynamic_error:
            _logger.warning(
                "Dynamic-fee build failed, falling back to legacy",
                extra={"nonce": nonce, "error": str(dynamic_error)},
            )

        return self.build_legacy(
            to,
            value,
            data,
            gas_limit_hint,
            gas_price=hints.gas_price,
            nonce_hint=nonce,
        )

    def build_dynamic(
        self,
        to: Optional[str],
        value: int = 0,
        data: Data = b"",
        gas_limit_hint: int = 0,
        max_fee_per_gas: Optional[int] = None,
        max_priority_fee_per_gas: Optional[int] = None,
        nonce_hint: Optional[int] = None,
    ) -> SignedTransaction:
        """Build and sign an EIP-1559 (type 2) transaction."""
        validate_optional_address(to, "to")
        fee = self.resolver.resolve_dynamic_fee(max_fee_per_gas, max_priority_fee_per_gas)
        nonce = self.resolve_nonce(nonce_hint)
        gas_limit = self.resolver.resolve_gas_limit(gas_limit_hint, to, value, data)
        return self.sign(self._pending(to, value, data, nonce, GasParams(gas_limit, fee)))

    def build_legacy(
        self,
        to: Optional[str],
        value: int = 0,
        data: Data = b"",
        gas_limit_hint: int = 0,
        gas_price: Optional[int] = None,
        nonce_hint: Optional[int] = None,
    ) -> SignedTransaction:
        """Build and sign a legacy (EIP-155) transaction."""
        validate_optional_address(to, "to")
        nonce = self.resolve_nonce(nonce_hint)
        price = self.resolver.resolve_gas_price(gas_price)
        gas_limit = self.resolver.resolve_gas_limit(gas_limit_hint, to, value, data)
        return self.sign(self._pending(to, value, data, nonce, GasParams(gas_limit, LegacyFee(price))))

    def rebuild_with_fee(self, signed: SignedTransaction, fee: FeeModel) -> SignedTransaction:
        """Re-sign ``signed`` with a new fee, keeping nonce, gas limit, to, value and data."""
        gas = GasParams(gas_limit=signed.gas.gas_limit, fee=fee)
        return self.sign(replace(signed.pending, gas=gas))

    def resolve_nonce(self, nonce_hint: Optional[int] = None) -> int:
        if nonce_hint is not None:
            return nonce_hint
        return self.node.pending_nonce(self.signer.address)

    def sign(self, pending: PendingTransaction) -> SignedTransaction:
        signed = self.signer.sign_transaction(pending)
        _logger.debug(
            "Signed transaction",
            extra={
                "tx_hash": signed.hash,
                "nonce": pending.nonce,
                "fee_model": pending.fee_kind,
                "gas_limit": pending.gas.gas_limit,
            },
        )
        return signed

    def _pending(
        self,
        to: Optional[str],
        value: int,
        data: Data,
        nonce: int,
        gas: GasParams,
    ) -> PendingTransaction:
        return PendingTransaction(
            to=to,
            value=value,
            data=data,  # type: ignore[arg-type]
            nonce=nonce,
            gas=gas,
            chain_id=self.chain_id,
        )
