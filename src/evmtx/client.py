"""Transaction lifecycle client.

``TxClient`` wires the components together for one signing account on one
chain: ``GasResolver`` -> ``TransactionBuilder`` -> ``ConfirmationTracker``,
with ``RetrySubmitter`` for blind retry and fee bumps.

The chain id is resolved once at construction. A node that cannot report
one is refused unless ``TxConfig.chain_id`` is given explicitly or
``TxConfig.allow_unknown_chain`` is set.

Example:
    >>> from evmtx import TxClient, Network
    >>> client = TxClient.from_network(Network.BSC, private_key="0x...")
    >>> tx_hash = client.send_eth("0x7161ada3EA6e53E5652A45988DdfF1cE595E09c2", 10**15)

Nonces are not coordinated across concurrent sends from the same account.
Callers running several sends in parallel must pass explicit nonces.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .abi import AbiSpec, decode_result, encode_call
from .builder import TransactionBuilder
from .config import Network, TxConfig, get_network_config
from .errors import (
    BatchSendError,
    ChainIdUnavailableError,
    EvmTxError,
    InsufficientFundsError,
    NetworkError,
    QuoteError,
    ValidationError,
)
from .gas import GasResolver, GasSuggestions
from .node import NodeClient, Web3NodeClient
from .signer import LocalSigner, Signer
from .submitter import RetrySubmitter
from .tracker import ConfirmationTracker
from .types import (
    CallRequest,
    FeeHints,
    GasParams,
    Receipt,
    SignedTransaction,
    TxHash,
)
from .utils.logging import get_logger
from .utils.validation import validate_address, validate_amount, validate_optional_address

__all__ = ["TxClient"]

_logger = get_logger(__name__)

Data = Union[bytes, str]


class TxClient:
    """Send, track and replace transactions for one account.

    Args:
        node: Node capability (shared, read-mostly)
        signer: Key/address provider for the sending account
        config: Lifecycle settings
    """

    def __init__(
        self,
        node: NodeClient,
        signer: Signer,
        config: Optional[TxConfig] = None,
    ) -> None:
        self.node = node
        self.signer = signer
        self.config = config or TxConfig()
        self.chain_id = self._resolve_chain_id()

        self.resolver = GasResolver(
            node,
            signer.address,
            max_fee_multiplier=self.config.max_fee_multiplier,
        )
        self.builder = TransactionBuilder(node, signer, self.chain_id, self.resolver)
        self.tracker = ConfirmationTracker(
            node,
            poll_interval=self.config.poll_interval_seconds,
            timeout=self.config.confirmation_timeout_seconds,
        )
        self.submitter = RetrySubmitter(
            self.tracker,
            self.builder,
            max_attempts=self.config.submit_max_attempts,
            backoff_seconds=self.config.submit_backoff_seconds,
            fee_bump_percent=self.config.fee_bump_percent,
        )

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def from_private_key(
        cls,
        rpc_url: str,
        private_key: str,
        config: Optional[TxConfig] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> "TxClient":
        config = config or TxConfig()
        node = Web3NodeClient(rpc_url, timeout=config.rpc_timeout_seconds, headers=headers)
        return cls(node, LocalSigner.from_key(private_key), config)

    @classmethod
    def from_mnemonic(
        cls,
        rpc_url: str,
        mnemonic: str,
        index: int = 0,
        config: Optional[TxConfig] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> "TxClient":
        config = config or TxConfig()
        node = Web3NodeClient(rpc_url, timeout=config.rpc_timeout_seconds, headers=headers)
        return cls(node, LocalSigner.from_mnemonic(mnemonic, index), config)

    @classmethod
    def from_network(
        cls,
        network: Network,
        private_key: str,
        rpc_url: Optional[str] = None,
        config: Optional[TxConfig] = None,
    ) -> "TxClient":
        """Connect to a preset network. The preset chain id is used unless config overrides it."""
        net = get_network_config(network, rpc_url)
        config = config or TxConfig()
        if config.chain_id is None:
            config = config.model_copy(update={"chain_id": net.chain_id})
        node = Web3NodeClient.from_network(net, timeout=config.rpc_timeout_seconds)
        return cls(node, LocalSigner.from_key(private_key), config)

    @property
    def address(self) -> str:
        return self.signer.address

    # ------------------------------------------------------------------
    # End-to-end send
    # ------------------------------------------------------------------
    def send(
        self,
        to: Optional[str],
        value: int = 0,
        data: Data = b"",
        gas_limit_hint: int = 0,
        fee_hints: Optional[FeeHints] = None,
        nonce_hint: Optional[int] = None,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> TxHash:
        """Build, sign, broadcast and confirm a transaction.

        Gas is resolved once and the transaction is signed, then the balance
        is checked against the worst-case cost of that signed transaction
        (``value + gas_limit * max_fee_per_gas`` for dynamic fees,
        ``value + gas_limit * gas_price`` for legacy) before it is broadcast.

        Args:
            to: Recipient, or None to deploy ``data`` as init code
            value: Value in wei
            data: Call data
            gas_limit_hint: Gas limit, or 0 to estimate
            fee_hints: Optional fee overrides
            nonce_hint: Explicit nonce, or None for the pending nonce
            timeout: Confirmation deadline in seconds
            cancel: Event that stops the confirmation wait

        Returns:
            Hash of the confirmed transaction

        Raises:
            InvalidAddressError: Malformed ``to`` (no node call is made)
            InsufficientFundsError: Balance below total cost (nothing broadcast)
            EstimationError / QuoteError / NetworkError: While resolving
            SubmissionError: Node rejected the broadcast
            TransactionTimeoutError: Not confirmed in time (outcome unknown)
            ExecutionFailedError: Mined but reverted
        """
        validate_optional_address(to, "to")
        validate_amount(value, "value")
        hints = fee_hints or FeeHints()

        params = self.resolver.resolve(gas_limit_hint, hints.gas_price, to, value, data)

        signed = self.builder.build(
            to,
            value,
            data,
            gas_limit_hint=params.gas_limit,
            fee_hints=FeeHints(
                gas_price=params.price_per_gas,
                max_fee_per_gas=hints.max_fee_per_gas,
                max_priority_fee_per_gas=hints.max_priority_fee_per_gas,
            ),
            nonce_hint=nonce_hint,
        )
        self._ensure_funds(signed.gas.total_cost(value))
        tx_hash = self.tracker.submit(signed)
        return self.tracker.await_confirmation(tx_hash, timeout=timeout, cancel=cancel).tx_hash

    # ------------------------------------------------------------------
    # Decomposed primitives
    # ------------------------------------------------------------------
    def resolve_gas(
        self,
        to: Optional[str],
        value: int = 0,
        data: Data = b"",
        gas_limit_hint: int = 0,
        price_hint: Optional[int] = None,
    ) -> GasParams:
        return self.resolver.resolve(gas_limit_hint, price_hint, to, value, data)

    def build(
        self,
        to: Optional[str],
        value: int = 0,
        data: Data = b"",
        gas_limit_hint: int = 0,
        fee_hints: Optional[FeeHints] = None,
        nonce_hint: Optional[int] = None,
    ) -> SignedTransaction:
        return self.builder.build(to, value, data, gas_limit_hint, fee_hints, nonce_hint)

    def submit(self, signed: SignedTransaction) -> TxHash:
        return self.tracker.submit(signed)

    def await_confirmation(
        self,
        tx_hash: TxHash,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        return self.tracker.await_confirmation(tx_hash, timeout=timeout, cancel=cancel)

    def await_confirmations(
        self,
        tx_hash: TxHash,
        confirmations: int = 1,
        timeout: Optional[float] = None,
    ) -> Receipt:
        return self.tracker.await_confirmations(tx_hash, confirmations, timeout)

    def send_with_retry(
        self,
        signed_tx_factory: Callable[[], SignedTransaction],
        max_attempts: Optional[int] = None,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> TxHash:
        return self.submitter.send_with_retry(signed_tx_factory, max_attempts, timeout, cancel)

    def send_with_fee_bump(
        self,
        tx: SignedTransaction,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> TxHash:
        return self.submitter.send_with_fee_bump(tx, timeout, cancel)

    # ------------------------------------------------------------------
    # Simulation and convenience sends
    # ------------------------------------------------------------------
    def preflight(self, to: Optional[str], value: int = 0, data: Data = b"") -> bytes:
        """Simulate a call without sending it.

        Runs gas estimation, then a read-only call from this account.

        Returns:
            Return data of the simulated call

        Raises:
            EstimationError: Either step refused by the node; ``revert_reason``
                holds the decoded reason when the contract supplied one
        """
        request = CallRequest(to=to, value=value, data=data, sender=self.address)
        self.node.estimate_gas(request)
        return self.node.call(request)

    def send_eth(
        self,
        to: str,
        amount: int,
        gas_limit_hint: int = 0,
        gas_price: Optional[int] = None,
    ) -> TxHash:
        """Transfer native currency. ``amount`` must be positive."""
        validate_address(to, "to")
        validate_amount(amount, "amount", min_amount=1)
        return self.send(to, amount, b"", gas_limit_hint, FeeHints(gas_price=gas_price))

    def send_contract_call(
        self,
        to: str,
        data: Data,
        value: int = 0,
        gas_limit_hint: int = 0,
        gas_price: Optional[int] = None,
    ) -> TxHash:
        """Send pre-encoded call data to a contract."""
        validate_address(to, "to")
        if not data or data == "0x":
            raise ValidationError("call data must not be empty", field="data")
        return self.send(to, value, data, gas_limit_hint, FeeHints(gas_price=gas_price))

    def send_contract_method(
        self,
        contract: str,
        abi: AbiSpec,
        method: str,
        *args: Any,
        value: int = 0,
        gas_limit_hint: int = 0,
    ) -> TxHash:
        """Encode ``method(*args)`` against ``abi`` and send it to ``contract``."""
        validate_address(contract, "contract")
        data = encode_call(abi, method, args)
        return self.send(contract, value, data, gas_limit_hint)

    def call_contract_method(self, contract: str, abi: AbiSpec, method: str, *args: Any) -> tuple:
        """Read-only call of ``method(*args)``; returns the decoded outputs."""
        validate_address(contract, "contract")
        data = encode_call(abi, method, args)
        output = self.node.call(CallRequest(to=contract, data=data, sender=self.address))
        return decode_result(abi, method, output, len(args))

    def send_batch(self, transactions: Sequence[SignedTransaction]) -> List[TxHash]:
        """Submit and confirm each signed transaction in order.

        Every item is attempted even if an earlier one fails.

        Raises:
            BatchSendError: One or more items failed; ``hashes`` holds the
                confirmed hashes (None for failed positions)
        """
        if not transactions:
            raise ValidationError("transactions must not be empty", field="transactions")

        hashes: List[Optional[TxHash]] = []
        failures: Dict[int, EvmTxError] = {}
        for index, signed in enumerate(transactions):
            try:
                tx_hash = self.tracker.submit(signed)
                hashes.append(self.tracker.await_confirmation(tx_hash).tx_hash)
            except EvmTxError as e:
                _logger.warning(
                    "Batch item failed",
                    extra={"index": index, "tx_hash": signed.hash, "error": str(e)},
                )
                hashes.append(None)
                failures[index] = e

        if failures:
            raise BatchSendError(hashes, failures)
        return [h for h in hashes if h is not None]

    # ------------------------------------------------------------------
    # Receipts
    # ------------------------------------------------------------------
    def transaction_fee(self, tx_hash: TxHash, gas_price: Optional[int] = None) -> Optional[int]:
        """Fee actually paid: ``gas_used * effective_gas_price``.

        ``gas_price`` is used when the node does not report an effective
        price. Returns None while the transaction has no receipt.
        """
        receipt = self.node.receipt(tx_hash)
        if receipt is None:
            return None
        if receipt.fee_paid is not None:
            return receipt.fee_paid
        if gas_price is None:
            return None
        return receipt.gas_used * gas_price

    def is_transaction_successful(self, tx_hash: TxHash) -> Optional[bool]:
        return self.tracker.is_transaction_successful(tx_hash)

    # ------------------------------------------------------------------
    # Account and network queries
    # ------------------------------------------------------------------
    def balance(self, address: Optional[str] = None) -> int:
        return self.node.balance(address or self.address)

    def has_enough_balance(self, amount: int) -> bool:
        validate_amount(amount, "amount")
        return self.balance() >= amount

    def nonce(self, address: Optional[str] = None) -> int:
        return self.node.pending_nonce(address or self.address)

    def gas_suggestions(self) -> GasSuggestions:
        return self.resolver.suggestions()

    def account_info(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "chain_id": self.chain_id,
            "balance": self.balance(),
            "nonce": self.nonce(),
        }

    def network_status(self) -> Dict[str, Any]:
        """Head block, chain id and current fee suggestions.

        A node that cannot quote fees still yields a status, with the
        quote failure under ``gas_error``.
        """
        status: Dict[str, Any] = {
            "chain_id": self.chain_id,
            "latest_block": self.node.block_number(),
        }
        try:
            suggestions = self.resolver.suggestions()
        except QuoteError as e:
            status["gas_error"] = e.node_message
        else:
            status["gas_price"] = suggestions.gas_price
            status["max_priority_fee_per_gas"] = suggestions.max_priority_fee_per_gas
            status["max_fee_per_gas"] = suggestions.max_fee_per_gas
        return status

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _resolve_chain_id(self) -> int:
        if self.config.chain_id is not None:
            return self.config.chain_id
        try:
            chain_id = self.node.chain_id()
        except NetworkError as e:
            if not self.config.allow_unknown_chain:
                raise ChainIdUnavailableError() from e
            _logger.warning("Chain id unavailable, signing with chain id 0", extra={"error": str(e)})
            return 0
        if chain_id <= 0:
            if not self.config.allow_unknown_chain:
                raise ChainIdUnavailableError(chain_id)
            _logger.warning("Node reported chain id 0", extra={"chain_id": chain_id})
            return 0
        return chain_id

    def _ensure_funds(self, required: int) -> None:
        available = self.node.balance(self.address)
        if required > available:
            _logger.error(
                "Insufficient funds for transaction",
                extra={"address": self.address, "required": required, "available": available},
            )
            raise InsufficientFundsError(required, available, address=self.address)
