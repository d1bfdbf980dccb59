"""JSON-RPC node access.

``NodeClient`` is the capability every component borrows: chain id,
nonce, balance, fee suggestions, gas estimation, read-only calls,
broadcast and receipt lookup. It holds no per-transaction state and must
tolerate concurrent reads.

``Web3NodeClient`` implements it over web3.py and is the only place
web3/requests exceptions are seen; everything leaving this module is an
``evmtx.errors`` exception.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Protocol, Tuple, TypeVar, runtime_checkable

import requests
from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import (
    ContractLogicError,
    TimeExhausted,
    TransactionNotFound,
    Web3RPCError,
)

from .config import NetworkConfig
from .constants import PROVIDER_TIMEOUT_SECONDS
from .errors import EstimationError, NetworkError, QuoteError, SubmissionError
from .types import CallRequest, Receipt, SignedTransaction, TxHash
from .utils.logging import get_logger
from .utils.validation import validate_address, validate_tx_hash

__all__ = ["NodeClient", "Web3NodeClient", "decode_revert_reason"]

T = TypeVar("T")

_logger = get_logger(__name__)

REVERT_SELECTOR = bytes.fromhex("08c379a0")  # Error(string)

_TRANSPORT_ERRORS: Tuple[type, ...] = (
    requests.exceptions.RequestException,
    ConnectionError,
    TimeoutError,
    TimeExhausted,
)


@runtime_checkable
class NodeClient(Protocol):
    """Capabilities the lifecycle core needs from a node."""

    def chain_id(self) -> int: ...

    def pending_nonce(self, address: str) -> int: ...

    def balance(self, address: str) -> int: ...

    def suggested_gas_price(self) -> int: ...

    def suggested_priority_fee(self) -> int: ...

    def estimate_gas(self, call: CallRequest) -> int: ...

    def call(self, call: CallRequest) -> bytes: ...

    def broadcast(self, signed: SignedTransaction) -> TxHash: ...

    def receipt(self, tx_hash: TxHash) -> Optional[Receipt]: ...

    def block_number(self) -> int: ...


def decode_revert_reason(data: Any) -> Optional[str]:
    """Decode a Solidity ``Error(string)`` revert payload.

    Args:
        data: Revert data as hex string or bytes

    Returns:
        Decoded revert reason string, or None if the payload is not Error(string)
    """
    if data is None:
        return None
    try:
        raw = bytes(HexBytes(data))
    except (TypeError, ValueError):
        return None
    if not raw.startswith(REVERT_SELECTOR):
        return None
    try:
        (reason,) = abi_decode(["string"], raw[len(REVERT_SELECTOR):])
    except (DecodingError, UnicodeDecodeError, ValueError):
        return None
    return reason


def _node_message(exc: BaseException) -> Tuple[str, Any]:
    """Pull the node's own message (and revert data, if any) out of a web3 error."""
    rpc_response = getattr(exc, "rpc_response", None)
    if isinstance(rpc_response, dict) and isinstance(rpc_response.get("error"), dict):
        error = rpc_response["error"]
        return str(error.get("message") or exc), error.get("data")

    if exc.args and isinstance(exc.args[0], dict):
        error = exc.args[0]
        return str(error.get("message") or error.get("reason") or exc), error.get("data")

    if isinstance(exc, ContractLogicError):
        return str(getattr(exc, "message", None) or exc), getattr(exc, "data", None)

    return str(exc), None


class Web3NodeClient:
    """NodeClient backed by a web3.py ``Web3`` instance."""

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        *,
        web3: Optional[Web3] = None,
        timeout: int = PROVIDER_TIMEOUT_SECONDS,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        if web3 is None and not rpc_url:
            raise ValueError("rpc_url or web3 is required")
        request_kwargs: Dict[str, Any] = {"timeout": timeout}
        if headers:
            request_kwargs["headers"] = dict(headers)
        # Bound request time so a stalled node cannot hang a poll loop.
        self.w3 = web3 or Web3(Web3.HTTPProvider(rpc_url, request_kwargs=request_kwargs))

    @classmethod
    def from_network(
        cls, network: NetworkConfig, timeout: int = PROVIDER_TIMEOUT_SECONDS
    ) -> "Web3NodeClient":
        return cls(network.rpc_url, timeout=timeout, headers=network.headers)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def chain_id(self) -> int:
        return int(self._rpc("chain_id", lambda: self.w3.eth.chain_id))

    def pending_nonce(self, address: str) -> int:
        checksum = Web3.to_checksum_address(validate_address(address))
        return int(
            self._rpc(
                "pending_nonce",
                lambda: self.w3.eth.get_transaction_count(checksum, "pending"),
            )
        )

    def balance(self, address: str) -> int:
        checksum = Web3.to_checksum_address(validate_address(address))
        return int(self._rpc("balance", lambda: self.w3.eth.get_balance(checksum)))

    def block_number(self) -> int:
        return int(self._rpc("block_number", lambda: self.w3.eth.block_number))

    def suggested_gas_price(self) -> int:
        return int(self._quote("suggested_gas_price", lambda: self.w3.eth.gas_price))

    def suggested_priority_fee(self) -> int:
        return int(self._quote("suggested_priority_fee", lambda: self.w3.eth.max_priority_fee))

    def estimate_gas(self, call: CallRequest) -> int:
        return int(self._simulate("estimate_gas", lambda: self.w3.eth.estimate_gas(call.to_dict())))

    def call(self, call: CallRequest) -> bytes:
        return bytes(self._simulate("call", lambda: self.w3.eth.call(call.to_dict())))

    def receipt(self, tx_hash: TxHash) -> Optional[Receipt]:
        tx_hash = validate_tx_hash(tx_hash)
        try:
            raw = self.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None
        except _TRANSPORT_ERRORS as e:
            raise NetworkError(str(e), operation="receipt") from e
        except (Web3RPCError, ValueError) as e:
            message, _ = _node_message(e)
            raise NetworkError(message, operation="receipt", node_message=message) from e
        if raw is None:
            return None
        return Receipt.from_mapping(raw)

    # ------------------------------------------------------------------
    # Broadcast
    # ------------------------------------------------------------------
    def broadcast(self, signed: SignedTransaction) -> TxHash:
        try:
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw)
        except _TRANSPORT_ERRORS as e:
            raise NetworkError(str(e), operation="broadcast") from e
        except (Web3RPCError, ValueError) as e:
            message, _ = _node_message(e)
            raise SubmissionError(message, tx_hash=signed.hash) from e
        return "0x" + bytes(HexBytes(tx_hash)).hex()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _rpc(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except _TRANSPORT_ERRORS as e:
            raise NetworkError(str(e), operation=operation) from e
        except (Web3RPCError, ValueError) as e:
            message, _ = _node_message(e)
            raise NetworkError(message, operation=operation, node_message=message) from e

    def _quote(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except _TRANSPORT_ERRORS as e:
            raise NetworkError(str(e), operation=operation) from e
        except (Web3RPCError, ValueError) as e:
            message, _ = _node_message(e)
            raise QuoteError(message, operation=operation) from e

    def _simulate(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except _TRANSPORT_ERRORS as e:
            raise NetworkError(str(e), operation=operation) from e
        except (ContractLogicError, Web3RPCError, ValueError) as e:
            message, data = _node_message(e)
            reason = decode_revert_reason(data)
            _logger.debug(
                "Node refused simulation",
                extra={"operation": operation, "node_message": message, "revert_reason": reason},
            )
            raise EstimationError(message, revert_reason=reason, operation=operation) from e
