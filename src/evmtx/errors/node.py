"""
Node-side exceptions.

Raised when the JSON-RPC node is unreachable, refuses to simulate or price
a transaction, or rejects a broadcast. Each carries the node's own message
verbatim in ``node_message`` so callers can tell a logic revert from an
insufficient-funds or gas-too-low failure.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from evmtx.errors.base import EvmTxError
from evmtx.errors.classify import (
    is_already_known_error,
    is_insufficient_funds_error,
    is_nonce_too_low_error,
    is_underpriced_error,
)


class NodeError(EvmTxError):
    """
    Base exception for failures reported by (or while reaching) the node.

    Attributes:
        node_message: Raw message returned by the node, unmodified.
        operation: Node operation that failed (e.g., "estimate_gas").
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "NODE_ERROR",
        node_message: Optional[str] = None,
        operation: Optional[str] = None,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if operation:
            details["operation"] = operation
        if node_message:
            details["node_message"] = node_message
        super().__init__(message, code=code, tx_hash=tx_hash, details=details)
        self.node_message = node_message or message
        self.operation = operation


class NetworkError(NodeError):
    """
    Transport failure before any chain-level outcome is known.

    Example:
        >>> raise NetworkError("connection refused", operation="chain_id")
    """

    retryable = True

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        node_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            code="NETWORK_ERROR",
            node_message=node_message,
            operation=operation,
            details=details,
        )


class ChainIdUnavailableError(NetworkError):
    """
    Raised when the node cannot report a usable chain id.

    Signing with an unknown chain id would produce a replay-unprotected or
    wrong-chain signature, so the client refuses to start instead.
    """

    retryable = False

    def __init__(self, reported: Optional[int] = None) -> None:
        message = (
            "Node did not report a chain id"
            if reported is None
            else f"Node reported unusable chain id {reported}"
        )
        super().__init__(message, operation="chain_id", details={"reported": reported})
        self.code = "CHAIN_ID_UNAVAILABLE"
        self.reported = reported


class EstimationError(NodeError):
    """
    The node refused to simulate the call (usually because it would revert).

    Example:
        >>> raise EstimationError("execution reverted: not owner")
    """

    def __init__(
        self,
        node_message: str,
        *,
        revert_reason: Optional[str] = None,
        operation: str = "estimate_gas",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if revert_reason:
            details["revert_reason"] = revert_reason
        super().__init__(
            f"Simulation failed: {node_message}",
            code="ESTIMATION_FAILED",
            node_message=node_message,
            operation=operation,
            details=details,
        )
        self.revert_reason = revert_reason


class QuoteError(NodeError):
    """The node could not supply a gas price or priority fee suggestion."""

    def __init__(
        self,
        node_message: str,
        *,
        operation: str = "suggested_gas_price",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            f"Fee quote failed: {node_message}",
            code="QUOTE_FAILED",
            node_message=node_message,
            operation=operation,
            details=details,
        )


class SubmissionError(NodeError):
    """
    The node rejected the signed transaction at broadcast time.

    Rejections such as nonce-too-low or underpriced are permanent for the
    same signed bytes; anything else (rate limits, overloaded pools) may
    succeed on a blind re-broadcast.
    """

    def __init__(
        self,
        node_message: str,
        *,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            f"Broadcast rejected: {node_message}",
            code="SUBMISSION_FAILED",
            node_message=node_message,
            operation="broadcast",
            tx_hash=tx_hash,
            details=details,
        )

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return not (
            is_nonce_too_low_error(self.node_message)
            or is_underpriced_error(self.node_message)
            or is_insufficient_funds_error(self.node_message)
        )

    @property
    def already_known(self) -> bool:
        """True when the node already has these exact bytes in its pool."""
        return is_already_known_error(self.node_message)
