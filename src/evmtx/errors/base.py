"""
Root of the evmtx exception hierarchy.

Every error leaving the package is an ``EvmTxError``. Callers that only
care whether to try again can check ``retryable``; callers that log or
ship errors elsewhere can use ``to_dict``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class EvmTxError(Exception):
    """
    Base exception for transaction lifecycle failures.

    Attributes:
        message: What went wrong, for humans.
        code: Stable identifier such as "SUBMISSION_FAILED" or "EXECUTION_FAILED".
        tx_hash: Hash of the affected transaction, once one exists.
        details: Extra context (node message, block number, amounts...).
        retryable: True when repeating the same operation may succeed.

    Example:
        >>> err = EvmTxError("node rejected transaction", code="SUBMISSION_FAILED")
        >>> str(err)
        '[SUBMISSION_FAILED] node rejected transaction'
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        code: str = "EVMTX_ERROR",
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.tx_hash = tx_hash
        self.details = details or {}

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message}"
        if self.tx_hash:
            text += f" (tx: {self.tx_hash[:10]}...)"
        return text

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.message!r}, code={self.code!r}, "
            f"tx_hash={self.tx_hash!r}, details={self.details!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form: error class, code, message, tx hash, retryable, details."""
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "tx_hash": self.tx_hash,
            "retryable": self.retryable,
            "details": self.details,
        }
