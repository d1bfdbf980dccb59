"""
Classification of node error messages.

Nodes report most chain-level failures as free-form text. These helpers
match the phrasings used by geth, erigon, nethermind and the common hosted
providers so callers can decide whether to retry, bump or abandon.
"""

from __future__ import annotations

from typing import Union

_REVERT_MARKERS = ("revert", "execution reverted", "vm execution error")
_INSUFFICIENT_FUNDS_MARKERS = ("insufficient funds", "insufficient balance")
_GAS_LIMIT_MARKERS = ("gas limit", "out of gas", "intrinsic gas too low", "gas too low")
_UNDERPRICED_MARKERS = (
    "underpriced",
    "fee too low",
    "max fee per gas less than block base fee",
    "gas price too low",
)
_NONCE_TOO_LOW_MARKERS = ("nonce too low", "nonce has already been used", "already been mined")
_ALREADY_KNOWN_MARKERS = ("already known", "known transaction", "already imported")


def _text(err: Union[BaseException, str, None]) -> str:
    if err is None:
        return ""
    message = getattr(err, "node_message", None) or str(err)
    return message.lower()


def _matches(err: Union[BaseException, str, None], markers: tuple[str, ...]) -> bool:
    text = _text(err)
    return bool(text) and any(marker in text for marker in markers)


def is_revert_error(err: Union[BaseException, str, None]) -> bool:
    """Return True if the node reported that execution reverted."""
    return _matches(err, _REVERT_MARKERS)


def is_insufficient_funds_error(err: Union[BaseException, str, None]) -> bool:
    """Return True if the node reported the sender cannot cover value plus gas."""
    return _matches(err, _INSUFFICIENT_FUNDS_MARKERS)


def is_gas_limit_error(err: Union[BaseException, str, None]) -> bool:
    """Return True if the failure is about the gas limit being too low or exceeded."""
    return _matches(err, _GAS_LIMIT_MARKERS)


def is_underpriced_error(err: Union[BaseException, str, None]) -> bool:
    """Return True if the node refused a transaction (or replacement) as underpriced."""
    return _matches(err, _UNDERPRICED_MARKERS)


def is_nonce_too_low_error(err: Union[BaseException, str, None]) -> bool:
    """Return True if the nonce was already consumed by a mined transaction."""
    return _matches(err, _NONCE_TOO_LOW_MARKERS)


def is_already_known_error(err: Union[BaseException, str, None]) -> bool:
    """Return True if the node already holds this exact transaction in its pool."""
    return _matches(err, _ALREADY_KNOWN_MARKERS)


__all__ = [
    "is_revert_error",
    "is_insufficient_funds_error",
    "is_gas_limit_error",
    "is_underpriced_error",
    "is_nonce_too_low_error",
    "is_already_known_error",
]
