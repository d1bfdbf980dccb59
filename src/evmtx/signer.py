"""Transaction signing.

``LocalSigner`` wraps an eth_account ``LocalAccount``. eth_account picks
the signing scheme from the transaction dict it is given: a ``gasPrice``
dict is signed EIP-155 (v = chain_id * 2 + 35/36), a ``type: 2`` dict is
signed as an EIP-1559 envelope (y-parity 0/1). ``PendingTransaction.to_tx_dict``
produces exactly one of these per fee model, so the scheme always matches
the transaction type.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .constants import DEFAULT_DERIVATION_PATH
from .errors import ValidationError
from .types import PendingTransaction, SignedTransaction

__all__ = ["Signer", "LocalSigner"]


@runtime_checkable
class Signer(Protocol):
    """Key/address provider. The key is read-only for the duration of a sign."""

    @property
    def address(self) -> str: ...

    def sign_transaction(self, pending: PendingTransaction) -> SignedTransaction: ...


class LocalSigner:
    """Signer holding a private key in memory."""

    def __init__(self, account: LocalAccount) -> None:
        self._account = account

    @classmethod
    def from_key(cls, private_key: str) -> "LocalSigner":
        # Sanitize private key errors to prevent key leakage in stack traces
        try:
            account = Account.from_key(private_key)
        except Exception:
            raise ValidationError("Invalid private key format (key not shown for security)") from None
        return cls(account)

    @classmethod
    def from_mnemonic(cls, mnemonic: str, index: int = 0, passphrase: str = "") -> "LocalSigner":
        """Derive the account at ``m/44'/60'/0'/0/{index}``."""
        if not mnemonic:
            raise ValidationError("mnemonic is required", field="mnemonic")
        index = max(index, 0)
        Account.enable_unaudited_hdwallet_features()
        try:
            account = Account.from_mnemonic(
                mnemonic,
                passphrase=passphrase,
                account_path=DEFAULT_DERIVATION_PATH.format(index=index),
            )
        except Exception:
            raise ValidationError("Invalid mnemonic (not shown for security)", field="mnemonic") from None
        return cls(account)

    @property
    def address(self) -> str:
        return self._account.address

    def sign_transaction(self, pending: PendingTransaction) -> SignedTransaction:
        try:
            signed = self._account.sign_transaction(pending.to_tx_dict())
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Transaction could not be signed: {e}") from e
        return SignedTransaction(
            pending=pending,
            raw=bytes(signed.raw_transaction),
            hash="0x" + bytes(signed.hash).hex(),
            sender=self.address,
        )

    def sign_hash(self, message_hash: bytes) -> bytes:
        """Sign a raw 32-byte hash; returns the 65-byte r || s || v signature."""
        if len(message_hash) != 32:
            raise ValidationError("message_hash must be 32 bytes", field="message_hash")
        return bytes(self._account.unsafe_sign_hash(message_hash).signature)

    def __repr__(self) -> str:
        return f"LocalSigner(address={self.address!r})"
