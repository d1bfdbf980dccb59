"""
Shared fixtures and fakes for evmtx tests.

``FakeNode`` implements the ``NodeClient`` protocol in memory. It records
every call, can be told to fail any operation, and by default "mines"
each broadcast transaction immediately with a successful receipt.
"""

from collections import Counter
from typing import Any, Dict, List, Optional

import pytest

from evmtx.builder import TransactionBuilder
from evmtx.config import TxConfig
from evmtx.client import TxClient
from evmtx.gas import GasResolver
from evmtx.signer import LocalSigner
from evmtx.submitter import RetrySubmitter
from evmtx.tracker import ConfirmationTracker
from evmtx.types import CallRequest, Receipt, ReceiptStatus, SignedTransaction


# =============================================================================
# Test Constants
# =============================================================================

# Deterministic test key (never use outside tests)
TEST_PRIVATE_KEY = "0x" + "11" * 32

# Valid address (mixed-case checksum form)
VALID_ADDRESS = "0x7161ada3EA6e53E5652A45988DdfF1cE595E09c2"

# Same address with one hex digit missing (39 hex chars)
SHORT_ADDRESS = "0x7161ada3EA6e53E5652A45988DdfF1cE595E09c"

RECIPIENT = "0x1234567890123456789012345678901234567890"
CONTRACT = "0xabcdefABCDEFabcdefABCDEFabcdefABCDEFabcd"

VALID_TX_HASH = "0x" + "a" * 64

CHAIN_ID = 1
DEFAULT_NONCE = 7
DEFAULT_GAS_PRICE = 50
DEFAULT_PRIORITY_FEE = 2
DEFAULT_GAS_ESTIMATE = 21_000
DEFAULT_HEAD = 100


# =============================================================================
# Fakes
# =============================================================================


class FakeNode:
    """In-memory NodeClient.

    Attributes:
        calls: Counter of operation name -> number of calls
        failures: Operation name -> exception raised on every call
        broadcast_script: Exceptions (or None for success) consumed per broadcast
        receipt_script: Results consumed per receipt lookup before falling back
            to ``receipts`` (a Receipt, None, or an exception to raise)
        receipts: Mined receipts by hash
        broadcasts: Every SignedTransaction handed to ``broadcast``
        auto_mine: Store a successful receipt for each accepted broadcast
    """

    def __init__(
        self,
        *,
        chain_id: int = CHAIN_ID,
        balance: int = 10**18,
        nonce: int = DEFAULT_NONCE,
        gas_price: int = DEFAULT_GAS_PRICE,
        priority_fee: int = DEFAULT_PRIORITY_FEE,
        gas_estimate: int = DEFAULT_GAS_ESTIMATE,
        head: int = DEFAULT_HEAD,
        call_result: bytes = b"",
        auto_mine: bool = True,
    ) -> None:
        self.chain_id_value = chain_id
        self.balance_value = balance
        self.nonce_value = nonce
        self.gas_price_value = gas_price
        self.priority_fee_value = priority_fee
        self.gas_estimate_value = gas_estimate
        self.head = head
        self.call_result = call_result
        self.auto_mine = auto_mine

        self.calls: Counter = Counter()
        self.failures: Dict[str, BaseException] = {}
        self.broadcast_script: List[Optional[BaseException]] = []
        self.receipt_script: List[Any] = []
        self.receipts: Dict[str, Receipt] = {}
        self.broadcasts: List[SignedTransaction] = []
        self.estimate_requests: List[CallRequest] = []
        self.call_requests: List[CallRequest] = []
        self.on_receipt = None

    def _enter(self, operation: str) -> None:
        self.calls[operation] += 1
        if operation in self.failures:
            raise self.failures[operation]

    def chain_id(self) -> int:
        self._enter("chain_id")
        return self.chain_id_value

    def pending_nonce(self, address: str) -> int:
        self._enter("pending_nonce")
        return self.nonce_value

    def balance(self, address: str) -> int:
        self._enter("balance")
        return self.balance_value

    def suggested_gas_price(self) -> int:
        self._enter("suggested_gas_price")
        return self.gas_price_value

    def suggested_priority_fee(self) -> int:
        self._enter("suggested_priority_fee")
        return self.priority_fee_value

    def estimate_gas(self, call: CallRequest) -> int:
        self._enter("estimate_gas")
        self.estimate_requests.append(call)
        return self.gas_estimate_value

    def call(self, call: CallRequest) -> bytes:
        self._enter("call")
        self.call_requests.append(call)
        return self.call_result

    def block_number(self) -> int:
        self._enter("block_number")
        return self.head

    def broadcast(self, signed: SignedTransaction) -> str:
        self._enter("broadcast")
        self.broadcasts.append(signed)
        if self.broadcast_script:
            outcome = self.broadcast_script.pop(0)
            if outcome is not None:
                raise outcome
        if self.auto_mine:
            self.mine(signed.hash)
        return signed.hash

    def receipt(self, tx_hash: str) -> Optional[Receipt]:
        self._enter("receipt")
        if self.on_receipt is not None:
            self.on_receipt()
        if self.receipt_script:
            outcome = self.receipt_script.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        return self.receipts.get(tx_hash)

    def mine(
        self,
        tx_hash: str,
        status: ReceiptStatus = ReceiptStatus.SUCCESS,
        block_number: Optional[int] = None,
        gas_used: int = 21_000,
        effective_gas_price: Optional[int] = DEFAULT_GAS_PRICE,
    ) -> Receipt:
        receipt = Receipt(
            tx_hash=tx_hash,
            status=status,
            block_number=self.head if block_number is None else block_number,
            gas_used=gas_used,
            effective_gas_price=effective_gas_price,
        )
        self.receipts[tx_hash] = receipt
        return receipt


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instead of blocking."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def node() -> FakeNode:
    return FakeNode()


@pytest.fixture
def signer() -> LocalSigner:
    return LocalSigner.from_key(TEST_PRIVATE_KEY)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def resolver(node: FakeNode, signer: LocalSigner) -> GasResolver:
    return GasResolver(node, signer.address)


@pytest.fixture
def builder(node: FakeNode, signer: LocalSigner, resolver: GasResolver) -> TransactionBuilder:
    return TransactionBuilder(node, signer, CHAIN_ID, resolver)


@pytest.fixture
def tracker(node: FakeNode, clock: FakeClock) -> ConfirmationTracker:
    return ConfirmationTracker(
        node,
        poll_interval=1.0,
        timeout=30.0,
        sleep=clock.sleep,
        clock=clock,
    )


@pytest.fixture
def submitter(
    tracker: ConfirmationTracker,
    builder: TransactionBuilder,
    clock: FakeClock,
) -> RetrySubmitter:
    return RetrySubmitter(tracker, builder, sleep=clock.sleep)


@pytest.fixture
def client(node: FakeNode, signer: LocalSigner) -> TxClient:
    return TxClient(node, signer, TxConfig())
