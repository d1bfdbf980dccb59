"""
Tests for lifecycle value types.

Tests cover:
- Fee model invariants and bumping
- GasParams invariants and total cost
- PendingTransaction encoding per fee model
- Receipt parsing from web3 mappings
"""

import pytest
from hexbytes import HexBytes
from web3 import Web3

from evmtx.errors import InvalidAddressError, InvalidGasParamsError, ValidationError
from evmtx.types import (
    CallRequest,
    DynamicFee,
    GasParams,
    LegacyFee,
    PendingTransaction,
    Receipt,
    ReceiptStatus,
    TxState,
    bump_amount,
)

from .conftest import CHAIN_ID, RECIPIENT, SHORT_ADDRESS, VALID_ADDRESS


# =============================================================================
# Fee Model Tests
# =============================================================================


class TestLegacyFee:
    """Tests for the single gas-price fee model."""

    def test_positive_price_required(self) -> None:
        with pytest.raises(InvalidGasParamsError):
            LegacyFee(gas_price=0)

    def test_bumped_raises_by_percent(self) -> None:
        assert LegacyFee(100).bumped(20).gas_price == 120

    def test_bumped_rounds_up(self) -> None:
        # 7 * 1.2 = 8.4 -> 9
        assert LegacyFee(7).bumped(20).gas_price == 9

    def test_bumped_always_increases(self) -> None:
        assert LegacyFee(1).bumped(1).gas_price == 2


class TestDynamicFee:
    """Tests for the EIP-1559 fee model."""

    def test_cap_below_tip_rejected(self) -> None:
        with pytest.raises(InvalidGasParamsError):
            DynamicFee(max_priority_fee_per_gas=10, max_fee_per_gas=9)

    def test_zero_tip_allowed(self) -> None:
        fee = DynamicFee(max_priority_fee_per_gas=0, max_fee_per_gas=100)
        assert fee.max_price_per_gas == 100

    def test_bumped_raises_both_fields(self) -> None:
        fee = DynamicFee(max_priority_fee_per_gas=10, max_fee_per_gas=100).bumped(20)
        assert fee.max_priority_fee_per_gas == 12
        assert fee.max_fee_per_gas == 120

    def test_kind(self) -> None:
        assert DynamicFee(1, 2).kind == "dynamic"
        assert LegacyFee(1).kind == "legacy"


def test_bump_amount_from_zero() -> None:
    """A zero tip still rises by at least one wei."""
    assert bump_amount(0, 20) == 1


# =============================================================================
# GasParams Tests
# =============================================================================


class TestGasParams:
    """Tests for GasParams invariants and cost."""

    def test_zero_gas_limit_rejected(self) -> None:
        with pytest.raises(InvalidGasParamsError):
            GasParams(gas_limit=0, fee=LegacyFee(1))

    def test_total_cost_legacy(self) -> None:
        params = GasParams(gas_limit=21_000, fee=LegacyFee(50))
        assert params.total_cost(900_000) == 1_950_000

    def test_total_cost_dynamic_uses_fee_cap(self) -> None:
        params = GasParams(gas_limit=21_000, fee=DynamicFee(2, 100))
        assert params.max_gas_cost == 2_100_000


# =============================================================================
# Transaction Encoding Tests
# =============================================================================


def _pending(fee, to=RECIPIENT, data=b"") -> PendingTransaction:
    return PendingTransaction(
        to=to,
        value=5,
        data=data,
        nonce=3,
        gas=GasParams(gas_limit=21_000, fee=fee),
        chain_id=CHAIN_ID,
    )


class TestPendingTransaction:
    """Tests for PendingTransaction validation and tx dict encoding."""

    def test_legacy_dict_has_gas_price(self) -> None:
        tx = _pending(LegacyFee(50)).to_tx_dict()

        assert tx["gasPrice"] == 50
        assert "type" not in tx
        assert "maxFeePerGas" not in tx
        assert tx["chainId"] == CHAIN_ID
        assert tx["nonce"] == 3

    def test_dynamic_dict_is_type_2(self) -> None:
        tx = _pending(DynamicFee(2, 100)).to_tx_dict()

        assert tx["type"] == 2
        assert tx["maxPriorityFeePerGas"] == 2
        assert tx["maxFeePerGas"] == 100
        assert "gasPrice" not in tx

    def test_to_is_checksummed(self) -> None:
        tx = _pending(LegacyFee(1), to=VALID_ADDRESS.lower()).to_tx_dict()
        assert tx["to"] == Web3.to_checksum_address(VALID_ADDRESS)

    def test_contract_creation_omits_to(self) -> None:
        pending = _pending(LegacyFee(1), to=None, data="0x6080")

        assert pending.is_contract_creation
        assert "to" not in pending.to_tx_dict()
        assert pending.data == b"\x60\x80"

    def test_invalid_to_rejected(self) -> None:
        with pytest.raises(InvalidAddressError):
            _pending(LegacyFee(1), to=SHORT_ADDRESS)

    def test_negative_nonce_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PendingTransaction(
                to=RECIPIENT,
                value=0,
                data=b"",
                nonce=-1,
                gas=GasParams(21_000, LegacyFee(1)),
                chain_id=CHAIN_ID,
            )

    def test_bad_data_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _pending(LegacyFee(1), data="0xzz")


class TestCallRequest:
    """Tests for CallRequest."""

    def test_to_dict(self) -> None:
        request = CallRequest(to=VALID_ADDRESS.lower(), value=1, data=b"\x01", sender=RECIPIENT)
        params = request.to_dict()

        assert params["to"] == Web3.to_checksum_address(VALID_ADDRESS)
        assert params["data"] == "0x01"
        assert params["value"] == 1
        assert params["from"].lower() == RECIPIENT

    def test_creation_has_no_to(self) -> None:
        assert "to" not in CallRequest(to=None, data="0x60").to_dict()


# =============================================================================
# Receipt Tests
# =============================================================================


class TestReceipt:
    """Tests for Receipt parsing."""

    def test_from_web3_mapping(self) -> None:
        receipt = Receipt.from_mapping(
            {
                "transactionHash": HexBytes("0x" + "AB" * 32),
                "status": 1,
                "blockNumber": 123,
                "gasUsed": 21_000,
                "effectiveGasPrice": 50,
            }
        )

        assert receipt.tx_hash == "0x" + "ab" * 32
        assert receipt.status is ReceiptStatus.SUCCESS
        assert receipt.succeeded
        assert receipt.fee_paid == 1_050_000

    def test_failed_status(self) -> None:
        receipt = Receipt.from_mapping(
            {"transactionHash": "0x" + "cd" * 32, "status": 0, "blockNumber": 9, "gasUsed": 30_000}
        )

        assert receipt.status is ReceiptStatus.FAILED
        assert not receipt.succeeded
        assert receipt.fee_paid is None


def test_terminal_states() -> None:
    assert TxState.CONFIRMED.is_terminal
    assert TxState.TIMED_OUT.is_terminal
    assert not TxState.PENDING.is_terminal
    assert not TxState.SUBMITTED.is_terminal
