"""
Tests for the ABI codec helpers.
"""

import json

import pytest
from eth_abi import encode as abi_encode

from evmtx.abi import (
    ERC20_ABI,
    decode_result,
    encode_call,
    find_function,
    function_selector,
    function_signature,
    load_abi,
)
from evmtx.errors import ValidationError

from .conftest import RECIPIENT

OVERLOADED_ABI = [
    {
        "type": "function",
        "name": "safeTransferFrom",
        "inputs": [
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
            {"name": "tokenId", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "safeTransferFrom",
        "inputs": [
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
            {"name": "tokenId", "type": "uint256"},
            {"name": "data", "type": "bytes"},
        ],
        "outputs": [],
    },
]

TUPLE_ABI = [
    {
        "type": "function",
        "name": "submit",
        "inputs": [
            {
                "name": "order",
                "type": "tuple",
                "components": [
                    {"name": "maker", "type": "address"},
                    {"name": "amount", "type": "uint256"},
                ],
            }
        ],
        "outputs": [{"name": "", "type": "bool"}],
    }
]


class TestSignatures:
    """Tests for signatures and selectors."""

    def test_transfer_selector(self) -> None:
        entry = find_function(ERC20_ABI, "transfer")

        assert function_signature(entry) == "transfer(address,uint256)"
        assert function_selector(entry).hex() == "a9059cbb"

    def test_balance_of_selector(self) -> None:
        assert function_selector(find_function(ERC20_ABI, "balanceOf")).hex() == "70a08231"

    def test_tuple_signature(self) -> None:
        assert function_signature(TUPLE_ABI[0]) == "submit((address,uint256))"

    def test_overload_by_arity(self) -> None:
        assert len(find_function(OVERLOADED_ABI, "safeTransferFrom", 4)["inputs"]) == 4

    def test_ambiguous_overload(self) -> None:
        with pytest.raises(ValidationError):
            find_function(OVERLOADED_ABI, "safeTransferFrom")

    def test_unknown_method(self) -> None:
        with pytest.raises(ValidationError):
            find_function(ERC20_ABI, "mint")


class TestEncodeDecode:
    """Tests for encode_call and decode_result."""

    def test_encode_transfer(self) -> None:
        data = encode_call(ERC20_ABI, "transfer", [RECIPIENT, 10])

        assert data[:4].hex() == "a9059cbb"
        assert data[4:] == abi_encode(["address", "uint256"], [RECIPIENT, 10])

    def test_encode_from_json(self) -> None:
        data = encode_call(json.dumps(ERC20_ABI), "decimals")
        assert data.hex() == "313ce567"

    def test_encode_tuple(self) -> None:
        data = encode_call(TUPLE_ABI, "submit", [(RECIPIENT, 5)])
        assert len(data) == 4 + 64

    def test_wrong_arity(self) -> None:
        with pytest.raises(ValidationError):
            encode_call(ERC20_ABI, "transfer", [RECIPIENT])

    def test_bad_argument(self) -> None:
        with pytest.raises(ValidationError):
            encode_call(ERC20_ABI, "transfer", [RECIPIENT, -1])

    def test_decode_string(self) -> None:
        assert decode_result(ERC20_ABI, "symbol", abi_encode(["string"], ["USDC"])) == ("USDC",)

    def test_decode_garbage(self) -> None:
        with pytest.raises(ValidationError):
            decode_result(ERC20_ABI, "symbol", b"\x01")


class TestLoadAbi:
    """Tests for load_abi."""

    def test_invalid_json(self) -> None:
        with pytest.raises(ValidationError):
            load_abi("{not json")

    def test_not_a_list(self) -> None:
        with pytest.raises(ValidationError):
            load_abi('{"type": "function"}')
