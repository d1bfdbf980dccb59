"""ABI codec for contract calls.

Encodes call data (selector + arguments) and decodes return data using
eth_abi. Tuple parameters are flattened to their canonical ``(t1,t2)``
form for both the signature and the codec.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence, Union

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import keccak

from .errors import ValidationError

__all__ = [
    "ERC20_ABI",
    "AbiSpec",
    "load_abi",
    "find_function",
    "function_signature",
    "function_selector",
    "encode_call",
    "decode_result",
]

AbiSpec = Union[str, Sequence[Dict[str, Any]]]

ERC20_ABI: List[Dict[str, Any]] = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "balance", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "transfer",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "to", "type": "address"}, {"name": "value", "type": "uint256"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "spender", "type": "address"}, {"name": "value", "type": "uint256"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "allowance",
        "stateMutability": "view",
        "inputs": [{"name": "owner", "type": "address"}, {"name": "spender", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "decimals",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "type": "function",
        "name": "symbol",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
]


def load_abi(abi: AbiSpec) -> List[Dict[str, Any]]:
    """Accept an ABI as a JSON string or an already-parsed list."""
    if isinstance(abi, str):
        try:
            parsed = json.loads(abi)
        except json.JSONDecodeError as e:
            raise ValidationError(f"ABI is not valid JSON: {e}", field="abi") from None
    else:
        parsed = list(abi)
    if not isinstance(parsed, list):
        raise ValidationError("ABI must be a list of entries", field="abi")
    return parsed


def _canonical_type(param: Dict[str, Any]) -> str:
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(_canonical_type(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


def find_function(abi: AbiSpec, method: str, arg_count: Optional[int] = None) -> Dict[str, Any]:
    """Find a function entry by name, disambiguating overloads by argument count."""
    entries = [
        entry
        for entry in load_abi(abi)
        if entry.get("type", "function") == "function" and entry.get("name") == method
    ]
    if arg_count is not None and len(entries) > 1:
        entries = [e for e in entries if len(e.get("inputs", [])) == arg_count]
    if not entries:
        raise ValidationError(f"Method {method!r} not found in ABI", field="method")
    if len(entries) > 1:
        raise ValidationError(f"Method {method!r} is overloaded ambiguously", field="method")
    return entries[0]


def function_signature(entry: Dict[str, Any]) -> str:
    """``transfer(address,uint256)``"""
    args = ",".join(_canonical_type(p) for p in entry.get("inputs", []))
    return f"{entry['name']}({args})"


def function_selector(entry: Dict[str, Any]) -> bytes:
    return keccak(text=function_signature(entry))[:4]


def encode_call(abi: AbiSpec, method: str, args: Sequence[Any] = ()) -> bytes:
    """
    Encode call data for ``method(*args)``.

    Returns:
        4-byte selector followed by the ABI-encoded arguments

    Raises:
        ValidationError: Unknown method, wrong arity, or arguments that do not fit the types
    """
    entry = find_function(abi, method, len(args))
    inputs = entry.get("inputs", [])
    if len(inputs) != len(args):
        raise ValidationError(
            f"{method} expects {len(inputs)} arguments, got {len(args)}",
            field="args",
        )
    types = [_canonical_type(p) for p in inputs]
    try:
        encoded = abi_encode(types, list(args))
    except (EncodingError, TypeError, ValueError, OverflowError) as e:
        raise ValidationError(f"Cannot encode arguments for {method}: {e}", field="args") from None
    return function_selector(entry) + encoded


def decode_result(
    abi: AbiSpec,
    method: str,
    data: bytes,
    arg_count: Optional[int] = None,
) -> tuple:
    """Decode the return data of ``method`` into a tuple of typed values."""
    entry = find_function(abi, method, arg_count)
    types = [_canonical_type(p) for p in entry.get("outputs", [])]
    if not types:
        return ()
    try:
        return tuple(abi_decode(types, bytes(data)))
    except (DecodingError, ValueError) as e:
        raise ValidationError(f"Cannot decode result of {method}: {e}", field="data") from None
