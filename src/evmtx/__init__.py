"""
evmtx - transaction lifecycle management for EVM chains.

Turns an intent ("pay X to Y", "call M on C") into a signed, broadcast and
confirmed transaction: gas resolution, EIP-1559 building with legacy
fallback, bounded confirmation polling, blind retry and fee bumps.

Quick Start:
    >>> from evmtx import TxClient
    >>> client = TxClient.from_private_key("https://1rpc.io/eth", "0x...")
    >>> tx_hash = client.send_eth("0x7161ada3EA6e53E5652A45988DdfF1cE595E09c2", 10**15)

Modules:
- `client`: TxClient, the end-to-end surface
- `gas`, `builder`, `tracker`, `submitter`: the lifecycle components
- `node`, `signer`, `abi`: node access, signing and call-data encoding
- `errors`: Exception hierarchy
- `utils`: Validation, units, retry and logging helpers
"""

from evmtx.version import __version__, __version_info__

# Client
from evmtx.client import TxClient

# Components
from evmtx.builder import TransactionBuilder
from evmtx.gas import GasResolver, GasSuggestions
from evmtx.submitter import RetrySubmitter
from evmtx.tracker import ConfirmationTracker

# Collaborators
from evmtx.abi import ERC20_ABI, decode_result, encode_call
from evmtx.node import NodeClient, Web3NodeClient, decode_revert_reason
from evmtx.signer import LocalSigner, Signer

# Configuration
from evmtx.config import NETWORKS, Network, NetworkConfig, TxConfig, get_network_config

# Types
from evmtx.types import (
    CallRequest,
    DynamicFee,
    FeeHints,
    FeeModel,
    GasParams,
    LegacyFee,
    PendingTransaction,
    Receipt,
    ReceiptStatus,
    SignedTransaction,
    TxHash,
    TxState,
)

# Errors
from evmtx.errors import (
    BatchSendError,
    ChainIdUnavailableError,
    EstimationError,
    EvmTxError,
    ExecutionFailedError,
    InsufficientFundsError,
    InvalidAddressError,
    InvalidAmountError,
    InvalidGasParamsError,
    NetworkError,
    NodeError,
    QuoteError,
    SubmissionError,
    TransactionTimeoutError,
    ValidationError,
)

# Utilities
from evmtx.utils import (
    configure_logging,
    format_eth,
    format_gwei,
    is_valid_address,
    parse_eth,
    parse_gwei,
    validate_address,
)

__all__ = [
    "__version__",
    "__version_info__",
    # Client
    "TxClient",
    # Components
    "GasResolver",
    "GasSuggestions",
    "TransactionBuilder",
    "ConfirmationTracker",
    "RetrySubmitter",
    # Collaborators
    "NodeClient",
    "Web3NodeClient",
    "decode_revert_reason",
    "Signer",
    "LocalSigner",
    "ERC20_ABI",
    "encode_call",
    "decode_result",
    # Configuration
    "Network",
    "NetworkConfig",
    "NETWORKS",
    "get_network_config",
    "TxConfig",
    # Types
    "TxHash",
    "LegacyFee",
    "DynamicFee",
    "FeeModel",
    "GasParams",
    "FeeHints",
    "CallRequest",
    "PendingTransaction",
    "SignedTransaction",
    "Receipt",
    "ReceiptStatus",
    "TxState",
    # Errors
    "EvmTxError",
    "ValidationError",
    "InvalidAddressError",
    "InvalidAmountError",
    "InvalidGasParamsError",
    "NodeError",
    "NetworkError",
    "ChainIdUnavailableError",
    "EstimationError",
    "QuoteError",
    "SubmissionError",
    "InsufficientFundsError",
    "TransactionTimeoutError",
    "ExecutionFailedError",
    "BatchSendError",
    # Utilities
    "is_valid_address",
    "validate_address",
    "parse_eth",
    "parse_gwei",
    "format_eth",
    "format_gwei",
    "configure_logging",
]
