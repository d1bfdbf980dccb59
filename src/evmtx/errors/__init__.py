"""
Exception hierarchy for evmtx.

    EvmTxError
    ├── ValidationError
    │   ├── InvalidAddressError
    │   ├── InvalidAmountError
    │   └── InvalidGasParamsError
    ├── NodeError
    │   ├── NetworkError
    │   │   └── ChainIdUnavailableError
    │   ├── EstimationError
    │   ├── QuoteError
    │   └── SubmissionError
    ├── InsufficientFundsError
    ├── TransactionTimeoutError
    ├── ExecutionFailedError
    └── BatchSendError
"""

from evmtx.errors.base import EvmTxError
from evmtx.errors.classify import (
    is_already_known_error,
    is_gas_limit_error,
    is_insufficient_funds_error,
    is_nonce_too_low_error,
    is_revert_error,
    is_underpriced_error,
)
from evmtx.errors.lifecycle import (
    BatchSendError,
    ExecutionFailedError,
    InsufficientFundsError,
    TransactionTimeoutError,
)
from evmtx.errors.node import (
    ChainIdUnavailableError,
    EstimationError,
    NetworkError,
    NodeError,
    QuoteError,
    SubmissionError,
)
from evmtx.errors.validation import (
    InvalidAddressError,
    InvalidAmountError,
    InvalidGasParamsError,
    ValidationError,
)

__all__ = [
    "EvmTxError",
    # Validation
    "ValidationError",
    "InvalidAddressError",
    "InvalidAmountError",
    "InvalidGasParamsError",
    # Node
    "NodeError",
    "NetworkError",
    "ChainIdUnavailableError",
    "EstimationError",
    "QuoteError",
    "SubmissionError",
    # Lifecycle
    "InsufficientFundsError",
    "TransactionTimeoutError",
    "ExecutionFailedError",
    "BatchSendError",
    # Classification
    "is_revert_error",
    "is_insufficient_funds_error",
    "is_gas_limit_error",
    "is_underpriced_error",
    "is_nonce_too_low_error",
    "is_already_known_error",
]
