"""Constants for evmtx.

This module defines the constant values used across the package,
including gas parameters, polling and retry timings, and validation bounds.
"""

# Address / hash formats
ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"
TX_HASH_PATTERN = r"^0x[0-9a-fA-F]{64}$"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Gas Constants
TRANSFER_GAS_LIMIT = 21_000
MAX_BLOCK_GAS_LIMIT = 30_000_000  # Ethereum mainnet block gas limit
MAX_FEE_MULTIPLIER = 2  # maxFeePerGas = suggested legacy price * 2
OPTIMAL_GAS_PRICE_PERCENT = 110  # "fast" legacy price: suggestion + 10%

# Fee bump (replacement) Constants
FEE_BUMP_PERCENT = 20  # geth requires >= 10% on both fee fields to replace

# Confirmation polling Constants
POLL_INTERVAL_SECONDS = 1.0
CONFIRMATION_TIMEOUT_SECONDS = 30.0

# Submission retry Constants
SUBMIT_MAX_ATTEMPTS = 3
SUBMIT_BACKOFF_SECONDS = 1.0  # delay before attempt n+1 = n * backoff

# Network Constants
PROVIDER_TIMEOUT_SECONDS = 30

# Amount Validation Constants
MAX_UINT256 = 2**256 - 1

# Unit Constants
WEI_PER_GWEI = 10**9
WEI_PER_ETH = 10**18

# HD wallet derivation (BIP-44, coin type 60)
DEFAULT_DERIVATION_PATH = "m/44'/60'/0'/0/{index}"

__all__ = [
    "ADDRESS_PATTERN",
    "TX_HASH_PATTERN",
    "ZERO_ADDRESS",
    "TRANSFER_GAS_LIMIT",
    "MAX_BLOCK_GAS_LIMIT",
    "MAX_FEE_MULTIPLIER",
    "OPTIMAL_GAS_PRICE_PERCENT",
    "FEE_BUMP_PERCENT",
    "POLL_INTERVAL_SECONDS",
    "CONFIRMATION_TIMEOUT_SECONDS",
    "SUBMIT_MAX_ATTEMPTS",
    "SUBMIT_BACKOFF_SECONDS",
    "PROVIDER_TIMEOUT_SECONDS",
    "MAX_UINT256",
    "WEI_PER_GWEI",
    "WEI_PER_ETH",
    "DEFAULT_DERIVATION_PATH",
]
