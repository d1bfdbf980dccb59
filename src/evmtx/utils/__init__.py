"""
evmtx utilities.

This module provides validation, unit conversion, retry and logging helpers.
"""

from evmtx.utils.logging import (
    LogContext,
    configure_logging,
    disable_logging,
    enable_debug,
    get_logger,
    set_level,
)
from evmtx.utils.retry import RetryConfig, calculate_delay, retry_call, with_retry
from evmtx.utils.units import (
    format_eth,
    format_gwei,
    parse_eth,
    parse_gwei,
    truncate_address,
    truncate_hash,
)
from evmtx.utils.validation import (
    compare_addresses,
    is_valid_address,
    is_zero_address,
    validate_address,
    validate_amount,
    validate_gas_limit,
    validate_gas_price,
    validate_optional_address,
    validate_tx_hash,
)

__all__ = [
    # Validation
    "is_valid_address",
    "validate_address",
    "validate_optional_address",
    "is_zero_address",
    "compare_addresses",
    "validate_amount",
    "validate_gas_limit",
    "validate_gas_price",
    "validate_tx_hash",
    # Units
    "parse_eth",
    "parse_gwei",
    "format_eth",
    "format_gwei",
    "truncate_address",
    "truncate_hash",
    # Retry
    "RetryConfig",
    "calculate_delay",
    "retry_call",
    "with_retry",
    # Logging
    "get_logger",
    "configure_logging",
    "set_level",
    "disable_logging",
    "enable_debug",
    "LogContext",
]
