"""Network presets and lifecycle settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from .constants import (
    CONFIRMATION_TIMEOUT_SECONDS,
    FEE_BUMP_PERCENT,
    MAX_FEE_MULTIPLIER,
    POLL_INTERVAL_SECONDS,
    PROVIDER_TIMEOUT_SECONDS,
    SUBMIT_BACKOFF_SECONDS,
    SUBMIT_MAX_ATTEMPTS,
)
from .errors import ValidationError

__all__ = ["Network", "NetworkConfig", "NETWORKS", "get_network_config", "TxConfig"]


class Network(str, Enum):
    ETHEREUM = "ethereum"
    BSC = "bsc"


@dataclass(frozen=True)
class NetworkConfig:
    name: Network
    chain_id: int
    rpc_urls: tuple[str, ...]
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def rpc_url(self) -> str:
        return self.rpc_urls[0]


NETWORKS: dict[Network, NetworkConfig] = {
    Network.ETHEREUM: NetworkConfig(
        name=Network.ETHEREUM,
        chain_id=1,
        rpc_urls=(
            "https://1rpc.io/eth",
            "https://eth.llamarpc.com",
            "https://eth.drpc.org",
        ),
    ),
    Network.BSC: NetworkConfig(
        name=Network.BSC,
        chain_id=56,
        rpc_urls=(
            "https://binance.llamarpc.com",
            "https://1rpc.io/bnb",
        ),
    ),
}


def get_network_config(
    network: Network,
    rpc_url: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> NetworkConfig:
    cfg = NETWORKS[network]
    if rpc_url:
        cfg = replace(cfg, rpc_urls=(rpc_url,))
    if headers:
        cfg = replace(cfg, headers=dict(headers))
    return cfg


class TxConfig(BaseModel):
    """
    Settings for gas resolution, confirmation polling and retries.

    Example:
        ```python
        config = TxConfig(confirmation_timeout_seconds=120, fee_bump_percent=25)
        config = TxConfig.from_env()  # EVMTX_CONFIRMATION_TIMEOUT_SECONDS=120 ...
        ```
    """

    model_config = ConfigDict(frozen=True)

    poll_interval_seconds: float = Field(
        default=POLL_INTERVAL_SECONDS,
        gt=0,
        description="Delay between receipt lookups",
    )
    confirmation_timeout_seconds: float = Field(
        default=CONFIRMATION_TIMEOUT_SECONDS,
        gt=0,
        description="Deadline for a receipt to appear after broadcast",
    )
    fee_bump_percent: int = Field(
        default=FEE_BUMP_PERCENT,
        ge=10,
        le=1000,
        description="Fee increase applied by a single fee-bump step",
    )
    max_fee_multiplier: int = Field(
        default=MAX_FEE_MULTIPLIER,
        ge=1,
        description="maxFeePerGas = suggested legacy price * multiplier",
    )
    submit_max_attempts: int = Field(
        default=SUBMIT_MAX_ATTEMPTS,
        ge=1,
        description="Broadcast attempts for blind retry",
    )
    submit_backoff_seconds: float = Field(
        default=SUBMIT_BACKOFF_SECONDS,
        ge=0,
        description="Linear backoff step between broadcast attempts",
    )
    rpc_timeout_seconds: int = Field(
        default=PROVIDER_TIMEOUT_SECONDS,
        ge=1,
        description="HTTP timeout for JSON-RPC requests",
    )
    chain_id: Optional[int] = Field(
        default=None,
        ge=1,
        description="Explicit chain id; skips asking the node",
    )
    allow_unknown_chain: bool = Field(
        default=False,
        description="Accept a node that cannot report its chain id (signs with chain id 0)",
    )

    @classmethod
    def from_env(cls, prefix: str = "EVMTX_", **overrides: Any) -> "TxConfig":
        """Build settings from ``<prefix><FIELD_NAME>`` environment variables.

        A ``.env`` file in the working directory is loaded first (without
        overriding variables that are already set).
        """
        load_dotenv()
        values: Dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.environ.get(f"{prefix}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        values.update(overrides)
        try:
            return cls(**values)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid configuration: {e}", field="config") from None
