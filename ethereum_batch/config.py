"""
Configuration for the Ethereum batch engine.

``NetworkConfig`` holds the bundled table of well-known networks and
``ExecutionSettings`` holds the batch-wide settings read once per run.
"""
import importlib.resources
import json
import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CHAIN_ID = 1


class ErrorPolicy(str, Enum):
    """What happens when a single item fails."""
    ABORT_BATCH = "abortBatch"
    SKIP_ITEM = "skipItem"
    COLLECT_ERRORS = "collectErrors"


class NetworkConfig:
    """Lookup of well-known networks by name or chain id."""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load the bundled network table.

        Returns:
            Mapping of network name to ``{"chainId": int, "rpc": str}``
        """
        if cls._networks_cache is not None:
            return cls._networks_cache

        resource = importlib.resources.files("ethereum_batch").joinpath("networks.json")
        with resource.open("r", encoding="utf-8") as f:
            cls._networks_cache = json.load(f)
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: str) -> Dict[str, Any]:
        """
        Get the configuration of a named network.

        Raises:
            ValueError: If the network is unknown
        """
        networks = cls.load_networks()
        if network not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Network '{network}' not found. Available networks: {available}")
        return networks[network]

    @classmethod
    def get_rpc_url(cls, network: str) -> str:
        """
        Get the RPC URL of a named network.

        ``ETHEREUM_BATCH_RPC_<NAME>`` overrides the bundled URL, with dashes
        in the name replaced by underscores.
        """
        env_key = "ETHEREUM_BATCH_RPC_" + network.upper().replace("-", "_")
        override = os.environ.get(env_key)
        if override:
            logger.debug("Using %s for network %s", env_key, network)
            return override
        return cls.get_network(network)["rpc"]

    @classmethod
    def name_for_chain_id(cls, chain_id: int) -> Optional[str]:
        for name, data in cls.load_networks().items():
            if data.get("chainId") == chain_id:
                return name
        return None

    @classmethod
    def describe_chain(cls, chain_id: int) -> str:
        """Render ``137 (polygon)`` or just ``137`` when unknown."""
        name = cls.name_for_chain_id(chain_id)
        return f"{chain_id} ({name})" if name else str(chain_id)


class ExecutionSettings(BaseModel):
    """Batch-wide settings resolved once per run"""
    rpc_url: Optional[str] = None
    chain_id: int = DEFAULT_CHAIN_ID
    error_policy: ErrorPolicy = ErrorPolicy.ABORT_BATCH
    timeout: float = Field(30.0, gt=0)
    retry_count: int = Field(3, ge=0, le=10)
    receipt_timeout: float = Field(120.0, gt=0)
    poll_latency: float = Field(0.1, gt=0)

    @field_validator("rpc_url", mode="before")
    @classmethod
    def _strip_rpc_url(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("chain_id", mode="before")
    @classmethod
    def _default_chain_id(cls, value: Any) -> int:
        # unset, zero or negative all mean mainnet
        if value is None or value == "":
            return DEFAULT_CHAIN_ID
        value = int(value)
        return value if value > 0 else DEFAULT_CHAIN_ID
