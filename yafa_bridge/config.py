"""
Network registry and run configuration for the Yafa bridge toolkit.
"""
import os
import re
import json
import logging
import importlib.resources
from pathlib import Path
from typing import Dict, Any, Optional, Mapping

from dotenv import load_dotenv, find_dotenv
from pydantic import BaseModel, ConfigDict, SecretStr
from web3 import Web3

from .exceptions import ConfigurationError
from .models import Endpoint

logger = logging.getLogger(__name__)

L1_NETWORK = "sepolia"
L2_NETWORK = "yafa-l2"
DEFAULT_ARTIFACT_PATH = "artifacts/contracts/YafaToken.sol/YafaToken.json"

_PRIVATE_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


class NetworkConfig:
    """Lookup helpers over the bundled networks.json registry."""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load the network registry, caching it after the first read.

        Returns:
            Mapping of network name to its settings
        """
        if cls._networks_cache is not None:
            return cls._networks_cache

        resource = importlib.resources.files("yafa_bridge").joinpath("networks.json")
        with resource.open("r", encoding="utf-8") as f:
            cls._networks_cache = json.load(f)
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: str) -> Dict[str, Any]:
        """
        Get the settings of a single network.

        Raises:
            ValueError: If the network is not in the registry
        """
        networks = cls.load_networks()
        if network not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network '{network}'. Available networks: {available}")
        return networks[network]

    @classmethod
    def get_rpc_url(cls, network: str, override: Optional[str] = None) -> str:
        """
        Resolve the RPC URL for a network.

        Precedence: explicit override, then ``<NETWORK>_RPC_URL`` from the
        environment, then the registry default.
        """
        if override:
            return override

        env_var = f"{network.upper().replace('-', '_')}_RPC_URL"
        env_url = os.environ.get(env_var)
        if env_url:
            return env_url

        return cls.get_network(network)["rpc"]

    @classmethod
    def get_chain_id(cls, network: str) -> int:
        return int(cls.get_network(network)["chainId"])

    @classmethod
    def get_portal_address(cls, network: str) -> str:
        """Get the OptimismPortal deposit contract address (checksummed)."""
        address = cls.get_network(network).get("optimismPortal")
        if not address:
            raise ValueError(f"Network '{network}' has no deposit portal configured")
        return Web3.to_checksum_address(address)

    @classmethod
    def get_explorer_url(cls, network: str) -> Optional[str]:
        return cls.get_network(network).get("explorer")


class BridgeConfig(BaseModel):
    """
    Settings for a single invocation, built once at process start.

    Values that only some workflows need (``l1_rpc_url``, ``private_key``)
    are optional here and checked by ``require_l1`` / ``require_private_key``
    so a workflow fails before making any network call.
    """
    model_config = ConfigDict(frozen=True)

    l1_rpc_url: Optional[str] = None
    l1_chain_id: int = 11155111
    l2_rpc_url: str = "http://localhost:8545"
    l2_chain_id: int = 42069
    private_key: Optional[SecretStr] = None
    balance_address: Optional[str] = None
    artifact_path: Path = Path(DEFAULT_ARTIFACT_PATH)
    portal_address: str = "0xa5ed72d0ebfeec112a0b3e9edc589a7916fc2a72"
    explorer_url: Optional[str] = "https://sepolia.etherscan.io"

    deposit_gas_limit: int = 100_000
    creation_gas_limit: int = 2_000_000
    creation_l1_gas: int = 500_000
    min_deploy_reserve_wei: int = 50_000_000_000_000_000  # 0.05 ETH
    initial_supply_wei: int = 1_000_000_000 * 10**18
    self_transfer_wei: int = 1_000_000_000_000_000  # 0.001 ETH

    poll_attempts: int = 30
    poll_interval: float = 5.0
    receipt_timeout: float = 120.0
    rpc_timeout: float = 30.0

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[str] = None,
    ) -> "BridgeConfig":
        """
        Build the configuration from environment variables.

        When ``env`` is not given, a ``.env`` file is loaded first (without
        overriding variables already set) and ``os.environ`` is used.

        Args:
            env: Explicit mapping to read instead of the process environment
            dotenv_path: Optional path of the .env file to load

        Raises:
            ConfigurationError: If a present variable is malformed
        """
        if env is None:
            load_dotenv(dotenv_path or find_dotenv(usecwd=True))
            env = os.environ

        l1_rpc_url = (env.get("L1_RPC_URL") or "").strip() or None

        private_key = (env.get("PRIVATE_KEY") or "").strip()
        if private_key in ("", "0x"):
            private_key = None
        elif not _PRIVATE_KEY_RE.match(private_key):
            raise ConfigurationError("PRIVATE_KEY must be a 32-byte hex string")

        balance_address = (env.get("L2_BALANCE_ADDRESS") or "").strip() or None
        if balance_address is not None:
            if not Web3.is_address(balance_address):
                raise ConfigurationError(f"L2_BALANCE_ADDRESS is not a valid address: {balance_address}")
            balance_address = Web3.to_checksum_address(balance_address)

        artifact_path = Path(env.get("YAFA_ARTIFACT_PATH") or DEFAULT_ARTIFACT_PATH)

        try:
            l1_chain_id = NetworkConfig.get_chain_id(L1_NETWORK)
            l2_chain_id = NetworkConfig.get_chain_id(L2_NETWORK)
            l2_rpc_url = NetworkConfig.get_network(L2_NETWORK)["rpc"]
            portal_address = NetworkConfig.get_portal_address(L1_NETWORK)
            explorer_url = NetworkConfig.get_explorer_url(L1_NETWORK)
        except (ValueError, KeyError) as e:
            raise ConfigurationError(f"Invalid network registry: {e}") from e

        logger.debug(
            "Loaded configuration (l1_rpc_url set: %s, private key set: %s)",
            l1_rpc_url is not None, private_key is not None
        )

        return cls(
            l1_rpc_url=l1_rpc_url,
            l1_chain_id=l1_chain_id,
            l2_rpc_url=l2_rpc_url,
            l2_chain_id=l2_chain_id,
            private_key=SecretStr(private_key) if private_key else None,
            balance_address=balance_address,
            artifact_path=artifact_path,
            portal_address=portal_address,
            explorer_url=explorer_url,
        )

    def require_l1(self) -> Endpoint:
        """
        Get the L1 endpoint.

        Raises:
            ConfigurationError: If L1_RPC_URL is not set
        """
        if not self.l1_rpc_url:
            raise ConfigurationError("L1_RPC_URL not found in environment or .env file")
        return Endpoint(url=self.l1_rpc_url, chain_id=self.l1_chain_id, name=L1_NETWORK)

    def require_private_key(self) -> str:
        """
        Get the signing key.

        Raises:
            ConfigurationError: If PRIVATE_KEY is not set
        """
        if self.private_key is None:
            raise ConfigurationError("PRIVATE_KEY not found in environment or .env file")
        return self.private_key.get_secret_value()

    @property
    def l2_endpoint(self) -> Endpoint:
        return Endpoint(url=self.l2_rpc_url, chain_id=self.l2_chain_id, name=L2_NETWORK)

    def tx_url(self, tx_hash: str) -> Optional[str]:
        """Explorer link for an L1 transaction, if an explorer is configured."""
        if not self.explorer_url:
            return None
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"
