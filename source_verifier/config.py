"""
Network table and run settings.

Settings come from the environment (a local .env file is loaded first) and
can be overridden from the command line.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigurationError

# ---------------------------------------------------------------------------
# Networks
# ---------------------------------------------------------------------------
UPGRADE_CONTRACT_NAME = "RocketUpgradeOneDotThree"
PRODUCTION_NETWORK = "mainnet"


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    upgrade_address: str
    etherscan_api_url: str

    @property
    def is_production(self) -> bool:
        return self.name == PRODUCTION_NETWORK


NETWORKS: dict[str, NetworkConfig] = {
    "holesky": NetworkConfig(
        name="holesky",
        upgrade_address="0xa38f23783358e6Ce576441525bE0Ad6Dab5B0eF4",
        etherscan_api_url="https://api-holesky.etherscan.io",
    ),
    "mainnet": NetworkConfig(
        name="mainnet",
        upgrade_address="0x5dC69083B68CDb5c9ca492A0A5eC581e529fb73C",
        etherscan_api_url="https://api.etherscan.io",
    ),
}

DEFAULT_REPO_ROOT = Path("rocketpool")


def get_network(name: Optional[str]) -> NetworkConfig:
    network = NETWORKS.get((name or "").strip().lower())
    if network is None:
        raise ConfigurationError(
            f"Invalid network {name}. Allowed: {', '.join(sorted(NETWORKS))}")
    return network


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Settings:
    network: NetworkConfig
    api_key: str
    rpc_url: Optional[str] = None
    repo_root: Path = DEFAULT_REPO_ROOT

    def require_rpc_url(self) -> str:
        if not self.rpc_url:
            raise ConfigurationError("Missing RPC endpoint: set ETH_RPC or pass --rpc-url")
        return self.rpc_url


def load_settings(
    network: Optional[str] = None,
    rpc_url: Optional[str] = None,
    api_key: Optional[str] = None,
    repo_root: Optional[str] = None,
    dotenv: bool = True,
) -> Settings:
    """Build Settings from arguments, falling back to the environment."""
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))

    net = get_network(network or os.environ.get("NETWORK"))

    key = (api_key or os.environ.get("ETHERSCAN_API_KEY") or "").strip()
    if not key:
        raise ConfigurationError("Missing API key: set ETHERSCAN_API_KEY or pass --api-key")

    rpc = (rpc_url or os.environ.get("ETH_RPC") or "").strip() or None
    root = repo_root or os.environ.get("REPO_ROOT")

    return Settings(
        network=net,
        api_key=key,
        rpc_url=rpc,
        repo_root=Path(root) if root else DEFAULT_REPO_ROOT,
    )
