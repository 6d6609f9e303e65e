from pathlib import Path

import pytest

from source_verifier.config import (
    DEFAULT_REPO_ROOT,
    NETWORKS,
    get_network,
    load_settings,
)
from source_verifier.errors import ConfigurationError


@pytest.fixture
def env(monkeypatch):
    for name in ("NETWORK", "ETH_RPC", "ETHERSCAN_API_KEY", "REPO_ROOT"):
        # setenv first so teardown also removes values loaded from .env
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


class TestNetworks:
    def test_known_networks(self):
        assert set(NETWORKS) == {"mainnet", "holesky"}
        assert NETWORKS["mainnet"].is_production
        assert not NETWORKS["holesky"].is_production

    def test_selector_is_case_insensitive(self):
        assert get_network("Holesky").etherscan_api_url == "https://api-holesky.etherscan.io"

    @pytest.mark.parametrize("name", [None, "", "goerli"])
    def test_unknown_network(self, name):
        with pytest.raises(ConfigurationError, match="Invalid network"):
            get_network(name)


class TestLoadSettings:
    def test_from_environment(self, env):
        env.setenv("NETWORK", "mainnet")
        env.setenv("ETHERSCAN_API_KEY", " KEY ")
        env.setenv("ETH_RPC", "http://localhost:8545")
        settings = load_settings(dotenv=False)
        assert settings.network is NETWORKS["mainnet"]
        assert settings.api_key == "KEY"
        assert settings.require_rpc_url() == "http://localhost:8545"
        assert settings.repo_root == DEFAULT_REPO_ROOT

    def test_arguments_override_environment(self, env):
        env.setenv("NETWORK", "mainnet")
        env.setenv("ETHERSCAN_API_KEY", "KEY")
        settings = load_settings(network="holesky", api_key="OTHER", repo_root="/tmp/rp",
                                 dotenv=False)
        assert settings.network.name == "holesky"
        assert settings.api_key == "OTHER"
        assert settings.repo_root == Path("/tmp/rp")

    def test_missing_api_key(self, env):
        with pytest.raises(ConfigurationError, match="API key"):
            load_settings(network="mainnet", dotenv=False)

    def test_missing_rpc_only_fails_when_required(self, env):
        settings = load_settings(network="mainnet", api_key="KEY", dotenv=False)
        assert settings.rpc_url is None
        with pytest.raises(ConfigurationError, match="RPC"):
            settings.require_rpc_url()

    def test_dotenv_file(self, env, tmp_path):
        (tmp_path / ".env").write_text("NETWORK=holesky\nETHERSCAN_API_KEY=FROMFILE\n")
        env.chdir(tmp_path)
        settings = load_settings()
        assert settings.network.name == "holesky"
        assert settings.api_key == "FROMFILE"
