"""
Tests for NetworkConfig and ExecutionSettings.
"""
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from ethereum_batch.config import ErrorPolicy, ExecutionSettings, NetworkConfig

MOCK_NETWORKS = {
    "test-network": {"chainId": 123, "rpc": "https://test.example.com"},
    "other-net": {"chainId": 456, "rpc": "https://other.example.com"},
}


class TestNetworkConfig:
    def test_bundled_networks(self):
        networks = NetworkConfig.load_networks()
        assert networks["ethereum"]["chainId"] == 1
        assert networks["sepolia"]["chainId"] == 11155111
        assert networks["polygon"]["chainId"] == 137
        for data in networks.values():
            assert data["rpc"].startswith("https://")

    def test_load_networks_cached(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        with patch("importlib.resources.files") as mock_files:
            assert NetworkConfig.load_networks() == MOCK_NETWORKS
            mock_files.assert_not_called()

    def test_get_network(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        assert NetworkConfig.get_network("test-network")["chainId"] == 123

    def test_get_network_not_found(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        with pytest.raises(ValueError) as exc_info:
            NetworkConfig.get_network("nope")
        assert "Available networks: other-net, test-network" in str(exc_info.value)

    def test_get_rpc_url(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        assert NetworkConfig.get_rpc_url("test-network") == "https://test.example.com"

    def test_get_rpc_url_env_override(self, monkeypatch):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        monkeypatch.setenv("ETHEREUM_BATCH_RPC_TEST_NETWORK", "https://private.example.com")
        assert NetworkConfig.get_rpc_url("test-network") == "https://private.example.com"
        assert NetworkConfig.get_rpc_url("other-net") == "https://other.example.com"

    @pytest.mark.parametrize("chain_id, expected", [
        (1, "1 (ethereum)"),
        (137, "137 (polygon)"),
        (999999, "999999"),
    ])
    def test_describe_chain(self, chain_id, expected):
        assert NetworkConfig.describe_chain(chain_id) == expected

    def test_name_for_unknown_chain(self):
        assert NetworkConfig.name_for_chain_id(424242) is None


class TestExecutionSettings:
    def test_defaults(self):
        settings = ExecutionSettings()
        assert settings.rpc_url is None
        assert settings.chain_id == 1
        assert settings.error_policy is ErrorPolicy.ABORT_BATCH
        assert settings.timeout == 30
        assert settings.retry_count == 3
        assert settings.receipt_timeout == 120
        assert settings.poll_latency == 0.1

    @pytest.mark.parametrize("value, expected", [
        (None, 1), ("", 1), (0, 1), (-1, 1), ("137", 137), (10, 10),
    ])
    def test_chain_id_normalization(self, value, expected):
        assert ExecutionSettings(chain_id=value).chain_id == expected

    @pytest.mark.parametrize("value, expected", [
        ("  https://rpc.example.com  ", "https://rpc.example.com"),
        ("   ", None),
        (None, None),
    ])
    def test_rpc_url_stripped(self, value, expected):
        assert ExecutionSettings(rpc_url=value).rpc_url == expected

    def test_error_policy_by_value(self):
        assert ExecutionSettings(error_policy="collectErrors").error_policy is ErrorPolicy.COLLECT_ERRORS

    @pytest.mark.parametrize("kwargs", [
        {"timeout": 0},
        {"retry_count": -1},
        {"retry_count": 11},
        {"poll_latency": 0},
        {"error_policy": "retry"},
        {"chain_id": "mainnet"},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            ExecutionSettings(**kwargs)
