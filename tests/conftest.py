"""
Pytest fixtures for the ethereum-batch tests.
"""
import time
from unittest.mock import MagicMock

import pytest
from eth_account import Account
from web3.providers.rpc import HTTPProvider

from ethereum_batch._rate_limited_log import reset_rate_limited_log
from ethereum_batch.config import NetworkConfig
from ethereum_batch.connection import ChainConnection
from ethereum_batch.exceptions import ChainMismatchError
from ethereum_batch.models import BlockInfo, FeeData, TxReceipt

# Constants for testing
TEST_RPC_URL = "https://rpc.example.com"
TEST_PRIV_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_PRIV_KEY_2 = "0x" + "22" * 32
TEST_ADDRESS = Account.from_key(TEST_PRIV_KEY).address
TEST_ADDRESS_2 = Account.from_key(TEST_PRIV_KEY_2).address
TEST_RECIPIENT = "0x1234567890123456789012345678901234567890"
TEST_TOKEN = "0x2345678901234567890123456789012345678901"
TEST_TX_HASH = "0x" + "ab" * 32
TEST_CHAIN_ID = 1

# unpatched provider call, for tests that go through requests-mock
ORIGINAL_MAKE_REQUEST = HTTPProvider.make_request


@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda *_a, **_kw: None)


@pytest.fixture(autouse=True)
def _reset_log_cache():
    reset_rate_limited_log()
    yield
    reset_rate_limited_log()


@pytest.fixture(autouse=True)
def _reset_network_cache():
    NetworkConfig._networks_cache = None
    yield
    NetworkConfig._networks_cache = None


@pytest.fixture(autouse=True)
def _patch_http_provider(monkeypatch):
    """
    Stub every Web3 HTTP call so no DNS / network traffic is triggered.
    Works for all tests because it is autouse.
    """
    def _dummy(self, method, params=None, _=None):      # signature match
        if method == "eth_chainId":
            return {"jsonrpc": "2.0", "id": 1, "result": "0x1"}         # main-net
        if method == "eth_gasPrice":
            return {"jsonrpc": "2.0", "id": 1, "result": "0x3b9aca00"}  # 1 gwei
        # everything else – return something harmless
        return {"jsonrpc": "2.0", "id": 1, "result": "0x0"}

    monkeypatch.setattr(HTTPProvider, "make_request", _dummy, raising=True)


@pytest.fixture
def mock_connection():
    """
    A ChainConnection double reporting chain id 1.

    Transfers return TEST_TX_HASH and are mined in block 12345.
    """
    connection = MagicMock(spec=ChainConnection)

    def assert_chain_id(expected):
        if expected is not None and expected != TEST_CHAIN_ID:
            raise ChainMismatchError(
                f"Chain ID mismatch: configured {expected}, endpoint reports {TEST_CHAIN_ID}",
                expected=expected,
                actual=TEST_CHAIN_ID,
            )
        return TEST_CHAIN_ID

    def call_read(contract_address, function_name, *args):
        if function_name == "decimals":
            return 6
        if function_name == "balanceOf":
            return 2_500_000
        raise AssertionError(f"unexpected call {function_name}")

    connection.assert_chain_id.side_effect = assert_chain_id
    connection.get_chain_id.return_value = TEST_CHAIN_ID
    connection.checksum.side_effect = lambda address, field="address": address
    connection.get_balance.return_value = 1_500_000_000_000_000_000
    connection.call_read.side_effect = call_read
    connection.get_latest_block.return_value = BlockInfo(
        number=19_000_000, timestamp=1_700_000_000, base_fee_per_gas=20 * 10**9
    )
    connection.get_fee_data.return_value = FeeData(
        gas_price=21 * 10**9,
        max_fee_per_gas=41 * 10**9,
        max_priority_fee_per_gas=10**9,
    )
    connection.submit_transfer.return_value = TEST_TX_HASH
    connection.submit_contract_call.return_value = TEST_TX_HASH
    connection.wait_for_receipt.return_value = TxReceipt(
        transactionHash=TEST_TX_HASH, blockNumber=12345, status=1, gasUsed=21000
    )
    return connection


@pytest.fixture
def connection_factory(mock_connection):
    """Factory handing out ``mock_connection`` in place of ChainConnection.connect"""
    return MagicMock(return_value=mock_connection)


@pytest.fixture
def mock_w3():
    """A Web3 double with a handful of eth_* answers"""
    w3 = MagicMock()
    w3.eth.chain_id = TEST_CHAIN_ID
    w3.eth.gas_price = 21 * 10**9
    w3.eth.max_priority_fee = 10**9
    w3.eth.get_transaction_count.return_value = 7
    w3.eth.estimate_gas.return_value = 21000
    w3.eth.get_block.return_value = {
        "number": 19_000_000,
        "timestamp": 1_700_000_000,
        "baseFeePerGas": 20 * 10**9,
    }
    w3.eth.send_raw_transaction.return_value = bytes.fromhex("ab" * 32)
    w3.eth.wait_for_transaction_receipt.return_value = {
        "transactionHash": bytes.fromhex("ab" * 32),
        "blockNumber": 12345,
        "blockHash": bytes.fromhex("cd" * 32),
        "status": 1,
        "gasUsed": 21000,
        "from": TEST_ADDRESS,
        "to": TEST_RECIPIENT,
        "logs": [],
    }
    return w3


@pytest.fixture
def connection(mock_w3):
    """A real ChainConnection whose Web3 instance is ``mock_w3``"""
    conn = ChainConnection(TEST_RPC_URL)
    conn.w3 = mock_w3
    conn._chain_id = TEST_CHAIN_ID
    return conn
