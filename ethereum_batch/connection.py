"""
ChainConnection - a single JSON-RPC endpoint shared by every item of a batch.
"""
import logging
import urllib.parse
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted
from web3.types import TxReceipt as Web3TxReceipt

from ._rate_limited_log import rate_limited_log
from .config import NetworkConfig
from .exceptions import (
    ChainConnectionError, ChainMismatchError, InvalidAddressError,
    RpcError, TransactionError,
)
from .models import BlockInfo, FeeData, TxReceipt
from .signer import Signer

logger = logging.getLogger(__name__)

ONE_GWEI = 10**9

ERC20_ABI = [
    {
        "inputs": [{"internalType": "address", "name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"}
        ],
        "name": "transfer",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function"
    }
]


def validate_rpc_url(rpc_url: Optional[str]) -> str:
    """
    Check that an RPC URL is a usable http(s) endpoint.

    Raises:
        ChainConnectionError: If the URL is empty or malformed
    """
    if not rpc_url or not str(rpc_url).strip():
        raise ChainConnectionError("RPC URL is required")
    rpc_url = str(rpc_url).strip()
    parsed = urllib.parse.urlparse(rpc_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ChainConnectionError(f"RPC URL must be an http:// or https:// URL (got: {rpc_url!r})")

    host = parsed.hostname or ""
    if parsed.scheme != "https" and host not in ("localhost", "127.0.0.1", "::1"):
        rate_limited_log(
            f"RPC URL for {host} uses plain http://; transactions and balances travel unencrypted",
            logger_instance=logger,
        )
    return rpc_url


class ChainConnection:
    """
    Wrapper around one Web3 HTTP endpoint.

    The connection is read-only shared state for a batch: the chain id is
    fetched once by the reachability probe and reused by every item.

    Args:
        rpc_url: JSON-RPC endpoint URL
        timeout: Timeout for each HTTP request in seconds
        retry_count: Number of retries for failed HTTP requests
        receipt_timeout: How long to wait for a transaction to be mined
        poll_latency: How often to poll for a receipt, in seconds
        logger: Optional logger instance
    """

    DEFAULT_TRANSFER_GAS = 21000
    DEFAULT_CONTRACT_GAS = 100000
    GAS_BUFFER = 1.1

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30,
        retry_count: int = 3,
        receipt_timeout: float = 120,
        poll_latency: float = 0.1,
        logger: Optional[logging.Logger] = None
    ):
        self.rpc_url = validate_rpc_url(rpc_url)
        self.timeout = timeout
        self.receipt_timeout = receipt_timeout
        self.poll_latency = poll_latency
        self.logger = logger or logging.getLogger(__name__)
        self._chain_id: Optional[int] = None

        # Setup HTTP session with retries
        self.session = requests.Session()
        retries = Retry(
            total=retry_count,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["POST"],
            raise_on_status=False,
            connect=retry_count,
            read=retry_count,
            other=retry_count
        )
        self.session.mount("http://", HTTPAdapter(max_retries=retries))
        self.session.mount("https://", HTTPAdapter(max_retries=retries))

        self.w3 = Web3(Web3.HTTPProvider(
            self.rpc_url,
            request_kwargs={"timeout": timeout},
            session=self.session,
        ))

    @classmethod
    def connect(cls, rpc_url: str, **kwargs: Any) -> "ChainConnection":
        """
        Create a connection and verify the endpoint answers.

        Raises:
            ChainConnectionError: If the URL is malformed or the probe fails
        """
        connection = cls(rpc_url, **kwargs)
        try:
            connection.probe()
        except ChainConnectionError:
            connection.close()
            raise
        return connection

    def probe(self) -> int:
        """
        Reachability probe: fetch the chain id once.

        Raises:
            ChainConnectionError: If the endpoint does not answer
        """
        try:
            self._chain_id = int(self.w3.eth.chain_id)
        except Exception as e:
            self.logger.error(f"RPC probe failed: {e}")
            raise ChainConnectionError(f"RPC failed: {e}") from e
        self.logger.debug("Connected to chain %s", self._chain_id)
        return self._chain_id

    def get_chain_id(self) -> int:
        if self._chain_id is None:
            return self.probe()
        return self._chain_id

    def assert_chain_id(self, expected_chain_id: Optional[int]) -> int:
        """
        Verify the endpoint's chain id matches the declared one.

        Returns:
            The endpoint's chain id

        Raises:
            ChainMismatchError: If both ids are known and differ
        """
        actual = self.get_chain_id()
        if expected_chain_id is None:
            self.logger.warning("No expected chain ID set; using chain %s reported by the endpoint", actual)
            return actual
        if actual != expected_chain_id:
            raise ChainMismatchError(
                f"Chain ID mismatch: configured {NetworkConfig.describe_chain(expected_chain_id)}, "
                f"endpoint reports {NetworkConfig.describe_chain(actual)}",
                expected=expected_chain_id,
                actual=actual,
            )
        return actual

    def checksum(self, address: Any, field: str = "address") -> str:
        """
        Normalize an address to its checksummed form.

        Raises:
            InvalidAddressError: If the value is not a valid address
        """
        text = str(address).strip() if address is not None else ""
        if not Web3.is_address(text):
            raise InvalidAddressError(f"Invalid address for {field}: {text!r}", field=field)
        return Web3.to_checksum_address(text)

    def get_balance(self, address: str) -> int:
        checksummed = self.checksum(address)
        try:
            return int(self.w3.eth.get_balance(checksummed))
        except Exception as e:
            raise RpcError(f"Failed to fetch balance: {e}") from e

    def get_latest_block(self) -> BlockInfo:
        try:
            block = self.w3.eth.get_block("latest")
        except Exception as e:
            raise RpcError(f"Failed to fetch latest block: {e}") from e
        return BlockInfo(
            number=block["number"],
            timestamp=block["timestamp"],
            base_fee_per_gas=block.get("baseFeePerGas"),
        )

    def get_fee_data(self, block: Optional[BlockInfo] = None) -> FeeData:
        """
        Current fee data.

        EIP-1559 fields are derived from the latest block's base fee as
        ``maxFeePerGas = 2 * baseFee + priorityFee``; they stay None on chains
        without a base fee.
        """
        try:
            gas_price = int(self.w3.eth.gas_price)
        except Exception as e:
            raise RpcError(f"Failed to fetch gas price: {e}") from e

        block = block or self.get_latest_block()
        if block.base_fee_per_gas is None:
            return FeeData(gas_price=gas_price)

        try:
            priority = int(self.w3.eth.max_priority_fee)
        except Exception as e:
            rate_limited_log(
                f"eth_maxPriorityFeePerGas unavailable ({type(e).__name__}), assuming 1 gwei",
                logger_instance=self.logger,
            )
            priority = ONE_GWEI
        return FeeData(
            gas_price=gas_price,
            max_fee_per_gas=block.base_fee_per_gas * 2 + priority,
            max_priority_fee_per_gas=priority,
        )

    def _erc20(self, contract_address: str):
        return self.w3.eth.contract(
            address=self.checksum(contract_address, "tokenAddress"),
            abi=ERC20_ABI
        )

    def call_read(self, contract_address: str, function_name: str, *args: Any) -> Any:
        """Call a view function of an ERC-20 contract."""
        contract = self._erc20(contract_address)
        try:
            return getattr(contract.functions, function_name)(*args).call()
        except Exception as e:
            raise RpcError(f"Call to {function_name} failed: {e}") from e

    def _fee_params(self) -> Dict[str, int]:
        fee = self.get_fee_data()
        if fee.max_fee_per_gas is not None:
            return {
                "maxFeePerGas": fee.max_fee_per_gas,
                "maxPriorityFeePerGas": fee.max_priority_fee_per_gas,
            }
        return {"gasPrice": fee.gas_price}

    def _base_tx(self, signer: Signer) -> Dict[str, Any]:
        try:
            nonce = self.w3.eth.get_transaction_count(signer.address, "pending")
            tx = {
                "from": signer.address,
                "nonce": nonce,
                "chainId": self.get_chain_id(),
            }
            tx.update(self._fee_params())
        except RpcError as e:
            raise TransactionError(str(e.message)) from e
        except Exception as e:
            raise TransactionError(f"Failed to prepare transaction: {e}") from e
        return tx

    def submit_transfer(self, signer: Signer, to: str, amount: int) -> str:
        """
        Send native currency.

        Returns:
            Transaction hash as 0x hex string
        """
        to = self.checksum(to, "to")
        tx = self._base_tx(signer)
        tx["to"] = to
        tx["value"] = int(amount)
        try:
            estimate = self.w3.eth.estimate_gas({k: tx[k] for k in ("from", "to", "value")})
            tx["gas"] = int(estimate * self.GAS_BUFFER)
        except Exception as e:
            tx["gas"] = self.DEFAULT_TRANSFER_GAS
            rate_limited_log(
                f"Gas estimation failed, using default: {tx['gas']}. Error: {type(e).__name__}",
                logger_instance=self.logger,
            )
        return self._sign_and_send(signer, tx)

    def submit_contract_call(self, signer: Signer, contract_address: str, function_name: str, *args: Any) -> str:
        """
        Send a state-changing ERC-20 call.

        Returns:
            Transaction hash as 0x hex string

        Raises:
            TransactionError: If the call would revert or sending fails
        """
        contract = self._erc20(contract_address)
        try:
            function = getattr(contract.functions, function_name)(*args)
        except Exception as e:
            raise TransactionError(f"Failed to encode {function_name} call: {e}") from e
        tx_params = self._base_tx(signer)
        try:
            estimate = function.estimate_gas({"from": signer.address})
            tx_params["gas"] = int(estimate * self.GAS_BUFFER)
        except ContractLogicError as e:
            raise TransactionError(f"{function_name} would revert: {e}") from e
        except Exception as e:
            tx_params["gas"] = self.DEFAULT_CONTRACT_GAS
            rate_limited_log(
                f"Gas estimation failed, using default: {tx_params['gas']}. Error: {type(e).__name__}",
                logger_instance=self.logger,
            )
        try:
            tx = function.build_transaction(tx_params)
        except Exception as e:
            raise TransactionError(f"Failed to build {function_name} transaction: {e}") from e
        return self._sign_and_send(signer, tx)

    def _sign_and_send(self, signer: Signer, tx: Dict[str, Any]) -> str:
        try:
            signed_tx = signer.sign_transaction(tx)
        except Exception as e:
            self.logger.error(f"Transaction signing failed: {type(e).__name__}")
            raise TransactionError(f"Failed to sign transaction: {e}") from e

        try:
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except Exception as e:
            self.logger.error(f"Failed to send transaction: {e}")
            raise TransactionError(f"Failed to send transaction: {e}") from e

        tx_hash_hex = Web3.to_hex(tx_hash)
        self.logger.info(f"Transaction sent: {tx_hash_hex}")
        return tx_hash_hex

    def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        """
        Block until the transaction is mined.

        Raises:
            TransactionError: If it is not mined within ``receipt_timeout``
        """
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.receipt_timeout,
                poll_latency=self.poll_latency
            )
        except TimeExhausted as e:
            raise TransactionError(
                f"Transaction {tx_hash} was not mined within {self.receipt_timeout}s; "
                f"it was broadcast and may still be mined"
            ) from e
        except Exception as e:
            raise TransactionError(f"Failed to fetch receipt for {tx_hash}: {e}") from e
        return self._convert_receipt(receipt)

    def _convert_receipt(self, web3_receipt: Web3TxReceipt) -> TxReceipt:
        receipt_dict = dict(web3_receipt)

        # Convert bytes to hex strings
        for key, value in list(receipt_dict.items()):
            if isinstance(value, bytes):
                receipt_dict[key] = '0x' + bytes(value).hex()

        return TxReceipt.model_validate(receipt_dict)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "ChainConnection":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
