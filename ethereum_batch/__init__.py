"""
ethereum-batch - batched Ethereum account operations over JSON-RPC.
"""
from .version import __version__
from .exceptions import (
    EthereumBatchError, ConfigurationError, CredentialError,
    ChainConnectionError, ChainMismatchError, MissingFieldError,
    InvalidKeyError, InvalidAddressError, ConversionError,
    TransactionError, RpcError,
)
from .models import OutputItem, TxReceipt, FeeData, BlockInfo
from .config import ErrorPolicy, ExecutionSettings, NetworkConfig
from .units import AmountUnit, to_base_units, to_human_units, parse_base_units, resolve_amount
from .resolver import ValueResolver, ValueSource
from .credentials import WalletCredential
from .signer import LocalSigner, PrivateKeySource, create_random_wallet, recover_message_signer
from .connection import ChainConnection
from .operations import OperationKind, OperationSpec, OPERATIONS
from .context import NodeContext, StaticNodeContext
from .executor import BatchExecutor
from .nodes import ChainNode, SignNode, CreateWalletNode, NODES

__all__ = [
    "__version__",
    "EthereumBatchError",
    "ConfigurationError",
    "CredentialError",
    "ChainConnectionError",
    "ChainMismatchError",
    "MissingFieldError",
    "InvalidKeyError",
    "InvalidAddressError",
    "ConversionError",
    "TransactionError",
    "RpcError",
    "OutputItem",
    "TxReceipt",
    "FeeData",
    "BlockInfo",
    "ErrorPolicy",
    "ExecutionSettings",
    "NetworkConfig",
    "AmountUnit",
    "to_base_units",
    "to_human_units",
    "parse_base_units",
    "resolve_amount",
    "ValueResolver",
    "ValueSource",
    "WalletCredential",
    "LocalSigner",
    "PrivateKeySource",
    "create_random_wallet",
    "recover_message_signer",
    "ChainConnection",
    "OperationKind",
    "OperationSpec",
    "OPERATIONS",
    "NodeContext",
    "StaticNodeContext",
    "BatchExecutor",
    "ChainNode",
    "SignNode",
    "CreateWalletNode",
    "NODES",
]
