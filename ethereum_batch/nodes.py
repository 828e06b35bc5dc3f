"""
Operation nodes.

Each node exposes a subset of the operations with its own defaults; all of them
run through the same ``BatchExecutor``.
"""
import logging
from typing import Callable, Dict, FrozenSet, List, Optional, Type

from .connection import ChainConnection
from .context import NodeContext
from .executor import BatchExecutor
from .models import OutputItem
from .operations import OperationKind
from .signer import PrivateKeySource


class EthereumNode:
    """Base node; subclasses pick the operations and defaults"""
    name: str = ""
    operations: FrozenSet[OperationKind] = frozenset()
    default_operation: Optional[OperationKind] = None
    default_key_source: PrivateKeySource = PrivateKeySource.INPUT

    def __init__(
        self,
        connection_factory: Callable[..., ChainConnection] = ChainConnection.connect,
        logger: Optional[logging.Logger] = None
    ):
        self.connection_factory = connection_factory
        self.logger = logger or logging.getLogger(f"{__name__}.{self.name}")

    def execute(self, context: NodeContext) -> List[OutputItem]:
        executor = BatchExecutor(
            context,
            allowed_operations=self.operations,
            default_operation=self.default_operation,
            default_key_source=self.default_key_source,
            connection_factory=self.connection_factory,
            logger=self.logger,
        )
        return executor.execute()


class ChainNode(EthereumNode):
    """Transfers and queries against an RPC endpoint; keys come from input data"""
    name = "ethereum"
    operations = frozenset({
        OperationKind.GET_BALANCE,
        OperationKind.GET_ERC20_BALANCE,
        OperationKind.GET_GAS,
        OperationKind.TRANSFER,
        OperationKind.TRANSFER_ERC20,
    })
    default_operation = OperationKind.TRANSFER


class SignNode(EthereumNode):
    """EIP-191 message signing with the credential key; RPC URL optional"""
    name = "ethereumSign"
    operations = frozenset({OperationKind.SIGN_MESSAGE})
    default_operation = OperationKind.SIGN_MESSAGE
    default_key_source = PrivateKeySource.CREDENTIAL


class CreateWalletNode(EthereumNode):
    """Random wallet generation; input data is ignored"""
    name = "ethereumCreateWallet"
    operations = frozenset({OperationKind.CREATE_WALLET})
    default_operation = OperationKind.CREATE_WALLET


NODES: Dict[str, Type[EthereumNode]] = {
    node.name: node for node in (ChainNode, SignNode, CreateWalletNode)
}
