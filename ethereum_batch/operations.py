"""
Operation kinds and what each one needs.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from .exceptions import ConfigurationError


class OperationKind(str, Enum):
    """Closed set of operations; chosen once per batch."""
    CREATE_WALLET = "createWallet"
    SIGN_MESSAGE = "signMessage"
    GET_BALANCE = "getBalance"
    GET_ERC20_BALANCE = "getERC20Balance"
    GET_GAS = "getGas"
    TRANSFER = "transfer"
    TRANSFER_ERC20 = "transferERC20"


class Cardinality(str, Enum):
    PER_ITEM = "perItem"
    SINGLE = "single"
    GENERATED = "generated"


@dataclass(frozen=True)
class OperationSpec:
    """
    What an operation needs from the batch.

    ``requires_signer``, ``requires_contract``, ``requires_connection`` and
    ``runs_without_input`` steer the executor. ``requires_amount`` is listing
    metadata only; the amount itself is resolved per item by the operation.
    """
    kind: OperationKind
    cardinality: Cardinality
    requires_signer: bool = False
    requires_amount: bool = False
    requires_contract: bool = False
    requires_connection: bool = True
    # run once against an empty record when the batch has no input items
    runs_without_input: bool = True


OPERATIONS: Dict[OperationKind, OperationSpec] = {
    OperationKind.CREATE_WALLET: OperationSpec(
        OperationKind.CREATE_WALLET, Cardinality.GENERATED, requires_connection=False
    ),
    OperationKind.SIGN_MESSAGE: OperationSpec(
        OperationKind.SIGN_MESSAGE, Cardinality.PER_ITEM,
        requires_signer=True, requires_connection=False, runs_without_input=False
    ),
    OperationKind.GET_BALANCE: OperationSpec(OperationKind.GET_BALANCE, Cardinality.PER_ITEM),
    OperationKind.GET_ERC20_BALANCE: OperationSpec(
        OperationKind.GET_ERC20_BALANCE, Cardinality.PER_ITEM, requires_contract=True
    ),
    OperationKind.GET_GAS: OperationSpec(OperationKind.GET_GAS, Cardinality.SINGLE),
    OperationKind.TRANSFER: OperationSpec(
        OperationKind.TRANSFER, Cardinality.PER_ITEM, requires_signer=True, requires_amount=True
    ),
    OperationKind.TRANSFER_ERC20: OperationSpec(
        OperationKind.TRANSFER_ERC20, Cardinality.PER_ITEM,
        requires_signer=True, requires_amount=True, requires_contract=True
    ),
}


def get_operation_spec(
    operation: Any,
    allowed: Optional[FrozenSet[OperationKind]] = None,
) -> OperationSpec:
    """
    Look up an operation by value.

    Args:
        operation: Operation value such as ``"transfer"``
        allowed: Operations accepted by the calling node

    Raises:
        ConfigurationError: If the operation is unknown or not allowed
    """
    try:
        kind = OperationKind(operation)
    except ValueError:
        valid = ", ".join(k.value for k in OperationKind)
        raise ConfigurationError(f"Unknown operation {operation!r}. Valid operations: {valid}")
    if allowed is not None and kind not in allowed:
        valid = ", ".join(sorted(k.value for k in allowed))
        raise ConfigurationError(f"Operation {kind.value!r} is not supported here. Valid operations: {valid}")
    return OPERATIONS[kind]
