"""
BatchExecutor - runs one configured operation over a batch of input records.

Items are processed strictly one after another; a transfer item blocks until
its receipt is mined before the next item starts. Batch-level checks (RPC
reachability, chain id, credential, token contract) all run before the first item.
A sign batch with no input items produces no output; the other per-item
operations run once against an empty record.

A transfer is broadcast before its receipt is awaited, so an interrupted run
may have sent the transaction of an item that produced no output record.
Re-running the same batch can therefore submit it again (at-least-once).
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence, Type, TypeVar

from pydantic import ValidationError

from .config import ErrorPolicy, ExecutionSettings
from .connection import ChainConnection
from .context import NodeContext
from .credentials import WalletCredential
from .exceptions import (
    ChainConnectionError, ConfigurationError, ConversionError, EthereumBatchError, MissingFieldError,
)
from .models import OutputItem
from .operations import Cardinality, OperationKind, OperationSpec, get_operation_spec
from .resolver import ValueResolver, ValueSource
from .signer import (
    CredentialSignerProvider, PrivateKeySource, RecordSignerProvider,
    SignerProvider, create_random_wallet,
)
from .units import (
    AmountUnit, DEFAULT_TOKEN_DECIMALS, NATIVE_DECIMALS,
    resolve_amount, to_base_units, to_human_units,
)

E = TypeVar("E", bound=Enum)

MIN_WALLET_COUNT = 1
MAX_WALLET_COUNT = 100

SETTINGS_PARAMETERS = {
    "rpc_url": "rpcUrl",
    "chain_id": "chainId",
    "error_policy": "errorPolicy",
    "timeout": "timeout",
    "retry_count": "retryCount",
    "receipt_timeout": "receiptTimeout",
    "poll_latency": "pollLatency",
}


@dataclass
class BatchState:
    """Shared read-only state of one run"""
    operation: OperationSpec
    settings: ExecutionSettings
    resolver: ValueResolver
    connection: Optional[ChainConnection] = None
    chain_id: Optional[int] = None
    signer_provider: Optional[SignerProvider] = None


class BatchExecutor:
    """
    Execute one operation node over the batch supplied by ``context``.

    Args:
        context: Host context supplying parameters, records and credentials
        allowed_operations: Operations this node accepts (all when None)
        default_key_source: Where signing keys come from unless the
            ``privateKeySource`` parameter says otherwise
        connection_factory: Builds and probes the RPC connection
        logger: Optional logger instance
    """

    def __init__(
        self,
        context: NodeContext,
        allowed_operations: Optional[FrozenSet[OperationKind]] = None,
        default_operation: Optional[OperationKind] = None,
        default_key_source: PrivateKeySource = PrivateKeySource.INPUT,
        connection_factory: Callable[..., ChainConnection] = ChainConnection.connect,
        logger: Optional[logging.Logger] = None
    ):
        self.context = context
        self.allowed_operations = allowed_operations
        self.default_operation = default_operation
        self.default_key_source = default_key_source
        self.connection_factory = connection_factory
        self.logger = logger or logging.getLogger(__name__)

        self._handlers: Dict[OperationKind, Callable[[int, BatchState], Dict[str, Any]]] = {
            OperationKind.SIGN_MESSAGE: self._sign_message,
            OperationKind.GET_BALANCE: self._get_balance,
            OperationKind.GET_ERC20_BALANCE: self._get_erc20_balance,
            OperationKind.GET_GAS: self._get_gas,
            OperationKind.TRANSFER: self._transfer,
            OperationKind.TRANSFER_ERC20: self._transfer_erc20,
        }

    # ------------------------------------------------------------------
    # parameters

    def param(self, name: str, item_index: int = 0, default: Any = None) -> Any:
        return self.context.get_parameter(name, item_index, default)

    def _enum_param(self, enum_cls: Type[E], name: str, item_index: int, default: E) -> E:
        value = self.param(name, item_index, default)
        try:
            return enum_cls(value)
        except ValueError:
            valid = ", ".join(member.value for member in enum_cls)
            raise ConfigurationError(
                f"Invalid value {value!r} for {name}. Valid values: {valid}",
                item_index=item_index,
                field=name,
            )

    def _settings(self) -> ExecutionSettings:
        values = {}
        for attr, name in SETTINGS_PARAMETERS.items():
            value = self.param(name)
            if value is not None:
                values[attr] = value
        try:
            return ExecutionSettings(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings: {e}") from e

    # ------------------------------------------------------------------
    # batch

    def execute(self) -> List[OutputItem]:
        """
        Run the configured operation over the batch.

        Returns:
            Output items, each tagged with its originating item index

        Raises:
            ChainConnectionError: If the RPC endpoint is unusable
            ChainMismatchError: If the endpoint is on another chain
            CredentialError: If the credential key is absent or blank
            MissingFieldError: If no item has a token contract address
            EthereumBatchError: Item errors under the ``abortBatch`` policy
        """
        operation = get_operation_spec(
            self.param("operation", 0, self.default_operation and self.default_operation.value),
            self.allowed_operations,
        )
        settings = self._settings()

        if operation.cardinality is Cardinality.GENERATED:
            return self._create_wallets()

        records: Sequence[Mapping[str, Any]] = list(self.context.get_input_data() or [])
        if records:
            work_items = records
        elif operation.runs_without_input:
            work_items = [{}]
        else:
            work_items = []
        state = BatchState(
            operation=operation,
            settings=settings,
            resolver=ValueResolver(work_items, operation.kind.value),
        )

        if operation.requires_signer:
            state.signer_provider = self._signer_provider(state)
            state.signer_provider.validate()

        if not work_items:
            self.logger.info("No input items for %s", operation.kind.value)
            return []

        if operation.requires_contract:
            self._check_token_address(state, len(work_items))

        self._open_connection(state)
        try:
            if operation.cardinality is Cardinality.SINGLE:
                self.logger.info("Running %s once for %d input item(s)", operation.kind.value, len(records))
                return self._run_items(state, [0])
            self.logger.info("Running %s on %d item(s)", operation.kind.value, len(work_items))
            return self._run_items(state, range(len(work_items)))
        finally:
            if state.connection is not None:
                state.connection.close()

    def _signer_provider(self, state: BatchState) -> SignerProvider:
        source = self._enum_param(PrivateKeySource, "privateKeySource", 0, self.default_key_source)
        if source is PrivateKeySource.CREDENTIAL:
            try:
                credential = WalletCredential.from_mapping(self.context.get_credentials())
            except EthereumBatchError as e:
                raise e.with_context(operation=state.operation.kind.value)
            return CredentialSignerProvider(credential, operation=state.operation.kind.value)
        field_name = self.param("privateKeyField", 0, "privateKey")
        return RecordSignerProvider(state.resolver, field_name)

    def _check_token_address(self, state: BatchState, count: int) -> None:
        for i in range(count):
            value = self.param("tokenAddress", i)
            if value is not None and str(value).strip():
                return
        raise MissingFieldError(
            "token contract address is required",
            operation=state.operation.kind.value,
            field="tokenAddress",
        )

    def _open_connection(self, state: BatchState) -> None:
        settings = state.settings
        # optional-connection operations only check a chain id the host declared
        declared = self.param("chainId")
        expected = settings.chain_id if declared is not None or state.operation.requires_connection else None
        if not state.operation.requires_connection and not settings.rpc_url:
            state.chain_id = expected
            return
        if not settings.rpc_url:
            raise ChainConnectionError("RPC URL is required", operation=state.operation.kind.value)

        try:
            state.connection = self.connection_factory(
                settings.rpc_url,
                timeout=settings.timeout,
                retry_count=settings.retry_count,
                receipt_timeout=settings.receipt_timeout,
                poll_latency=settings.poll_latency,
            )
            state.chain_id = state.connection.assert_chain_id(expected)
        except EthereumBatchError as e:
            if state.connection is not None:
                state.connection.close()
            raise e.with_context(operation=state.operation.kind.value)

    def _run_items(self, state: BatchState, indices) -> List[OutputItem]:
        handler = self._handlers[state.operation.kind]
        policy = state.settings.error_policy
        results: List[OutputItem] = []

        for i in indices:
            try:
                data = handler(i, state)
            except EthereumBatchError as e:
                e.with_context(operation=state.operation.kind.value, item_index=i)
                if policy is ErrorPolicy.ABORT_BATCH:
                    self.logger.error(f"Aborting batch: {e}")
                    raise
                if policy is ErrorPolicy.SKIP_ITEM:
                    self.logger.warning(f"Skipping item: {e}")
                    continue
                self.logger.warning(f"Recording error for item: {e}")
                data = {"error": str(e), "errorType": type(e).__name__}
            results.append(OutputItem(data=data, paired_item=i))

        self.logger.debug("Produced %d output item(s)", len(results))
        return results

    # ------------------------------------------------------------------
    # operations

    def _create_wallets(self) -> List[OutputItem]:
        count = self.param("count", 0, 1)
        try:
            count = int(count)
        except (TypeError, ValueError):
            raise ConfigurationError(f"count must be an integer, got {count!r}", field="count")
        if not MIN_WALLET_COUNT <= count <= MAX_WALLET_COUNT:
            raise ConfigurationError(
                f"count must be between {MIN_WALLET_COUNT} and {MAX_WALLET_COUNT}, got {count}",
                operation=OperationKind.CREATE_WALLET.value,
                field="count",
            )
        self.logger.info("Creating %d wallet(s)", count)
        return [OutputItem(data=create_random_wallet(), paired_item=i) for i in range(count)]

    def _source(self, name: str, item_index: int) -> ValueSource:
        return self._enum_param(ValueSource, name, item_index, ValueSource.PARAMETER)

    def _token_address(self, i: int, state: BatchState) -> str:
        return state.resolver.resolve_text(
            i, ValueSource.PARAMETER, self.param("tokenAddress", i), None,
            label="token contract address",
        ).strip()

    def _sign_message(self, i: int, state: BatchState) -> Dict[str, Any]:
        message = state.resolver.resolve_text(
            i,
            self._source("messageSource", i),
            self.param("message", i, ""),
            self.param("messageField", i, "message"),
            required=False,
            label="message",
        )
        signer = state.signer_provider.signer_for(i)
        signature = signer.sign_message(message)
        signed_at = datetime.now(timezone.utc)

        data = {
            "message": message,
            "signature": signature,
            "address": signer.address,
            "signedAt": signed_at.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "signedAtUnix": int(signed_at.timestamp()),
        }
        if state.chain_id is not None:
            data["chainId"] = state.chain_id
        return data

    def _get_balance(self, i: int, state: BatchState) -> Dict[str, Any]:
        address = state.resolver.resolve_text(
            i,
            self._source("addressSource", i),
            self.param("address", i),
            self.param("addressField", i, "address"),
            label="address",
        ).strip()
        balance = state.connection.get_balance(address)
        return {
            "chainId": state.chain_id,
            "address": address,
            "balanceWei": str(balance),
            "balanceEth": to_human_units(balance, NATIVE_DECIMALS),
        }

    def _get_erc20_balance(self, i: int, state: BatchState) -> Dict[str, Any]:
        token_address = self._token_address(i, state)
        address = state.resolver.resolve_text(
            i,
            self._source("addressSourceErc20", i),
            self.param("addressErc20", i),
            self.param("addressFieldErc20", i, "address"),
            label="address",
        ).strip()
        connection = state.connection
        balance = int(connection.call_read(token_address, "balanceOf", connection.checksum(address)))
        decimals = int(connection.call_read(token_address, "decimals"))
        return {
            "chainId": state.chain_id,
            "address": address,
            "tokenAddress": token_address,
            "balanceWei": str(balance),
            "balanceHuman": to_human_units(balance, decimals),
            "decimals": decimals,
        }

    def _get_gas(self, i: int, state: BatchState) -> Dict[str, Any]:
        block = state.connection.get_latest_block()
        fee = state.connection.get_fee_data(block)
        return {
            "chainId": state.chain_id,
            "gasPrice": _optional_str(fee.gas_price),
            "maxFeePerGas": _optional_str(fee.max_fee_per_gas),
            "maxPriorityFeePerGas": _optional_str(fee.max_priority_fee_per_gas),
            "blockNumber": str(block.number),
            "blockTimestamp": block.timestamp,
        }

    def _transfer(self, i: int, state: BatchState) -> Dict[str, Any]:
        signer = state.signer_provider.signer_for(i)
        to_address = self._recipient(i, state)
        value_field = self.param("valueField", i, "amount")
        raw_value = state.resolver.resolve(
            i,
            self._source("valueSource", i),
            self.param("valueWei", i, "0"),
            value_field,
            label="amount",
        )
        unit = self._enum_param(AmountUnit, "valueUnit", i, AmountUnit.ETHER)
        try:
            value = resolve_amount(raw_value, unit, NATIVE_DECIMALS)
        except ConversionError as e:
            e.field = e.field or value_field
            raise

        connection = state.connection
        tx_hash = connection.submit_transfer(signer, to_address, value)
        receipt = connection.wait_for_receipt(tx_hash)
        return {
            "chainId": state.chain_id,
            "hash": tx_hash,
            "from": signer.address,
            "to": to_address,
            "value": str(value),
            "blockNumber": str(receipt.block_number),
            "status": receipt.status,
        }

    def _transfer_erc20(self, i: int, state: BatchState) -> Dict[str, Any]:
        signer = state.signer_provider.signer_for(i)
        token_address = self._token_address(i, state)
        to_address = self._recipient(i, state)
        amount_field = self.param("erc20AmountField", i, "amount")
        amount_human = state.resolver.resolve_text(
            i,
            self._source("erc20AmountSource", i),
            self.param("erc20Amount", i, "0"),
            amount_field,
            label="token amount",
        ).strip()
        decimals = self.param("tokenDecimals", i, DEFAULT_TOKEN_DECIMALS)
        try:
            amount = to_base_units(amount_human, int(decimals))
        except ConversionError as e:
            e.field = e.field or amount_field
            raise
        except (TypeError, ValueError):
            raise ConversionError(f"tokenDecimals must be an integer, got {decimals!r}", field="tokenDecimals")

        connection = state.connection
        tx_hash = connection.submit_contract_call(
            signer, token_address, "transfer", connection.checksum(to_address, "to"), amount
        )
        receipt = connection.wait_for_receipt(tx_hash)
        return {
            "chainId": state.chain_id,
            "hash": tx_hash,
            "from": signer.address,
            "to": to_address,
            "tokenAddress": token_address,
            "amount": str(amount),
            "amountHuman": amount_human,
            "blockNumber": str(receipt.block_number),
            "status": receipt.status,
        }

    def _recipient(self, i: int, state: BatchState) -> str:
        return state.resolver.resolve_text(
            i,
            self._source("toAddressSource", i),
            self.param("toAddress", i),
            self.param("toAddressField", i, "to"),
            label="recipient address",
        ).strip()


def _optional_str(value: Optional[int]) -> Optional[str]:
    return None if value is None else str(value)
