"""
Exceptions for the Ethereum batch engine.
"""
from typing import Optional


class EthereumBatchError(Exception):
    """
    Base exception for all engine errors.

    Carries enough context to locate the offending record: the operation name,
    the 0-based item index (rendered 1-based in the message) and the field name.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        item_index: Optional[int] = None,
        field: Optional[str] = None,
    ):
        self.message = message
        self.operation = operation
        self.item_index = item_index
        self.field = field
        super().__init__(self._format())

    def _format(self) -> str:
        prefix = []
        if self.operation:
            prefix.append(self.operation)
        if self.item_index is not None:
            prefix.append(f"Item {self.item_index + 1}")
        if prefix:
            return f"{' '.join(prefix)}: {self.message}"
        return self.message

    def with_context(
        self,
        operation: Optional[str] = None,
        item_index: Optional[int] = None,
    ) -> "EthereumBatchError":
        """Fill in missing operation/item context and return self."""
        if self.operation is None:
            self.operation = operation
        if self.item_index is None:
            self.item_index = item_index
        self.args = (self._format(),)
        return self


class ConfigurationError(EthereumBatchError):
    """Raised when node parameters are invalid or inconsistent."""
    pass


class CredentialError(EthereumBatchError):
    """Raised when the wallet credential is absent or blank."""
    pass


class ChainConnectionError(EthereumBatchError):
    """Raised when the RPC endpoint is malformed or unreachable."""
    pass


class ChainMismatchError(EthereumBatchError):
    """Raised when the declared chain id differs from the endpoint's."""

    def __init__(self, message: str, expected: int, actual: int, **kwargs):
        self.expected = expected
        self.actual = actual
        super().__init__(message, **kwargs)


class MissingFieldError(EthereumBatchError):
    """Raised when a required field is absent, null or empty on an item."""
    pass


class InvalidKeyError(EthereumBatchError):
    """Raised when a private key cannot be turned into a signing identity."""
    pass


class InvalidAddressError(EthereumBatchError):
    """Raised when an address is not a valid 20-byte hex address."""
    pass


class ConversionError(EthereumBatchError):
    """Raised when an amount cannot be parsed or converted."""
    pass


class TransactionError(EthereumBatchError):
    """Raised when building, sending or confirming a transaction fails."""
    pass


class RpcError(EthereumBatchError):
    """Raised when an RPC read call fails on an established connection."""
    pass
