"""
Strategies for obtaining the signing identity of a batch item.

Both strategies build a fresh ``LocalSigner`` per item; key material is never
cached between items, even when the same key recurs.
"""
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from ..credentials import WalletCredential
from ..exceptions import InvalidKeyError
from ..resolver import ValueResolver, ValueSource
from .local import LocalSigner

logger = logging.getLogger(__name__)


class PrivateKeySource(str, Enum):
    """Where the signing key of an item comes from."""
    CREDENTIAL = "credential"
    INPUT = "input"


class SignerProvider(ABC):
    """Obtain a signing identity for item ``i``."""

    @abstractmethod
    def validate(self) -> None:
        """
        Check batch-level preconditions before any item runs.

        Raises:
            CredentialError: If a required credential is absent
            InvalidKeyError: If a batch-wide key cannot be parsed
        """
        pass

    @abstractmethod
    def signer_for(self, item_index: int) -> LocalSigner:
        """
        Build the signer for one item.

        Raises:
            MissingFieldError: If the key field is missing on the item
            InvalidKeyError: If the key cannot be parsed
        """
        pass


class CredentialSignerProvider(SignerProvider):
    """Every item is signed with the key held by the wallet credential."""

    def __init__(self, credential: WalletCredential, operation: Optional[str] = None):
        self.credential = credential
        self.operation = operation

    def validate(self) -> None:
        try:
            signer = LocalSigner(self.credential.secret())
        except InvalidKeyError as e:
            raise e.with_context(operation=self.operation)
        logger.debug("Credential signer resolved to %s…", signer.address[:8])

    def signer_for(self, item_index: int) -> LocalSigner:
        try:
            return LocalSigner(self.credential.secret())
        except InvalidKeyError as e:
            raise e.with_context(operation=self.operation, item_index=item_index)


class RecordSignerProvider(SignerProvider):
    """Each item carries its own private key in a named record field."""

    def __init__(self, resolver: ValueResolver, field_name: str):
        self.resolver = resolver
        self.field_name = field_name

    def validate(self) -> None:
        pass

    def signer_for(self, item_index: int) -> LocalSigner:
        private_key = self.resolver.resolve_text(
            item_index, ValueSource.INPUT, None, self.field_name, label="private key"
        )
        try:
            return LocalSigner(private_key)
        except InvalidKeyError as e:
            e.field = self.field_name
            raise e.with_context(operation=self.resolver.operation, item_index=item_index)
