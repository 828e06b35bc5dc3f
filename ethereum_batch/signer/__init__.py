"""
Signer interfaces.
"""
from typing import Any, Dict, Protocol


class Signer(Protocol):
    """Protocol for objects that can sign on behalf of an address"""
    address: str

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        """Sign transaction and return signed tx object"""
        ...

    def sign_message(self, message: str) -> str:
        """Sign an EIP-191 personal message and return the 0x signature"""
        ...


from .local import LocalSigner, create_random_wallet, recover_message_signer  # noqa: E402
from .providers import (  # noqa: E402
    PrivateKeySource,
    SignerProvider,
    CredentialSignerProvider,
    RecordSignerProvider,
)

__all__ = [
    "Signer",
    "LocalSigner",
    "create_random_wallet",
    "recover_message_signer",
    "PrivateKeySource",
    "SignerProvider",
    "CredentialSignerProvider",
    "RecordSignerProvider",
]
