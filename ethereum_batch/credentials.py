"""
Wallet credential holding the signing private key.
"""
from typing import Any, Mapping, Optional

from pydantic import BaseModel, SecretStr

from .exceptions import CredentialError


class WalletCredential(BaseModel):
    """Credential with a single secret field; repr never shows the key"""
    private_key: SecretStr

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "WalletCredential":
        """
        Build from a host credential mapping (``privateKey`` or ``private_key``).

        Raises:
            CredentialError: If the mapping is missing or the key is blank
        """
        if not data:
            raise CredentialError("Ethereum wallet credential is missing")
        raw = data.get("privateKey", data.get("private_key"))
        if raw is None or not str(raw).strip():
            raise CredentialError("Ethereum wallet credential is missing the private key")
        return cls(private_key=SecretStr(str(raw).strip()))

    def secret(self) -> str:
        value = self.private_key.get_secret_value().strip()
        if not value:
            raise CredentialError("Ethereum wallet credential is missing the private key")
        return value
