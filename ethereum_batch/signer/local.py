"""
Local private-key signer backed by eth_account.
"""
from typing import Any, Dict

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

from ..exceptions import InvalidKeyError

Account.enable_unaudited_hdwallet_features()


def _normalize_key(private_key: str) -> str:
    key = str(private_key).strip()
    if not key.lower().startswith("0x"):
        key = "0x" + key
    return key


class LocalSigner:
    """
    Signing identity derived from a raw private key.

    Args:
        private_key: Hex private key, with or without ``0x`` prefix

    Raises:
        InvalidKeyError: If the key is not a valid secp256k1 private key
    """

    def __init__(self, private_key: str):
        if private_key is None or not str(private_key).strip():
            raise InvalidKeyError("Invalid private key: empty value")
        try:
            self._account: LocalAccount = Account.from_key(_normalize_key(private_key))
        except Exception as e:
            # the key itself must never end up in the message
            raise InvalidKeyError(f"Invalid private key: {type(e).__name__}") from None
        self.address = self._account.address

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        return self._account.sign_transaction(transaction_dict)

    def sign_message(self, message: str) -> str:
        signed = self._account.sign_message(encode_defunct(text=message))
        return "0x" + bytes(signed.signature).hex()

    def __repr__(self) -> str:
        return f"LocalSigner(address={self.address})"


def recover_message_signer(message: str, signature: str) -> str:
    """Recover the address that produced an EIP-191 signature over ``message``."""
    return Account.recover_message(encode_defunct(text=message), signature=signature)


def create_random_wallet() -> Dict[str, str]:
    """
    Generate a fresh random wallet with a BIP-39 mnemonic.

    Returns:
        Dictionary with ``address``, ``privateKey`` (0x hex) and ``mnemonic``
    """
    account, mnemonic = Account.create_with_mnemonic()
    return {
        "address": account.address,
        "privateKey": "0x" + bytes(account.key).hex(),
        "mnemonic": mnemonic,
    }
