"""
Tests for signers and signer providers.
"""
import pytest
from eth_account import Account
from hypothesis import given, settings, strategies as st

from ethereum_batch.credentials import WalletCredential
from ethereum_batch.exceptions import CredentialError, InvalidKeyError, MissingFieldError
from ethereum_batch.resolver import ValueResolver
from ethereum_batch.signer import (
    CredentialSignerProvider,
    LocalSigner,
    RecordSignerProvider,
    create_random_wallet,
    recover_message_signer,
)

from conftest import TEST_ADDRESS, TEST_ADDRESS_2, TEST_PRIV_KEY, TEST_PRIV_KEY_2, TEST_RECIPIENT


def test_local_signer_derives_address():
    assert LocalSigner(TEST_PRIV_KEY).address == TEST_ADDRESS


def test_local_signer_accepts_unprefixed_key():
    assert LocalSigner(TEST_PRIV_KEY[2:]).address == TEST_ADDRESS


def test_repr_hides_key():
    signer = LocalSigner(TEST_PRIV_KEY)
    assert TEST_PRIV_KEY[2:] not in repr(signer)
    assert TEST_ADDRESS in repr(signer)


@pytest.mark.parametrize("bad_key", ["", "   ", "0x1234", "not-a-key", "0x" + "00" * 32])
def test_invalid_key_raises(bad_key):
    with pytest.raises(InvalidKeyError):
        LocalSigner(bad_key)


def test_invalid_key_message_does_not_leak_key():
    bad_key = "0x" + "zz" * 32
    with pytest.raises(InvalidKeyError) as exc_info:
        LocalSigner(bad_key)
    assert "zz" not in str(exc_info.value)
    assert exc_info.value.__cause__ is None


@given(message=st.text(max_size=200))
@settings(max_examples=50)
def test_signature_recovers_to_signer(message):
    signer = LocalSigner(TEST_PRIV_KEY)
    signature = signer.sign_message(message)

    assert signature.startswith("0x")
    assert len(signature) == 132
    assert recover_message_signer(message, signature) == TEST_ADDRESS


def test_sign_message_is_deterministic():
    signer = LocalSigner(TEST_PRIV_KEY)
    assert signer.sign_message("hello") == signer.sign_message("hello")
    assert signer.sign_message("hello") != signer.sign_message("hello!")


def test_sign_transaction_produces_raw_transaction():
    signer = LocalSigner(TEST_PRIV_KEY)
    signed = signer.sign_transaction({
        "to": TEST_RECIPIENT,
        "value": 1,
        "gas": 21000,
        "maxFeePerGas": 2 * 10**9,
        "maxPriorityFeePerGas": 10**9,
        "nonce": 0,
        "chainId": 1,
    })
    assert Account.recover_transaction(signed.raw_transaction) == TEST_ADDRESS


def test_create_random_wallet():
    wallet = create_random_wallet()

    assert set(wallet) == {"address", "privateKey", "mnemonic"}
    assert wallet["privateKey"].startswith("0x")
    assert len(wallet["privateKey"]) == 66
    assert len(wallet["mnemonic"].split()) == 12
    assert Account.from_key(wallet["privateKey"]).address == wallet["address"]
    assert Account.from_mnemonic(wallet["mnemonic"]).address == wallet["address"]


def test_random_wallets_are_distinct():
    addresses = {create_random_wallet()["address"] for _ in range(5)}
    assert len(addresses) == 5


class TestWalletCredential:
    def test_from_mapping(self):
        credential = WalletCredential.from_mapping({"privateKey": f"  {TEST_PRIV_KEY} "})
        assert credential.secret() == TEST_PRIV_KEY
        assert TEST_PRIV_KEY not in repr(credential)

    def test_snake_case_key(self):
        assert WalletCredential.from_mapping({"private_key": TEST_PRIV_KEY}).secret() == TEST_PRIV_KEY

    @pytest.mark.parametrize("data", [None, {}])
    def test_missing_credential(self, data):
        with pytest.raises(CredentialError, match="credential is missing"):
            WalletCredential.from_mapping(data)

    @pytest.mark.parametrize("data", [{"privateKey": ""}, {"privateKey": "   "}, {"privateKey": None}])
    def test_blank_key(self, data):
        with pytest.raises(CredentialError, match="missing the private key"):
            WalletCredential.from_mapping(data)


class TestCredentialSignerProvider:
    def test_same_signer_for_every_item(self):
        provider = CredentialSignerProvider(WalletCredential.from_mapping({"privateKey": TEST_PRIV_KEY}))
        provider.validate()
        assert provider.signer_for(0).address == TEST_ADDRESS
        assert provider.signer_for(3).address == TEST_ADDRESS

    def test_fresh_signer_per_item(self):
        provider = CredentialSignerProvider(WalletCredential.from_mapping({"privateKey": TEST_PRIV_KEY}))
        assert provider.signer_for(0) is not provider.signer_for(0)

    def test_validate_rejects_invalid_key(self):
        provider = CredentialSignerProvider(
            WalletCredential.from_mapping({"privateKey": "0xdeadbeef"}),
            operation="signMessage",
        )
        with pytest.raises(InvalidKeyError) as exc_info:
            provider.validate()
        assert exc_info.value.operation == "signMessage"
        assert "deadbeef" not in str(exc_info.value)


class TestRecordSignerProvider:
    def test_per_item_keys(self):
        resolver = ValueResolver([{"privateKey": TEST_PRIV_KEY}, {"privateKey": TEST_PRIV_KEY_2}], "transfer")
        provider = RecordSignerProvider(resolver, "privateKey")
        provider.validate()

        assert provider.signer_for(0).address == TEST_ADDRESS
        assert provider.signer_for(1).address == TEST_ADDRESS_2

    def test_custom_field(self):
        resolver = ValueResolver([{"pk": TEST_PRIV_KEY}], "transfer")
        assert RecordSignerProvider(resolver, "pk").signer_for(0).address == TEST_ADDRESS

    def test_missing_key_field(self):
        resolver = ValueResolver([{"privateKey": TEST_PRIV_KEY}, {}], "transfer")
        provider = RecordSignerProvider(resolver, "privateKey")

        with pytest.raises(MissingFieldError) as exc_info:
            provider.signer_for(1)
        assert str(exc_info.value) == 'transfer Item 2: missing field "privateKey" (private key)'

    def test_invalid_key_field(self):
        resolver = ValueResolver([{"privateKey": "0x1234"}], "transfer")
        provider = RecordSignerProvider(resolver, "privateKey")

        with pytest.raises(InvalidKeyError) as exc_info:
            provider.signer_for(0)
        err = exc_info.value
        assert err.field == "privateKey"
        assert err.item_index == 0
        assert str(err).startswith("transfer Item 1: Invalid private key")
