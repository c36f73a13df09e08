"""
Tests for the local private key signer.
"""
import pytest
from eth_account import Account

from txsubmitter.signer import LocalSigner, Signer
from tests.test_helpers import TEST_ADDRESS, TEST_CHAIN_ID, TEST_CONTRACT, TEST_PRIV_KEY

UNSIGNED = {
    "nonce": 0,
    "gas": 50_000,
    "gasPrice": 1_000_000_000,
    "to": TEST_CONTRACT,
    "value": 0,
    "data": b"\xcf\xae\x32\x17",
}


@pytest.mark.parametrize("key", [
    TEST_PRIV_KEY,
    TEST_PRIV_KEY[2:],
    f"  {TEST_PRIV_KEY}\n",
])
def test_key_formats(key):
    assert LocalSigner(key).public_address() == TEST_ADDRESS


@pytest.mark.parametrize("key", ["", "   "])
def test_empty_key_rejected(key):
    with pytest.raises(ValueError, match="must not be empty"):
        LocalSigner(key)


def test_satisfies_signer_protocol(signer):
    assert isinstance(signer, Signer)


def test_sign_recovers_to_signer(signer):
    raw = signer.sign(UNSIGNED, TEST_CHAIN_ID)

    assert isinstance(raw, bytes)
    assert Account.recover_transaction(raw) == TEST_ADDRESS


def test_sign_binds_chain_id(signer):
    raw_local = signer.sign(UNSIGNED, TEST_CHAIN_ID)
    raw_mainnet = signer.sign(UNSIGNED, 1)

    assert raw_local != raw_mainnet


def test_sign_does_not_mutate_input(signer):
    unsigned = dict(UNSIGNED)

    signer.sign(unsigned, TEST_CHAIN_ID)

    assert "chainId" not in unsigned


def test_repr_hides_key(signer):
    assert TEST_PRIV_KEY[2:] not in repr(signer)
    assert TEST_ADDRESS in repr(signer)
