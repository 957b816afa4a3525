import pytest
from eth_account import Account

from src.core.exceptions.base import VerificationError
from src.core.service.auth.signature_verification import SignatureVerificationService
from src.core.service.auth.utils.crypto import generate_nonce, hash_challenge, sign_challenge

# Signed with a browser wallet
KNOWN_NONCE = "signin-b5c1378f-daba-465a-8992-1513ec723de9"
KNOWN_ADDRESS = "0x0f28f51f0cea481a5e52c00f88109ebb4f793009"
KNOWN_GOOD_SIGNATURE = (
    "0xce301a22ea888f6c60c01ac4e9ea65a817036b76ab1cb625917d9cceda19a554"
    "1628691c8981647e2deb4c2f74c68b1d8875cffbb68cfeb38eca26bcb82b488300"
)
KNOWN_FOREIGN_SIGNATURE = (
    "0xe0434ea8ff5123a570b6b7e5f1b837af4524372d4552021bfcede66219abe00c"
    "376a8c8417299be23938b9644ba922ffd36bbbdd1cdf15719da9b2af9affdec601"
)


@pytest.fixture
def signature_service():
    """Create a signature verification service"""
    return SignatureVerificationService()


def test_known_signature_is_accepted(signature_service):
    assert signature_service.verify(KNOWN_NONCE, KNOWN_ADDRESS, KNOWN_GOOD_SIGNATURE) is True


def test_known_signature_from_other_key_is_rejected(signature_service):
    assert signature_service.verify(KNOWN_NONCE, KNOWN_ADDRESS, KNOWN_FOREIGN_SIGNATURE) is False


def test_unparseable_signature_raises(signature_service):
    with pytest.raises(VerificationError):
        signature_service.verify(KNOWN_NONCE, KNOWN_ADDRESS, "unrecognixedSignature")


def test_fresh_wallet_signature_is_accepted(wallet, signature_service):
    nonce = generate_nonce()
    signature = sign_challenge(nonce, wallet["key"])

    assert signature_service.verify(nonce, wallet["address"], signature) is True


def test_claimed_address_case_is_ignored(wallet, signature_service):
    nonce = generate_nonce()
    signature = sign_challenge(nonce, wallet["key"])
    checksummed = Account.from_key(wallet["key"]).address

    assert signature_service.verify(nonce, checksummed, signature) is True


def test_signature_over_other_nonce_is_rejected(wallet, signature_service):
    signature = sign_challenge(generate_nonce(), wallet["key"])

    assert signature_service.verify(generate_nonce(), wallet["address"], signature) is False


def test_signature_from_other_wallet_is_rejected(wallet, signature_service):
    nonce = generate_nonce()
    other = Account.create()
    signature = sign_challenge(nonce, bytes(other.key))

    assert signature_service.verify(nonce, wallet["address"], signature) is False


def test_recovery_id_without_offset_is_accepted(wallet, signature_service):
    nonce = generate_nonce()
    signature = sign_challenge(nonce, wallet["key"])
    v = int(signature[-2:], 16) - 27
    compact = signature[:-2] + f"{v:02x}"

    assert signature_service.verify(nonce, wallet["address"], compact) is True


@pytest.mark.parametrize("signature", [
    "",
    "ce301a22",
    "0x",
    "0xzz",
    KNOWN_GOOD_SIGNATURE[:-2],
    KNOWN_GOOD_SIGNATURE + "00",
    KNOWN_GOOD_SIGNATURE[:-2] + "05",
])
def test_malformed_signatures_raise(signature, signature_service):
    with pytest.raises(VerificationError) as exc_info:
        signature_service.verify(KNOWN_NONCE, KNOWN_ADDRESS, signature)

    assert exc_info.value.status_code == 400
    assert exc_info.value.code == "INVALID_SIGNATURE"


def test_recover_address_returns_lowercase(wallet, signature_service):
    nonce = generate_nonce()
    signature = sign_challenge(nonce, wallet["key"])

    assert signature_service.recover_address(nonce, signature) == wallet["address"]


def test_challenge_hash_is_double_keccak():
    from eth_utils import keccak

    digest = hash_challenge(KNOWN_NONCE)

    assert len(digest) == 32
    assert digest == keccak(keccak(text=KNOWN_NONCE))
    assert digest != keccak(text=KNOWN_NONCE)


def test_sign_challenge_accepts_hex_key(wallet):
    nonce = generate_nonce()

    assert sign_challenge(nonce, "0x" + wallet["key"].hex()) == sign_challenge(nonce, wallet["key"])


def test_generated_nonces_are_prefixed_and_unique():
    nonces = {generate_nonce() for _ in range(50)}

    assert len(nonces) == 50
    assert all(nonce.startswith("signin-") for nonce in nonces)
