"""
Cryptographic utilities for the wallet login challenge.
The wallet signs keccak256(keccak256(nonce)) with a recoverable secp256k1 key.
"""

import uuid
from typing import Union

from eth_keys import keys
from eth_utils import int_to_big_endian, keccak, to_hex

from src.infra.config.settings import settings
from src.core.logger.logger import get_logger

logger = get_logger(__name__)

# Offset wallets add to the recovery id in RPC-encoded signatures
RPC_V_OFFSET = 27


def generate_nonce() -> str:
    """
    Generate a fresh login challenge

    Returns:
        str: Prefixed random UUID, e.g. ``signin-0652c409-17ef-4ad6-b580-3faaefcc204d``
    """
    return f"{settings.LOGIN_NONCE_PREFIX}{uuid.uuid4()}"


def hash_challenge(nonce: str) -> bytes:
    """
    Hash a challenge the way the wallet does before signing

    Args:
        nonce: Challenge string

    Returns:
        bytes: 32-byte keccak256(keccak256(utf8(nonce))) digest
    """
    return keccak(keccak(nonce.encode('utf-8')))


def sign_challenge(nonce: str, private_key: Union[bytes, str]) -> str:
    """
    Sign a challenge with a raw private key (for testing)

    Args:
        nonce: Challenge string
        private_key: 32-byte key, raw or hex-encoded

    Returns:
        str: 0x-prefixed r || s || v signature with v in {27, 28}
    """
    try:
        if isinstance(private_key, str):
            private_key = bytes.fromhex(private_key[2:] if private_key.startswith('0x') else private_key)

        signature = keys.PrivateKey(bytes(private_key)).sign_msg_hash(hash_challenge(nonce))

        return to_hex(
            int_to_big_endian(signature.r).rjust(32, b'\x00')
            + int_to_big_endian(signature.s).rjust(32, b'\x00')
            + bytes([signature.v + RPC_V_OFFSET])
        )

    except Exception as e:
        logger.error(f"Failed to sign challenge: {str(e)}")
        raise
