import binascii
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError as KeyValidationError
from eth_utils import big_endian_to_int
from hexbytes import HexBytes

from src.core.exceptions.base import VerificationError
from src.core.service.auth.utils.crypto import RPC_V_OFFSET, hash_challenge
from src.core.logger.logger import logger

SIGNATURE_LENGTH = 65


class SignatureVerificationService:
    """Service for verifying wallet signatures over login challenges"""

    @staticmethod
    def _parse_signature(signature: str) -> keys.Signature:
        """Parse a 0x-prefixed r || s || v RPC signature"""
        if not isinstance(signature, str) or not signature.startswith("0x"):
            raise VerificationError("Signature must be a 0x-prefixed hex string")

        try:
            raw = HexBytes(signature)
        except (ValueError, binascii.Error) as e:
            raise VerificationError("Signature is not valid hex") from e

        if len(raw) != SIGNATURE_LENGTH:
            raise VerificationError(f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}")

        v = raw[64]
        if v >= RPC_V_OFFSET:
            v -= RPC_V_OFFSET
        if v not in (0, 1):
            raise VerificationError(f"Invalid recovery id {raw[64]}")

        try:
            return keys.Signature(vrs=(v, big_endian_to_int(raw[:32]), big_endian_to_int(raw[32:64])))
        except (BadSignature, KeyValidationError) as e:
            raise VerificationError(f"Invalid signature values: {e}") from e

    def recover_address(self, nonce: str, signature: str) -> str:
        """Recover the lower-cased address that signed the challenge"""
        parsed = self._parse_signature(signature)
        digest = hash_challenge(nonce)

        try:
            public_key = parsed.recover_public_key_from_msg_hash(digest)
        except Exception as e:
            # Any backend failure (point not on curve, bad digest) means the signature is unusable
            raise VerificationError(f"Public key recovery failed: {e}") from e

        return public_key.to_checksum_address().lower()

    def verify(self, nonce: str, claimed_address: str, signature: str) -> bool:
        """
        Verify that the claimed address signed the challenge

        Args:
            nonce: The challenge that was signed
            claimed_address: The address that claims to have signed it
            signature: Hex-encoded r || s || v signature

        Returns:
            bool: True if the recovered address matches, False otherwise

        Raises:
            VerificationError: If the signature is malformed or recovery fails
        """
        try:
            recovered_address = self.recover_address(nonce, signature)
        except VerificationError as e:
            logger.warning(
                "Signature could not be verified",
                extra={
                    "wallet_address": claimed_address,
                    "reason": e.reason
                }
            )
            raise

        is_valid = recovered_address == claimed_address.lower()

        if not is_valid:
            logger.warning(
                "Recovered address does not match claimed address",
                extra={
                    "wallet_address": claimed_address,
                    "recovered_address": recovered_address
                }
            )
            return False

        logger.info(
            "Signature verified successfully",
            extra={"wallet_address": claimed_address}
        )
        return True
