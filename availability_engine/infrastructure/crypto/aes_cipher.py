from __future__ import annotations

import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from availability_engine.application.exceptions import IntegrationError
from availability_engine.application.ports.credential_cipher import CredentialCipherPort

IV_BYTES = 16
TAG_BYTES = 16


class AesGcmCredentialCipher(CredentialCipherPort):
    """
    AES-256-GCM credentials stored as "iv:authTag:data" (hex).

    The 256-bit key is derived with scrypt (N=2**14, r=8, p=1) from the configured secret.
    """

    def __init__(self, secret: str, salt: str) -> None:
        if not secret:
            raise ValueError("CREDENTIAL_ENCRYPTION_KEY is required for credential decryption")
        kdf = Scrypt(salt=salt.encode("utf-8"), length=32, n=2**14, r=8, p=1)
        self._aead = AESGCM(kdf.derive(secret.encode("utf-8")))
        self._logger = logging.getLogger(__name__)

    def encrypt(self, plaintext: str) -> str:
        if not plaintext:
            return ""
        iv = os.urandom(IV_BYTES)
        sealed = self._aead.encrypt(iv, plaintext.encode("utf-8"), None)
        data, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
        return f"{iv.hex()}:{tag.hex()}:{data.hex()}"

    def decrypt(self, ciphertext: str) -> str:
        if not ciphertext:
            return ""
        try:
            parts = ciphertext.split(":")
            if len(parts) != 3:
                raise ValueError("Invalid encrypted data format - expected IV:authTag:data")
            iv, tag, data = (bytes.fromhex(p) for p in parts)
            return self._aead.decrypt(iv, data + tag, None).decode("utf-8")
        except (ValueError, InvalidTag, UnicodeDecodeError) as e:
            self._logger.error("Decryption failed", extra={"error": str(e) or e.__class__.__name__})
            raise IntegrationError("Failed to decrypt credential") from e

    @staticmethod
    def generate_secret() -> str:
        return os.urandom(32).hex()
