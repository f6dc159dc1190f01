from __future__ import annotations

from availability_engine.application.ports.credential_cipher import CredentialCipherPort


class PlaintextCredentialCipher(CredentialCipherPort):
    """Dev/local only: credentials are stored unencrypted."""

    def decrypt(self, ciphertext: str) -> str:
        return ciphertext or ""
