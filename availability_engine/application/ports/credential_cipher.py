from __future__ import annotations

from abc import ABC, abstractmethod


class CredentialCipherPort(ABC):
    @abstractmethod
    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a stored credential. Raises IntegrationError on failure."""
        raise NotImplementedError
