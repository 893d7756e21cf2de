"""Credential encryption and decryption using Fernet."""

import stat
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken

from podtracks.utils.errors import EncryptionError


class CredentialEncryptor:
    """Encrypts the directory API secret stored in config.yaml."""

    def __init__(self, key_path: Path) -> None:
        """Initialize the credential encryptor.

        Args:
            key_path: Path to the encryption key file
        """
        self.key_path = key_path
        self._cipher: Fernet | None = None

    def _ensure_key(self) -> bytes:
        """Return the key, generating it with owner-only permissions if absent.

        Raises:
            EncryptionError: If an existing key file has insecure permissions
        """
        if self.key_path.exists():
            self._validate_key_permissions()
            return self.key_path.read_bytes()

        key = Fernet.generate_key()
        self.key_path.parent.mkdir(parents=True, exist_ok=True)
        self.key_path.write_bytes(key)
        self.key_path.chmod(0o600)
        return key

    def _validate_key_permissions(self) -> None:
        """Reject key files readable or writable by group/others."""
        mode = stat.S_IMODE(self.key_path.stat().st_mode)
        if mode & (stat.S_IRGRP | stat.S_IROTH | stat.S_IWGRP | stat.S_IWOTH):
            raise EncryptionError(
                f"Key file {self.key_path} has insecure permissions ({oct(mode)}). "
                f"Run: chmod 600 {self.key_path}"
            )

    def _get_cipher(self) -> Fernet:
        if self._cipher is None:
            self._cipher = Fernet(self._ensure_key())
        return self._cipher

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a plaintext string; empty input stays empty."""
        if not plaintext:
            return ""
        try:
            return self._get_cipher().encrypt(plaintext.encode("utf-8")).decode("utf-8")
        except EncryptionError:
            raise
        except Exception as e:
            raise EncryptionError(f"Failed to encrypt data: {e}") from e

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a string produced by encrypt().

        Raises:
            EncryptionError: If the token is invalid or was made with another key
        """
        if not ciphertext:
            return ""
        try:
            return self._get_cipher().decrypt(ciphertext.encode("utf-8")).decode("utf-8")
        except InvalidToken as e:
            raise EncryptionError(
                f"Failed to decrypt stored secret; was {self.key_path} replaced?"
            ) from e
