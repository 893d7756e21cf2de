"""Tests for directory secret encryption."""

import stat
from pathlib import Path

import pytest

from podtracks.config.crypto import CredentialEncryptor
from podtracks.utils.errors import EncryptionError


class TestCredentialEncryptor:
    """Tests for CredentialEncryptor class."""

    def test_secret_roundtrip(self, tmp_path: Path) -> None:
        """Test that a directory secret survives encryption."""
        encryptor = CredentialEncryptor(tmp_path / ".keyfile")

        encrypted = encryptor.encrypt("secret$0123456789")

        assert encrypted != "secret$0123456789"
        assert encryptor.decrypt(encrypted) == "secret$0123456789"

    def test_key_created_owner_only(self, tmp_path: Path) -> None:
        """Test that the key file is generated with 600 permissions."""
        key_file = tmp_path / ".keyfile"
        CredentialEncryptor(key_file).encrypt("x")

        assert key_file.exists()
        assert stat.S_IMODE(key_file.stat().st_mode) == 0o600

    def test_key_reused_across_instances(self, tmp_path: Path) -> None:
        """Test that a second encryptor reads the existing key."""
        key_file = tmp_path / ".keyfile"
        encrypted = CredentialEncryptor(key_file).encrypt("secret")

        assert CredentialEncryptor(key_file).decrypt(encrypted) == "secret"

    def test_empty_values_pass_through(self, tmp_path: Path) -> None:
        """Test that an unset secret stays empty."""
        encryptor = CredentialEncryptor(tmp_path / ".keyfile")
        assert encryptor.encrypt("") == ""
        assert encryptor.decrypt("") == ""

    def test_insecure_permissions_rejected(self, tmp_path: Path) -> None:
        """Test that a world-readable key file raises EncryptionError."""
        key_file = tmp_path / ".keyfile"
        key_file.write_text("fake-key")
        key_file.chmod(0o644)

        with pytest.raises(EncryptionError, match="insecure permissions"):
            CredentialEncryptor(key_file).encrypt("test")

    def test_foreign_ciphertext_rejected(self, tmp_path: Path) -> None:
        """Test that ciphertext from another key raises EncryptionError."""
        encrypted = CredentialEncryptor(tmp_path / "a.key").encrypt("secret")

        with pytest.raises(EncryptionError, match="Failed to decrypt"):
            CredentialEncryptor(tmp_path / "b.key").decrypt(encrypted)
