"""
Cryptographic helpers for wrapping data keys with AES-GCM.

This module provides:
- SecureKey: Key wrapper with redacted repr and best-effort zeroization
- EncryptedData: Wrapped key payload with nonce and ciphertext
- AesGcmCipher: AES-GCM wrap/unwrap operations
- serialize_encryption_context: Canonical AAD bytes for an encryption context
"""

from __future__ import annotations

import json
import secrets
from dataclasses import dataclass
from typing import Mapping, Optional

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import CryptoError, SerializationError

AES_KEY_SIZES: frozenset = frozenset({16, 24, 32})
AES_256_KEY_SIZE: int = 32
NONCE_SIZE: int = 12  # 96 bits (standard for AES-GCM)
TAG_SIZE: int = 16  # 128 bits (authentication tag)


class SecureKey:
    """
    Secure key wrapper with automatic memory cleanup on deletion.

    Uses bytearray internally for mutable zeroing in __del__.
    Note: Python's garbage collector doesn't guarantee immediate cleanup,
    so this is best-effort zeroization.
    """

    __slots__ = ("_bytes",)

    def __init__(self, key_bytes: bytes | bytearray) -> None:
        if not isinstance(key_bytes, (bytes, bytearray)):
            raise CryptoError("Key must be bytes or bytearray")
        self._bytes = bytearray(key_bytes)

    @classmethod
    def generate(cls, length: int = AES_256_KEY_SIZE) -> SecureKey:
        """Generate a cryptographically secure random key of `length` bytes."""
        return cls(secrets.token_bytes(length))

    def as_bytes(self) -> bytes:
        """Return key as immutable bytes."""
        return bytes(self._bytes)

    def __len__(self) -> int:
        return len(self._bytes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecureKey):
            return NotImplemented
        return secrets.compare_digest(bytes(self._bytes), bytes(other._bytes))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Redacted representation to prevent accidental key disclosure."""
        return "SecureKey([REDACTED])"

    def __del__(self) -> None:
        """Zero memory on deletion (best-effort)."""
        if hasattr(self, "_bytes"):
            for i in range(len(self._bytes)):
                self._bytes[i] = 0


@dataclass
class EncryptedData:
    """
    Wrapped key container with nonce and ciphertext.

    The ciphertext includes the 16-byte authentication tag appended by AESGCM.
    """

    nonce: bytes  # 12 bytes
    ciphertext: bytes  # Ciphertext + 16-byte auth tag

    def to_aead_blob(self) -> bytes:
        """
        Convert to AEAD blob format: nonce || ciphertext || tag.

        For a 32-byte data key: 12 + 32 + 16 = 60 bytes total.
        """
        return self.nonce + self.ciphertext

    @classmethod
    def from_aead_blob(cls, blob: bytes) -> EncryptedData:
        """
        Parse from AEAD blob format: nonce || ciphertext || tag.

        Raises:
            CryptoError: If blob is too small
        """
        min_size = NONCE_SIZE + TAG_SIZE
        if len(blob) < min_size:
            raise CryptoError(
                f"AEAD blob too small: expected at least {min_size} bytes, got {len(blob)}"
            )
        return cls(nonce=blob[:NONCE_SIZE], ciphertext=blob[NONCE_SIZE:])


class AesGcmCipher:
    """
    AES-GCM authenticated encryption used to wrap data keys.

    Provides static methods for encryption and decryption with optional
    Additional Authenticated Data (AAD) for binding.
    """

    @staticmethod
    def encrypt(
        key: SecureKey,
        plaintext: bytes,
        aad: Optional[bytes] = None,
    ) -> EncryptedData:
        """
        Encrypt plaintext with AES-GCM.

        Args:
            key: 16, 24 or 32-byte wrapping key
            plaintext: Data to encrypt
            aad: Optional Additional Authenticated Data for binding

        Returns:
            EncryptedData with nonce and ciphertext (includes auth tag)

        Raises:
            CryptoError: If key size is invalid or encryption fails
        """
        if len(key) not in AES_KEY_SIZES:
            raise CryptoError(f"Invalid key size: {len(key)}")

        nonce = secrets.token_bytes(NONCE_SIZE)
        aesgcm = AESGCM(key.as_bytes())

        try:
            ciphertext = aesgcm.encrypt(nonce, plaintext, aad)
        except Exception as e:
            raise CryptoError(f"Encryption error: {e}")

        return EncryptedData(nonce=nonce, ciphertext=ciphertext)

    @staticmethod
    def decrypt(
        key: SecureKey,
        encrypted: EncryptedData,
        aad: Optional[bytes] = None,
    ) -> bytes:
        """
        Decrypt ciphertext with AES-GCM.

        Args:
            key: 16, 24 or 32-byte wrapping key
            encrypted: EncryptedData with nonce and ciphertext
            aad: Optional Additional Authenticated Data (must match encryption)

        Returns:
            Decrypted plaintext bytes

        Raises:
            CryptoError: If key/nonce size is invalid or decryption fails
        """
        if len(key) not in AES_KEY_SIZES:
            raise CryptoError(f"Invalid key size: {len(key)}")

        if len(encrypted.nonce) != NONCE_SIZE:
            raise CryptoError(
                f"Invalid nonce size: expected {NONCE_SIZE}, got {len(encrypted.nonce)}"
            )

        aesgcm = AESGCM(key.as_bytes())

        try:
            return aesgcm.decrypt(encrypted.nonce, encrypted.ciphertext, aad)
        except Exception:
            # Generic error to prevent oracle attacks
            raise CryptoError("Decryption failed")


def serialize_encryption_context(context: Mapping[str, str]) -> bytes:
    """
    Serialize an encryption context to canonical bytes for use as AAD.

    Keys are sorted and the JSON is compact, so equal contexts always
    produce equal bytes.

    Raises:
        SerializationError: If a key or value is not a string
    """
    for key, value in context.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise SerializationError(
                f"Encryption context entries must be strings: {key!r}"
            )
    return json.dumps(
        dict(context), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")
