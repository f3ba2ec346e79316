"""
Materials passed through keyrings.

This module provides:
- EncryptedDataKey: A data key wrapped by one keyring
- KeyringTraceFlag / KeyringTrace: Record of what each keyring did
- EncryptionMaterial: Accumulates one data key and its EDKs
- DecryptionMaterial: Holds the data key recovered from an EDK

Materials are mutated in place by keyrings. The data key is set once and
never replaced; EDKs and trace entries are only appended.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from .crypto import SecureKey
from .errors import InvalidKeyStateError
from .suites import AlgorithmSuite


@dataclass(frozen=True)
class EncryptedDataKey:
    """Wrapped data key plus the metadata identifying the keyring that made it."""

    provider_id: str
    provider_info: str
    encrypted_data_key: bytes

    def __repr__(self) -> str:
        return (
            f"EncryptedDataKey(provider_id={self.provider_id!r}, "
            f"provider_info={self.provider_info!r}, "
            f"encrypted_data_key=<{len(self.encrypted_data_key)} bytes>)"
        )


class KeyringTraceFlag(IntFlag):
    """Actions a keyring performed on a material."""

    GENERATED_DATA_KEY = 1
    ENCRYPTED_DATA_KEY = 2
    DECRYPTED_DATA_KEY = 4


@dataclass(frozen=True)
class KeyringTrace:
    """One keyring's contribution to a material."""

    provider_id: str
    provider_info: str
    flags: KeyringTraceFlag


class _Material:
    """Shared state of encryption and decryption materials."""

    def __init__(
        self,
        suite: AlgorithmSuite,
        encryption_context: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._suite = suite
        self._encryption_context = MappingProxyType(dict(encryption_context or {}))
        self._data_key: Optional[SecureKey] = None
        self._trace: List[KeyringTrace] = []

    @property
    def suite(self) -> AlgorithmSuite:
        return self._suite

    @property
    def encryption_context(self) -> Mapping[str, str]:
        """Read-only view of the encryption context."""
        return self._encryption_context

    @property
    def keyring_trace(self) -> Tuple[KeyringTrace, ...]:
        return tuple(self._trace)

    @property
    def unencrypted_data_key(self) -> SecureKey:
        """
        The plaintext data key.

        Raises:
            InvalidKeyStateError: If no data key has been set
        """
        if self._data_key is None:
            raise InvalidKeyStateError("Unencrypted data key is not set")
        return self._data_key

    def _set_data_key(self, key: SecureKey, trace: KeyringTrace) -> None:
        if self._data_key is not None:
            raise InvalidKeyStateError("Unencrypted data key is already set")
        if not isinstance(key, SecureKey):
            raise InvalidKeyStateError("Unencrypted data key must be a SecureKey")
        if len(key) != self._suite.key_length:
            raise InvalidKeyStateError(
                f"Invalid data key length for {self._suite.name}: "
                f"expected {self._suite.key_length}, got {len(key)}"
            )
        self._data_key = key
        self._trace.append(trace)


class EncryptionMaterial(_Material):
    """
    Material accumulated while encrypting one message.

    Holds at most one unencrypted data key and an append-only list of
    encrypted data keys.
    """

    def __init__(
        self,
        suite: AlgorithmSuite,
        encryption_context: Optional[Mapping[str, str]] = None,
    ) -> None:
        super().__init__(suite, encryption_context)
        self._encrypted_data_keys: List[EncryptedDataKey] = []

    @property
    def has_unencrypted_data_key(self) -> bool:
        return self._data_key is not None

    @property
    def encrypted_data_keys(self) -> Tuple[EncryptedDataKey, ...]:
        """Snapshot of the EDKs appended so far, in append order."""
        return tuple(self._encrypted_data_keys)

    def set_unencrypted_data_key(self, key: SecureKey, trace: KeyringTrace) -> None:
        """
        Set the data key. Only the generating keyring calls this, once.

        Raises:
            InvalidKeyStateError: If a key is already set or has the wrong length
        """
        if not trace.flags & KeyringTraceFlag.GENERATED_DATA_KEY:
            raise InvalidKeyStateError("Trace must record GENERATED_DATA_KEY")
        self._set_data_key(key, trace)

    def add_encrypted_data_key(self, edk: EncryptedDataKey, trace: KeyringTrace) -> None:
        """
        Append an EDK for the current data key.

        Raises:
            InvalidKeyStateError: If no data key is set yet
        """
        if self._data_key is None:
            raise InvalidKeyStateError("Cannot add an EDK before the data key is set")
        if not isinstance(edk, EncryptedDataKey):
            raise InvalidKeyStateError("Unsupported EncryptedDataKey type")
        if not trace.flags & KeyringTraceFlag.ENCRYPTED_DATA_KEY:
            raise InvalidKeyStateError("Trace must record ENCRYPTED_DATA_KEY")
        self._encrypted_data_keys.append(edk)
        self._trace.append(trace)


class DecryptionMaterial(_Material):
    """
    Material for decrypting one message.

    Becomes valid once a keyring recovers the data key; the key slot is
    never overwritten after that.
    """

    def has_valid_key(self) -> bool:
        return self._data_key is not None

    def set_unencrypted_data_key(self, key: SecureKey, trace: KeyringTrace) -> None:
        """
        Set the recovered data key.

        Raises:
            InvalidKeyStateError: If the material is already valid or the
                key has the wrong length
        """
        if not trace.flags & KeyringTraceFlag.DECRYPTED_DATA_KEY:
            raise InvalidKeyStateError("Trace must record DECRYPTED_DATA_KEY")
        self._set_data_key(key, trace)
