"""
Pytest configuration and fixtures for keyring tests.
"""

from __future__ import annotations

from typing import List, Mapping, Optional, Sequence

import pytest

from envelope_keyring import (
    AES_256_GCM,
    DecryptionMaterial,
    EncryptedDataKey,
    EncryptionMaterial,
    Keyring,
    KeyringTrace,
    KeyringTraceFlag,
    RawAesKeyring,
    SecureKey,
)

CONTEXT = {"tenant": "acme", "purpose": "test"}


class RecordingKeyring(Keyring):
    """
    Scripted keyring that records calls.

    On encrypt it optionally generates a data key, then appends one EDK
    named after itself and remembers which EDKs it saw first. On decrypt it
    either raises `decrypt_error` or, if `decrypts` is set, sets a data key.
    """

    def __init__(
        self,
        name: str,
        generates: bool = False,
        decrypts: bool = False,
        decrypt_error: Optional[Exception] = None,
        encrypt_error: Optional[Exception] = None,
        calls: Optional[List[str]] = None,
    ) -> None:
        self.name = name
        self.generates = generates
        self.decrypts = decrypts
        self.decrypt_error = decrypt_error
        self.encrypt_error = encrypt_error
        self.calls = calls if calls is not None else []
        self.encrypt_calls = 0
        self.decrypt_calls = 0
        self.seen_edks: List[str] = []

    def __repr__(self) -> str:
        return f"RecordingKeyring({self.name!r})"

    def _trace(self, flags: KeyringTraceFlag) -> KeyringTrace:
        return KeyringTrace("recording", self.name, flags)

    async def _on_encrypt(
        self,
        material: EncryptionMaterial,
        context: Optional[Mapping[str, str]],
    ) -> EncryptionMaterial:
        self.encrypt_calls += 1
        self.calls.append(f"encrypt:{self.name}")
        if self.encrypt_error is not None:
            raise self.encrypt_error
        self.seen_edks = [edk.provider_info for edk in material.encrypted_data_keys]
        if self.generates and not material.has_unencrypted_data_key:
            material.set_unencrypted_data_key(
                SecureKey.generate(material.suite.key_length),
                self._trace(KeyringTraceFlag.GENERATED_DATA_KEY),
            )
        if material.has_unencrypted_data_key:
            material.add_encrypted_data_key(
                EncryptedDataKey("recording", self.name, self.name.encode()),
                self._trace(KeyringTraceFlag.ENCRYPTED_DATA_KEY),
            )
        return material

    async def _on_decrypt(
        self,
        material: DecryptionMaterial,
        encrypted_data_keys: Sequence[EncryptedDataKey],
        context: Optional[Mapping[str, str]],
    ) -> DecryptionMaterial:
        self.decrypt_calls += 1
        self.calls.append(f"decrypt:{self.name}")
        if self.decrypt_error is not None:
            raise self.decrypt_error
        if self.decrypts:
            material.set_unencrypted_data_key(
                SecureKey.generate(material.suite.key_length),
                self._trace(KeyringTraceFlag.DECRYPTED_DATA_KEY),
            )
        return material


@pytest.fixture
def context() -> dict:
    return dict(CONTEXT)


@pytest.fixture
def encryption_material() -> EncryptionMaterial:
    return EncryptionMaterial(AES_256_GCM, CONTEXT)


@pytest.fixture
def decryption_material() -> DecryptionMaterial:
    return DecryptionMaterial(AES_256_GCM, CONTEXT)


@pytest.fixture
def primary_keyring() -> RawAesKeyring:
    return RawAesKeyring("acme", "primary", SecureKey.generate())


@pytest.fixture
def backup_keyring() -> RawAesKeyring:
    return RawAesKeyring("acme", "backup", SecureKey.generate())
