"""
Keyring that wraps data keys with a locally held AES key.

EDK format:
- provider_id: key namespace
- provider_info: key name
- encrypted_data_key: AEAD blob nonce(12) || wrapped key || tag(16)

The serialized encryption context is the AAD, so an EDK only unwraps under
the context it was created with.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from .crypto import (
    AES_KEY_SIZES,
    AesGcmCipher,
    EncryptedData,
    SecureKey,
    serialize_encryption_context,
)
from .errors import ConfigError, CryptoError
from .keyring import Keyring
from .materials import (
    DecryptionMaterial,
    EncryptedDataKey,
    EncryptionMaterial,
    KeyringTrace,
    KeyringTraceFlag,
)
from .suites import SuiteFamily

logger = logging.getLogger(__name__)


class RawAesKeyring(Keyring):
    """
    AES-GCM keyring over a wrapping key supplied by the application.

    Acts as a generator when the material has no data key yet, otherwise
    only wraps the existing one.
    """

    def __init__(
        self,
        key_namespace: str,
        key_name: str,
        wrapping_key: SecureKey | bytes,
        family: SuiteFamily = SuiteFamily.AES_GCM,
    ) -> None:
        """
        Args:
            key_namespace: Provider id written to EDKs
            key_name: Provider info written to EDKs
            wrapping_key: 16, 24 or 32-byte AES key
            family: Suite family served by this keyring

        Raises:
            ConfigError: If the names are empty or the key size is invalid
        """
        if not key_namespace or not key_name:
            raise ConfigError("Key namespace and key name are required")
        if not isinstance(wrapping_key, SecureKey):
            wrapping_key = SecureKey(wrapping_key)
        if len(wrapping_key) not in AES_KEY_SIZES:
            raise ConfigError(
                f"Wrapping key must be 16, 24 or 32 bytes, got {len(wrapping_key)}"
            )

        self._key_namespace = key_namespace
        self._key_name = key_name
        self._wrapping_key = wrapping_key
        self.family = family

    @property
    def key_namespace(self) -> str:
        return self._key_namespace

    @property
    def key_name(self) -> str:
        return self._key_name

    def __repr__(self) -> str:
        return f"RawAesKeyring({self._key_namespace!r}, {self._key_name!r})"

    def _trace(self, flags: KeyringTraceFlag) -> KeyringTrace:
        return KeyringTrace(
            provider_id=self._key_namespace,
            provider_info=self._key_name,
            flags=flags,
        )

    def _matches(self, edk: EncryptedDataKey) -> bool:
        return (
            edk.provider_id == self._key_namespace
            and edk.provider_info == self._key_name
        )

    async def _on_encrypt(
        self,
        material: EncryptionMaterial,
        context: Optional[Mapping[str, str]],
    ) -> EncryptionMaterial:
        if not material.has_unencrypted_data_key:
            data_key = SecureKey.generate(material.suite.key_length)
            material.set_unencrypted_data_key(
                data_key, self._trace(KeyringTraceFlag.GENERATED_DATA_KEY)
            )

        aad = serialize_encryption_context(material.encryption_context)
        wrapped = AesGcmCipher.encrypt(
            self._wrapping_key, material.unencrypted_data_key.as_bytes(), aad
        )

        material.add_encrypted_data_key(
            EncryptedDataKey(
                provider_id=self._key_namespace,
                provider_info=self._key_name,
                encrypted_data_key=wrapped.to_aead_blob(),
            ),
            self._trace(KeyringTraceFlag.ENCRYPTED_DATA_KEY),
        )
        return material

    async def _on_decrypt(
        self,
        material: DecryptionMaterial,
        encrypted_data_keys: Sequence[EncryptedDataKey],
        context: Optional[Mapping[str, str]],
    ) -> DecryptionMaterial:
        aad = serialize_encryption_context(material.encryption_context)

        for edk in encrypted_data_keys:
            if not self._matches(edk):
                continue
            try:
                wrapped = EncryptedData.from_aead_blob(edk.encrypted_data_key)
                data_key = AesGcmCipher.decrypt(self._wrapping_key, wrapped, aad)
            except CryptoError as e:
                logger.debug("%r could not unwrap EDK: %s", self, e)
                continue

            material.set_unencrypted_data_key(
                SecureKey(data_key), self._trace(KeyringTraceFlag.DECRYPTED_DATA_KEY)
            )
            break

        return material
