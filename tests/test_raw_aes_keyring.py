"""
Tests for the raw AES keyring and AES-GCM helpers.
"""

from __future__ import annotations

import pytest

from conftest import CONTEXT
from envelope_keyring import (
    AES_128_GCM,
    AES_256_GCM,
    AesGcmCipher,
    ConfigError,
    CryptoError,
    DecryptionMaterial,
    EncryptedData,
    EncryptedDataKey,
    EncryptionMaterial,
    KeyringTraceFlag,
    RawAesKeyring,
    SecureKey,
    SerializationError,
    serialize_encryption_context,
)
from envelope_keyring.crypto import NONCE_SIZE, TAG_SIZE


class TestRawAesKeyring:
    @pytest.mark.parametrize("size", [15, 20, 64])
    def test_invalid_wrapping_key_size(self, size: int) -> None:
        with pytest.raises(ConfigError):
            RawAesKeyring("ns", "name", b"\x00" * size)

    def test_names_required(self) -> None:
        with pytest.raises(ConfigError):
            RawAesKeyring("", "name", SecureKey.generate())
        with pytest.raises(ConfigError):
            RawAesKeyring("ns", "", SecureKey.generate())

    def test_accepts_raw_bytes(self) -> None:
        keyring = RawAesKeyring("ns", "name", b"\x01" * 16)
        assert keyring.key_namespace == "ns"
        assert keyring.key_name == "name"
        assert repr(keyring) == "RawAesKeyring('ns', 'name')"

    async def test_generates_and_wraps(self, primary_keyring: RawAesKeyring) -> None:
        material = EncryptionMaterial(AES_128_GCM, CONTEXT)

        await primary_keyring.on_encrypt(material)

        assert len(material.unencrypted_data_key) == 16
        (edk,) = material.encrypted_data_keys
        assert edk.provider_id == "acme"
        assert edk.provider_info == "primary"
        assert len(edk.encrypted_data_key) == NONCE_SIZE + 16 + TAG_SIZE
        assert [trace.flags for trace in material.keyring_trace] == [
            KeyringTraceFlag.GENERATED_DATA_KEY,
            KeyringTraceFlag.ENCRYPTED_DATA_KEY,
        ]

    async def test_wraps_existing_key_without_generating(
        self,
        primary_keyring: RawAesKeyring,
        backup_keyring: RawAesKeyring,
    ) -> None:
        material = EncryptionMaterial(AES_256_GCM, CONTEXT)
        await primary_keyring.on_encrypt(material)
        data_key = material.unencrypted_data_key

        await backup_keyring.on_encrypt(material)

        assert material.unencrypted_data_key is data_key
        assert len(material.encrypted_data_keys) == 2

    async def test_unwraps_own_edk(self, primary_keyring: RawAesKeyring) -> None:
        encryption = EncryptionMaterial(AES_256_GCM, CONTEXT)
        await primary_keyring.on_encrypt(encryption)

        decryption = DecryptionMaterial(AES_256_GCM, CONTEXT)
        await primary_keyring.on_decrypt(decryption, encryption.encrypted_data_keys)

        assert decryption.has_valid_key()
        assert decryption.unencrypted_data_key == encryption.unencrypted_data_key
        assert decryption.keyring_trace[0].flags == KeyringTraceFlag.DECRYPTED_DATA_KEY

    async def test_ignores_foreign_edks(
        self,
        primary_keyring: RawAesKeyring,
        backup_keyring: RawAesKeyring,
    ) -> None:
        encryption = EncryptionMaterial(AES_256_GCM, CONTEXT)
        await primary_keyring.on_encrypt(encryption)

        decryption = DecryptionMaterial(AES_256_GCM, CONTEXT)
        await backup_keyring.on_decrypt(decryption, encryption.encrypted_data_keys)

        assert not decryption.has_valid_key()

    async def test_context_mismatch_leaves_material_unresolved(
        self, primary_keyring: RawAesKeyring
    ) -> None:
        encryption = EncryptionMaterial(AES_256_GCM, CONTEXT)
        await primary_keyring.on_encrypt(encryption)

        decryption = DecryptionMaterial(AES_256_GCM, {"tenant": "someone-else"})
        await primary_keyring.on_decrypt(decryption, encryption.encrypted_data_keys)

        assert not decryption.has_valid_key()

    async def test_skips_corrupt_edk(self, primary_keyring: RawAesKeyring) -> None:
        encryption = EncryptionMaterial(AES_256_GCM, CONTEXT)
        await primary_keyring.on_encrypt(encryption)
        corrupt = EncryptedDataKey("acme", "primary", b"\x00" * 8)

        decryption = DecryptionMaterial(AES_256_GCM, CONTEXT)
        await primary_keyring.on_decrypt(
            decryption, [corrupt, *encryption.encrypted_data_keys]
        )

        assert decryption.unencrypted_data_key == encryption.unencrypted_data_key


class TestAesGcmCipher:
    def test_round_trip_with_aad(self) -> None:
        key = SecureKey.generate()
        encrypted = AesGcmCipher.encrypt(key, b"data key", b"aad")

        blob = encrypted.to_aead_blob()
        assert AesGcmCipher.decrypt(key, EncryptedData.from_aead_blob(blob), b"aad") == b"data key"

    def test_wrong_aad_fails_generically(self) -> None:
        key = SecureKey.generate()
        encrypted = AesGcmCipher.encrypt(key, b"data key", b"aad")

        with pytest.raises(CryptoError, match="^Decryption failed$"):
            AesGcmCipher.decrypt(key, encrypted, b"other")

    def test_invalid_key_size(self) -> None:
        with pytest.raises(CryptoError, match="Invalid key size"):
            AesGcmCipher.encrypt(SecureKey(b"\x00" * 10), b"data")

    def test_short_blob_rejected(self) -> None:
        with pytest.raises(CryptoError, match="too small"):
            EncryptedData.from_aead_blob(b"\x00" * (NONCE_SIZE + TAG_SIZE - 1))


class TestSecureKey:
    def test_repr_redacted(self) -> None:
        assert repr(SecureKey.generate()) == "SecureKey([REDACTED])"

    def test_equality_by_value(self) -> None:
        key = SecureKey.generate(16)
        assert key == SecureKey(key.as_bytes())
        assert key != SecureKey.generate(16)

    def test_rejects_non_bytes(self) -> None:
        with pytest.raises(CryptoError):
            SecureKey("not bytes")


class TestSerializeEncryptionContext:
    def test_canonical_order(self) -> None:
        assert serialize_encryption_context({"b": "2", "a": "1"}) == b'{"a":"1","b":"2"}'
        assert serialize_encryption_context({}) == b"{}"

    def test_non_string_rejected(self) -> None:
        with pytest.raises(SerializationError):
            serialize_encryption_context({"count": 1})
