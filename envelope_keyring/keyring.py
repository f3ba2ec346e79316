"""
Keyring capability.

A keyring mutates the material it is given and returns that same instance.
Keyring.on_encrypt and Keyring.on_decrypt enforce this; subclasses only
implement _on_encrypt and _on_decrypt.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Mapping, Optional, Sequence

from .errors import KeyringError
from .materials import DecryptionMaterial, EncryptedDataKey, EncryptionMaterial
from .suites import SuiteFamily


class Keyring(ABC):
    """
    Abstract keyring.

    All methods are async so keyrings backed by remote providers can await
    their I/O. `family` is the suite family this keyring serves.
    """

    family: SuiteFamily = SuiteFamily.AES_GCM

    async def on_encrypt(
        self,
        material: EncryptionMaterial,
        context: Optional[Mapping[str, str]] = None,
    ) -> EncryptionMaterial:
        """
        Add a data key and/or EDKs to `material`.

        Raises:
            KeyringError: If the material is unsupported or the keyring
                returned a different material instance
        """
        if not isinstance(material, EncryptionMaterial):
            raise KeyringError("Unsupported type of material.")
        self._check_family(material)

        returned = await self._on_encrypt(material, context)

        if returned is not material:
            raise KeyringError("New EncryptionMaterial instances can not be created.")
        return material

    async def on_decrypt(
        self,
        material: DecryptionMaterial,
        encrypted_data_keys: Iterable[EncryptedDataKey],
        context: Optional[Mapping[str, str]] = None,
    ) -> DecryptionMaterial:
        """
        Try to recover the data key from `encrypted_data_keys` into `material`.

        Does nothing if the material already has a valid key.

        Raises:
            KeyringError: If the material or EDKs are unsupported or the
                keyring returned a different material instance
        """
        if not isinstance(material, DecryptionMaterial):
            raise KeyringError("Unsupported type of material.")
        self._check_family(material)
        try:
            encrypted_data_keys = tuple(encrypted_data_keys)
        except TypeError:
            raise KeyringError("Unsupported EncryptedDataKey type.")
        if not all(isinstance(edk, EncryptedDataKey) for edk in encrypted_data_keys):
            raise KeyringError("Unsupported EncryptedDataKey type.")

        if material.has_valid_key():
            return material

        returned = await self._on_decrypt(material, encrypted_data_keys, context)

        if returned is not material:
            raise KeyringError("New DecryptionMaterial instances can not be created.")
        return material

    def _check_family(self, material: EncryptionMaterial | DecryptionMaterial) -> None:
        if material.suite.family is not self.family:
            raise KeyringError(
                f"{type(self).__name__} serves {self.family}, "
                f"material uses {material.suite.family}"
            )

    @abstractmethod
    async def _on_encrypt(
        self,
        material: EncryptionMaterial,
        context: Optional[Mapping[str, str]],
    ) -> EncryptionMaterial:
        """Mutate and return `material`."""
        ...

    @abstractmethod
    async def _on_decrypt(
        self,
        material: DecryptionMaterial,
        encrypted_data_keys: Sequence[EncryptedDataKey],
        context: Optional[Mapping[str, str]],
    ) -> DecryptionMaterial:
        """Mutate and return `material`."""
        ...
