"""
Composite keyring combining a generator and child keyrings.

Encryption runs the generator, then every child, one after another on the
same material. Decryption tries the generator and then each child in order
until the material holds a valid key; a failing member never stops the
search.

Members are awaited strictly in sequence, never concurrently. A child may
look at the EDKs already appended by earlier members before adding its own.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Mapping, Optional, Sequence, Tuple

from .errors import ConfigError, KeyringError
from .keyring import Keyring
from .materials import DecryptionMaterial, EncryptedDataKey, EncryptionMaterial
from .suites import SuiteFamily

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecryptAttempt:
    """Outcome of asking one member keyring to decrypt."""

    keyring: Keyring
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class MultiKeyring(Keyring):
    """
    Keyring made of an optional generator and an ordered tuple of children.

    Instances are immutable once constructed and may be reused for any
    number of operations. A MultiKeyring is itself a Keyring, so it can be
    the generator or a child of another MultiKeyring.
    """

    def __init__(
        self,
        generator: Optional[Keyring] = None,
        children: Optional[Iterable[Keyring]] = None,
        family: Optional[SuiteFamily] = None,
        on_suppressed_error: Optional[
            Callable[[DecryptAttempt], Optional[Awaitable[None]]]
        ] = None,
    ) -> None:
        """
        Args:
            generator: Keyring that generates the data key on encrypt
            children: Keyrings that add EDKs on encrypt, in order
            family: Suite family of the members (defaults to the first member's)
            on_suppressed_error: Called with each failed decrypt attempt; may be
                a plain function or a coroutine function. Errors it raises are
                logged and the search continues.

        Raises:
            ConfigError: If there are no members, a member is not a Keyring,
                or members belong to different families
        """
        try:
            children = tuple(children) if children is not None else ()
        except TypeError:
            raise ConfigError("Child must be a Keyring")

        if generator is None and not children:
            raise ConfigError("Noop MultiKeyring is not supported.")
        if generator is not None and not isinstance(generator, Keyring):
            raise ConfigError("Generator must be a Keyring")
        if not all(isinstance(child, Keyring) for child in children):
            raise ConfigError("Child must be a Keyring")

        members = ((generator,) if generator is not None else ()) + children
        if family is None:
            family = members[0].family
        for member in members:
            if member.family is not family:
                raise ConfigError(
                    f"Keyring {member!r} serves {member.family}, expected {family}"
                )

        object.__setattr__(self, "_generator", generator)
        object.__setattr__(self, "_children", children)
        object.__setattr__(self, "family", family)
        object.__setattr__(self, "_on_suppressed_error", on_suppressed_error)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def generator(self) -> Optional[Keyring]:
        return self._generator

    @property
    def children(self) -> Tuple[Keyring, ...]:
        return self._children

    def __repr__(self) -> str:
        return (
            f"MultiKeyring(generator={self._generator!r}, "
            f"children={list(self._children)!r})"
        )

    async def _on_encrypt(
        self,
        material: EncryptionMaterial,
        context: Optional[Mapping[str, str]],
    ) -> EncryptionMaterial:
        if self._generator is not None:
            material = await self._generator.on_encrypt(material, context)
            if not material.has_unencrypted_data_key:
                raise KeyringError("Generator keyring did not generate key material.")
        elif not material.has_unencrypted_data_key:
            raise KeyringError(
                "Only keyrings explicitly designated as generators can generate material."
            )

        for keyring in self._children:
            await keyring.on_encrypt(material, context)

        # Keyrings only append to the material they are given, so it already
        # carries every EDK.
        return material

    async def _on_decrypt(
        self,
        material: DecryptionMaterial,
        encrypted_data_keys: Sequence[EncryptedDataKey],
        context: Optional[Mapping[str, str]],
    ) -> DecryptionMaterial:
        for keyring in self._members():
            if material.has_valid_key():
                return material

            attempt = await self._attempt_decrypt(
                keyring, material, encrypted_data_keys, context
            )
            if not attempt.succeeded:
                await self._suppress(attempt)

        return material

    def _members(self) -> Tuple[Keyring, ...]:
        if self._generator is None:
            return self._children
        return (self._generator,) + self._children

    @staticmethod
    async def _attempt_decrypt(
        keyring: Keyring,
        material: DecryptionMaterial,
        encrypted_data_keys: Sequence[EncryptedDataKey],
        context: Optional[Mapping[str, str]],
    ) -> DecryptAttempt:
        try:
            await keyring.on_decrypt(material, encrypted_data_keys, context)
        except Exception as e:
            # Failures never stop the search.
            return DecryptAttempt(keyring=keyring, error=e)
        return DecryptAttempt(keyring=keyring)

    async def _suppress(self, attempt: DecryptAttempt) -> None:
        logger.debug(
            "Suppressed decrypt failure from %r: %s: %s",
            attempt.keyring,
            type(attempt.error).__name__,
            attempt.error,
        )
        if self._on_suppressed_error is None:
            return
        try:
            result = self._on_suppressed_error(attempt)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("on_suppressed_error hook failed for %r", attempt.keyring)
