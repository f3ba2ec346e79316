"""
Keyring configuration from environment variables.

Variables (a .env file is loaded first if present):
    ENVELOPE_KEYRING_NAMESPACE   Provider id for the raw AES keyrings
    ENVELOPE_KEYRING_GENERATOR   name:base64key of the generator keyring
    ENVELOPE_KEYRING_CHILDREN    Comma-separated name:base64key entries
    ENVELOPE_KEYRING_LOG_LEVEL   Logging level name (default WARNING)
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple, Union

from dotenv import load_dotenv

from .errors import ConfigError
from .multi_keyring import MultiKeyring
from .raw_aes_keyring import RawAesKeyring

DEFAULT_NAMESPACE = "envelope-keyring"
DEFAULT_LOG_LEVEL = "WARNING"

ENV_NAMESPACE = "ENVELOPE_KEYRING_NAMESPACE"
ENV_GENERATOR = "ENVELOPE_KEYRING_GENERATOR"
ENV_CHILDREN = "ENVELOPE_KEYRING_CHILDREN"
ENV_LOG_LEVEL = "ENVELOPE_KEYRING_LOG_LEVEL"

KeySpec = Tuple[str, bytes]


@dataclass(frozen=True)
class KeyringConfig:
    """Named wrapping keys for a composite of raw AES keyrings."""

    key_namespace: str = DEFAULT_NAMESPACE
    generator: Optional[KeySpec] = None
    children: Tuple[KeySpec, ...] = ()
    log_level: str = DEFAULT_LOG_LEVEL

    def __repr__(self) -> str:
        # Key bytes stay out of logs and tracebacks.
        child_names = [name for name, _ in self.children]
        generator_name = self.generator[0] if self.generator else None
        return (
            f"KeyringConfig(key_namespace={self.key_namespace!r}, "
            f"generator={generator_name!r}, children={child_names!r}, "
            f"log_level={self.log_level!r})"
        )

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[Union[str, Path]] = None,
    ) -> KeyringConfig:
        """
        Load configuration from the environment.

        Args:
            env: Mapping to read instead of os.environ (no .env loading)
            dotenv_path: .env file to load before reading os.environ

        Raises:
            ConfigError: If an entry is malformed or no keys are configured
        """
        if env is None:
            load_dotenv(dotenv_path)
            env = os.environ

        generator_raw = env.get(ENV_GENERATOR, "").strip()
        children_raw = env.get(ENV_CHILDREN, "").strip()

        generator = _parse_key_spec(generator_raw) if generator_raw else None
        children = tuple(
            _parse_key_spec(entry)
            for entry in children_raw.split(",")
            if entry.strip()
        )
        if generator is None and not children:
            raise ConfigError(
                f"{ENV_GENERATOR} or {ENV_CHILDREN} must be set in environment or .env file"
            )

        log_level = env.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"Invalid log level: {log_level}")

        return cls(
            key_namespace=env.get(ENV_NAMESPACE, "").strip() or DEFAULT_NAMESPACE,
            generator=generator,
            children=children,
            log_level=log_level,
        )


def _parse_key_spec(entry: str) -> KeySpec:
    """Parse a `name:base64key` entry."""
    name, sep, encoded = entry.strip().partition(":")
    if not sep or not name or not encoded:
        raise ConfigError("Key entries must have the form name:base64key")
    try:
        key = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise ConfigError(f"Key {name!r} is not valid base64")
    return name, key


def build_keyring(config: KeyringConfig) -> MultiKeyring:
    """
    Build a MultiKeyring of raw AES keyrings from configuration.

    Raises:
        ConfigError: If a wrapping key has an invalid size
    """
    generator = None
    if config.generator is not None:
        name, key = config.generator
        generator = RawAesKeyring(config.key_namespace, name, key)

    children = [
        RawAesKeyring(config.key_namespace, name, key) for name, key in config.children
    ]
    return MultiKeyring(generator=generator, children=children)


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Send envelope_keyring log records to stderr at `level`."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("envelope_keyring").setLevel(level)
