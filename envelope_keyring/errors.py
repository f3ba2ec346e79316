"""
Exception classes for keyring operations.

ConfigError is raised while building keyrings, KeyringError while running them.
"""

from __future__ import annotations


class EnvelopeError(Exception):
    """Base exception for all envelope keyring operations."""

    pass


class ConfigError(EnvelopeError):
    """Invalid keyring construction or environment configuration."""

    pass


class KeyringError(EnvelopeError):
    """Keyring operation failed or a keyring broke the material contract."""

    pass


class InvalidKeyStateError(EnvelopeError):
    """Material is in an invalid state for the requested operation."""

    pass


class CryptoError(EnvelopeError):
    """Cryptographic operation failed (wrapping, unwrapping, key generation)."""

    pass


class SerializationError(EnvelopeError):
    """Serialization or deserialization error."""

    pass
