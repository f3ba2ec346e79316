"""
Envelope Keyring Library

Keyrings protect the per-message data key of envelope encryption. This
library combines several keyrings into one with MultiKeyring: data keys are
wrapped under every member and can be unwrapped by any of them.

Quick Start
-----------
```python
import asyncio
from envelope_keyring import (
    AES_256_GCM,
    DecryptionMaterial,
    EncryptionMaterial,
    MultiKeyring,
    RawAesKeyring,
    SecureKey,
)

async def main():
    primary = RawAesKeyring("acme", "primary", SecureKey.generate())
    backup = RawAesKeyring("acme", "backup", SecureKey.generate())
    keyring = MultiKeyring(generator=primary, children=[backup])

    context = {"tenant": "acme"}

    # Generate a data key wrapped under both keys
    encryption = EncryptionMaterial(AES_256_GCM, context)
    await keyring.on_encrypt(encryption)

    # Any member can recover it
    decryption = DecryptionMaterial(AES_256_GCM, context)
    await backup.on_decrypt(decryption, encryption.encrypted_data_keys)
    assert decryption.unencrypted_data_key == encryption.unencrypted_data_key

asyncio.run(main())
```

Key Features
------------
- **One generator**: Exactly one keyring creates the data key
- **Sequential fan-out**: Children wrap the key one after another
- **Fallback decryption**: Members are tried in order until one succeeds
- **Fault isolation**: A failing member never aborts decryption
- **Nesting**: A MultiKeyring is a Keyring and can be a member of another
"""

__version__ = "0.1.0"

# =============================================================================
# Crypto Exports
# =============================================================================

from .crypto import (
    AesGcmCipher,
    EncryptedData,
    SecureKey,
    serialize_encryption_context,
)

# =============================================================================
# Error Exports
# =============================================================================

from .errors import (
    ConfigError,
    CryptoError,
    EnvelopeError,
    InvalidKeyStateError,
    KeyringError,
    SerializationError,
)

# =============================================================================
# Suite and Material Exports
# =============================================================================

from .suites import (
    AES_128_GCM,
    AES_192_GCM,
    AES_256_GCM,
    CHACHA20_POLY1305,
    AlgorithmSuite,
    SuiteFamily,
    get_suite,
)

from .materials import (
    DecryptionMaterial,
    EncryptedDataKey,
    EncryptionMaterial,
    KeyringTrace,
    KeyringTraceFlag,
)

# =============================================================================
# Keyring Exports (Primary API)
# =============================================================================

from .keyring import Keyring
from .multi_keyring import DecryptAttempt, MultiKeyring
from .raw_aes_keyring import RawAesKeyring

from .config import KeyringConfig, build_keyring, configure_logging

# =============================================================================
# Public API
# =============================================================================

__all__ = [
    # Version
    "__version__",
    # Crypto
    "AesGcmCipher",
    "EncryptedData",
    "SecureKey",
    "serialize_encryption_context",
    # Errors
    "EnvelopeError",
    "ConfigError",
    "KeyringError",
    "InvalidKeyStateError",
    "CryptoError",
    "SerializationError",
    # Suites
    "AlgorithmSuite",
    "SuiteFamily",
    "AES_128_GCM",
    "AES_192_GCM",
    "AES_256_GCM",
    "CHACHA20_POLY1305",
    "get_suite",
    # Materials
    "EncryptedDataKey",
    "EncryptionMaterial",
    "DecryptionMaterial",
    "KeyringTrace",
    "KeyringTraceFlag",
    # Keyrings (Primary API)
    "Keyring",
    "MultiKeyring",
    "DecryptAttempt",
    "RawAesKeyring",
    # Configuration
    "KeyringConfig",
    "build_keyring",
    "configure_logging",
]
