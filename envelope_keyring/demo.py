"""
Multi-keyring demo CLI.

Usage:
    envelope-keyring-demo

Or run directly:
    python -m envelope_keyring.demo

Setup:
    Set ENVELOPE_KEYRING_GENERATOR and/or ENVELOPE_KEYRING_CHILDREN in the
    environment or a .env file (see envelope_keyring.config).
"""

from __future__ import annotations

import asyncio
import sys
import time

from envelope_keyring.config import KeyringConfig, build_keyring, configure_logging
from envelope_keyring.crypto import SecureKey
from envelope_keyring.errors import ConfigError
from envelope_keyring.materials import (
    DecryptionMaterial,
    EncryptionMaterial,
    KeyringTrace,
    KeyringTraceFlag,
)
from envelope_keyring.multi_keyring import MultiKeyring
from envelope_keyring.suites import AES_256_GCM


async def run_demo(config: KeyringConfig) -> bool:
    """
    Encrypt one data key under every configured key, then decrypt it
    through the composite and through each member on its own.

    Returns:
        True if every decryption recovered the data key
    """
    keyring = build_keyring(config)
    context = {"purpose": "envelope-keyring-demo"}

    print("=== Multi-Keyring Demo ===\n")
    print(f"Namespace: {config.key_namespace}")
    print(f"Generator: {config.generator[0] if config.generator else '(none)'}")
    print(f"Children:  {', '.join(name for name, _ in config.children) or '(none)'}\n")

    # ========================================================================
    # Demo 1: Encrypt under all members
    # ========================================================================
    print("+" + "-" * 68 + "+")
    print("|  Demo 1: Encrypt Data Key                                          |")
    print("+" + "-" * 68 + "+")

    encryption = EncryptionMaterial(AES_256_GCM, context)
    if keyring.generator is None:
        # A child-only composite needs a data key from the caller.
        encryption.set_unencrypted_data_key(
            SecureKey.generate(AES_256_GCM.key_length),
            KeyringTrace("caller", "demo", KeyringTraceFlag.GENERATED_DATA_KEY),
        )

    encrypt_start = time.perf_counter()
    await keyring.on_encrypt(encryption, context)
    encrypt_time = time.perf_counter() - encrypt_start

    print(f"[OK] {len(encryption.encrypted_data_keys)} EDKs produced")
    for edk in encryption.encrypted_data_keys:
        print(f"  - {edk.provider_id}/{edk.provider_info}: {len(edk.encrypted_data_key)} bytes")
    print(f"[PERF] Encryption: {encrypt_time * 1000:.3f}ms\n")

    # ========================================================================
    # Demo 2: Decrypt through the composite and each member
    # ========================================================================
    print("+" + "-" * 68 + "+")
    print("|  Demo 2: Decrypt Data Key                                          |")
    print("+" + "-" * 68 + "+")

    members = [("composite", keyring)]
    if keyring.generator is not None:
        members.append((f"generator {config.generator[0]}", keyring.generator))
    members.extend(
        (f"child {name}", child) for (name, _), child in zip(config.children, keyring.children)
    )

    all_ok = True
    for label, member in members:
        # Each member runs alone through a one-child composite so failures
        # are suppressed the same way.
        runner = member if isinstance(member, MultiKeyring) else MultiKeyring(children=[member])
        decryption = DecryptionMaterial(AES_256_GCM, context)

        decrypt_start = time.perf_counter()
        await runner.on_decrypt(decryption, encryption.encrypted_data_keys, context)
        decrypt_time = time.perf_counter() - decrypt_start

        ok = (
            decryption.has_valid_key()
            and decryption.unencrypted_data_key == encryption.unencrypted_data_key
        )
        all_ok = all_ok and ok
        status = "[OK]" if ok else "[ERROR]"
        print(f"{status} {label}: {decrypt_time * 1000:.3f}ms")

    print("\n" + "=" * 70)
    print("                    DEMO COMPLETE" if all_ok else "                    DEMO FAILED")
    print("=" * 70 + "\n")
    return all_ok


def main() -> None:
    """CLI entry point for envelope-keyring-demo command."""
    try:
        config = KeyringConfig.from_env()
        configure_logging(config.log_level)
        ok = asyncio.run(run_demo(config))
    except ConfigError as e:
        print(f"ERROR: {e}")
        sys.exit(1)
    if not ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
