"""
Algorithm suites known to the keyring layer.

Only what keyrings need is modelled here: the data key length and the
family a suite belongs to. A keyring serves exactly one family.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict

from .errors import ConfigError


class SuiteFamily(Enum):
    """Capability family shared by a suite and the keyrings serving it."""

    AES_GCM = "AES_GCM"
    CHACHA20_POLY1305 = "CHACHA20_POLY1305"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class AlgorithmSuite:
    """Algorithm suite identifier and data key parameters."""

    suite_id: int
    name: str
    family: SuiteFamily
    key_length: int  # data key length in bytes


AES_128_GCM = AlgorithmSuite(0x0014, "AES_128_GCM_IV12_TAG16", SuiteFamily.AES_GCM, 16)
AES_192_GCM = AlgorithmSuite(0x0046, "AES_192_GCM_IV12_TAG16", SuiteFamily.AES_GCM, 24)
AES_256_GCM = AlgorithmSuite(0x0078, "AES_256_GCM_IV12_TAG16", SuiteFamily.AES_GCM, 32)
CHACHA20_POLY1305 = AlgorithmSuite(
    0x0200, "CHACHA20_POLY1305_IV12_TAG16", SuiteFamily.CHACHA20_POLY1305, 32
)

_SUITES: Dict[int, AlgorithmSuite] = {
    suite.suite_id: suite
    for suite in (AES_128_GCM, AES_192_GCM, AES_256_GCM, CHACHA20_POLY1305)
}


def get_suite(suite_id: int) -> AlgorithmSuite:
    """
    Look up a suite by its numeric identifier.

    Raises:
        ConfigError: If the suite id is not registered
    """
    try:
        return _SUITES[suite_id]
    except KeyError:
        raise ConfigError(f"Unsupported algorithm suite: {suite_id:#06x}")
