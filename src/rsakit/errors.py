"""Exception hierarchy for rsakit.

Every error derives from `RSAKitError` as well as from the builtin that the surrounding code would otherwise raise,
so code catching `ValueError` or `RuntimeError` keeps working.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class RSAKitError(Exception):
    """Base class of all rsakit errors."""


class InvalidBitWidth(RSAKitError, ValueError):
    """Requested prime or modulus size is outside the supported range."""


class PrimeGenerationExhausted(RSAKitError, RuntimeError):
    """The prime search ran out of attempts."""


class DegenerateKeyPair(RSAKitError, RuntimeError):
    """Both primes of a key pair came out equal. Key generation must be restarted."""


class ExponentNotInvertible(RSAKitError, RuntimeError):
    """A fixed public exponent has no inverse modulo lcm(p-1, q-1)."""


class CiphertextOutOfRange(RSAKitError, ValueError):
    """Representative not in [0, mod-1]."""


class InvalidSignature(RSAKitError, ValueError):
    """Signature does not match the message."""


class MalformedEnvelope(RSAKitError, ValueError):
    """Envelope could not be decoded or carries an unexpected algorithm."""
