"""Textbook RSA primitives with fixed small public exponents.

Provides prime and key-pair generation, encapsulation of a random 256-bit symmetric key under the public exponent 5,
and signatures verified with the public exponent 3 over a hash-seeded pseudo-random mapping of the message.

Typical usage example:

    pk = RSAPrivKey.generate(2048)
    k, c = encrypt_symmetric_key(pk.pub_encrypt)
    k2 = decrypt_symmetric_key(pk, c)  # k, unless the drawn preimage exceeded the modulus
    sig = sign(pk, b"Hi there!")
    verify(pk.pub_verify, b"Hi there!", sig)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from rsakit.entropy import DeterministicRandom
from rsakit.entropy import hash256
from rsakit.entropy import RandomSource
from rsakit.entropy import SecureRandom
from rsakit.entropy import SeededStream
from rsakit.errors import CiphertextOutOfRange
from rsakit.errors import DegenerateKeyPair
from rsakit.errors import ExponentNotInvertible
from rsakit.errors import InvalidBitWidth
from rsakit.errors import InvalidSignature
from rsakit.errors import MalformedEnvelope
from rsakit.errors import PrimeGenerationExhausted
from rsakit.errors import RSAKitError
from rsakit.keygen import check_prime
from rsakit.keygen import Exponent
from rsakit.keygen import generate_key_pair
from rsakit.keygen import generate_prime
from rsakit.keygen import generate_primes
from rsakit.keygen import get_pre_primes
from rsakit.rsa import decrypt_symmetric_key
from rsakit.rsa import EncapsulatedKey
from rsakit.rsa import encrypt_symmetric_key
from rsakit.rsa import message_to_residue
from rsakit.rsa import RSACrtKey
from rsakit.rsa import RSAKey
from rsakit.rsa import RSAPrivKey
from rsakit.rsa import RSAPubKey
from rsakit.rsa import sign
from rsakit.rsa import verify

__version__ = "0.1.0"
__all__ = [
    "RSAKey",
    "RSAPubKey",
    "RSACrtKey",
    "RSAPrivKey",
    "EncapsulatedKey",
    "Exponent",
    "get_pre_primes",
    "check_prime",
    "generate_prime",
    "generate_primes",
    "generate_key_pair",
    "encrypt_symmetric_key",
    "decrypt_symmetric_key",
    "message_to_residue",
    "sign",
    "verify",
    "RandomSource",
    "SecureRandom",
    "SeededStream",
    "DeterministicRandom",
    "hash256",
    "RSAKitError",
    "InvalidBitWidth",
    "PrimeGenerationExhausted",
    "DegenerateKeyPair",
    "ExponentNotInvertible",
    "CiphertextOutOfRange",
    "InvalidSignature",
    "MalformedEnvelope",
]
