"""Provides core RSA functionalities: key encapsulation, signing and verification.

Facilitates "textbook" RSA with two fixed public exponents. Exponent 5 encapsulates a random 256-bit symmetric key,
exponent 3 verifies signatures. Signatures are not computed on a raw digest: the digest of the message seeds a
deterministic stream, and the first modulus-sized chunk of that stream, reduced modulo N, is what gets signed.

Keys can be given as plain `(mod, expo)` tuples or as key objects. The key objects additionally wrap the transmitted
integers in a small base64 DER envelope.

Typical usage example:

    pk = RSAPrivKey.generate(2048)
    k, c = pk.pub_encrypt.encapsulate()
    k2 = pk.decapsulate(c)  # k, unless the drawn preimage exceeded the modulus
    sig = pk.sign("Hi there!")
    assert pk.pub_verify.verify("Hi there!", sig)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
import logging
from typing import NamedTuple, Union

from pyasn1 import error
from pyasn1.codec.der import decoder
from pyasn1.codec.der import encoder
from pyasn1.type import namedtype
from pyasn1.type import univ
from pyasn1_modules import rfc8017

from rsakit import entropy
from rsakit import keygen
from rsakit.errors import CiphertextOutOfRange
from rsakit.errors import InvalidSignature
from rsakit.errors import MalformedEnvelope
from rsakit.keygen import Exponent

logger = logging.getLogger(__name__)

# No registered OIDs exist for these schemes, so we branch off rsaEncryption by the public exponent in use.
id_RSAKEM_seeded = rfc8017.rsaEncryption + (int(Exponent.ENCRYPT),)
id_RSASSA_seeded = rfc8017.rsaEncryption + (int(Exponent.VERIFY),)


class RSAEnvelope(univ.Sequence):
    """Carrier for a single transmitted RSA integer (ciphertext or signature)."""
    componentType = namedtype.NamedTypes(
        namedtype.NamedType("algorithm", rfc8017.AlgorithmIdentifier()),
        namedtype.NamedType("value", univ.OctetString()),
    )


class EncapsulatedKey(NamedTuple):
    """Result of a key encapsulation. Only `ciphertext` is ever transmitted."""
    key: bytes
    ciphertext: int


class RSAKey:
    """The overall RSA key class implementation.

    Holds the "core" components mandatory in any RSA key half.

    Attributes:
        mod: The modulus of the keypair.
        expo: The exponent of the key, whether private or public.
        bsize: Length of the modulus in bytes.
    """

    def __init__(self, mod: int, expo: int) -> None:
        self.mod = mod
        self.expo = expo
        self.bsize = (self.mod.bit_length() + 7) // 8

    def __repr__(self) -> str:
        return f"{type(self).__name__}(bits={self.mod.bit_length()}, expo={self.expo.bit_length()} bits)"

    def c_rsa(self, message: int) -> int:
        """Performs core RSA operation. (Encrypt/Decrypt/Sign/Verify).

        Args:
            message: The int-marshalled message.

        Returns:
            `message ** expo mod mod`.

        Raises:
            CiphertextOutOfRange: If the message is out of range for the current key.
        """
        if not 0 <= message < self.mod:
            raise CiphertextOutOfRange("Message representative must be in range [0, mod-1]")
        return pow(message, self.expo, self.mod)


class RSAPubKey(RSAKey):
    """Public half of the key pair: either `(N, 3)` for verification or `(N, 5)` for encryption."""

    def encapsulate(self, rng: entropy.RandomSource | None = None) -> tuple[bytes, bytes]:
        """Generate a fresh symmetric key and encapsulate it under this key.

        Args:
            rng: Source of randomness. Defaults to a fresh `SecureRandom`.

        Returns:
            Tuple of (symmetric key, base64 encoded envelope holding the ciphertext).
        """
        k, c = encrypt_symmetric_key(self, rng)
        return k, wrap_value(c, self.bsize, id_RSAKEM_seeded)

    def verify(self, message: bytes | str | int, signature: str | bytes) -> bool:
        """Verify the enveloped signature of the message.

        Args:
            message: The message the signature is supposed to cover.
            signature: The base64 encoded signature envelope, as produced by `RSAPrivKey.sign`.

        Returns:
            True if the signature matches the message, False otherwise.
        """
        try:
            verify(self, message, unwrap_value(signature, id_RSASSA_seeded))
        except (InvalidSignature, MalformedEnvelope):
            return False
        return True


class RSACrtKey(RSAKey):
    """A private exponent together with the primes, accelerating `c_rsa` through the CRT.

    Attributes:
        p: Private Prime 1.
        q: Private Prime 2.
        exp1: CRT Component dmp1.
        exp2: CRT Component dmq1.
        coeff: CRT Component iqmp.
    """

    def __init__(self, mod: int, expo: int, p: int, q: int) -> None:
        super().__init__(mod, expo)
        self.p = p
        self.q = q
        self.exp1 = expo % (p - 1)
        self.exp2 = expo % (q - 1)
        self.coeff = pow(q, -1, p)

    def c_rsa(self, message: int) -> int:
        """Performs core RSA operation accelerated with CRT. (Decrypt/Sign)

        Args:
            message: The int-marshalled message.

        Returns:
            `message ** expo mod mod`.

        Raises:
            CiphertextOutOfRange: If the message is out of range for the current key.
        """
        if not 0 <= message < self.mod:
            raise CiphertextOutOfRange("Message representative must be in range [0, mod-1]")
        m_1 = pow(message, self.exp1, self.p)
        m_2 = pow(message, self.exp2, self.q)
        h = ((m_1 - m_2) * self.coeff) % self.p
        return m_2 + self.q * h


class RSAPrivKey:
    """RSA Private Key holding both private exponents.

    Attributes:
        p: Private Prime 1.
        q: Private Prime 2.
        mod: The modulus `p * q`.
        d3: Signing exponent, the inverse of 3 modulo lcm(p-1, q-1).
        d5: Decryption exponent, the inverse of 5 modulo lcm(p-1, q-1).
        bsize: Length of the modulus in bytes.
        pub_verify: Public key `(mod, 3)`.
        pub_encrypt: Public key `(mod, 5)`.
        signing_key: CRT key `(mod, d3)`.
        decryption_key: CRT key `(mod, d5)`.
    """

    def __init__(self, p: int, q: int, mod: int, d3: int, d5: int) -> None:
        self.p = p
        self.q = q
        self.mod = mod
        self.d3 = d3
        self.d5 = d5
        self.bsize = (mod.bit_length() + 7) // 8
        self.pub_verify = RSAPubKey(mod, Exponent.VERIFY)
        self.pub_encrypt = RSAPubKey(mod, Exponent.ENCRYPT)
        self.signing_key = RSACrtKey(mod, d3, p, q)
        self.decryption_key = RSACrtKey(mod, d5, p, q)

    def __repr__(self) -> str:
        return f"RSAPrivKey(bits={self.mod.bit_length()})"

    def as_tuple(self) -> tuple[int, int, int, int, int]:
        """The key as `(p, q, mod, d3, d5)`."""
        return self.p, self.q, self.mod, self.d3, self.d5

    def decapsulate(self, envelope: str | bytes) -> bytes:
        """Recover the symmetric key from an envelope made by `RSAPubKey.encapsulate`.

        Raises:
            MalformedEnvelope: If the envelope is not a key encapsulation envelope.
            CiphertextOutOfRange: If the enclosed ciphertext is not below the modulus.
        """
        return decrypt_symmetric_key(self.decryption_key, unwrap_value(envelope, id_RSAKEM_seeded))

    def sign(self, message: bytes | str | int) -> str:
        """Signs the message, returning the signature as a base64 encoded envelope."""
        return wrap_value(sign(self.signing_key, message), self.bsize, id_RSASSA_seeded).decode("ascii")

    @classmethod
    def generate(cls, size: int, rng: entropy.RandomSource | None = None) -> "RSAPrivKey":
        """Generates an RSA Private Key.

        Args:
            size: The size of the modulus in bits.
            rng: Source of randomness. Defaults to a fresh `SecureRandom`.

        Returns:
            A new generated RSA Private Key.
        """
        return cls(*keygen.generate_key_pair(size, rng))


KeyLike = Union[RSAKey, RSAPrivKey, tuple[int, int]]


def _as_key(key: KeyLike, role: Exponent, private: bool = False) -> RSAKey:
    """Resolve a tuple or key object to the key half serving `role`."""
    if isinstance(key, RSAKey):
        return key
    if isinstance(key, RSAPrivKey):
        if role == Exponent.VERIFY:
            return key.signing_key if private else key.pub_verify
        return key.decryption_key if private else key.pub_encrypt
    mod, expo = key
    return RSAKey(mod, expo)


def bytes_to_integer(msg: bytes) -> int:
    """Converts a byte string to a non-negative integer (big-endian)."""
    return int.from_bytes(msg, byteorder="big", signed=False)


def integer_to_bytes(msg: int, fixedlen: int) -> bytes:
    """Converts an integer to a fixed-length big-endian byte string."""
    return msg.to_bytes(fixedlen, byteorder="big", signed=False)


def encode_unsigned(value: int) -> bytes:
    """Minimal unsigned big-endian encoding of `value`. Zero encodes as a single zero byte.

    Raises:
        ValueError: If `value` is negative.
    """
    if value < 0:
        raise ValueError("Only non-negative integers have an unsigned encoding.")
    return integer_to_bytes(value, max(1, (value.bit_length() + 7) // 8))


def encode_message(message: bytes | str | int) -> bytes:
    """Marshal a message into bytes: integers by `encode_unsigned`, strings as UTF-8."""
    if isinstance(message, int):
        return encode_unsigned(message)
    if isinstance(message, str):
        return message.encode("utf-8")
    return bytes(message)


def encrypt_symmetric_key(public_key: KeyLike, rng: entropy.RandomSource | None = None) -> EncapsulatedKey:
    """Generate a random symmetric key and RSA-encrypt its preimage.

    A value `R` is drawn uniformly from `[0, 2**bits - 1]` where `bits` is the bit length of the modulus. The key is
    SHA-256 of `R`, the ciphertext is `R ** E mod N`. `R` can exceed the modulus, in which case the key is not
    recoverable by `decrypt_symmetric_key`.

    Args:
        public_key: Encryption key `(N, 5)`.
        rng: Source of randomness. Defaults to a fresh `SecureRandom`.

    Returns:
        The symmetric key and the ciphertext.
    """
    key = _as_key(public_key, Exponent.ENCRYPT)
    if rng is None:
        rng = entropy.SecureRandom()
    r = rng.uniform(0, (1 << key.mod.bit_length()) - 1)
    if r >= key.mod:
        logger.debug("Encapsulated preimage exceeds the modulus, key will not round-trip.")
    return EncapsulatedKey(entropy.hash256(encode_unsigned(r)), pow(r, key.expo, key.mod))


def decrypt_symmetric_key(private_key: KeyLike, ciphertext: int) -> bytes:
    """Recover the symmetric key produced by `encrypt_symmetric_key`.

    Args:
        private_key: Decryption key `(N, D5)`.
        ciphertext: The RSA ciphertext.

    Returns:
        The 32-byte symmetric key.

    Raises:
        CiphertextOutOfRange: If the ciphertext is not in `[0, N)`.
    """
    key = _as_key(private_key, Exponent.ENCRYPT, private=True)
    if not 0 <= ciphertext < key.mod:
        raise CiphertextOutOfRange("Ciphertext must be in range [0, mod-1]")
    return entropy.hash256(encode_unsigned(key.c_rsa(ciphertext)))


def message_to_residue(mod: int, message: bytes | str | int) -> int:
    """Map a message to a pseudo-random number modulo `mod`.

    The SHA-256 digest of the message seeds a local `SeededStream`; as many bytes as the modulus has are read from it
    and reduced modulo `mod`. Same inputs always give the same output and no shared random state is touched.
    """
    stream = entropy.SeededStream(entropy.hash256(encode_message(message)))
    return bytes_to_integer(stream.read((mod.bit_length() + 7) // 8)) % mod


def sign(private_key: KeyLike, message: bytes | str | int) -> int:
    """Sign the message: `message_to_residue(N, M) ** D mod N`.

    Args:
        private_key: Signing key `(N, D3)`.
        message: Message to sign.

    Returns:
        The signature, an integer in `[0, N)`.
    """
    key = _as_key(private_key, Exponent.VERIFY, private=True)
    return key.c_rsa(message_to_residue(key.mod, message))


def verify(public_key: KeyLike, message: bytes | str | int, signature: int) -> None:
    """Verify a signature made by `sign`.

    Args:
        public_key: Verification key `(N, 3)`.
        message: The message the signature is supposed to cover.
        signature: The signature.

    Raises:
        InvalidSignature: If the signature does not match the message.
    """
    key = _as_key(public_key, Exponent.VERIFY)
    if not 0 <= signature < key.mod:
        raise InvalidSignature("Signature must be in range [0, mod-1]")
    if key.c_rsa(signature) != message_to_residue(key.mod, message):
        raise InvalidSignature("Signature does not match the message.")


def wrap_value(value: int, size: int, algorithm: univ.ObjectIdentifier) -> bytes:
    """Wraps an integer in a base64 encoded DER envelope.

    Args:
        value: The integer to wrap, at most `size` bytes long.
        size: Byte length the value is padded to, normally the modulus length.
        algorithm: Identifier of the scheme that produced the value.

    Returns:
        The base64 encoded envelope.
    """
    algid = rfc8017.AlgorithmIdentifier()
    algid["algorithm"] = algorithm
    algid["parameters"] = univ.Null("")
    pld = RSAEnvelope()
    pld["algorithm"] = algid
    pld["value"] = integer_to_bytes(value, size)
    return base64.b64encode(encoder.encode(pld))


def unwrap_value(payload: str | bytes, algorithm: univ.ObjectIdentifier) -> int:
    """Unwraps an integer from an envelope made by `wrap_value`.

    Args:
        payload: The base64 encoded envelope.
        algorithm: The scheme identifier the envelope must carry.

    Returns:
        The enclosed integer.

    Raises:
        MalformedEnvelope: If the payload cannot be decoded or names another algorithm.
    """
    try:
        pld, rest = decoder.decode(base64.b64decode(payload, validate=True), asn1Spec=RSAEnvelope())
    except (ValueError, error.PyAsn1Error) as exc:
        raise MalformedEnvelope("Envelope could not be decoded.") from exc
    if rest:
        raise MalformedEnvelope("Trailing data after envelope.")
    if pld["algorithm"]["algorithm"] != algorithm:
        raise MalformedEnvelope("Unknown envelope algorithm.")
    return bytes_to_integer(pld["value"].asOctets())
