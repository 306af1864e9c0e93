"""Core Key Generation Utility, mainly focusing on the generation of random large primes.

This module generates the primes and IFC key pairs used by rsakit. Primes are drawn uniformly from their bit range and
filtered so that neither 3 nor 5 divides `p - 1`, which keeps both fixed public exponents invertible. Primality is
decided by trial division followed by a FIPS 186-5 Miller-Rabin test.

Typical usage example:

    p = generate_prime(1024)
    p, q, n, d3, d5 = generate_key_pair(2048)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import enum
import logging
import math
import secrets

from rsakit import entropy
from rsakit.errors import DegenerateKeyPair
from rsakit.errors import ExponentNotInvertible
from rsakit.errors import InvalidBitWidth
from rsakit.errors import PrimeGenerationExhausted

logger = logging.getLogger(__name__)

_SMALL_PRIMES: list[int] = []
_SMALL_PRIMES_CAP: int = 0

PRIME_SIZE_RANGE: tuple[int, int] = (1024, 4096)
KEY_SIZE_RANGE: tuple[int, int] = (2048, 8192)
PRIME_RETRY_FACTOR: int = 100


class Exponent(enum.IntEnum):
    """The fixed public exponents and the role each one plays."""
    VERIFY = 3
    ENCRYPT = 5


def _sieve(n: int = 10000) -> list[int]:
    """Implements the Sieve of Eratosthenes.

    Uses the textbook Sieve of Eratosthenes to generate a set of primes up to `n`.
    Includes memory space optimization and sieving until root.

    Args:
        n: The number up to which to generate primes. Defaults to 10000. Must be >= 0.

    Returns:
        A list of primes up to `n`.
    """
    if n < 2:
        return []
    i_size = (n - 1) // 2
    candidate: list[bool] = [True] * i_size
    for i in range(int(n**0.5) // 2):
        if candidate[i]:
            r = 2 * i + 3
            for j in range((r * r - 3) // 2, i_size, r):
                candidate[j] = False
    return [2] + [(no * 2 + 3) for no, ele in enumerate(candidate) if ele]


def get_pre_primes(n: int = 10000, change: bool = False) -> list[int]:
    """Get the small primes, automatically generating if necessary.

    Uses `_SMALL_PRIMES` as a cache. Regeneration occurs if the requested range is greater, forced by `change` or the
    cache is empty.

    Args:
        n: The number up to which to generate primes. Defaults to 10000. Must be >= 0.
        change: Whether to force a recomputation of primes. Defaults to False.

    Returns:
        List of primes in ascending order. All primes at least to `n` or more unless `change` is True.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    global _SMALL_PRIMES
    global _SMALL_PRIMES_CAP
    if n > _SMALL_PRIMES_CAP or change or not _SMALL_PRIMES:
        _SMALL_PRIMES = _sieve(n)
        _SMALL_PRIMES_CAP = n
    return _SMALL_PRIMES


def _trial_division(no: int, n: int = 10000) -> bool:
    """Check the provided `no` against the known small primes.

    Args:
         no: The number to check. Must be non-negative.
         n: The number up to which small primes are used. Defaults to 10000.

    Returns:
        False if `no` cannot be prime, True otherwise.
    """
    if no < 2:
        return False
    for prime in get_pre_primes(n):
        if prime**2 > no:
            return True
        if no % prime == 0:
            return False
    return True


def _miller_rabin(w: int, iters: int) -> bool:
    """Perform Miller-Rabin primality test as specified in FIPS 186-5.

    Witnesses come from `secrets`, independent of any `RandomSource` used by the caller.

    Args:
        w: Odd integer to be tested.
        iters: Number of Miller-Rabin iterations to perform.

    Returns:
        True if `w` is probably prime, False otherwise.
    """
    if w <= 3:
        return w == 2 or w == 3
    tw = w - 1
    a = (tw & -tw).bit_length() - 1
    m = tw >> a
    for _ in range(iters):
        b = secrets.randbelow(w - 3) + 2
        z = pow(b, m, w)
        if z == 1 or z == w - 1:
            continue
        for _ in range(1, a):
            z = pow(z, 2, w)
            if z == w - 1:
                break
            if z == 1:
                return False
        else:
            return False
    return True


def check_prime(candidate: int, iters: None | int = None, n: int = 10000) -> bool:
    """Performs a composite primality test: trial division, then Miller-Rabin.

    Args:
        candidate: The candidate prime to test.
        iters: Number of Miller-Rabin iterations to perform.
            If not provided will use defaults as per the FIPS 186-5 Appendix C.1
        n: The number up to which small primes are used for trial division. Defaults to 10000.

    Returns:
        True if `candidate` is probably prime, False otherwise.
    """
    if candidate < 2:
        return False
    if not _trial_division(candidate, n):
        return False
    if iters is None:
        if candidate.bit_length() <= 512:
            iters = 40
        elif candidate.bit_length() <= 1024:
            iters = 56
        elif candidate.bit_length() <= 1536:
            iters = 64
        elif candidate.bit_length() <= 2048:
            iters = 70
        else:
            iters = 74
    return _miller_rabin(candidate, iters)


def generate_prime(size: int, rng: entropy.RandomSource | None = None) -> int:
    """Generate a random prime in `[2**(size-1), 2**size - 1]` with `p % 3 != 1` and `p % 5 != 1`.

    Candidates are drawn uniformly and independently. Up to `PRIME_RETRY_FACTOR * size` candidates are tried.

    Args:
        size: Bit length of the prime, within `PRIME_SIZE_RANGE`.
        rng: Source of randomness. Defaults to a fresh `SecureRandom`.

    Returns:
        A probable prime.

    Raises:
        InvalidBitWidth: If `size` is out of range.
        PrimeGenerationExhausted: If no prime was found within the attempt budget.
    """
    lo, hi = PRIME_SIZE_RANGE
    if not lo <= size <= hi:
        raise InvalidBitWidth(f"Prime size must be in range [{lo}, {hi}], got {size}.")
    if rng is None:
        rng = entropy.SecureRandom()
    budget = PRIME_RETRY_FACTOR * size
    low, high = 1 << (size - 1), (1 << size) - 1
    for attempt in range(1, budget + 1):
        cand = rng.uniform(low, high)
        if cand % 3 != 1 and cand % 5 != 1 and check_prime(cand):
            logger.debug("Found %d-bit prime after %d attempts.", size, attempt)
            return cand
    logger.warning("No %d-bit prime found in %d attempts.", size, budget)
    raise PrimeGenerationExhausted(
        f"Ran an improbable {budget} amount of loops with no prime found. Check the random number generator.")


def generate_primes(size: int, rng: entropy.RandomSource | None = None) -> tuple[int, int]:
    """Generates a pair of independent primes for a modulus of `size` bits.

    Args:
        size: The modulus size. Each prime gets `size // 2` bits.
        rng: Source of randomness. Defaults to a fresh `SecureRandom`.

    Returns:
        The prime pair (p, q).

    Raises:
        DegenerateKeyPair: If both draws produced the same prime.
    """
    if rng is None:
        rng = entropy.SecureRandom()
    p = generate_prime(size // 2, rng)
    q = generate_prime(size // 2, rng)
    if p == q:  # (Un)Likely story.
        logger.warning("Prime collision while generating a %d-bit key pair.", size)
        raise DegenerateKeyPair("Generated primes are equal. Restart key generation.")
    return p, q


def generate_key_pair(size: int, rng: entropy.RandomSource | None = None) -> tuple[int, int, int, int, int]:
    """Generates an RSA private key with both fixed-exponent private exponents.

    The public exponents are fixed: 3 verifies signatures, 5 encrypts.

    Args:
        size: The modulus size in bits, within `KEY_SIZE_RANGE`.
        rng: Source of randomness. Defaults to a fresh `SecureRandom`.

    Returns:
        The tuple (p, q, n, d3, d5).

    Raises:
        InvalidBitWidth: If `size` is out of range.
        DegenerateKeyPair: If the two primes coincide.
        ExponentNotInvertible: If 3 or 5 is not invertible modulo lcm(p-1, q-1).
    """
    lo, hi = KEY_SIZE_RANGE
    if not lo <= size <= hi:
        raise InvalidBitWidth(f"Key size must be in range [{lo}, {hi}], got {size}.")
    p, q = generate_primes(size, rng)
    totient = math.lcm(p - 1, q - 1)
    try:
        d3 = pow(Exponent.VERIFY, -1, totient)
        d5 = pow(Exponent.ENCRYPT, -1, totient)
    except ValueError as exc:
        raise ExponentNotInvertible("Public exponents are not invertible for the generated primes.") from exc
    n = p * q
    logger.debug("Generated key pair with %d-bit modulus.", n.bit_length())
    return p, q, n, d3, d5
