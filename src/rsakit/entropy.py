"""Randomness and hashing sources used across rsakit.

Randomness is always passed around as an explicit handle implementing `RandomSource`. The default handle,
`SecureRandom`, draws from the operating system through `secrets`. `SeededStream` is a deterministic byte stream used
to expand message digests, and `DeterministicRandom` turns such a stream into a reproducible `RandomSource`.
Neither of the latter reads or advances any process-wide random state.

Typical usage example:

    rng = SecureRandom()
    r = rng.uniform(0, 2**256 - 1)
    stream = SeededStream(hash256(b"message"))
    x = stream.read(256)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import hashlib
import secrets
from typing import Protocol

HASH_LEN: int = 32
_MAX_BLOCKS: int = 2**32


class RandomSource(Protocol):
    """Anything able to produce uniformly distributed integers in an inclusive range."""

    def uniform(self, low: int, high: int) -> int:
        ...


def hash256(data: bytes) -> bytes:
    """SHA-256 digest of `data`."""
    return hashlib.sha256(data).digest()


def _check_range(low: int, high: int) -> None:
    if low > high:
        raise ValueError("Lower bound must not exceed upper bound.")


class SecureRandom:
    """Operating-system backed `RandomSource`.

    Holds no state of its own, so separate instances may be used from separate threads.
    """

    def uniform(self, low: int, high: int) -> int:
        """Draw an integer uniformly from `[low, high]`.

        Args:
            low: Inclusive lower bound.
            high: Inclusive upper bound.

        Returns:
            The drawn integer.

        Raises:
            ValueError: If `low > high`.
        """
        _check_range(low, high)
        return low + secrets.randbelow(high - low + 1)


class SeededStream:
    """Deterministic byte stream seeded by a 32-byte value.

    The stream is SHA-256 in counter mode: block `i` is `SHA-256(seed || I2OSP(i, 4))`. Hence the first `n` bytes of a
    fresh stream equal the PKCS#1 MGF1-SHA256 mask of length `n` over the seed. Consecutive reads continue where the
    previous read stopped.

    Attributes:
        seed: The 32-byte seed.
    """

    def __init__(self, seed: bytes) -> None:
        if len(seed) != HASH_LEN:
            raise ValueError(f"Seed must be exactly {HASH_LEN} bytes long.")
        self.seed = bytes(seed)
        self._counter = 0
        self._buffer = b""

    def _block(self) -> bytes:
        if self._counter >= _MAX_BLOCKS:
            raise ValueError("Seeded stream exhausted.")
        blk = hashlib.sha256(self.seed + self._counter.to_bytes(4, byteorder="big")).digest()
        self._counter += 1
        return blk

    def read(self, n: int) -> bytes:
        """Read the next `n` bytes of the stream.

        Args:
            n: Number of bytes to produce. Must be >= 0.

        Returns:
            Exactly `n` pseudo-random bytes.
        """
        if n < 0:
            raise ValueError("n must be >= 0")
        parts = [self._buffer]
        have = len(self._buffer)
        while have < n:
            blk = self._block()
            parts.append(blk)
            have += len(blk)
        data = b"".join(parts)
        self._buffer = data[n:]
        return data[:n]


class DeterministicRandom:
    """Reproducible `RandomSource` built on a `SeededStream`.

    Two instances created from the same seed produce the same sequence of draws. Useful for tests and for
    deriving keys from a fixed secret. Not suitable as a replacement for `SecureRandom` unless the seed itself is
    secret and high-entropy.
    """

    def __init__(self, seed: bytes | str | int) -> None:
        if isinstance(seed, int):
            if seed < 0:
                raise ValueError("Integer seeds must be non-negative.")
            seed = seed.to_bytes(max(1, (seed.bit_length() + 7) // 8), byteorder="big")
        elif isinstance(seed, str):
            seed = seed.encode("utf-8")
        self._stream = SeededStream(hash256(seed))

    def uniform(self, low: int, high: int) -> int:
        """Draw an integer from `[low, high]` by rejection sampling on stream bytes."""
        _check_range(low, high)
        span = high - low + 1
        nbits = (span - 1).bit_length()
        nbytes = (nbits + 7) // 8
        mask = (1 << nbits) - 1
        while True:
            x = int.from_bytes(self._stream.read(nbytes), byteorder="big") & mask
            if x < span:
                return low + x
