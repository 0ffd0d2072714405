"""
Module 02 - Digest Functions
Pluggable cryptographic digest primitives for Merkle commitments.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides:
- DigestFunction: abstract capability with a single digest(bytes) operation
- HashlibDigest: DigestFunction backed by a hashlib constructor
- A name -> factory registry of approved algorithms
- Hex encoding/decoding with 0x prefix

Security Notes:
- Only cryptographically strong algorithms are registered. md5/sha1 are
  refused even though hashlib provides them.
- Python's builtin hash() is never a substitute: it is salted per process
  and not collision resistant.
- combine(left, right) hashes left || right; the order is significant.
"""
from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from typing import Any, Callable

from merklekit.schemas.errors import UnsupportedDigestException


DEFAULT_ALGORITHM = "sha256"

# Names that must never be registered as digest functions
WEAK_ALGORITHMS: frozenset[str] = frozenset({"md4", "md5", "sha1", "sha-1", "ripemd160"})


def _normalize_name(name: str) -> str:
    return name.strip().lower().replace("_", "-")


def same_algorithm(a: str, b: str) -> bool:
    """Compare algorithm names the way the registry looks them up."""
    return _normalize_name(a) == _normalize_name(b)


class DigestFunction(ABC):
    """
    Deterministic mapping from arbitrary bytes to a fixed-length digest.

    Subclasses implement digest(); combine() is derived from it so every
    implementation uses the same concatenation order.
    """

    name: str
    digest_size: int

    @abstractmethod
    def digest(self, data: bytes) -> bytes:
        """Hash raw bytes to a digest of exactly digest_size bytes."""

    def combine(self, left: bytes, right: bytes) -> bytes:
        """
        Compute the parent digest of two child digests.

        Args:
            left: Left child digest
            right: Right child digest

        Returns:
            digest(left || right)
        """
        return self.digest(left + right)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, digest_size={self.digest_size})"


class HashlibDigest(DigestFunction):
    """
    DigestFunction backed by a hashlib constructor.

    Example:
        >>> fn = HashlibDigest("sha256", hashlib.sha256)
        >>> fn.digest(b"hello").hex()[:16]
        '2cf24dba5fb0a30e'
    """

    def __init__(self, name: str, constructor: Callable[..., Any], **kwargs: Any) -> None:
        sample = constructor(b"", **kwargs)
        names = {_normalize_name(name), _normalize_name(getattr(sample, "name", ""))}
        if names & WEAK_ALGORITHMS:
            raise UnsupportedDigestException(
                f"Digest algorithm '{name}' is not cryptographically strong",
                algorithm=name,
            )
        self.name = name
        self._constructor = constructor
        self._kwargs = kwargs
        self.digest_size = sample.digest_size

    def digest(self, data: bytes) -> bytes:
        return self._constructor(data, **self._kwargs).digest()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HashlibDigest):
            return NotImplemented
        return self.name == other.name and self.digest_size == other.digest_size

    def __hash__(self) -> int:
        return hash((self.name, self.digest_size))


_REGISTRY: dict[str, Callable[[], DigestFunction]] = {
    "sha256": lambda: HashlibDigest("sha256", hashlib.sha256),
    "sha384": lambda: HashlibDigest("sha384", hashlib.sha384),
    "sha512": lambda: HashlibDigest("sha512", hashlib.sha512),
    "sha3-256": lambda: HashlibDigest("sha3-256", hashlib.sha3_256),
    "sha3-512": lambda: HashlibDigest("sha3-512", hashlib.sha3_512),
    "blake2b-256": lambda: HashlibDigest("blake2b-256", hashlib.blake2b, digest_size=32),
    "blake2s-256": lambda: HashlibDigest("blake2s-256", hashlib.blake2s, digest_size=32),
}


def register_digest_function(name: str, factory: Callable[[], DigestFunction]) -> None:
    """
    Register a digest function factory under a name.

    Args:
        name: Algorithm name (case-insensitive, "_" and "-" are equivalent)
        factory: Zero-argument callable returning a DigestFunction

    Raises:
        UnsupportedDigestException: If the name is a known weak algorithm
    """
    key = _normalize_name(name)
    if key in WEAK_ALGORITHMS:
        raise UnsupportedDigestException(
            f"Refusing to register weak digest algorithm '{name}'",
            algorithm=name,
        )
    _REGISTRY[key] = factory


def get_digest_function(name: str = DEFAULT_ALGORITHM) -> DigestFunction:
    """
    Look up a registered digest function by name.

    Raises:
        UnsupportedDigestException: If the algorithm is weak or unknown
    """
    key = _normalize_name(name)
    if key in WEAK_ALGORITHMS:
        raise UnsupportedDigestException(
            f"Digest algorithm '{name}' is not cryptographically strong",
            algorithm=name,
        )
    factory = _REGISTRY.get(key)
    if factory is None:
        raise UnsupportedDigestException(
            f"Unknown digest algorithm '{name}'. "
            f"Available: {available_digest_algorithms()}",
            algorithm=name,
        )
    return factory()


def available_digest_algorithms() -> list[str]:
    """Return the sorted names of all registered digest algorithms."""
    return sorted(_REGISTRY)


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Args:
        hex_string: Hex string with 0x prefix

    Returns:
        Decoded bytes

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters
    """
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


__all__ = [
    "DEFAULT_ALGORITHM",
    "WEAK_ALGORITHMS",
    "DigestFunction",
    "HashlibDigest",
    "register_digest_function",
    "get_digest_function",
    "available_digest_algorithms",
    "same_algorithm",
    "to_hex",
    "from_hex",
]
