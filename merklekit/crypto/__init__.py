"""
Core cryptographic utilities.

Module 02 provides the pluggable digest primitives used by the Merkle tree.
"""
from .hashing import (
    DEFAULT_ALGORITHM,
    WEAK_ALGORITHMS,
    DigestFunction,
    HashlibDigest,
    available_digest_algorithms,
    from_hex,
    get_digest_function,
    register_digest_function,
    same_algorithm,
    to_hex,
)

__all__ = [
    "DEFAULT_ALGORITHM",
    "WEAK_ALGORITHMS",
    "DigestFunction",
    "HashlibDigest",
    "available_digest_algorithms",
    "from_hex",
    "get_digest_function",
    "register_digest_function",
    "same_algorithm",
    "to_hex",
]
