"""
Common test fixtures shared by all test modules.

Provides factory functions for:
- element lists
- leaf digests computed independently of the library
- built trees and configurations
"""

import hashlib
from typing import Optional

from merklekit.config.runtime import RuntimeConfig
from merklekit.merkle.merkle_tree import MerkleTree, build_tree


# =============================================================================
# Independent hashing (does not go through merklekit)
# =============================================================================

def h(data: bytes) -> bytes:
    """Plain SHA-256, used to compute expected digests by hand."""
    return hashlib.sha256(data).digest()


def h_pair(left: bytes, right: bytes) -> bytes:
    return h(left + right)


# =============================================================================
# Element / Tree Factories
# =============================================================================

def make_elements(count: int, prefix: str = "leaf") -> list[bytes]:
    """Create count distinct byte elements: b"leaf0", b"leaf1", ..."""
    return [f"{prefix}{i}".encode() for i in range(count)]


def make_tree(count: int, prefix: str = "leaf") -> tuple[MerkleTree, list[bytes]]:
    """Build a SHA-256 tree over make_elements(count) and return both."""
    elements = make_elements(count, prefix)
    return build_tree(elements, config=make_config()), elements


def make_config(
    algorithm: str = "sha256",
    parallel: bool = False,
    parallel_threshold: int = 4096,
    max_workers: Optional[int] = None,
    chunk_size: int = 1024,
) -> RuntimeConfig:
    """Create a RuntimeConfig without consulting the environment."""
    return RuntimeConfig.from_dict({
        "digest": {"algorithm": algorithm},
        "build": {
            "parallel": parallel,
            "parallel_threshold": parallel_threshold,
            "max_workers": max_workers,
            "chunk_size": chunk_size,
        },
    })


def flip_byte(data: bytes, position: int = 0) -> bytes:
    """Return data with one byte XOR-ed by 0x01."""
    mutated = bytearray(data)
    mutated[position] ^= 0x01
    return bytes(mutated)


__all__ = [
    "h",
    "h_pair",
    "make_elements",
    "make_tree",
    "make_config",
    "flip_byte",
]
