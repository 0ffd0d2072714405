"""
Module 02 - Merkle Tree and Existence Proofs
Immutable Merkle tree construction + proof extraction/verification.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides:
- MerkleTree: layered tree with root_digest() and height()
- build_tree / build: construct a tree from an ordered element list
- prove_existence: extract an ExistenceProof for one leaf
- verify_existence: check an element and proof against a claimed root

Usage:
    from merklekit.merkle import build_tree, prove_existence, verify_existence

    tree = build_tree([b"a", b"b", b"c"])
    proof = prove_existence(tree, 2)
    assert verify_existence(b"c", proof, tree.root_digest()).ok
"""
from .merkle_tree import (
    MerkleTree,
    build,
    build_tree,
    compute_tree_height,
    layer_lengths,
    path_directions,
    sibling_position,
)

from .merkle_proofs import (
    MerkleProver,
    MerkleVerifier,
    fold_proof,
    prove_existence,
    verify_existence,
)


__all__ = [
    # Core types
    "MerkleTree",
    # Construction
    "build",
    "build_tree",
    "compute_tree_height",
    "layer_lengths",
    "path_directions",
    "sibling_position",
    # Proofs
    "fold_proof",
    "prove_existence",
    "verify_existence",
    # Convenience classes
    "MerkleProver",
    "MerkleVerifier",
]
