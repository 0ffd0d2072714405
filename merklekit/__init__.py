"""
merklekit - tamper-evident, per-element verification of ordered lists.

Build a Merkle tree over an ordered element list, extract a compact proof of
existence for any index, and verify that proof against a root digest without
access to the rest of the list.

Usage:
    import merklekit

    tree = merklekit.build([b"alpha", b"beta", b"gamma"])
    proof = merklekit.prove_existence(tree, 1)
    outcome = merklekit.verify_existence(b"beta", proof, tree.root_digest())
    assert outcome is merklekit.VerificationOutcome.VERIFIED
"""

__version__ = "0.1.0"

# Schemas must load before crypto: proof.py depends on crypto.hashing,
# which in turn imports merklekit.schemas.errors.
from merklekit.schemas import (
    CanonicalizationException,
    ConfigurationException,
    Direction,
    EmptyInputException,
    ErrorCodes,
    ExistenceProof,
    IndexOutOfRangeException,
    MalformedProofException,
    MerkleError,
    MerkleException,
    ProofStep,
    UnsupportedDigestException,
    VerificationOutcome,
)
from merklekit.crypto import (
    DigestFunction,
    HashlibDigest,
    get_digest_function,
    register_digest_function,
)
from merklekit.config import RuntimeConfig, configure_logging
from merklekit.merkle import (
    MerkleProver,
    MerkleTree,
    MerkleVerifier,
    build,
    build_tree,
    compute_tree_height,
    prove_existence,
    verify_existence,
)

__all__ = [
    "__version__",
    # Operations
    "build",
    "build_tree",
    "prove_existence",
    "verify_existence",
    "compute_tree_height",
    # Types
    "MerkleTree",
    "ExistenceProof",
    "ProofStep",
    "Direction",
    "VerificationOutcome",
    "MerkleProver",
    "MerkleVerifier",
    # Digest primitives
    "DigestFunction",
    "HashlibDigest",
    "get_digest_function",
    "register_digest_function",
    # Configuration
    "RuntimeConfig",
    "configure_logging",
    # Errors
    "ErrorCodes",
    "MerkleError",
    "MerkleException",
    "EmptyInputException",
    "IndexOutOfRangeException",
    "MalformedProofException",
    "UnsupportedDigestException",
    "CanonicalizationException",
    "ConfigurationException",
]
