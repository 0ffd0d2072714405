"""
Module 01 - Schemas & Shared Types
File: __init__.py

Purpose: Export the shared value types, error taxonomy and element
canonicalization used by the tree, proof builder and verifier.
"""

# Error models and exceptions
from .errors import (
    CanonicalizationException,
    ConfigurationException,
    EmptyInputException,
    ErrorCodes,
    IndexOutOfRangeException,
    MalformedProofException,
    MerkleError,
    MerkleException,
    UnsupportedDigestException,
)

# Element canonicalization
from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonicalize_value,
    dumps_canonical,
    element_to_bytes,
    ensure_utc,
    format_datetime_canonical,
)

# Proof value types
from .proof import (
    MAX_PROOF_STEPS,
    SCHEMA_VERSION,
    SUPPORTED_SCHEMA_VERSIONS,
    Direction,
    ExistenceProof,
    ProofStep,
    VerificationOutcome,
)

__all__ = [
    # Errors
    "CanonicalizationException",
    "ConfigurationException",
    "EmptyInputException",
    "ErrorCodes",
    "IndexOutOfRangeException",
    "MalformedProofException",
    "MerkleError",
    "MerkleException",
    "UnsupportedDigestException",
    # Canonical
    "CANONICAL_JSON_SEPARATORS",
    "canonicalize_value",
    "dumps_canonical",
    "element_to_bytes",
    "ensure_utc",
    "format_datetime_canonical",
    # Proof
    "MAX_PROOF_STEPS",
    "SCHEMA_VERSION",
    "SUPPORTED_SCHEMA_VERSIONS",
    "Direction",
    "ExistenceProof",
    "ProofStep",
    "VerificationOutcome",
]
