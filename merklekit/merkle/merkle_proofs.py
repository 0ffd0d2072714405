"""
Module 02 - Merkle Existence Proofs
Proof extraction from a built tree and tree-free proof verification.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides:
- prove_existence: extract the Merkle path of one leaf as an ExistenceProof
- verify_existence: fold an element through a proof and compare to a root
- MerkleProver / MerkleVerifier: class-based convenience wrappers

Verification is a pure fold over the proof steps. It needs the digest
function and the steps only, never the tree. A proof that is well formed
but does not reproduce the claimed root yields VerificationOutcome.MISMATCH;
structurally invalid input raises MalformedProofException before folding.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Sequence

from merklekit.config.runtime import RuntimeConfig
from merklekit.crypto.hashing import (
    DigestFunction,
    from_hex,
    get_digest_function,
    same_algorithm,
)
from merklekit.merkle.merkle_tree import (
    MerkleTree,
    build_tree,
    compute_tree_height,
    path_directions,
    sibling_position,
)
from merklekit.schemas.canonical import element_to_bytes
from merklekit.schemas.errors import IndexOutOfRangeException, MalformedProofException
from merklekit.schemas.proof import (
    Direction,
    ExistenceProof,
    ProofStep,
    VerificationOutcome,
)


logger = logging.getLogger(__name__)


def prove_existence(tree: MerkleTree, index: int) -> ExistenceProof:
    """
    Generate an existence proof for the leaf at the given index.

    Algorithm:
    1. Start at layer 0, position = index
    2. For every layer below the root:
       - Odd-length layer and position is the last one: record the node's
         own digest with LEFT (it was combined with itself)
       - Otherwise record the digest at position XOR 1, LEFT when position
         is odd and RIGHT when it is even
       - Move up: position = position // 2
    3. The root layer is never visited

    Args:
        tree: A built MerkleTree
        index: 0-based index of the leaf to prove

    Returns:
        ExistenceProof with steps ordered bottom-to-top

    Raises:
        IndexOutOfRangeException: If index is not in [0, leaf_count)
    """
    if not 0 <= index < tree.leaf_count:
        raise IndexOutOfRangeException(
            f"Leaf index {index} out of range for {tree.leaf_count} leaves",
            index=index,
            leaf_count=tree.leaf_count,
        )

    steps: list[ProofStep] = []
    position = index
    for layer in tree.layers[:-1]:
        sibling, direction = sibling_position(position, len(layer))
        steps.append(ProofStep(sibling=layer[sibling], direction=direction))
        position //= 2

    logger.debug(
        f"Built existence proof for leaf {index}/{tree.leaf_count}: {len(steps)} steps"
    )
    return ExistenceProof(algorithm=tree.algorithm, steps=tuple(steps))


def _resolve_digest_function(
    proof: ExistenceProof,
    digest_function: Optional[DigestFunction],
) -> DigestFunction:
    if digest_function is None:
        return get_digest_function(proof.algorithm)
    if not same_algorithm(proof.algorithm, digest_function.name):
        raise MalformedProofException(
            f"Proof was built with '{proof.algorithm}' but verification "
            f"uses '{digest_function.name}'",
            details={"proof_algorithm": proof.algorithm, "algorithm": digest_function.name},
        )
    return digest_function


def _check_structure(
    proof: ExistenceProof,
    claimed_root: bytes,
    fn: DigestFunction,
    leaf_count: Optional[int],
) -> None:
    if len(claimed_root) != fn.digest_size:
        raise MalformedProofException(
            f"Claimed root is {len(claimed_root)} bytes, "
            f"{fn.name} digests are {fn.digest_size} bytes"
        )
    for i, step in enumerate(proof.steps):
        if len(step.sibling) != fn.digest_size:
            raise MalformedProofException(
                f"Step {i} sibling is {len(step.sibling)} bytes, "
                f"{fn.name} digests are {fn.digest_size} bytes",
                step=i,
            )
    if leaf_count is not None:
        if leaf_count < 1:
            raise MalformedProofException(
                f"Leaf count must be positive, got {leaf_count}"
            )
        expected = compute_tree_height(leaf_count) - 1
        if len(proof.steps) != expected:
            raise MalformedProofException(
                f"Proof has {len(proof.steps)} steps, a tree of {leaf_count} "
                f"leaves needs {expected}",
                details={"leaf_count": leaf_count, "expected_steps": expected},
            )


def fold_proof(leaf: bytes, steps: Iterable[ProofStep], fn: DigestFunction) -> bytes:
    """
    Fold a leaf digest through proof steps, bottom-to-top.

    LEFT siblings are the left operand, RIGHT siblings the right operand.
    """
    current = leaf
    for step in steps:
        if step.direction is Direction.LEFT:
            current = fn.combine(step.sibling, current)
        else:
            current = fn.combine(current, step.sibling)
    return current


def verify_existence(
    element: Any,
    proof: ExistenceProof,
    claimed_root: bytes,
    digest_function: Optional[DigestFunction] = None,
    *,
    index: Optional[int] = None,
    leaf_count: Optional[int] = None,
) -> VerificationOutcome:
    """
    Verify that element is committed to by claimed_root through proof.

    Algorithm:
    1. current = H(element)
    2. For each step (bottom-up):
       - LEFT:  current = H(sibling || current)
       - RIGHT: current = H(current || sibling)
    3. Compare current with claimed_root byte-wise

    When index and leaf_count are given, the proof's direction tags must
    also match the directions re-derived from those coordinates. leaf_count
    alone still checks the step count; index alone is an error.

    Args:
        element: The element whose existence is claimed
        proof: ExistenceProof for that element
        claimed_root: Root digest the caller trusts
        digest_function: Primitive to hash with; defaults to proof.algorithm
        index: Claimed leaf index (optional)
        leaf_count: Number of leaves of the tree (optional)

    Returns:
        VerificationOutcome.VERIFIED or VerificationOutcome.MISMATCH

    Raises:
        MalformedProofException: If the proof or root is structurally invalid,
            or index is given without leaf_count
        IndexOutOfRangeException: If index lies outside [0, leaf_count)
    """
    if index is not None and leaf_count is None:
        raise MalformedProofException(
            f"Leaf index {index} cannot be checked without leaf_count",
            details={"index": index},
        )
    fn = _resolve_digest_function(proof, digest_function)
    claimed_root = bytes(claimed_root)
    _check_structure(proof, claimed_root, fn, leaf_count)

    if index is not None:
        if proof.directions != path_directions(index, leaf_count):
            logger.debug(
                f"Proof directions do not match leaf {index} of {leaf_count}"
            )
            return VerificationOutcome.MISMATCH

    computed = fold_proof(fn.digest(element_to_bytes(element)), proof.steps, fn)
    if computed == claimed_root:
        return VerificationOutcome.VERIFIED

    logger.debug(
        f"Existence proof mismatch: computed root {computed.hex()} "
        f"!= claimed {claimed_root.hex()}"
    )
    return VerificationOutcome.MISMATCH


class MerkleProver:
    """
    Convenience class for building trees and proofs straight from elements.

    Example:
        >>> proof = MerkleProver.prove([b"a", b"b", b"c"], index=1)
        >>> len(proof.steps)
        2
    """

    @staticmethod
    def build(
        elements: Sequence[Any],
        digest_function: Optional[DigestFunction] = None,
        config: Optional[RuntimeConfig] = None,
    ) -> MerkleTree:
        return build_tree(elements, digest_function=digest_function, config=config)

    @staticmethod
    def prove(
        elements: Sequence[Any],
        index: int,
        digest_function: Optional[DigestFunction] = None,
    ) -> ExistenceProof:
        """
        Build a tree over elements and prove the element at index.

        Raises:
            EmptyInputException: If elements is empty
            IndexOutOfRangeException: If index is out of range
        """
        return prove_existence(build_tree(elements, digest_function=digest_function), index)

    @staticmethod
    def compute_root(
        elements: Sequence[Any],
        digest_function: Optional[DigestFunction] = None,
    ) -> bytes:
        return build_tree(elements, digest_function=digest_function).root_digest()


class MerkleVerifier:
    """Convenience class for verifying existence proofs."""

    @staticmethod
    def verify(
        element: Any,
        proof: ExistenceProof,
        root: bytes,
        digest_function: Optional[DigestFunction] = None,
    ) -> bool:
        """Return True when the proof reproduces root for element."""
        return verify_existence(element, proof, root, digest_function).ok

    @staticmethod
    def verify_serialized(
        element: Any,
        proof: str | bytes | dict[str, Any],
        root_hex: str,
        digest_function: Optional[DigestFunction] = None,
    ) -> VerificationOutcome:
        """
        Verify a proof received in serialized form.

        Args:
            element: The element whose existence is claimed
            proof: Proof as a JSON string/bytes or an already-parsed dict
            root_hex: Claimed root as 0x-prefixed hex

        Raises:
            MalformedProofException: If the proof or root cannot be parsed
        """
        if isinstance(proof, dict):
            parsed = ExistenceProof.from_dict(proof)
        else:
            parsed = ExistenceProof.from_json(proof)
        try:
            root = from_hex(root_hex)
        except ValueError as e:
            raise MalformedProofException(f"Invalid claimed root: {e}") from e
        return verify_existence(element, parsed, root, digest_function)


__all__ = [
    "prove_existence",
    "verify_existence",
    "fold_proof",
    "MerkleProver",
    "MerkleVerifier",
]
