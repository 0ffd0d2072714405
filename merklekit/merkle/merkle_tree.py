"""
Module 02 - Merkle Tree Implementation
Deterministic, immutable Merkle tree construction over an ordered element list.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides:
- MerkleTree: immutable layered tree addressed by (layer, position) coordinates
- build_tree: construct a MerkleTree from elements
- compute_tree_height: number of layers for a given leaf count
- sibling_position / path_directions: the coordinate rule shared by the
  proof builder and by verifiers that re-derive directions

Canonical Commitment Rules (Hard Contracts):
1. Leaf hashing: leaf = H(element_to_bytes(element))
2. Parent hashing: parent = H(left || right)
3. Padding rule: the last node of an odd-length layer is combined with
   itself, parent = H(last || last). Its recorded sibling direction is LEFT.
4. Empty input is rejected; there is no empty tree.
5. Single element: the only layer is the root layer; root = leaf.

Determinism Notes:
- No randomness or non-deterministic ordering
- This module never sorts elements - it trusts input order
- Parallel hashing (optional) preserves the sequential result exactly
"""
from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Optional, Sequence

from merklekit.config.runtime import BuildConfig, RuntimeConfig, get_default_config
from merklekit.crypto.hashing import DigestFunction, get_digest_function
from merklekit.schemas.canonical import element_to_bytes
from merklekit.schemas.errors import (
    CanonicalizationException,
    EmptyInputException,
    IndexOutOfRangeException,
)
from merklekit.schemas.proof import Direction

if TYPE_CHECKING:
    from merklekit.schemas.proof import ExistenceProof


logger = logging.getLogger(__name__)

Layer = tuple[bytes, ...]


@dataclass(frozen=True)
class MerkleTree:
    """
    An immutable Merkle tree stored as an ordered sequence of layers.

    Layer 0 holds one digest per element; every following layer is half the
    size (rounded up) of the one below it; the last layer holds only the
    root. Nodes are addressed by (layer, position) coordinates instead of
    parent/child references.

    Attributes:
        layers: All layers, leaves first, root last
        digest_function: The primitive the tree was built with
    """
    layers: tuple[Layer, ...]
    digest_function: DigestFunction

    def __post_init__(self) -> None:
        """Validate the layer shape invariants."""
        if not self.layers or not self.layers[0]:
            raise EmptyInputException("A Merkle tree needs at least one leaf")
        for i in range(len(self.layers) - 1):
            expected = (len(self.layers[i]) + 1) // 2
            if len(self.layers[i + 1]) != expected:
                raise ValueError(
                    f"Layer {i + 1} has {len(self.layers[i + 1])} nodes, "
                    f"expected {expected}"
                )
        if len(self.layers[-1]) != 1:
            raise ValueError(
                f"Root layer must hold exactly one digest, got {len(self.layers[-1])}"
            )

    @property
    def leaf_count(self) -> int:
        return len(self.layers[0])

    @property
    def algorithm(self) -> str:
        return self.digest_function.name

    def root_digest(self) -> bytes:
        """Return the root digest (the only node of the last layer)."""
        return self.layers[-1][0]

    def height(self) -> int:
        """Return the number of layers, leaves and root included."""
        return len(self.layers)

    def layer(self, index: int) -> Layer:
        if not 0 <= index < len(self.layers):
            raise IndexOutOfRangeException(
                f"Layer {index} out of range for tree of height {len(self.layers)}",
                index=index,
            )
        return self.layers[index]

    def valid_coords(self, layer: int, position: int) -> bool:
        return 0 <= layer < len(self.layers) and 0 <= position < len(self.layers[layer])

    def node(self, layer: int, position: int) -> bytes:
        """
        Return the digest at a (layer, position) coordinate.

        Raises:
            IndexOutOfRangeException: If the coordinate does not exist
        """
        if not self.valid_coords(layer, position):
            raise IndexOutOfRangeException(
                f"Node ({layer}, {position}) does not exist in this tree",
                index=position,
                details={"layer": layer},
            )
        return self.layers[layer][position]

    def leaf_digest(self, index: int) -> bytes:
        if not 0 <= index < self.leaf_count:
            raise IndexOutOfRangeException(
                f"Leaf index {index} out of range for {self.leaf_count} leaves",
                index=index,
                leaf_count=self.leaf_count,
            )
        return self.layers[0][index]

    def prove_existence(self, index: int) -> "ExistenceProof":
        """Build an existence proof for the leaf at index (see merkle_proofs)."""
        from merklekit.merkle.merkle_proofs import prove_existence

        return prove_existence(self, index)


def sibling_position(position: int, layer_len: int) -> tuple[int, Direction]:
    """
    Locate the sibling of a node and the side it occupies.

    The last node of an odd-length layer has no real sibling: it was
    combined with itself, so its own position is returned with LEFT.
    Otherwise the sibling is position XOR 1; an odd (right-hand) node has
    its sibling on the LEFT, an even (left-hand) node on the RIGHT.

    Args:
        position: 0-based position of the node in its layer
        layer_len: Number of nodes in that layer

    Returns:
        (sibling position, sibling direction)
    """
    if layer_len % 2 == 1 and position == layer_len - 1:
        return position, Direction.LEFT
    if position % 2 == 1:
        return position ^ 1, Direction.LEFT
    return position ^ 1, Direction.RIGHT


def layer_lengths(num_leaves: int) -> list[int]:
    """Lengths of every layer of a tree over num_leaves leaves, leaves first."""
    if num_leaves <= 0:
        return []
    lengths = [num_leaves]
    while lengths[-1] > 1:
        lengths.append((lengths[-1] + 1) // 2)
    return lengths


def compute_tree_height(num_leaves: int) -> int:
    """
    Compute the height (number of layers) of a tree with num_leaves leaves.

    A single leaf has height 1; otherwise height is ceil(log2(N)) + 1.
    An empty list has height 0, although no such tree can be built.

    Raises:
        ValueError: If num_leaves is negative
    """
    if num_leaves < 0:
        raise ValueError(f"Leaf count must be non-negative, got {num_leaves}")
    return len(layer_lengths(num_leaves))


def path_directions(index: int, leaf_count: int) -> list[Direction]:
    """
    Re-derive the sibling directions of the path from leaf index to the root.

    Uses the same coordinate rule as the proof builder, so it can be used to
    check a proof received from elsewhere without trusting its tags.

    Raises:
        IndexOutOfRangeException: If index is not in [0, leaf_count)
    """
    if not 0 <= index < leaf_count:
        raise IndexOutOfRangeException(
            f"Leaf index {index} out of range for {leaf_count} leaves",
            index=index,
            leaf_count=leaf_count,
        )
    directions: list[Direction] = []
    position = index
    for length in layer_lengths(leaf_count)[:-1]:
        _, direction = sibling_position(position, length)
        directions.append(direction)
        position //= 2
    return directions


def _pair_range(layer: Sequence[bytes], start: int, stop: int, fn: DigestFunction) -> list[bytes]:
    """Combine the pairs of layer[start:stop]; start must be even."""
    out: list[bytes] = []
    last = len(layer) - 1
    for i in range(start, stop, 2):
        left = layer[i]
        # Odd length: duplicate the last node
        right = layer[i + 1] if i < last else left
        out.append(fn.combine(left, right))
    return out


def _next_layer(
    layer: Layer,
    fn: DigestFunction,
    executor: Optional[Executor],
    chunk_size: int,
) -> Layer:
    if executor is None:
        return tuple(_pair_range(layer, 0, len(layer), fn))

    # Chunks start on even positions so no pair straddles two chunks.
    step = chunk_size + (chunk_size % 2)
    starts = range(0, len(layer), step)
    chunks = executor.map(
        lambda s: _pair_range(layer, s, min(s + step, len(layer)), fn),
        starts,
    )
    return tuple(digest for chunk in chunks for digest in chunk)


def _hash_leaves(
    payloads: list[bytes],
    fn: DigestFunction,
    executor: Optional[Executor],
    chunk_size: int,
) -> Layer:
    if executor is None:
        return tuple(fn.digest(p) for p in payloads)

    starts = range(0, len(payloads), chunk_size)
    chunks = executor.map(
        lambda s: [fn.digest(p) for p in payloads[s:s + chunk_size]],
        starts,
    )
    return tuple(digest for chunk in chunks for digest in chunk)


def _build_layers(
    leaves: Layer,
    fn: DigestFunction,
    executor: Optional[Executor],
    chunk_size: int,
) -> tuple[Layer, ...]:
    layers = [leaves]
    while len(layers[-1]) > 1:
        layers.append(_next_layer(layers[-1], fn, executor, chunk_size))
    return tuple(layers)


def _use_parallel(build: BuildConfig, leaf_count: int) -> bool:
    return (
        build.parallel
        and build.max_workers != 1
        and leaf_count >= build.parallel_threshold
    )


def build_tree(
    elements: Iterable[Any],
    digest_function: Optional[DigestFunction] = None,
    config: Optional[RuntimeConfig] = None,
) -> MerkleTree:
    """
    Build a Merkle tree from an ordered sequence of elements.

    Algorithm:
    1. If empty: raise EmptyInputException
    2. Layer 0: H(element) for every element, in order
    3. While the current layer has more than one node, pair adjacent nodes
       (L[2j], L[2j+1]) into H(L[2j] || L[2j+1]); an unpaired last node is
       combined with itself
    4. The single node of the last layer is the root

    All layers are retained so proofs can be extracted afterwards.

    Args:
        elements: Ordered elements (bytes, str, or canonically serializable values)
        digest_function: Primitive to hash with; defaults to the configured algorithm
        config: Runtime configuration; defaults to get_default_config()

    Returns:
        Immutable MerkleTree

    Raises:
        EmptyInputException: If elements is empty
        CanonicalizationException: If an element cannot be converted to bytes,
            or elements is a single bytes/str value instead of a collection

    Example:
        >>> tree = build_tree([b"a", b"b", b"c"])
        >>> tree.height()
        3
    """
    if isinstance(elements, (str, bytes, bytearray, memoryview)):
        raise CanonicalizationException(
            f"Expected a collection of elements, got a single {type(elements).__name__} value",
            details={"type": type(elements).__name__},
        )
    config = config or get_default_config()
    fn = digest_function or get_digest_function(config.digest.algorithm)

    payloads = [element_to_bytes(e) for e in elements]
    if not payloads:
        raise EmptyInputException()

    build = config.build
    if _use_parallel(build, len(payloads)):
        logger.debug(
            f"Building tree over {len(payloads)} leaves in parallel "
            f"(max_workers={build.max_workers}, chunk_size={build.chunk_size})"
        )
        with ThreadPoolExecutor(max_workers=build.max_workers) as executor:
            leaves = _hash_leaves(payloads, fn, executor, build.chunk_size)
            layers = _build_layers(leaves, fn, executor, build.chunk_size)
    else:
        leaves = _hash_leaves(payloads, fn, None, build.chunk_size)
        layers = _build_layers(leaves, fn, None, build.chunk_size)

    tree = MerkleTree(layers=layers, digest_function=fn)
    logger.debug(
        f"Built Merkle tree: leaves={tree.leaf_count} height={tree.height()} "
        f"algorithm={fn.name} root={tree.root_digest().hex()}"
    )
    return tree


# Short alias for the public construction entry point
build = build_tree


__all__ = [
    "MerkleTree",
    "build_tree",
    "build",
    "compute_tree_height",
    "layer_lengths",
    "path_directions",
    "sibling_position",
]
