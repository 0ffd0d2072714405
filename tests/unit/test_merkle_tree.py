"""
Module 02 - Merkle Tree Unit Tests
Tests for merklekit/merkle/merkle_tree.py

Covers:
1. Root determinism - same elements -> same root across runs
2. Padding correctness - odd layers use the "duplicate last" rule
3. Height law - 1 for one leaf, ceil(log2(N)) + 1 otherwise
4. Empty input rejection
5. Known-answer SHA-256 roots
6. Parallel construction equals sequential construction
"""
import hashlib
import math

import pytest

from merklekit.crypto.hashing import get_digest_function
from merklekit.merkle.merkle_tree import (
    MerkleTree,
    build,
    build_tree,
    compute_tree_height,
    layer_lengths,
    path_directions,
    sibling_position,
)
from merklekit.schemas.errors import (
    CanonicalizationException,
    EmptyInputException,
    IndexOutOfRangeException,
)
from merklekit.schemas.proof import Direction

from fixtures import h, h_pair, make_config, make_elements, make_tree


class TestEmptyInput:
    """Tests for empty input behavior."""

    def test_build_empty_list_raises(self):
        """build([]) fails with EmptyInput."""
        with pytest.raises(EmptyInputException) as exc_info:
            build_tree([], config=make_config())

        assert exc_info.value.code == "EMPTY_INPUT"

    def test_build_empty_generator_raises(self):
        with pytest.raises(EmptyInputException):
            build_tree((e for e in []), config=make_config())

    def test_empty_input_is_value_error(self):
        """Callers catching ValueError also see EmptyInput."""
        with pytest.raises(ValueError):
            build([], config=make_config())

    def test_tree_cannot_be_constructed_without_layers(self):
        with pytest.raises(EmptyInputException):
            MerkleTree(layers=(), digest_function=get_digest_function())


class TestSingleElement:
    """Tests for single-element trees."""

    def test_single_element_root_is_leaf_digest(self):
        tree = build_tree([b"1"], config=make_config())

        assert tree.root_digest() == h(b"1")
        assert tree.height() == 1
        assert tree.leaf_count == 1

    def test_single_element_only_layer_is_root(self):
        tree = build_tree([b"only"], config=make_config())

        assert tree.layers == ((h(b"only"),),)


class TestRootDeterminism:
    """Tests for deterministic root computation."""

    def test_same_elements_same_root(self):
        """Same elements produce same root across multiple calls."""
        elements = make_elements(11)

        roots = [build_tree(elements, config=make_config()).root_digest() for _ in range(10)]

        assert all(r == roots[0] for r in roots)

    def test_different_elements_different_roots(self):
        a = build_tree([b"a", b"b"], config=make_config()).root_digest()
        b = build_tree([b"x", b"y"], config=make_config()).root_digest()

        assert a != b

    def test_element_order_matters(self):
        """Different element ordering produces different roots."""
        forward = build_tree([b"a", b"b", b"c"], config=make_config())
        backward = build_tree([b"c", b"b", b"a"], config=make_config())

        assert forward.root_digest() != backward.root_digest()

    def test_build_alias(self):
        elements = make_elements(5)

        assert build(elements, config=make_config()) == build_tree(elements, config=make_config())


class TestKnownAnswers:
    """SHA-256 roots for small lists of ASCII digits."""

    def test_one(self):
        #   .
        #   |
        #   1
        tree = build_tree([b"1"], config=make_config())

        assert tree.root_digest().hex() == (
            "6b86b273ff34fce19d6b804eff5a3f5747ada4eaa22f1d49c01e52ddb7875b4b"
        )

    def test_even(self):
        #    .
        #   / \
        #  .   .
        # / \ / \
        # 1 2 3 4
        tree = build_tree([b"1", b"2", b"3", b"4"], config=make_config())

        assert tree.root_digest().hex() == (
            "cd53a2ce68e6476c29512ea53c395c7f5d8fbcb4614d89298db14e2a5bdb5456"
        )

    def test_odd(self):
        #      .
        #     / \
        #    .   :
        #   / \   \
        #  .   .   :
        # / \ / \ /
        # 1 2 3 4 5
        tree = build_tree([b"1", b"2", b"3", b"4", b"5"], config=make_config())

        assert tree.root_digest().hex() == (
            "0abb51d233d9b6172ff6fcb56b4ef172f550da4cb15aa328ebf43751288b8011"
        )


class TestPaddingCorrectness:
    """Tests for the duplicate-node rule."""

    def test_three_leaves_layer_one(self):
        """Layer 1 of a 3-leaf tree is [H(H0||H1), H(H2||H2)]."""
        tree, elements = make_tree(3)
        h0, h1, h2 = (h(e) for e in elements)

        assert tree.layers[0] == (h0, h1, h2)
        assert tree.layers[1] == (h_pair(h0, h1), h_pair(h2, h2))
        assert tree.root_digest() == h_pair(h_pair(h0, h1), h_pair(h2, h2))

    def test_five_leaves_duplicate_at_two_levels(self):
        tree, elements = make_tree(5)
        a, b, c, d, e = (h(x) for x in elements)

        ab = h_pair(a, b)
        cd = h_pair(c, d)
        ee = h_pair(e, e)
        abcd = h_pair(ab, cd)
        eeee = h_pair(ee, ee)

        assert tree.layers[1] == (ab, cd, ee)
        assert tree.layers[2] == (abcd, eeee)
        assert tree.root_digest() == h_pair(abcd, eeee)

    def test_even_leaves_no_duplication(self):
        tree, elements = make_tree(4)
        a, b, c, d = (h(x) for x in elements)

        assert tree.root_digest() == h_pair(h_pair(a, b), h_pair(c, d))

    def test_layer_sizes_halve_rounding_up(self):
        for n in range(1, 40):
            tree, _ = make_tree(n)
            for lower, upper in zip(tree.layers, tree.layers[1:]):
                assert len(upper) == math.ceil(len(lower) / 2)
            assert len(tree.layers[-1]) == 1


class TestHeight:
    """Tests for the height law."""

    @pytest.mark.parametrize("n", [1, 2, 3, 4, 5, 7, 8, 9, 16, 17, 100, 1000])
    def test_height_law(self, n):
        tree, _ = make_tree(n)
        expected = 1 if n == 1 else math.ceil(math.log2(n)) + 1

        assert tree.height() == expected
        assert compute_tree_height(n) == expected

    def test_compute_height_empty(self):
        assert compute_tree_height(0) == 0

    def test_compute_height_negative_raises(self):
        with pytest.raises(ValueError):
            compute_tree_height(-1)

    def test_layer_lengths(self):
        assert layer_lengths(7) == [7, 4, 2, 1]
        assert layer_lengths(1) == [1]
        assert layer_lengths(0) == []


class TestCoordinates:
    """Tests for (layer, position) addressing."""

    def test_node_matches_layers(self, tree):
        for layer_index, layer in enumerate(tree.layers):
            for position, digest in enumerate(layer):
                assert tree.node(layer_index, position) == digest

    def test_node_out_of_range(self, tree):
        with pytest.raises(IndexOutOfRangeException):
            tree.node(1, 4)
        with pytest.raises(IndexOutOfRangeException):
            tree.node(tree.height(), 0)
        with pytest.raises(IndexOutOfRangeException):
            tree.node(0, -1)

    def test_valid_coords(self, tree):
        assert tree.valid_coords(0, 6)
        assert not tree.valid_coords(0, 7)
        assert tree.valid_coords(3, 0)
        assert not tree.valid_coords(4, 0)

    def test_leaf_digest(self, tree, elements):
        assert tree.leaf_digest(3) == h(elements[3])
        with pytest.raises(IndexOutOfRangeException):
            tree.leaf_digest(7)

    def test_layer_accessor(self, tree):
        assert tree.layer(0) == tree.layers[0]
        with pytest.raises(IndexOutOfRangeException):
            tree.layer(9)

    def test_tree_is_immutable(self, tree):
        with pytest.raises(AttributeError):
            tree.layers = ()


class TestSiblingRule:
    """Tests for the shared sibling/direction rule."""

    def test_last_of_odd_layer_is_its_own_left_sibling(self):
        assert sibling_position(6, 7) == (6, Direction.LEFT)

    def test_even_position_sibling_on_right(self):
        assert sibling_position(4, 7) == (5, Direction.RIGHT)

    def test_odd_position_sibling_on_left(self):
        assert sibling_position(5, 7) == (4, Direction.LEFT)

    def test_last_of_even_layer_has_real_sibling(self):
        assert sibling_position(3, 4) == (2, Direction.LEFT)

    def test_path_directions(self):
        assert path_directions(5, 7) == [Direction.LEFT, Direction.RIGHT, Direction.LEFT]
        assert path_directions(0, 1) == []

    def test_path_directions_out_of_range(self):
        with pytest.raises(IndexOutOfRangeException):
            path_directions(7, 7)


class TestDigestSelection:
    """Trees built with different primitives."""

    def test_explicit_digest_function(self):
        fn = get_digest_function("sha3-256")
        tree = build_tree([b"a", b"b"], digest_function=fn, config=make_config())

        expected = hashlib.sha3_256(
            hashlib.sha3_256(b"a").digest() + hashlib.sha3_256(b"b").digest()
        ).digest()
        assert tree.root_digest() == expected
        assert tree.algorithm == "sha3-256"

    def test_configured_algorithm(self):
        tree = build_tree([b"a"], config=make_config(algorithm="sha512"))

        assert tree.root_digest() == hashlib.sha512(b"a").digest()
        assert len(tree.root_digest()) == 64

    def test_default_config_used_when_omitted(self, monkeypatch):
        monkeypatch.setenv("MERKLEKIT_DIGEST_ALGORITHM", "blake2b-256")

        tree = build_tree([b"a"])

        assert tree.root_digest() == hashlib.blake2b(b"a", digest_size=32).digest()


class TestParallelBuild:
    """Threaded construction must be indistinguishable from sequential."""

    @pytest.mark.parametrize("n", [1, 2, 3, 7, 10, 33, 257])
    def test_parallel_equals_sequential(self, n, parallel_config):
        elements = make_elements(n)

        sequential = build_tree(elements, config=make_config())
        parallel = build_tree(elements, config=parallel_config)

        assert parallel.layers == sequential.layers

    def test_below_threshold_stays_sequential(self):
        config = make_config(parallel=True, parallel_threshold=1000)
        elements = make_elements(9)

        assert build_tree(elements, config=config) == build_tree(elements, config=make_config())

    def test_single_worker(self):
        config = make_config(parallel=True, parallel_threshold=0, max_workers=1)
        elements = make_elements(12)

        assert build_tree(elements, config=config) == build_tree(elements, config=make_config())


class TestElementTypes:
    """Elements other than bytes are converted deterministically."""

    def test_str_elements_utf8(self):
        tree = build_tree(["1", "2"], config=make_config())

        assert tree.root_digest() == h_pair(h(b"1"), h(b"2"))

    def test_bytearray_and_memoryview(self):
        tree = build_tree([bytearray(b"x"), memoryview(b"y")], config=make_config())

        assert tree.root_digest() == h_pair(h(b"x"), h(b"y"))

    @pytest.mark.parametrize("single", [b"abc", bytearray(b"abc"), memoryview(b"abc"), "abc"])
    def test_single_value_instead_of_collection(self, single):
        """A lone bytes/str value is not iterated element by element."""
        with pytest.raises(CanonicalizationException) as exc_info:
            build_tree(single, config=make_config())

        assert exc_info.value.code == "CANONICALIZATION_ERROR"

    def test_list_of_one_bytes_value(self):
        tree = build_tree([b"abc"], config=make_config())

        assert tree.leaf_count == 1
        assert tree.root_digest() == h(b"abc")

    def test_dict_elements_canonical(self):
        a = build_tree([{"b": 2, "a": 1}], config=make_config())
        b = build_tree([{"a": 1, "b": 2}], config=make_config())

        assert a.root_digest() == b.root_digest() == h(b'{"a":1,"b":2}')
