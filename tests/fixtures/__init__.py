"""
Test fixtures package for merklekit tests.

Usage:
    from fixtures import make_tree, h

    def test_something():
        tree, elements = make_tree(5)
        assert tree.leaf_digest(0) == h(elements[0])
"""

from .common import (
    flip_byte,
    h,
    h_pair,
    make_config,
    make_elements,
    make_tree,
)

__all__ = [
    "flip_byte",
    "h",
    "h_pair",
    "make_config",
    "make_elements",
    "make_tree",
]
