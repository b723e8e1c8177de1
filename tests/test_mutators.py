#!/usr/bin/env python
"""
Unit tests for the mutators module.

These tests verify rotation, ladderizing, pruning, random tip dropping,
clade extraction and tree binding, and that none of them change their input.
"""

import logging
import pytest
import numpy as np

from phylotree.errors import (
    NotBinaryNodeError,
    UnknownNodeError,
    EmptyResultError,
    DisjointTipSetError,
    InvalidTipCountError,
    DuplicateTipLabelError,
)
from phylotree.tree import random_tree
from phylotree.tree_parser import TreeParser
from phylotree.traversal import descendant_tips, edges_within_clade, most_recent_common_ancestor, is_binary
from phylotree.mutators import rotate, ladderize, prune, drop_random_tips, extract_clade, bind

# Set up logging
logging.basicConfig(level=logging.ERROR)


# Fixtures
@pytest.fixture
def parser():
    return TreeParser()


@pytest.fixture
def mini_tree(parser):
    """The six species example tree."""
    return parser.parse_from_string("((((A,B), C), (D,E)),F);")


@pytest.fixture
def rotated_tree(mini_tree):
    """The example tree with clades (A,B,C) and (D,E) swapped."""
    return rotate(mini_tree, 8)


@pytest.fixture
def rng():
    return np.random.default_rng(1)


# Rotation
def test_rotate_swaps_sister_clades(mini_tree, rotated_tree):
    """Test rotation reorders edges but keeps node ids."""
    assert rotated_tree.children(8) == (11, 9)
    assert rotated_tree.edges == ((7, 8), (8, 11), (11, 4), (11, 5), (8, 9),
                                  (9, 10), (10, 1), (10, 2), (9, 3), (7, 6))
    assert descendant_tips(rotated_tree, 9) == {'A', 'B', 'C'}
    assert mini_tree.children(8) == (9, 11)


def test_rotate_clade_edges(rotated_tree):
    """Test the clade edges follow the new edge order."""
    assert edges_within_clade(rotated_tree, {'A', 'B', 'C'}) == [5, 6, 7, 8]


def test_rotate_twice_is_identity(mini_tree):
    """Test rotation is its own inverse."""
    for node in mini_tree.internal_nodes():
        assert rotate(rotate(mini_tree, node), node) == mini_tree


def test_rotate_keeps_lengths(parser):
    """Test edge lengths travel with their edges."""
    tree = parser.parse_from_string("((A:1,B:2):3,C:4);")
    rotated = rotate(tree, 5)

    assert rotated.edge_length(rotated.tip_id('A')) == 1.0
    assert rotated.edge_length(rotated.tip_id('B')) == 2.0
    assert rotated.children(5) == (2, 1)


def test_rotate_requires_two_children(mini_tree, parser):
    """Test rotation of tips and polytomies fails."""
    with pytest.raises(NotBinaryNodeError):
        rotate(mini_tree, 1)

    polytomy_tree = parser.parse_from_string("(((A,B,C),(D,E)),F);")
    with pytest.raises(NotBinaryNodeError) as excinfo:
        rotate(polytomy_tree, 9)
    assert excinfo.value.n_children == 3


def test_rotate_unknown_node(mini_tree):
    """Test rotation of an unknown node fails."""
    with pytest.raises(UnknownNodeError):
        rotate(mini_tree, 12)


# Ladderizing
def test_ladderize(parser):
    """Test larger clades come first by default."""
    tree = parser.parse_from_string("((A,(B,C)),D);")

    right = ladderize(tree)
    assert right.children(6) == (7, 1)
    assert right.children(5) == (6, 4)

    left = ladderize(tree, right=False)
    assert left.children(5) == (4, 6)
    assert left.children(6) == (1, 7)


# Pruning
def test_prune_clade(rotated_tree, parser):
    """Test dropping the (A,B,C) clade leaves ((D,E),F)."""
    clade = descendant_tips(rotated_tree, 9)
    pruned = prune(rotated_tree, clade)

    assert pruned.n_tips == rotated_tree.n_tips - len(clade)
    assert pruned == parser.parse_from_string("((D,E),F);")


def test_prune_does_not_change_input(mini_tree):
    """Test the input tree is untouched."""
    before = mini_tree.copy()
    prune(mini_tree, ['A'])
    assert mini_tree == before


def test_prune_sums_lengths(parser):
    """Test spliced edges add their lengths."""
    tree = parser.parse_from_string("((A:1,B:2):3,C:4);")
    assert prune(tree, ['B']) == parser.parse_from_string("(A:4,C:4);")


def test_prune_collapses_root(parser):
    """Test a root left with one child is replaced by it."""
    tree = parser.parse_from_string("((A:1,B:1):2,(C:1,D:1):2);")
    assert prune(tree, ['C', 'D']) == parser.parse_from_string("(A:1,B:1);")


def test_prune_keeps_relative_order(mini_tree):
    """Test surviving nodes are renumbered contiguously in their old order."""
    pruned = prune(mini_tree, ['B'])

    assert pruned.tip_labels == ('A', 'C', 'D', 'E', 'F')
    assert pruned.n_internal == 4
    assert pruned.edges == ((6, 7), (7, 8), (8, 1), (8, 2), (7, 9), (9, 3), (9, 4), (6, 5))


def test_prune_too_many(mini_tree):
    """Test removing all but one tip fails."""
    with pytest.raises(EmptyResultError):
        prune(mini_tree, ['A', 'B', 'C', 'D', 'E'])


def test_prune_unknown_tip(mini_tree):
    """Test unknown labels are rejected."""
    with pytest.raises(DisjointTipSetError):
        prune(mini_tree, ['Z'])


def test_drop_random_tips(rng):
    """Test random tip dropping removes the requested number of tips."""
    tree = random_tree(30, rng)
    pruned = drop_random_tips(tree, 2, np.random.default_rng(5))

    assert pruned.n_tips == 28
    assert set(pruned.tip_labels) < set(tree.tip_labels)
    assert pruned == drop_random_tips(tree, 2, np.random.default_rng(5))


def test_drop_random_tips_bounds(mini_tree, rng):
    """Test the number of dropped tips is checked."""
    assert drop_random_tips(mini_tree, 0, rng) == mini_tree
    with pytest.raises(InvalidTipCountError):
        drop_random_tips(mini_tree, 7, rng)
    with pytest.raises(InvalidTipCountError):
        drop_random_tips(mini_tree, -1, rng)
    with pytest.raises(EmptyResultError):
        drop_random_tips(mini_tree, 5, rng)


# Clade extraction
def test_extract_clade(mini_tree, parser):
    """Test extracting the (A,B,C) clade."""
    assert extract_clade(mini_tree, 9) == parser.parse_from_string("((A,B),C);")


def test_extract_clade_of_tip(mini_tree):
    """Test a tip is not a clade."""
    with pytest.raises(EmptyResultError):
        extract_clade(mini_tree, 2)


# Binding
def test_bind_at_tip():
    """Test binding two disjoint 10-tip trees at the host's first tip."""
    host = random_tree(10, np.random.default_rng(1))
    graft = random_tree(10, np.random.default_rng(2), tip_prefix='s')

    combined = bind(host, graft, 1)

    assert combined.n_tips == 20
    assert len(set(combined.tip_labels)) == 20
    assert combined.tip_labels[:10] == host.tip_labels
    assert is_binary(combined)
    assert combined.is_weighted
    assert most_recent_common_ancestor(combined, [host.tip_labels[0]] + list(graft.tip_labels)) \
        == combined.parent(combined.tip_id(host.tip_labels[0]))


def test_bind_duplicate_labels():
    """Test trees sharing tip names cannot be bound."""
    host = random_tree(10, np.random.default_rng(1))
    graft = random_tree(10, np.random.default_rng(2))

    with pytest.raises(DuplicateTipLabelError) as excinfo:
        bind(host, graft, 1)
    assert len(excinfo.value.labels) == 10


def test_bind_at_root(parser):
    """Test binding at the root creates a new root."""
    host = parser.parse_from_string("(A,B);")
    graft = parser.parse_from_string("(C,D);")

    assert bind(host, graft, host.root) == parser.parse_from_string("((A,B),(C,D));")


def test_bind_at_internal_node(mini_tree, parser):
    """Test binding below an internal node adds a child to it."""
    graft = parser.parse_from_string("(X,Y);")
    combined = bind(mini_tree, graft, 9)

    node = most_recent_common_ancestor(combined, ['A', 'C'])
    assert combined.n_tips == 8
    assert len(combined.children(node)) == 3
    assert descendant_tips(combined, node) == {'A', 'B', 'C', 'X', 'Y'}


def test_bind_lengths(parser):
    """Test edge lengths around a tip attachment."""
    host = parser.parse_from_string("(A:1,B:2);")
    graft = parser.parse_from_string("(C:1,D:1);")
    combined = bind(host, graft, 1, edge_length=0.5)

    tip = combined.tip_id('A')
    assert combined.edge_length(tip) == 0.0
    assert combined.edge_length(combined.parent(tip)) == 1.0
    assert combined.edge_length(most_recent_common_ancestor(combined, ['C', 'D'])) == 0.5
    assert sum(combined.edge_lengths) == 5.5


def test_bind_mixed_lengths(parser):
    """Test lengths are dropped unless both trees have them."""
    host = parser.parse_from_string("(A:1,B:2);")
    graft = parser.parse_from_string("(C,D);")
    assert not bind(host, graft, host.root).is_weighted


def test_bind_unknown_node(mini_tree, parser):
    """Test binding at an unknown node fails."""
    with pytest.raises(UnknownNodeError):
        bind(mini_tree, parser.parse_from_string("(X,Y);"), 99)
