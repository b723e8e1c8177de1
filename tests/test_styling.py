#!/usr/bin/env python
"""
Unit tests for the styling module.

These tests verify the per-edge and per-tip values handed to a renderer,
such as highlighting the branches of one clade.
"""

import logging
import pytest

from phylotree.tree_parser import TreeParser
from phylotree.traversal import edges_within_clade
from phylotree.mutators import rotate
from phylotree.styling import edge_styles, tip_styles, DisplayOptions

# Set up logging
logging.basicConfig(level=logging.ERROR)


@pytest.fixture
def rotated_tree():
    return rotate(TreeParser().parse_from_string("((((A,B), C), (D,E)),F);"), 8)


def test_highlight_clade_edges(rotated_tree):
    """Test the (A,B,C) branches are singled out."""
    selected = edges_within_clade(rotated_tree, {'A', 'B', 'C'})
    colors = edge_styles(rotated_tree, selected, 'black', 'darkgrey')

    assert len(colors) == len(rotated_tree.edges)
    assert [i for i, color in enumerate(colors) if color == 'black'] == [5, 6, 7, 8]


def test_edge_styles_out_of_range(rotated_tree):
    """Test bad edge indices are reported."""
    with pytest.raises(IndexError):
        edge_styles(rotated_tree, [10], 2, 1)


def test_tip_styles(rotated_tree):
    """Test tip values are looked up by label."""
    colors = tip_styles(rotated_tree, {'A': 'blue', 'B': 'blue', 'C': 'blue'}, 'red')
    assert colors == ['blue', 'blue', 'blue', 'red', 'red', 'red']


def test_display_options():
    """Test plot settings are checked."""
    options = DisplayOptions(direction='upwards', show_tip_labels=False, edge_width=2, layout='fan')
    assert options.edge_color == 'black'

    with pytest.raises(ValueError):
        DisplayOptions(direction='sideways')
    with pytest.raises(ValueError):
        DisplayOptions(layout='circle')
    with pytest.raises(ValueError):
        DisplayOptions(edge_width=0)
