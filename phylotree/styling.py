#!/usr/bin/env python
"""
Styling Module - Display values for an external tree renderer

Nothing here draws. Functions return one value per edge or per tip, lined
up with tree.edges and tree.tip_labels, and DisplayOptions collects the
plot settings a renderer understands.
"""

from dataclasses import dataclass

DIRECTIONS = ('rightwards', 'leftwards', 'upwards', 'downwards')
LAYOUTS = ('phylogram', 'cladogram', 'fan', 'unrooted', 'radial')


def edge_styles(tree, selected, selected_value, default):
    """
    Build a per-edge style vector.

    Args:
        tree (Tree): The tree being displayed.
        selected (iterable of int): Edge indices, e.g. from edges_within_clade.
        selected_value: Value for the selected edges.
        default: Value for every other edge.

    Returns:
        list: One value per edge.

    Raises:
        IndexError: If an edge index is out of range.
    """
    styles = [default] * len(tree.edges)
    for index in selected:
        if not 0 <= index < len(styles):
            raise IndexError(f"Edge index {index} out of range for {len(styles)} edges")
        styles[index] = selected_value
    return styles


def tip_styles(tree, mapping, default):
    """Build a per-tip style vector by looking each tip label up in mapping."""
    return [mapping.get(label, default) for label in tree.tip_labels]


@dataclass
class DisplayOptions:
    """Plot settings handed to a renderer."""

    direction: str = 'rightwards'
    show_tip_labels: bool = True
    tip_label_size: float = 1.0
    edge_width: float = 1.0
    edge_color: str = 'black'
    layout: str = 'phylogram'

    def __post_init__(self):
        if self.direction not in DIRECTIONS:
            raise ValueError(f"Unknown direction '{self.direction}', expected one of {', '.join(DIRECTIONS)}")
        if self.layout not in LAYOUTS:
            raise ValueError(f"Unknown layout '{self.layout}', expected one of {', '.join(LAYOUTS)}")
        if self.tip_label_size <= 0:
            raise ValueError(f"Tip label size must be positive, got {self.tip_label_size}")
        if self.edge_width <= 0:
            raise ValueError(f"Edge width must be positive, got {self.edge_width}")
