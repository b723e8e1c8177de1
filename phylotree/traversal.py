#!/usr/bin/env python
"""
Traversal Module - Structural queries on trees

Descendant lookups, most recent common ancestors and the edges spanning a
group of tips. Tips are addressed by label, nodes by id.
"""

import logging

from phylotree.errors import DisjointTipSetError
from phylotree.tree import Clade

logger = logging.getLogger(__name__)


def descendant_tips(tree, node):
    """
    Return the labels of all tips below a node.

    Args:
        tree (Tree): The tree to query.
        node (int): Node id; a tip yields its own label.

    Returns:
        frozenset: Tip labels.

    Raises:
        UnknownNodeError: If the node is not in the tree.
    """
    node = tree.check_node(node)
    return frozenset(tree.label(n) for n in tree.preorder(node) if n <= tree.n_tips)


def ancestors(tree, node):
    """Return the ancestors of a node, closest first, ending with the root."""
    path = []
    parent = tree.parent(node)
    while parent is not None:
        path.append(parent)
        parent = tree.parent(parent)
    return path


def most_recent_common_ancestor(tree, tips):
    """
    Find the most recent common ancestor of a set of tips.

    Args:
        tree (Tree): The tree to query.
        tips (iterable of str): Tip labels.

    Returns:
        int: Node id of the ancestor (the tip itself for a single tip).

    Raises:
        DisjointTipSetError: If tips is empty or names unknown tips.
    """
    ids = tip_ids(tree, tips)
    if len(ids) == 1:
        return ids[0]

    # Walk the first tip's lineage and keep the nodes shared by all others
    candidates = ancestors(tree, ids[0])
    for tip in ids[1:]:
        lineage = set(ancestors(tree, tip))
        candidates = [node for node in candidates if node in lineage]
    return candidates[0]


def edges_within_clade(tree, tips):
    """
    Find the edges connecting a set of tips to their most recent common ancestor.

    The edge into the ancestor itself is not included. A single tip yields
    the edge leading to it.

    Args:
        tree (Tree): The tree to query.
        tips (iterable of str): Tip labels.

    Returns:
        list: Ascending 0-based indices into tree.edges.

    Raises:
        DisjointTipSetError: If tips is empty or names unknown tips.
    """
    ids = tip_ids(tree, tips)
    if len(ids) == 1:
        return [tree.edge_index(ids[0])]

    mrca = most_recent_common_ancestor(tree, [tree.label(tip) for tip in ids])
    selected = set()
    for tip in ids:
        node = tip
        while node != mrca:
            index = tree.edge_index(node)
            if index in selected:
                break
            selected.add(index)
            node = tree.parent(node)

    logger.debug(f"Found {len(selected)} edges below node {mrca}")
    return sorted(selected)


def is_binary(tree):
    """Return True if every internal node has exactly two children."""
    return all(len(tree.children(node)) == 2 for node in tree.internal_nodes())


def node_depths(tree):
    """Return a dict of node id -> number of edges between the node and the root."""
    depths = {tree.root: 0}
    for node in tree.preorder():
        for child in tree.children(node):
            depths[child] = depths[node] + 1
    return depths


def subtree_sizes(tree):
    """Return a dict of node id -> number of tips below the node."""
    sizes = {}
    for node in tree.postorder():
        if node <= tree.n_tips:
            sizes[node] = 1
        else:
            sizes[node] = sum(sizes[child] for child in tree.children(node))
    return sizes


def clades(tree):
    """Yield a Clade for every internal node, in node id order."""
    below = {}
    for node in tree.postorder():
        if node <= tree.n_tips:
            below[node] = frozenset([tree.label(node)])
        else:
            below[node] = frozenset().union(*(below[child] for child in tree.children(node)))
    for node in tree.internal_nodes():
        yield Clade(node, below[node])


def tip_ids(tree, tips):
    """Validate a collection of tip labels and return their node ids."""
    if isinstance(tips, str):
        tips = [tips]
    labels = set(tips)
    if not labels:
        raise DisjointTipSetError(labels)
    known = set(tree.tip_labels)
    unknown = labels - known
    if unknown:
        raise DisjointTipSetError(unknown)
    return sorted(tree.tip_id(label) for label in labels)
