#!/usr/bin/env python
"""
Mutators Module - Structural changes to trees

Rotation, ladderizing, pruning, clade extraction and binding. Every function
returns a new Tree and leaves its input untouched; a failure raises before
anything is built.
"""

import numbers
import logging

from phylotree.errors import (
    NotBinaryNodeError,
    EmptyResultError,
    InvalidTipCountError,
    DuplicateTipLabelError,
)
from phylotree.tree import Tree, assemble
from phylotree.traversal import tip_ids, subtree_sizes

logger = logging.getLogger(__name__)


def rotate(tree, node):
    """
    Swap the two child subtrees of a node.

    Node ids, topology and edge lengths are unchanged; only the edge order
    (and therefore the display order) changes.

    Args:
        tree (Tree): The tree to rotate.
        node (int): Id of a node with exactly two children.

    Returns:
        Tree: The rotated tree.

    Raises:
        UnknownNodeError: If the node is not in the tree.
        NotBinaryNodeError: If the node does not have exactly two children.
    """
    node = tree.check_node(node)
    kids = tree.children(node)
    if len(kids) != 2:
        raise NotBinaryNodeError(node, len(kids))

    children = tree.children_map()
    children[node] = [kids[1], kids[0]]
    logger.debug(f"Rotated node {node}")
    return _reorder(tree, children)


def ladderize(tree, right=True):
    """
    Reorder the children of every node by the number of tips they carry.

    Args:
        tree (Tree): The tree to ladderize.
        right (bool): Put larger clades first, so the smallest clade ends up on
                      the right-hand side of an upwards plot. False reverses this.

    Returns:
        Tree: The ladderized tree, with the same node ids.
    """
    sizes = subtree_sizes(tree)
    children = {
        node: sorted(kids, key=lambda child: sizes[child], reverse=right)
        for node, kids in tree.children_map().items()
    }
    return _reorder(tree, children)


def prune(tree, tips):
    """
    Remove tips and the structure that only served them.

    Internal nodes left without children are removed and nodes left with a
    single child are spliced out, their edge lengths summed into the child's.
    Remaining nodes are renumbered contiguously in the order of their old ids.

    Args:
        tree (Tree): The tree to prune.
        tips (iterable of str): Labels of the tips to remove.

    Returns:
        Tree: The pruned tree.

    Raises:
        DisjointTipSetError: If tips is empty or names unknown tips.
        EmptyResultError: If fewer than two tips would remain.
    """
    dropped = set(tip_ids(tree, tips))
    remaining = tree.n_tips - len(dropped)
    if remaining < 2:
        raise EmptyResultError(remaining)

    lengths = tree.length_map()
    new_lengths = dict(lengths) if lengths is not None else None
    new_children = {}

    # Each surviving node is represented in its parent by a stand-in: itself,
    # or the single descendant it collapses onto
    stand_in = {}
    for node in tree.postorder():
        if tree.is_tip(node):
            if node not in dropped:
                stand_in[node] = node
            continue

        kids = [stand_in[child] for child in tree.children(node) if child in stand_in]
        if not kids:
            continue
        if len(kids) == 1:
            kid = kids[0]
            if new_lengths is not None and node != tree.root:
                new_lengths[kid] += lengths[node]
            stand_in[node] = kid
        else:
            new_children[node] = kids
            stand_in[node] = node

    pruned = _renumber(tree, stand_in[tree.root], new_children, new_lengths)
    logger.info(f"Pruned {len(dropped)} tips, {pruned.n_tips} remaining")
    return pruned


def drop_random_tips(tree, m, rng):
    """
    Remove m tips chosen at random.

    Args:
        tree (Tree): The tree to prune.
        m (int): Number of tips to remove.
        rng (numpy.random.Generator): Source of randomness.

    Returns:
        Tree: The pruned tree.

    Raises:
        InvalidTipCountError: If m is negative or exceeds the number of tips.
        EmptyResultError: If fewer than two tips would remain.
    """
    if isinstance(m, bool) or not isinstance(m, numbers.Integral) or not 0 <= m <= tree.n_tips:
        raise InvalidTipCountError(m, f"Cannot drop {m} tips from a tree with {tree.n_tips} tips")
    if m == 0:
        return tree.copy()

    chosen = [tree.tip_labels[i] for i in rng.permutation(tree.n_tips)[:m]]
    logger.debug(f"Dropping random tips: {', '.join(chosen)}")
    return prune(tree, chosen)


def extract_clade(tree, node):
    """
    Return the subtree below an internal node as a standalone tree.

    Raises:
        UnknownNodeError: If the node is not in the tree.
        EmptyResultError: If the node is a tip.
    """
    if tree.is_tip(node):
        raise EmptyResultError(1, f"Node {node} is a tip, a clade needs at least 2 tips")

    all_children = tree.children_map()
    children = {n: all_children[n] for n in tree.preorder(node) if n in all_children}
    return _renumber(tree, int(node), children, tree.length_map())


def bind(host, graft, where, edge_length=0.0):
    """
    Attach one tree to another.

    Where the graft goes depends on the attachment node: below a non-root
    internal node the graft's root becomes an extra child; at a tip a new node
    takes the tip's place with the tip and the graft as children; at the root a
    new root is created above the old root and the graft.

    Args:
        host (Tree): Tree receiving the graft.
        graft (Tree): Tree to attach.
        where (int): Node id in host.
        edge_length (float): Length of the edge into the graft's root.

    Returns:
        Tree: The combined tree; host tips are numbered before graft tips.

    Raises:
        DuplicateTipLabelError: If the trees share tip labels.
        UnknownNodeError: If where is not a node of host.
    """
    shared = set(host.tip_labels) & set(graft.tip_labels)
    if shared:
        raise DuplicateTipLabelError(shared)
    where = host.check_node(where)

    # Graft nodes are shifted past the host's ids
    offset = host.n_nodes
    new_node = host.n_nodes + graft.n_nodes + 1
    graft_root = graft.root + offset

    children = host.children_map()
    for node, kids in graft.children_map().items():
        children[node + offset] = [kid + offset for kid in kids]

    tip_labels = dict(enumerate(host.tip_labels, start=1))
    tip_labels.update({node + offset: label for node, label in enumerate(graft.tip_labels, start=1)})
    node_labels = dict(host.node_labels)
    node_labels.update({node + offset: label for node, label in graft.node_labels.items()})

    weighted = host.is_weighted and graft.is_weighted
    if host.is_weighted != graft.is_weighted:
        logger.warning("Only one of the trees has branch lengths, the combined tree will have none")
    lengths = {}
    if weighted:
        lengths.update(host.length_map())
        lengths.update({node + offset: length for node, length in graft.length_map().items()})
    lengths[graft_root] = edge_length

    root = host.root
    if where == host.root:
        children[new_node] = [host.root, graft_root]
        lengths[host.root] = 0.0
        root = new_node
    elif host.is_tip(where):
        siblings = children[host.parent(where)]
        siblings[siblings.index(where)] = new_node
        children[new_node] = [where, graft_root]
        lengths[new_node] = lengths.get(where)
        lengths[where] = 0.0
    else:
        children[where].append(graft_root)

    combined = assemble(root, children, tip_labels, lengths if weighted else None, node_labels,
                        tip_order=lambda key: key)
    logger.info(f"Bound a {graft.n_tips}-tip tree at node {where}, result has {combined.n_tips} tips")
    return combined


def _reorder(tree, children):
    """Rebuild a tree's edge list from a reordered children map, keeping node ids."""
    lengths = tree.length_map()
    edges = []
    new_lengths = [] if lengths is not None else None
    stack = [(tree.root, None)]
    while stack:
        node, parent = stack.pop()
        if parent is not None:
            edges.append((parent, node))
            if new_lengths is not None:
                new_lengths.append(lengths[node])
        stack.extend((kid, node) for kid in reversed(children.get(node, ())))
    return Tree(tree.tip_labels, tree.n_internal, edges, new_lengths, tree.node_labels)


def _renumber(tree, root, children, lengths):
    """Assemble a subset of a tree, keeping the relative order of the old ids."""
    tip_labels = {node: tree.tip_labels[node - 1] for node in range(1, tree.n_tips + 1)}
    return assemble(root, children, tip_labels, lengths, tree.node_labels,
                    tip_order=lambda key: key, node_order=lambda key: key)
