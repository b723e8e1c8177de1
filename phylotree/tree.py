#!/usr/bin/env python
"""
Tree Module - The rooted tree data model

A Tree is an immutable value made of tip labels, an internal node count, an
edge list of (parent, child) node ids and optional edge lengths. Tips are
numbered 1..T, internal nodes T+1..T+n_internal and the root is always T+1.
Edges are kept in cladewise order: a preorder walk lists the edge into each
node when that node is visited.
"""

import math
import numbers
import logging
from collections import namedtuple

from phylotree.errors import (
    MalformedTopologyError,
    InvalidTipCountError,
    UnknownNodeError,
    DisjointTipSetError,
)

logger = logging.getLogger(__name__)

# An internal node together with the labels of all tips below it
Clade = namedtuple('Clade', ['node', 'tips'])


class Tree:
    """Rooted phylogenetic tree with numbered nodes and an ordered edge list."""

    def __init__(self, tip_labels, n_internal, edges, edge_lengths=None, node_labels=None):
        """
        Build and validate a tree.

        Args:
            tip_labels (iterable of str): Labels of tips 1..T, in order.
            n_internal (int): Number of internal nodes, root included.
            edges (iterable): (parent, child) node id pairs.
            edge_lengths (iterable of float, optional): One length per edge.
            node_labels (dict, optional): Internal node id -> label.

        Raises:
            MalformedTopologyError: If the arguments do not describe one rooted tree.
        """
        self.tip_labels = tuple(str(label) for label in tip_labels)
        self.n_internal = int(n_internal)
        self.edges = tuple((int(parent), int(child)) for parent, child in edges)
        if edge_lengths is None:
            self.edge_lengths = None
        else:
            self.edge_lengths = tuple(float(length) for length in edge_lengths)
        self.node_labels = {
            int(node): str(label)
            for node, label in (node_labels or {}).items()
            if label is not None and str(label) != ''
        }

        self._children = {}
        self._parent = {}
        self._edge_of = {}
        self._tip_ids = {}
        self._validate()

    @property
    def n_tips(self):
        return len(self.tip_labels)

    @property
    def n_nodes(self):
        return self.n_tips + self.n_internal

    @property
    def root(self):
        return self.n_tips + 1

    @property
    def is_weighted(self):
        return self.edge_lengths is not None

    def has_node(self, node):
        """Return True if node is a valid node id of this tree."""
        return (isinstance(node, numbers.Integral) and not isinstance(node, bool)
                and 1 <= node <= self.n_nodes)

    def check_node(self, node):
        """
        Make sure a node id exists.

        Raises:
            UnknownNodeError: If the node id is not part of the tree.
        """
        if not self.has_node(node):
            raise UnknownNodeError(node)
        return int(node)

    def is_tip(self, node):
        return self.check_node(node) <= self.n_tips

    def children(self, node):
        """Return the children of a node in display order."""
        return tuple(self._children.get(self.check_node(node), ()))

    def parent(self, node):
        """Return the parent of a node, or None for the root."""
        return self._parent.get(self.check_node(node))

    def edge_index(self, node):
        """Return the index of the edge leading into node (None for the root)."""
        return self._edge_of.get(self.check_node(node))

    def edge_length(self, node):
        """Return the length of the edge leading into node, or None."""
        index = self.edge_index(node)
        if index is None or self.edge_lengths is None:
            return None
        return self.edge_lengths[index]

    def tip_id(self, label):
        """
        Return the node id of a tip label.

        Raises:
            DisjointTipSetError: If no tip carries the label.
        """
        try:
            return self._tip_ids[label]
        except KeyError:
            raise DisjointTipSetError([label])

    def label(self, node):
        """Return the tip label or internal node label of a node (None if unlabelled)."""
        if self.is_tip(node):
            return self.tip_labels[node - 1]
        return self.node_labels.get(node)

    def preorder(self, node=None):
        """Iterate over node ids in preorder, starting at node (default: root)."""
        stack = [self.root if node is None else self.check_node(node)]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self._children.get(current, ())))

    def postorder(self, node=None):
        """Iterate over node ids with children visited before their parents."""
        return reversed(list(self._reverse_preorder(node)))

    def _reverse_preorder(self, node):
        # Right-to-left preorder; reversing it yields a left-to-right postorder
        stack = [self.root if node is None else self.check_node(node)]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(self._children.get(current, ()))

    def internal_nodes(self):
        return range(self.n_tips + 1, self.n_nodes + 1)

    def children_map(self):
        """Return a fresh dict of internal node id -> list of children."""
        return {node: list(kids) for node, kids in self._children.items()}

    def length_map(self):
        """Return a fresh dict of child node id -> incoming edge length, or None."""
        if self.edge_lengths is None:
            return None
        return {child: self.edge_lengths[i] for i, (_, child) in enumerate(self.edges)}

    def copy(self):
        """Return an equal, independent tree."""
        return Tree(self.tip_labels, self.n_internal, self.edges, self.edge_lengths, self.node_labels)

    def _validate(self):
        """Check the tree invariants and build the lookup tables."""
        n_tips = self.n_tips
        n_nodes = self.n_nodes

        if n_tips < 2:
            raise MalformedTopologyError(f"A tree needs at least two tips, got {n_tips}")
        if self.n_internal < 1:
            raise MalformedTopologyError("A tree needs at least one internal node")

        for node, label in enumerate(self.tip_labels, start=1):
            if not label:
                raise MalformedTopologyError(f"Tip {node} has an empty label")
            if label in self._tip_ids:
                raise MalformedTopologyError(f"Duplicate tip label '{label}'")
            self._tip_ids[label] = node

        if len(self.edges) != n_nodes - 1:
            raise MalformedTopologyError(
                f"Expected {n_nodes - 1} edges for {n_nodes} nodes, got {len(self.edges)}"
            )

        root = self.root
        for index, (parent, child) in enumerate(self.edges):
            for node in (parent, child):
                if not 1 <= node <= n_nodes:
                    raise MalformedTopologyError(f"Edge {index} refers to unknown node {node}")
            if parent <= n_tips:
                raise MalformedTopologyError(f"Tip {parent} cannot have children")
            if child == root:
                raise MalformedTopologyError(f"Root {root} cannot have a parent")
            if child in self._parent:
                raise MalformedTopologyError(f"Node {child} has more than one parent")
            self._parent[child] = parent
            self._edge_of[child] = index
            self._children.setdefault(parent, []).append(child)

        for node in self.internal_nodes():
            if node not in self._children:
                raise MalformedTopologyError(f"Internal node {node} has no children")

        # Every node has one parent and there are n-1 edges, so reaching all
        # nodes from the root rules out cycles as well
        reached = sum(1 for _ in self.preorder())
        if reached != n_nodes:
            raise MalformedTopologyError(
                f"Only {reached} of {n_nodes} nodes are connected to the root"
            )

        if self.edge_lengths is not None:
            if len(self.edge_lengths) != len(self.edges):
                raise MalformedTopologyError(
                    f"Got {len(self.edge_lengths)} edge lengths for {len(self.edges)} edges"
                )
            for index, length in enumerate(self.edge_lengths):
                if math.isnan(length) or length < 0:
                    raise MalformedTopologyError(f"Edge {index} has invalid length {length}")

        for node in self.node_labels:
            if not n_tips < node <= n_nodes:
                raise MalformedTopologyError(f"Node label given for non-internal node {node}")

    def __eq__(self, other):
        if not isinstance(other, Tree):
            return NotImplemented
        return (self.tip_labels == other.tip_labels
                and self.n_internal == other.n_internal
                and self.edges == other.edges
                and self.edge_lengths == other.edge_lengths
                and self.node_labels == other.node_labels)

    __hash__ = None

    def __repr__(self):
        return f"Tree(n_tips={self.n_tips}, n_internal={self.n_internal}, weighted={self.is_weighted})"

    def __str__(self):
        shown = ', '.join(self.tip_labels[:6])
        if self.n_tips > 6:
            shown += ', ...'
        lengths = 'includes branch lengths' if self.is_weighted else 'no branch lengths'
        return (f"Phylogenetic tree with {self.n_tips} tips and {self.n_internal} internal nodes.\n\n"
                f"Tip labels:\n  {shown}\n\n"
                f"Rooted; {lengths}.")


def assemble(root, children, tip_labels, edge_lengths=None, node_labels=None,
             tip_order=None, node_order=None):
    """
    Number the nodes of a tree given as a children mapping and build a Tree.

    Node keys can be any hashable values. Tips are the keys without children.
    By default tips and internal nodes are numbered in preorder; pass a sort
    key as tip_order or node_order to number them by that key instead (the
    root always comes first among internal nodes). Edges are emitted in
    cladewise order following the child order of the mapping.

    Args:
        root: Key of the root node.
        children (dict): Key -> list of child keys.
        tip_labels (dict): Tip key -> label.
        edge_lengths (dict, optional): Child key -> length of its incoming edge.
        node_labels (dict, optional): Internal key -> label.
        tip_order (callable, optional): Sort key for tip numbering.
        node_order (callable, optional): Sort key for internal node numbering.

    Returns:
        Tree: The numbered tree.
    """
    preorder = []
    parent_of = {}
    stack = [root]
    while stack:
        key = stack.pop()
        preorder.append(key)
        kids = children.get(key) or ()
        for kid in kids:
            parent_of[kid] = key
        stack.extend(reversed(kids))

    tips = [key for key in preorder if not children.get(key)]
    internal = [key for key in preorder if children.get(key)]
    if tip_order is not None:
        tips.sort(key=tip_order)
    if node_order is not None and internal:
        internal = [root] + sorted((key for key in internal if key != root), key=node_order)

    ids = {key: i for i, key in enumerate(tips, start=1)}
    ids.update({key: i for i, key in enumerate(internal, start=len(tips) + 1)})

    edges = [(ids[parent_of[key]], ids[key]) for key in preorder[1:]]
    lengths = None
    if edge_lengths is not None:
        lengths = [edge_lengths[key] for key in preorder[1:]]
    labels = {}
    for key, label in (node_labels or {}).items():
        if key in ids and children.get(key):
            labels[ids[key]] = label

    return Tree([tip_labels[key] for key in tips], len(internal), edges, lengths, labels)


def random_tree(n_tips, rng, branch_lengths=True, tip_prefix='t'):
    """
    Simulate a tree with a random shape.

    The tip set is split recursively into two non-empty parts whose size is
    drawn uniformly. Tip labels are a random permutation of t1..tn.

    Args:
        n_tips (int): Number of tips, at least 2.
        rng (numpy.random.Generator): Source of randomness.
        branch_lengths (bool): Draw edge lengths uniformly from [0, 1).
        tip_prefix (str): Prefix of the generated tip labels.

    Returns:
        Tree: The simulated tree.

    Raises:
        InvalidTipCountError: If n_tips is below 2.
    """
    if isinstance(n_tips, bool) or not isinstance(n_tips, numbers.Integral) or n_tips < 2:
        raise InvalidTipCountError(n_tips, f"Cannot simulate a tree with {n_tips} tips, at least 2 required")
    n_tips = int(n_tips)

    # Tips are keys 0..n-1, internal nodes n, n+1, ...
    names = [f"{tip_prefix}{i + 1}" for i in rng.permutation(n_tips)]
    tip_labels = dict(enumerate(names))
    children = {}
    next_key = n_tips + 1
    stack = [(n_tips, 0, n_tips)]
    while stack:
        key, start, stop = stack.pop()
        split = start + int(rng.integers(1, stop - start))
        kids = []
        for low, high in ((start, split), (split, stop)):
            if high - low == 1:
                kids.append(low)
            else:
                kids.append(next_key)
                stack.append((next_key, low, high))
                next_key += 1
        children[key] = kids

    lengths = None
    if branch_lengths:
        keys = sorted(kid for kids in children.values() for kid in kids)
        lengths = {key: float(value) for key, value in zip(keys, rng.uniform(0.0, 1.0, size=len(keys)))}

    tree = assemble(n_tips, children, tip_labels, lengths)
    logger.debug(f"Simulated tree with {tree.n_tips} tips and {tree.n_internal} internal nodes")
    return tree
