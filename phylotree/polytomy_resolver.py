#!/usr/bin/env python
"""
Polytomy Resolver Module - Resolves polytomies in phylogenetic trees

Every node with more than two children is replaced by a binary structure
of new internal nodes joined by zero-length edges. Children are joined
either in their current order or in a random binary topology drawn from an
injected random generator.
"""

import logging
from enum import Enum

import numpy as np

from phylotree.tree import assemble
from phylotree.polytomy_finder import PolytomyFinder


class Strategy(Enum):
    """How the children of a polytomy are paired up."""

    RANDOM = 'random'
    ORDERED = 'ordered'

    @classmethod
    def parse(cls, value):
        """Accept a Strategy or its name, case-insensitively."""
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).upper()]
        except KeyError:
            raise ValueError(f"Unknown polytomy resolution strategy: {value}")


class PolytomyResolver:
    """Turns a multifurcating tree into a fully binary one."""

    def __init__(self, tree, config=None, rng=None):
        """
        Initialize with a tree and optional configuration.

        Args:
            tree (Tree): The tree containing polytomies to resolve.
            config (dict, optional): Can include 'strategy' ('random' or 'ordered',
                                     default 'random') and 'seed' (used to build a
                                     generator when rng is not given).
            rng (numpy.random.Generator, optional): Source of randomness for the
                                                    random strategy.
        """
        self.tree = tree
        self.config = config or {}
        self.logger = logging.getLogger(__name__)

        self.strategy = Strategy.parse(self.config.get('strategy', Strategy.RANDOM))
        if rng is None and self.config.get('seed') is not None:
            rng = np.random.default_rng(self.config['seed'])
        self.rng = rng

        self.resolved_tree = None
        self.resolved_count = 0
        self.inserted_nodes = 0

    def resolve_all_polytomies(self):
        """
        Resolve all polytomies in the tree.

        Tips keep their ids; internal nodes are renumbered in preorder. A tree
        without polytomies comes back as an unchanged copy.

        Returns:
            Tree: The resolved tree.

        Raises:
            ValueError: If the random strategy is used without a generator.
        """
        if self.strategy is Strategy.RANDOM and self.rng is None:
            raise ValueError("Random polytomy resolution needs a random generator or a seed")

        polytomies = PolytomyFinder(self.tree).find_all_polytomies()
        self.resolved_count = 0
        self.inserted_nodes = 0
        if not polytomies:
            self.logger.info("Tree is already binary")
            self.resolved_tree = self.tree.copy()
            return self.resolved_tree

        self.logger.info(f"Resolving {len(polytomies)} polytomies using the {self.strategy.value} strategy")
        children = self.tree.children_map()
        lengths = self.tree.length_map()
        next_key = self.tree.n_nodes + 1

        # Resolve in node id order so a seeded generator gives reproducible trees
        for polytomy in sorted(polytomies, key=lambda p: p.node):
            structure = self.resolve_polytomy(polytomy.node, list(polytomy.children), next_key)
            next_key += len(structure) - 1
            children.update(structure)
            if lengths is not None:
                for key in structure:
                    if key != polytomy.node:
                        lengths[key] = 0.0
            self.resolved_count += 1
            self.inserted_nodes += len(structure) - 1

        tip_labels = dict(enumerate(self.tree.tip_labels, start=1))
        self.resolved_tree = assemble(self.tree.root, children, tip_labels, lengths,
                                      self.tree.node_labels, tip_order=lambda key: key)

        self.logger.info(f"Resolved {self.resolved_count} polytomies by inserting {self.inserted_nodes} nodes")
        return self.resolved_tree

    def resolve_polytomy(self, node, kids, next_key):
        """
        Build a binary structure over the children of one polytomy.

        :param node: Key of the polytomy node; it becomes the top of the structure.
        :param kids: Children of the polytomy, in display order.
        :param next_key: First key to use for new internal nodes.
        :return: Dict of node key -> two children, for the polytomy and every new node.
        """
        if self.strategy is Strategy.RANDOM:
            kids = [kids[i] for i in self.rng.permutation(len(kids))]

        structure = {}
        stack = [(node, kids)]
        while stack:
            key, group = stack.pop()
            if self.strategy is Strategy.RANDOM:
                split = int(self.rng.integers(1, len(group)))
            else:
                split = 1
            pair = []
            for part in (group[:split], group[split:]):
                if len(part) == 1:
                    pair.append(part[0])
                else:
                    pair.append(next_key)
                    stack.append((next_key, part))
                    next_key += 1
            structure[key] = pair

        self.logger.debug(f"Resolved polytomy at node {node} with {len(kids)} children")
        return structure


def resolve_polytomies(tree, strategy=Strategy.RANDOM, rng=None):
    """
    Resolve every polytomy of a tree.

    Args:
        tree (Tree): The tree to resolve.
        strategy (Strategy or str): RANDOM or ORDERED.
        rng (numpy.random.Generator, optional): Required for RANDOM.

    Returns:
        Tree: A fully binary tree.
    """
    resolver = PolytomyResolver(tree, config={'strategy': strategy}, rng=rng)
    return resolver.resolve_all_polytomies()
