#!/usr/bin/env python
"""
Polytomy Finder Module - Census of multifurcating nodes

Lists every node of a numbered Tree with three or more children, together
with its depth below the root and whether all of its children are clades.
"""

import logging
from collections import namedtuple

from phylotree.traversal import node_depths

# One multifurcating node: id, child count, edges from the root, child ids
Polytomy = namedtuple('Polytomy', ['node', 'degree', 'depth', 'children', 'is_internal'])


class PolytomyFinder:
    """Collects the multifurcating nodes of a Tree."""

    def __init__(self, tree):
        """
        Args:
            tree (Tree): Tree whose nodes are inspected.
        """
        self.tree = tree
        self.polytomies = []
        self._searched = False
        self.logger = logging.getLogger(__name__)

    def find_all_polytomies(self):
        """
        Walk the tree in postorder and record every node with more than two children.

        Returns:
            list: Polytomy tuples, deepest first and then by decreasing degree.
        """
        self.logger.info("Searching for polytomies in tree")
        self.polytomies = []
        depths = node_depths(self.tree)

        for node in self.tree.postorder():
            children = self.tree.children(node)
            if len(children) > 2:
                depth = depths[node]

                # A polytomy is internal when none of its children are tips
                is_internal = not any(self.tree.is_tip(child) for child in children)
                self.polytomies.append(Polytomy(
                    node=node,
                    degree=len(children),
                    depth=depth,
                    children=children,
                    is_internal=is_internal
                ))
                self.logger.debug(f"Found polytomy at node {node} with {len(children)} children at depth {depth}")

        self.polytomies.sort(key=lambda p: (-p.depth, -p.degree))
        self._searched = True

        self.logger.info(f"Found {len(self.polytomies)} polytomies in tree")
        return self.polytomies

    def get_polytomies(self):
        """
        Polytomies found so far, running the census on first use.
        """
        if not self._searched:
            self.find_all_polytomies()
        return self.polytomies

    def get_polytomy_stats(self):
        """
        Summarize the census.

        Returns:
            dict: Total count, counts keyed by child count, how many have
                  a tip child, and the largest depth and child count.
        """
        polytomies = self.get_polytomies()

        degree_counts = {}
        for polytomy in polytomies:
            degree_counts[polytomy.degree] = degree_counts.get(polytomy.degree, 0) + 1

        internal_count = sum(1 for p in polytomies if p.is_internal)

        return {
            'total_polytomies': len(polytomies),
            'by_degree': degree_counts,
            'internal_polytomies': internal_count,
            'terminal_polytomies': len(polytomies) - internal_count,
            'max_depth': max((p.depth for p in polytomies), default=0),
            'max_degree': max((p.degree for p in polytomies), default=0)
        }
