#!/usr/bin/env python
"""
Collection Module - Ordered collections of trees

A TreeCollection holds independent trees (for example a posterior sample
read from a NEXUS file) with 0-based indexed access and optional names.
"""

import logging

from phylotree.tree import Tree


class TreeCollection:
    """Ordered, indexable sequence of trees."""

    def __init__(self, trees=None, names=None):
        """
        Initialize with trees and optional names.

        Args:
            trees (iterable of Tree, optional): The trees, in order.
            names (iterable of str, optional): One name (or None) per tree.
        """
        self.logger = logging.getLogger(__name__)
        self._trees = []
        self._names = []

        trees = list(trees or [])
        names = list(names) if names is not None else [None] * len(trees)
        if len(names) != len(trees):
            raise ValueError(f"Got {len(names)} names for {len(trees)} trees")
        for tree, name in zip(trees, names):
            self.append(tree, name)

    @classmethod
    def from_newick_strings(cls, strings, config=None):
        """
        Parse one tree per Newick string.

        Args:
            strings (iterable of str): Newick strings, in order.
            config (dict, optional): TreeParser configuration.

        Returns:
            TreeCollection: The parsed trees.
        """
        # Imported here, the parser module builds collections itself
        from phylotree.tree_parser import TreeParser

        parser = TreeParser(config=config)
        return cls([parser.parse_from_string(text) for text in strings])

    @property
    def names(self):
        return list(self._names)

    def append(self, tree, name=None):
        """Add a copy of a tree at the end of the collection."""
        if not isinstance(tree, Tree):
            raise TypeError(f"Expected a Tree, got {type(tree).__name__}")
        self._trees.append(tree.copy())
        self._names.append(name)

    def map(self, func):
        """
        Apply a tree -> tree function to every tree.

        Returns:
            TreeCollection: The results, with the same names.
        """
        self.logger.debug(f"Applying {getattr(func, '__name__', func)} to {len(self)} trees")
        return TreeCollection([func(tree) for tree in self._trees], names=self._names)

    def __len__(self):
        return len(self._trees)

    def __iter__(self):
        return iter(self._trees)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return TreeCollection(self._trees[index], names=self._names[index])
        return self._trees[index]

    def __repr__(self):
        return f"TreeCollection({len(self)} trees)"
