#!/usr/bin/env python
"""
Errors Module - Exceptions raised by tree construction, queries and mutators

All exceptions derive from TreeError, which is itself a ValueError, so code
that catches ValueError for bad tree input keeps working.
"""


class TreeError(ValueError):
    """Base class for all tree validation failures."""


class MalformedTopologyError(TreeError):
    """Raised when tree text or a tree structure does not describe one rooted tree."""

    def __init__(self, message, position=None):
        self.position = position
        if position is not None:
            message = f"{message} (at {position})"
        super().__init__(message)


class InvalidTipCountError(TreeError):
    """Raised when a requested number of tips cannot be honoured."""

    def __init__(self, count, message=None):
        self.count = count
        super().__init__(message or f"Invalid tip count: {count}")


class UnknownNodeError(TreeError):
    """Raised when a node id is not present in the tree."""

    def __init__(self, node):
        self.node = node
        super().__init__(f"Unknown node: {node}")


class DisjointTipSetError(TreeError):
    """Raised when a tip set is empty or names tips that are not in the tree."""

    def __init__(self, tips, message=None):
        self.tips = tips
        if message is None:
            if tips:
                message = f"Unknown tips: {', '.join(sorted(map(str, tips)))}"
            else:
                message = "Tip set is empty"
        super().__init__(message)


class NotBinaryNodeError(TreeError):
    """Raised when an operation needs a node with exactly two children."""

    def __init__(self, node, n_children):
        self.node = node
        self.n_children = n_children
        super().__init__(f"Node {node} has {n_children} children, expected 2")


class EmptyResultError(TreeError):
    """Raised when an operation would leave fewer than two tips."""

    def __init__(self, remaining, message=None):
        self.remaining = remaining
        super().__init__(message or f"Operation would leave {remaining} tip(s), at least 2 required")


class DuplicateTipLabelError(TreeError):
    """Raised when two trees to be combined share tip labels."""

    def __init__(self, labels):
        self.labels = sorted(labels)
        super().__init__(f"Duplicate tip labels: {', '.join(self.labels)}")
