#!/usr/bin/env python
"""
Tree Parser Module - Reads and writes bracket-notation (Newick) trees

This module parses Newick and NEXUS text with DendroPy and converts the
result into the Tree data model, checking that the text describes exactly
one rooted tree with uniquely labelled tips. Multi-tree files are returned
as a TreeCollection.
"""

import os
import logging

import dendropy

from phylotree.errors import MalformedTopologyError
from phylotree.tree import assemble
from phylotree.collection import TreeCollection

logger = logging.getLogger(__name__)

NEXUS_EXTENSIONS = ('.nex', '.nexus', '.nxs')


class TreeParser:
    """Parses Newick and NEXUS trees into Tree objects."""

    def __init__(self, config=None):
        """
        Initialize the tree parser.

        Args:
            config (dict, optional): Configuration dictionary. Can include
                                     'schema' (extra DendroPy reader arguments)
                                     and 'collection_schema' ('newick' or 'nexus').
        """
        self.config = config or {}
        self.logger = logging.getLogger(__name__)

    def parse_from_string(self, newick_string):
        """
        Parse a single Newick tree from a string.

        Args:
            newick_string (str): Newick tree string, terminated by ';'.

        Returns:
            Tree: The parsed tree.

        Raises:
            MalformedTopologyError: If the string does not describe exactly one valid tree.
        """
        self.logger.info("Parsing tree from string")

        if newick_string is None or not newick_string.strip():
            raise MalformedTopologyError("Empty tree string", position=0)

        end = check_brackets(newick_string)
        trailing = newick_string[end + 1:].strip()
        if trailing:
            raise MalformedTopologyError(f"Unexpected text after ';': '{trailing[:20]}'", position=end + 1)

        try:
            dendropy_tree = dendropy.Tree.get(
                data=newick_string,
                schema="newick",
                **self._get_schema_kwargs()
            )
        except Exception as e:
            self.logger.error(f"Failed to parse tree string: {str(e)}")
            raise MalformedTopologyError(f"Could not parse tree string: {str(e)}",
                                         position=_error_position(e)) from e

        tree = from_dendropy(dendropy_tree)
        self._log_tree_stats(tree)
        return tree

    def parse_from_file(self, filepath, schema=None):
        """
        Parse a single tree from a file path.

        NEXUS files yield their first tree.

        Args:
            filepath (str): Path to the tree file.
            schema (str, optional): 'newick' or 'nexus'; guessed from the extension if omitted.

        Returns:
            Tree: The parsed tree.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            MalformedTopologyError: If the file cannot be parsed as a tree.
        """
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Tree file not found: {filepath}")

        schema = schema or self._guess_schema(filepath)
        self.logger.info(f"Parsing tree from file: {filepath}")

        if schema == 'nexus':
            collection = self.parse_collection_from_file(filepath, schema=schema)
            return collection[0]

        with open(filepath) as handle:
            return self.parse_from_string(handle.read())

    def parse_collection_from_file(self, filepath, schema=None):
        """
        Parse every tree in a Newick or NEXUS file.

        Args:
            filepath (str): Path to the tree file.
            schema (str, optional): 'newick' or 'nexus'; defaults to the configured
                                    'collection_schema' or a guess from the extension.

        Returns:
            TreeCollection: The trees in file order, named after the file's tree names.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            MalformedTopologyError: If the file or any tree in it is invalid.
        """
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Tree file not found: {filepath}")

        schema = schema or self.config.get('collection_schema') or self._guess_schema(filepath)
        self.logger.info(f"Parsing {schema} tree collection from file: {filepath}")

        try:
            tree_list = dendropy.TreeList.get(
                path=filepath,
                schema=schema,
                **self._get_schema_kwargs()
            )
        except Exception as e:
            self.logger.error(f"Failed to parse tree file: {str(e)}")
            raise MalformedTopologyError(f"Could not parse tree file: {str(e)}",
                                         position=_error_position(e)) from e

        return self._to_collection(tree_list)

    def parse_collection_from_string(self, text, schema='newick'):
        """
        Parse every tree in a Newick or NEXUS string.

        Returns:
            TreeCollection: The trees in order of appearance.
        """
        try:
            tree_list = dendropy.TreeList.get(
                data=text,
                schema=schema,
                **self._get_schema_kwargs()
            )
        except Exception as e:
            self.logger.error(f"Failed to parse tree collection: {str(e)}")
            raise MalformedTopologyError(f"Could not parse tree collection: {str(e)}",
                                         position=_error_position(e)) from e

        return self._to_collection(tree_list)

    def _to_collection(self, tree_list):
        """Convert a DendroPy TreeList, naming the offending tree on failure."""
        if len(tree_list) == 0:
            raise MalformedTopologyError("No trees found")

        trees = []
        names = []
        for index, dendropy_tree in enumerate(tree_list):
            try:
                trees.append(from_dendropy(dendropy_tree))
            except MalformedTopologyError as e:
                raise MalformedTopologyError(f"Tree {index} is invalid: {str(e)}", position=e.position) from e
            names.append(dendropy_tree.label)

        self.logger.info(f"Parsed {len(trees)} trees")
        return TreeCollection(trees, names=names)

    def _get_schema_kwargs(self):
        """
        Get DendroPy reader keyword arguments.

        Returns:
            dict: Schema-specific keyword arguments.
        """
        schema_kwargs = {
            'preserve_underscores': True,
            'suppress_internal_node_taxa': True,
            'suppress_leaf_node_taxa': False,
            'case_sensitive_taxon_labels': True,
            'rooting': 'force-rooted',
        }

        # Add any schema-specific settings from config
        if 'schema' in self.config:
            schema_kwargs.update(self.config['schema'])

        # Case-sensitive reads need a case-sensitive namespace
        if schema_kwargs.get('case_sensitive_taxon_labels') and 'taxon_namespace' not in schema_kwargs:
            schema_kwargs['taxon_namespace'] = dendropy.TaxonNamespace(is_case_sensitive=True)

        return schema_kwargs

    def _guess_schema(self, filepath):
        if filepath.lower().endswith(NEXUS_EXTENSIONS):
            return 'nexus'
        return 'newick'

    def _log_tree_stats(self, tree):
        """Log statistics about the parsed tree."""
        self.logger.info(f"Tree parsed successfully with {tree.n_tips} tips, "
                         f"{tree.n_internal} internal nodes, and {len(tree.edges)} edges")


def check_brackets(text):
    """
    Check the bracket nesting of a Newick string.

    Quoted labels and [comments] are skipped.

    Args:
        text (str): Newick text.

    Returns:
        int: Position of the terminating ';'.

    Raises:
        MalformedTopologyError: On unbalanced brackets or a missing ';'.
    """
    depth = 0
    quoted = False
    in_comment = False
    for position, char in enumerate(text):
        if quoted:
            if char == "'":
                quoted = False
        elif in_comment:
            if char == ']':
                in_comment = False
        elif char == "'":
            quoted = True
        elif char == '[':
            in_comment = True
        elif char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
            if depth < 0:
                raise MalformedTopologyError("Unbalanced ')'", position=position)
        elif char == ';':
            if depth:
                raise MalformedTopologyError(f"{depth} unclosed '(' before ';'", position=position)
            return position

    if quoted:
        raise MalformedTopologyError("Unterminated quoted label", position=len(text))
    if depth:
        raise MalformedTopologyError(f"{depth} unclosed '('", position=len(text))
    raise MalformedTopologyError("Missing terminating ';'", position=len(text))


def from_dendropy(dendropy_tree):
    """
    Convert a DendroPy tree into a Tree.

    Tips and internal nodes are numbered in preorder, the way they appear in
    the bracket notation.

    Raises:
        MalformedTopologyError: On unlabelled or duplicated tips, unary nodes
                                or negative edge lengths.
    """
    seed = dendropy_tree.seed_node
    if not seed.child_nodes():
        raise MalformedTopologyError("A tree needs at least two tips, got 1")

    children = {}
    tip_labels = {}
    node_labels = {}
    lengths = {}
    seen = set()
    for node in dendropy_tree.preorder_node_iter():
        kids = node.child_nodes()
        if kids:
            if len(kids) == 1:
                raise MalformedTopologyError(f"Internal node '{node.label or ''}' has a single child")
            children[node] = kids
            node_labels[node] = node.label
        else:
            label = node.taxon.label if node.taxon is not None else node.label
            if not label:
                raise MalformedTopologyError("Tip without a label")
            if label in seen:
                raise MalformedTopologyError(f"Duplicate tip label '{label}'")
            seen.add(label)
            tip_labels[node] = label
        if node is not seed:
            lengths[node] = node.edge.length

    missing = [node for node, length in lengths.items() if length is None]
    if len(missing) == len(lengths):
        lengths = None
    else:
        if missing:
            logger.warning(f"{len(missing)} edges have no length, setting them to 0.0")
        lengths = {node: 0.0 if length is None else float(length) for node, length in lengths.items()}
        negative = [length for length in lengths.values() if length < 0]
        if negative:
            raise MalformedTopologyError(f"Negative edge length {negative[0]}")

    return assemble(seed, children, tip_labels, lengths, node_labels)


def to_dendropy(tree):
    """Convert a Tree into a rooted DendroPy tree."""
    taxon_namespace = dendropy.TaxonNamespace()
    dendropy_tree = dendropy.Tree(taxon_namespace=taxon_namespace, is_rooted=True)
    dendropy_tree.seed_node.label = tree.node_labels.get(tree.root)

    nodes = {tree.root: dendropy_tree.seed_node}
    for node in tree.preorder():
        if node == tree.root:
            continue
        if tree.is_tip(node):
            new_node = dendropy.Node(taxon=taxon_namespace.require_taxon(label=tree.label(node)))
        else:
            new_node = dendropy.Node(label=tree.node_labels.get(node))
        new_node.edge.length = tree.edge_length(node)
        nodes[tree.parent(node)].add_child(new_node)
        nodes[node] = new_node

    return dendropy_tree


def to_newick(tree):
    """
    Serialize a Tree to a Newick string.

    Returns:
        str: Newick text terminated by ';'.
    """
    return to_dendropy(tree).as_string(
        schema='newick',
        suppress_rooting=True,
        unquoted_underscores=True,
        preserve_spaces=True,
    ).strip()


def _error_position(error):
    """Extract a line/column description from a DendroPy parse error, if any."""
    line = getattr(error, 'line_num', None)
    column = getattr(error, 'col_num', None)
    if line is None and column is None:
        return None
    return f"line {line}, column {column}"
