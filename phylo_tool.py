#!/usr/bin/env python
"""
Phylogenetic Tree Tool - Main Script

Command-line interface to the phylotree library: read a tree (or one tree
of a multi-tree file), apply structural operations and write the result as
Newick.
"""

import os
import sys
import argparse
import logging
import time

import numpy as np

from phylotree import __version__
from phylotree.errors import TreeError
from phylotree.tree_parser import TreeParser, to_newick
from phylotree.traversal import is_binary
from phylotree.polytomy_finder import PolytomyFinder
from phylotree.polytomy_resolver import PolytomyResolver
from phylotree.mutators import rotate, ladderize, prune, drop_random_tips, extract_clade


# Set up logging
def setup_logging(log_level, log_file=None):
    """Configure logging system based on specified log level and optional log file."""
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    # Basic configuration for console logging
    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Add file handler if log_file is specified
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        file_handler.setFormatter(formatter)
        logging.getLogger().addHandler(file_handler)

        logging.info(f"Logging to file: {log_file}")


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Inspect and restructure phylogenetic trees",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Input tree file (Newick or NEXUS) or a Newick string"
    )

    parser.add_argument(
        "--output", "-o",
        help="Output Newick file (standard output if omitted)"
    )

    parser.add_argument(
        "--tree-index",
        type=int,
        default=0,
        help="Index of the tree to use when the input holds several trees"
    )

    parser.add_argument(
        "--summary",
        action="store_true",
        help="Log a summary of the resulting tree"
    )

    parser.add_argument(
        "--extract",
        type=int,
        metavar="NODE",
        help="Keep only the clade below this internal node"
    )

    parser.add_argument(
        "--prune",
        nargs="+",
        metavar="LABEL",
        help="Tip labels to remove"
    )

    parser.add_argument(
        "--drop-random",
        type=int,
        metavar="M",
        help="Number of randomly chosen tips to remove"
    )

    parser.add_argument(
        "--resolve",
        choices=["random", "ordered"],
        help="Resolve polytomies with this strategy"
    )

    parser.add_argument(
        "--rotate",
        type=int,
        metavar="NODE",
        help="Swap the two child clades of this node"
    )

    parser.add_argument(
        "--ladderize",
        action="store_true",
        help="Order clades by size"
    )

    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for random tip dropping and polytomy resolution"
    )

    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        default="info",
        help="Set logging level"
    )

    parser.add_argument(
        "--log-file",
        help="Path to output log file"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser.parse_args(argv)


def load_tree(source, tree_index=0, config=None):
    """
    Load a tree from a file or a Newick string.

    Args:
        source (str): Path to a tree file or a Newick string.
        tree_index (int): Which tree to take from a multi-tree file.
        config (dict, optional): TreeParser configuration.

    Returns:
        Tree: The selected tree.
    """
    parser = TreeParser(config=config)
    if os.path.exists(source):
        collection = parser.parse_collection_from_file(source)
        return collection[tree_index]
    return parser.parse_from_string(source)


def main(argv=None):
    """Main function."""
    args = parse_args(argv)

    setup_logging(args.log_level, args.log_file)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    rng = np.random.default_rng(args.seed)

    config = {
        'parser': {},
        'resolver': {
            'strategy': args.resolve or 'random',
            'seed': args.seed,
        },
    }

    try:
        logger.info(f"Loading tree from {args.input}")
        tree = load_tree(args.input, args.tree_index, config=config['parser'])

        if args.extract is not None:
            logger.info(f"Extracting clade below node {args.extract}")
            tree = extract_clade(tree, args.extract)

        if args.prune:
            logger.info(f"Pruning {len(args.prune)} tips")
            tree = prune(tree, args.prune)

        if args.drop_random:
            logger.info(f"Dropping {args.drop_random} random tips")
            tree = drop_random_tips(tree, args.drop_random, rng)

        if args.resolve:
            resolver = PolytomyResolver(tree, config=config['resolver'], rng=rng)
            tree = resolver.resolve_all_polytomies()

        if args.rotate is not None:
            logger.info(f"Rotating node {args.rotate}")
            tree = rotate(tree, args.rotate)

        if args.ladderize:
            tree = ladderize(tree)

        if args.summary:
            stats = PolytomyFinder(tree).get_polytomy_stats()
            logger.info(str(tree))
            logger.info(f"Binary: {is_binary(tree)}; polytomies: {stats['total_polytomies']}")

        newick = to_newick(tree)
        if args.output:
            logger.info(f"Writing tree to {args.output}")
            with open(args.output, 'w') as handle:
                handle.write(newick + '\n')
        else:
            print(newick)

        elapsed_time = time.time() - start_time
        logger.info(f"Completed in {elapsed_time:.2f} seconds")

    except (TreeError, IndexError, OSError) as e:
        logger.error(f"Error while processing tree: {str(e)}")
        logger.debug("Exception details:", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
