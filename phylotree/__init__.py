"""
phylotree - build, query and restructure rooted phylogenetic trees.
"""

__version__ = '0.1.0'
