"""
ast_compare - Structural comparison of JavaScript syntax trees across two source trees.

Pairs every .js file of an original tree with its copy in a modified tree,
parses both with tree-sitter, and reports any difference in tree shape
while ignoring position metadata (offsets, lines, columns).
"""

__version__ = "0.1.0"
__author__ = "ast-compare contributors"
