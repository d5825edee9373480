"""Markdown parsing and hard-wrap removal."""

from .markdown_ast import Node, NodeKind, parse_markdown
from .unwrap import UnwrapRenderer, unwrap_markdown

__all__ = [
    "Node",
    "NodeKind",
    "UnwrapRenderer",
    "parse_markdown",
    "unwrap_markdown",
]
