"""Publish a tree of Markdown pages to Write.as collections."""

__version__ = "0.1.0"
