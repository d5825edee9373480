"""Markdown document tree built from mistune's AST output.

mistune's ``renderer="ast"`` mode yields a list of token dicts.  This
module folds those into a closed set of ``NodeKind`` values linked into a
tree with parent and previous-sibling pointers, which is what the unwrap
renderer walks.

Token mapping:

- ``block_text`` (tight list item content) and ``paragraph`` -> PARAGRAPH
- ``softbreak`` -> SOFT_BREAK (a newline embedded in running text)
- ``linebreak`` -> HARD_BREAK
- ``blank_line`` is dropped: it only records layout between blocks and is
  not a sibling in the document structure.
- anything mistune produces that is not listed maps to UNKNOWN, keeping
  the original token type in ``Node.raw_type``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import mistune


class NodeKind(str, Enum):
    """Closed set of node kinds the renderer understands."""

    DOCUMENT = "document"
    LIST = "list"
    LIST_ITEM = "list_item"
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    HORIZONTAL_RULE = "horizontal_rule"
    EMPHASIS = "emphasis"
    STRONG = "strong"
    STRIKETHROUGH = "strikethrough"
    LINK = "link"
    IMAGE = "image"
    BLOCK_QUOTE = "block_quote"
    TEXT = "text"
    HTML_BLOCK = "html_block"
    CODE_BLOCK = "code_block"
    INLINE_CODE = "inline_code"
    HARD_BREAK = "hard_break"
    SOFT_BREAK = "soft_break"
    INLINE_HTML = "inline_html"
    TABLE = "table"
    TABLE_CELL = "table_cell"
    UNKNOWN = "unknown"


_TOKEN_KINDS: dict[str, NodeKind] = {
    "list": NodeKind.LIST,
    "list_item": NodeKind.LIST_ITEM,
    "paragraph": NodeKind.PARAGRAPH,
    "block_text": NodeKind.PARAGRAPH,
    "heading": NodeKind.HEADING,
    "thematic_break": NodeKind.HORIZONTAL_RULE,
    "emphasis": NodeKind.EMPHASIS,
    "strong": NodeKind.STRONG,
    "strikethrough": NodeKind.STRIKETHROUGH,
    "link": NodeKind.LINK,
    "image": NodeKind.IMAGE,
    "block_quote": NodeKind.BLOCK_QUOTE,
    "text": NodeKind.TEXT,
    "block_html": NodeKind.HTML_BLOCK,
    "block_code": NodeKind.CODE_BLOCK,
    "codespan": NodeKind.INLINE_CODE,
    "linebreak": NodeKind.HARD_BREAK,
    "softbreak": NodeKind.SOFT_BREAK,
    "inline_html": NodeKind.INLINE_HTML,
    "table": NodeKind.TABLE,
    "table_cell": NodeKind.TABLE_CELL,
}

# Tokens that carry no document structure.
_DROPPED_TOKENS = frozenset({"blank_line"})

PLUGINS = ["strikethrough", "table", "url"]


@dataclass(eq=False)
class Node:
    """One node of a parsed Markdown document.

    Attributes:
        kind: The node kind.
        children: Child nodes in document order.
        literal: Raw text for leaf nodes (text, code, HTML).
        level: Heading level (1-6), 0 for other kinds.
        destination: Link or image URL.
        title: Link or image title ("" when absent).
        info: Code block info string ("" when absent).
        raw_type: The parser token type the node was built from.
        parent: Enclosing node, ``None`` for the document.
        prev: Previous sibling, ``None`` for a first child.
    """

    kind: NodeKind
    children: list[Node] = field(default_factory=list)
    literal: str = ""
    level: int = 0
    destination: str = ""
    title: str = ""
    info: str = ""
    raw_type: str = ""
    parent: Node | None = field(default=None, repr=False)
    prev: Node | None = field(default=None, repr=False)

    def append(self, child: Node) -> None:
        child.parent = self
        child.prev = self.children[-1] if self.children else None
        self.children.append(child)


def _build_node(token: dict[str, Any]) -> Node:
    token_type: str = token.get("type") or ""
    attrs: dict[str, Any] = token.get("attrs") or {}
    node = Node(
        kind=_TOKEN_KINDS.get(token_type, NodeKind.UNKNOWN),
        raw_type=token_type,
    )

    if node.kind == NodeKind.HEADING:
        node.level = int(attrs.get("level", 1))
    elif node.kind in (NodeKind.LINK, NodeKind.IMAGE):
        node.destination = attrs.get("url") or ""
        node.title = attrs.get("title") or ""
    elif node.kind == NodeKind.CODE_BLOCK:
        node.info = (attrs.get("info") or "").strip()
        raw = token.get("raw", "")
        node.literal = raw if raw.endswith("\n") or not raw else raw + "\n"
    elif node.kind == NodeKind.HTML_BLOCK:
        node.literal = token.get("raw", "").rstrip("\n")
    elif "raw" in token:
        node.literal = token["raw"]

    for child in token.get("children") or []:
        if child.get("type") in _DROPPED_TOKENS:
            continue
        node.append(_build_node(child))
    return node


def build_tree(tokens: list[dict[str, Any]]) -> Node:
    """Build a DOCUMENT node from a list of mistune AST tokens."""
    root = Node(kind=NodeKind.DOCUMENT, raw_type="document")
    for token in tokens:
        if token.get("type") in _DROPPED_TOKENS:
            continue
        root.append(_build_node(token))
    return root


def parse_markdown(text: str) -> Node:
    """
    Parse Markdown text into a document tree.

    Args:
        text: Markdown source (without frontmatter).

    Returns:
        The DOCUMENT root node.
    """
    markdown = mistune.create_markdown(renderer="ast", plugins=PLUGINS)
    tokens: list[dict[str, Any]] = markdown(text)  # type: ignore[assignment]
    return build_tree(tokens)


def walk(node: Node):
    """Yield ``(node, entering)`` events for a depth-first traversal.

    Every node produces an entering event before its children and an
    exiting event after them.
    """
    yield node, True
    for child in node.children:
        yield from walk(child)
    yield node, False
