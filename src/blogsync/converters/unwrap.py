"""Markdown to Markdown rendering with hard wrapping removed.

Write.as treats every newline inside a paragraph as a line break, so
Markdown that was hard-wrapped at 80 columns renders as ragged short lines.
``UnwrapRenderer`` walks a parsed document and writes back Markdown that is
semantically the same as the input, except that newlines inside running
text become spaces.

Normalizations that fall out of re-rendering from the tree:

- List markers are always ``*`` and items are indented two spaces per
  level of nesting, ordered lists included.
- Headings are always ATX (``#``) style.
- Two trailing spaces before a newline become a single bare newline, which
  Write.as renders as a line break.
- Link and image titles are always written, quoted, even when empty.
"""

from __future__ import annotations

import io
import logging
from typing import Callable

from .markdown_ast import Node, NodeKind, parse_markdown, walk

logger = logging.getLogger(__name__)

Handler = Callable[[Node, bool, io.StringIO], None]

_SPAN_WRAPS: dict[NodeKind, str] = {
    NodeKind.EMPHASIS: "*",
    NodeKind.STRONG: "**",
    NodeKind.STRIKETHROUGH: "~~",
}


def _quote_title(title: str) -> str:
    escaped = title.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class UnwrapRenderer:
    """Render a document tree back to Markdown without hard wrapping.

    The only state carried across nodes is the list nesting depth and the
    block quote depth; both are reset at the start of every ``render``
    call so one renderer can be reused across documents.
    """

    def __init__(self) -> None:
        self.list_level = 0
        self.quote_level = 0
        self._handlers: dict[NodeKind, Handler] = {
            NodeKind.DOCUMENT: self._document,
            NodeKind.LIST: self._list,
            NodeKind.LIST_ITEM: self._list_item,
            NodeKind.PARAGRAPH: self._paragraph,
            NodeKind.HEADING: self._heading,
            NodeKind.HORIZONTAL_RULE: self._horizontal_rule,
            NodeKind.EMPHASIS: self._span,
            NodeKind.STRONG: self._span,
            NodeKind.STRIKETHROUGH: self._span,
            NodeKind.LINK: self._link,
            NodeKind.IMAGE: self._image,
            NodeKind.BLOCK_QUOTE: self._block_quote,
            NodeKind.TEXT: self._text,
            NodeKind.SOFT_BREAK: self._soft_break,
            NodeKind.HARD_BREAK: self._hard_break,
            NodeKind.HTML_BLOCK: self._html_block,
            NodeKind.INLINE_HTML: self._inline_html,
            NodeKind.INLINE_CODE: self._inline_code,
            NodeKind.CODE_BLOCK: self._code_block,
        }

    def render(self, root: Node) -> str:
        """Render the tree rooted at *root* and return the Markdown text."""
        self.list_level = 0
        self.quote_level = 0
        out = io.StringIO()
        for node, entering in walk(root):
            handler = self._handlers.get(node.kind)
            if handler is None:
                if entering:
                    # TODO: render GFM tables instead of flattening their cells
                    logger.debug(
                        "unsupported markdown node %s found",
                        node.raw_type or node.kind.value,
                    )
                continue
            handler(node, entering, out)
        return out.getvalue()

    # ------------------------------------------------------------------
    # Block nodes
    # ------------------------------------------------------------------

    def _document(self, node: Node, entering: bool, out: io.StringIO) -> None:
        pass

    def _list(self, node: Node, entering: bool, out: io.StringIO) -> None:
        if entering:
            self.list_level += 1
        else:
            self.list_level -= 1

    def _list_item(self, node: Node, entering: bool, out: io.StringIO) -> None:
        if entering:
            out.write("  " * self.list_level)
            out.write("* ")

    def _paragraph(self, node: Node, entering: bool, out: io.StringIO) -> None:
        if not entering:
            out.write("\n")
            return

        # A blank line is the only thing that separates two paragraphs in
        # the output.  Inside a quote it must carry the marker too or it
        # would end the quote.
        if node.prev is not None and node.prev.kind == NodeKind.PARAGRAPH:
            out.write(">\n" if self.quote_level > 0 else "\n")

        # Quote markers are written here rather than by the quote itself so
        # that an empty quote renders nothing at all.
        if self.quote_level > 0:
            out.write("> ")

    def _heading(self, node: Node, entering: bool, out: io.StringIO) -> None:
        if not entering:
            out.write("\n")
            return
        out.write("#" * node.level)
        out.write(" ")

    def _horizontal_rule(
        self, node: Node, entering: bool, out: io.StringIO
    ) -> None:
        if not entering:
            out.write("---\n")

    def _block_quote(
        self, node: Node, entering: bool, out: io.StringIO
    ) -> None:
        if entering:
            self.quote_level += 1
            return
        out.write("\n")
        self.quote_level -= 1

    def _html_block(self, node: Node, entering: bool, out: io.StringIO) -> None:
        if not entering:
            return
        out.write(node.literal)
        # Whatever follows raw HTML must start a new block, and unlike a
        # paragraph nothing else will write the separating blank line.
        out.write("\n\n")

    def _code_block(self, node: Node, entering: bool, out: io.StringIO) -> None:
        if entering:
            out.write(f"```{node.info}\n{node.literal}```\n")

    # ------------------------------------------------------------------
    # Inline nodes
    # ------------------------------------------------------------------

    def _span(self, node: Node, entering: bool, out: io.StringIO) -> None:
        out.write(_SPAN_WRAPS[node.kind])

    def _link(self, node: Node, entering: bool, out: io.StringIO) -> None:
        if entering:
            out.write("[")
            return
        out.write(f"]({node.destination} {_quote_title(node.title)})")

    def _image(self, node: Node, entering: bool, out: io.StringIO) -> None:
        if entering:
            out.write("![")
            return
        out.write(f"]({node.destination} {_quote_title(node.title)})")

    def _text(self, node: Node, entering: bool, out: io.StringIO) -> None:
        if entering:
            # mistune has already resolved backslash escapes, so a literal
            # "\*" or "1\." is written bare and reads as markup next time.
            out.write(node.literal.replace("\n", " "))

    def _soft_break(self, node: Node, entering: bool, out: io.StringIO) -> None:
        if entering:
            out.write(" ")

    def _hard_break(self, node: Node, entering: bool, out: io.StringIO) -> None:
        if entering:
            out.write("\n")

    def _inline_html(
        self, node: Node, entering: bool, out: io.StringIO
    ) -> None:
        if entering:
            out.write(node.literal)

    def _inline_code(
        self, node: Node, entering: bool, out: io.StringIO
    ) -> None:
        if entering:
            out.write(f"`{node.literal}`")


def unwrap_markdown(text: str, renderer: UnwrapRenderer | None = None) -> str:
    """
    Remove hard wrapping from Markdown text.

    Args:
        text: Markdown source (without frontmatter).
        renderer: Optional renderer to reuse.

    Returns:
        Normalized Markdown.
    """
    rend = renderer or UnwrapRenderer()
    return rend.render(parse_markdown(text))
