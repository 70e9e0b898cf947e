"""Obsidian callouts: ``> [!note] Title`` blockquotes."""

import re

from markdown_it.common.utils import escapeHtml

from .syntax_tree import Node, get_classes, html_block, set_classes

CALLOUT_RE = re.compile(r"^\[!([\w-]+)\]([+-])?[ \t]*(.*)$")


def _title_line(paragraph: Node) -> list[Node]:
    """Inline nodes on the first line of a paragraph."""
    line = []
    for child in paragraph.children:
        if child.type in ("softbreak", "hardbreak"):
            break
        line.append(child)
    return line


def convert_callout(blockquote: Node) -> bool:
    """Turn a blockquote into a callout if it opens with a ``[!type]`` marker."""
    if not blockquote.children or blockquote.children[0].type != "paragraph":
        return False
    paragraph = blockquote.children[0]
    if not paragraph.children or paragraph.children[0].type != "text":
        return False
    match = CALLOUT_RE.match(paragraph.children[0].value)
    if not match:
        return False

    callout_type = match.group(1).lower()
    fold = match.group(2)

    line = _title_line(paragraph)
    title = (match.group(3) + "".join(n.text_content() for n in line[1:])).strip()
    # Drop the marker line and the break that ends it.
    del paragraph.children[: len(line) + 1]
    if not paragraph.children:
        blockquote.children.pop(0)

    set_classes(blockquote, get_classes(blockquote) + ["callout", f"callout-{callout_type}"])
    blockquote.data["data-callout"] = callout_type
    if fold:
        blockquote.data["data-callout-fold"] = fold

    label = escapeHtml(title or callout_type.capitalize())
    blockquote.children.insert(0, html_block(f'<div class="callout-title">{label}</div>\n'))
    return True


def convert_callouts(tree: Node) -> Node:
    """Convert every callout blockquote in the tree, nested ones included."""
    for child in tree.children:
        if child.type == "blockquote":
            convert_callout(child)
        convert_callouts(child)
    return tree
