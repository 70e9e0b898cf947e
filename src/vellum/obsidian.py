"""Obsidian inline syntax: wikilinks, embeds, comments, highlights and tags.

One text node can hold several overlapping constructs, so matching works on
explicit spans. Embeds are found first, then wikilinks; a wikilink starting
inside an embed span is the tail of that embed and is dropped. The surviving
spans are emitted in source order with the text between them cleaned of
comments and highlights.
"""

import re
from dataclasses import dataclass

from markdown_it.common.utils import escapeHtml

from .markdown_utils import slugify
from .syntax_tree import Node, html_inline, image, link, text

EMBED_RE = re.compile(r"!\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")
WIKILINK_RE = re.compile(r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")
COMMENT_RE = re.compile(r"%%.*?%%")
HIGHLIGHT_RE = re.compile(r"==(.*?)==")

# A tag follows whitespace, opening punctuation or the start of the text and
# starts with a letter, so "C#", "#1" and "page#anchor" are not tags.
TAG_RE = re.compile(r"(?<![^\s(\[{\"'])#([^\W\d_][\w/-]*)")

DEFAULT_WIKILINK_BASE = "/posts/"
DEFAULT_TAGS_BASE = "/tags/"

WIKILINK_MARKER = "data-wikilink"


@dataclass
class InlineMatch:
    """A recognised construct inside a text value.

    Attributes:
        kind: ``"embed"`` or ``"wikilink"``.
        start: Offset of the first character of the match.
        end: Offset just past the match.
        node: Node that replaces the matched source text.
    """

    kind: str
    start: int
    end: int
    node: Node


def wikilink_url(target: str, base: str = DEFAULT_WIKILINK_BASE) -> str:
    """URL for a wikilink target.

    >>> wikilink_url("#setup")
    '#setup'
    >>> wikilink_url("Guide#setup")
    '/posts/Guide#setup'
    """
    if target.startswith("#"):
        return target
    if "#" in target:
        page, anchor = target.split("#")[:2]
        return f"{base}{page}#{anchor}"
    return f"{base}{target}"


def find_embeds(value: str) -> list[InlineMatch]:
    matches = []
    for match in EMBED_RE.finditer(value):
        target = match.group(1).strip()
        alt = (match.group(2) or "").strip() or target
        matches.append(InlineMatch("embed", match.start(), match.end(), image(target, alt)))
    return matches


def find_wikilinks(
    value: str,
    embeds: list[InlineMatch],
    base: str = DEFAULT_WIKILINK_BASE,
) -> list[InlineMatch]:
    matches = []
    for match in WIKILINK_RE.finditer(value):
        if any(embed.start <= match.start() < embed.end for embed in embeds):
            continue
        target = match.group(1).strip()
        label = (match.group(2) or "").strip() or target
        node = link(wikilink_url(target, base), [text(label)])
        node.data[WIKILINK_MARKER] = "true"
        matches.append(InlineMatch("wikilink", match.start(), match.end(), node))
    return matches


def find_matches(value: str, base: str = DEFAULT_WIKILINK_BASE) -> list[InlineMatch]:
    """All embed and wikilink spans in ``value``, sorted by start offset."""
    embeds = find_embeds(value)
    wikilinks = find_wikilinks(value, embeds, base)
    return sorted(embeds + wikilinks, key=lambda match: match.start)


def strip_comments(value: str) -> str:
    return COMMENT_RE.sub("", value)


def _gap_nodes(value: str) -> list[Node]:
    """Text and ``<mark>`` nodes for the text between two matches."""
    value = strip_comments(value)
    nodes: list[Node] = []
    last = 0
    for match in HIGHLIGHT_RE.finditer(value):
        if match.start() > last:
            nodes.append(text(value[last : match.start()]))
        nodes.append(html_inline(f"<mark>{escapeHtml(match.group(1))}</mark>"))
        last = match.end()
    if last < len(value):
        nodes.append(text(value[last:]))
    return nodes


def rewrite_text(node: Node, base: str = DEFAULT_WIKILINK_BASE) -> list[Node]:
    """Replace one text node with the nodes its Obsidian syntax produces.

    Returns ``[node]`` when there is nothing to rewrite. With no embeds or
    wikilinks, comments are stripped from the node in place. Unterminated
    or malformed brackets never match and stay as literal text.
    """
    value = node.value
    matches = find_matches(value, base)

    if not matches:
        if HIGHLIGHT_RE.search(value):
            return _gap_nodes(value)
        node.value = strip_comments(value)
        return [node]

    nodes: list[Node] = []
    last = 0
    for match in matches:
        if match.start > last:
            nodes.extend(_gap_nodes(value[last : match.start]))
        nodes.append(match.node)
        last = match.end
    if last < len(value):
        nodes.extend(_gap_nodes(value[last:]))
    return nodes


def _rewrite_children(parent: Node, base: str) -> None:
    # Link text is left alone so no anchor ends up inside another.
    if parent.type == "link":
        return
    children: list[Node] = []
    for child in parent.children:
        if child.type == "text":
            children.extend(rewrite_text(child, base))
        else:
            _rewrite_children(child, base)
            children.append(child)
    parent.children = children


def rewrite_obsidian(tree: Node, wikilink_base: str = DEFAULT_WIKILINK_BASE) -> Node:
    """Rewrite Obsidian inline syntax in every text node of ``tree``."""
    _rewrite_children(tree, wikilink_base)
    return tree


def _tag_nodes(node: Node, tags_base: str) -> list[Node]:
    value = node.value
    nodes: list[Node] = []
    last = 0
    for match in TAG_RE.finditer(value):
        tag = match.group(1).rstrip("/-")
        end = match.start() + 1 + len(tag)
        if match.start() > last:
            nodes.append(text(value[last : match.start()]))
        tag_link = link(f"{tags_base}{slugify(tag)}/", [text(f"#{tag}")])
        tag_link.data["class"] = "tag"
        nodes.append(tag_link)
        last = end
    if not nodes:
        return [node]
    if last < len(value):
        nodes.append(text(value[last:]))
    return nodes


def _tag_children(parent: Node, tags_base: str) -> None:
    if parent.type in ("link", "heading"):
        return
    children: list[Node] = []
    for child in parent.children:
        if child.type == "text":
            children.extend(_tag_nodes(child, tags_base))
        else:
            _tag_children(child, tags_base)
            children.append(child)
    parent.children = children


def link_inline_tags(tree: Node, tags_base: str = DEFAULT_TAGS_BASE) -> Node:
    """Turn ``#tag`` words into links to their tag page.

    Text inside links and headings is skipped.
    """
    _tag_children(tree, tags_base)
    return tree
