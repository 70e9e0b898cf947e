"""Markdown syntax tree shared by the transformation passes.

markdown-it produces a flat token stream with open/close pairs. The passes
want a tree instead: a paragraph owns its text, image and link children, and
each node can carry render attributes without a new node type per hint. This
module converts the token stream into :class:`Node` trees and back again so
that markdown-it's renderer produces the final HTML.

Node types follow markdown-it's names with the ``_open`` suffix dropped:
``paragraph``, ``heading``, ``link``, ``em``, ``bullet_list`` and so on.
Leaves keep their token type: ``text``, ``image``, ``code_inline``,
``fence``, ``html_inline``, ``html_block``, ``softbreak``.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from markdown_it.token import Token

# Tags used when a pass creates a container node that has no source token.
_DEFAULT_TAGS = {
    "paragraph": "p",
    "heading": "h2",
    "blockquote": "blockquote",
    "bullet_list": "ul",
    "ordered_list": "ol",
    "list_item": "li",
    "link": "a",
    "em": "em",
    "strong": "strong",
    "s": "s",
    "div": "div",
}

_BLOCK_TYPES = {
    "paragraph",
    "heading",
    "blockquote",
    "bullet_list",
    "ordered_list",
    "list_item",
    "div",
}


@dataclass
class Node:
    """A node of the markdown syntax tree.

    Attributes:
        type: Node variant name (``paragraph``, ``text``, ``image``, ...).
        children: Child nodes, owned exclusively by this node.
        value: Literal content for text, html and code nodes.
        url: Target of a link or source of an image.
        title: Link or image title.
        alt: Image alternative text.
        data: Attribute bag of render hints. Entries become HTML attributes
            of the element emitted for this node.
    """

    type: str
    children: list["Node"] = field(default_factory=list)
    value: str = ""
    url: str | None = None
    title: str | None = None
    alt: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    # Children are inline content wrapped in an ``inline`` token when emitted.
    phrasing: bool = field(default=False, compare=False, repr=False)
    token: Token | None = field(default=None, compare=False, repr=False)

    @property
    def tag(self) -> str:
        if self.token is not None:
            return self.token.tag
        return _DEFAULT_TAGS.get(self.type, "")

    @property
    def depth(self) -> int | None:
        """Heading level, or None for anything that is not a heading."""
        if self.type != "heading" or len(self.tag) != 2:
            return None
        return int(self.tag[1])

    def text_content(self) -> str:
        """Concatenated plain text of this node and its descendants."""
        if self.type in ("text", "code_inline"):
            return self.value
        if self.type == "image":
            return self.alt or ""
        return "".join(child.text_content() for child in self.children)


def text(value: str) -> Node:
    return Node("text", value=value)


def html_inline(value: str) -> Node:
    return Node("html_inline", value=value)


def html_block(value: str) -> Node:
    return Node("html_block", value=value)


def image(url: str, alt: str = "", title: str | None = None) -> Node:
    return Node("image", url=url, alt=alt, title=title)


def link(url: str, children: list[Node], title: str | None = None) -> Node:
    return Node("link", children=children, url=url, title=title)


def paragraph(children: list[Node]) -> Node:
    return Node("paragraph", children=children, phrasing=True)


def walk(node: Node, parent: Node | None = None) -> Iterator[tuple[Node, Node | None]]:
    """Yield ``(node, parent)`` pairs depth-first, parents before children.

    The child list is snapshotted per level, so a caller may replace the node
    it was just given inside ``parent.children``.
    """
    yield node, parent
    for child in list(node.children):
        yield from walk(child, node)


def find_all(tree: Node, node_type: str) -> list[Node]:
    """All nodes of ``node_type`` in document order."""
    return [node for node, _ in walk(tree) if node.type == node_type]


def get_classes(node: Node) -> list[str]:
    """Class tokens in the node's attribute bag."""
    return str(node.data.get("class", "")).split()


def set_classes(node: Node, classes: list[str]) -> None:
    """Replace the node's class tokens; an empty list removes the attribute."""
    if classes:
        node.data["class"] = " ".join(classes)
    else:
        node.data.pop("class", None)


# ---------------------------------------------------------------------------
# Tokens -> tree
# ---------------------------------------------------------------------------


def from_tokens(tokens: Sequence[Token]) -> Node:
    """Build a tree from a markdown-it block token stream."""
    root = Node("root")
    _append_tokens(root, list(tokens))
    return root


def _append_tokens(parent: Node, tokens: list[Token]) -> None:
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token.type == "inline":
            parent.phrasing = True
            _append_tokens(parent, token.children or [])
            i += 1
        elif token.nesting == 1:
            close = _matching_close(tokens, i)
            node = _container_from_token(token)
            _append_tokens(node, tokens[i + 1 : close])
            parent.children.append(node)
            i = close + 1
        elif token.nesting == -1:
            # Stray closer without an opener.
            i += 1
        else:
            parent.children.append(_leaf_from_token(token))
            i += 1


def _matching_close(tokens: list[Token], start: int) -> int:
    depth = 0
    for j in range(start, len(tokens)):
        depth += tokens[j].nesting
        if depth == 0:
            return j
    return len(tokens)


def _container_from_token(token: Token) -> Node:
    node_type = token.type[: -len("_open")] if token.type.endswith("_open") else token.type
    attrs = dict(token.attrs)
    node = Node(node_type, token=token)
    if node_type == "link":
        node.url = str(attrs.pop("href", ""))
        title = attrs.pop("title", None)
        node.title = str(title) if title is not None else None
    node.data = attrs
    return node


def _plain_text(tokens: list[Token] | None) -> str:
    if not tokens:
        return ""
    parts = []
    for token in tokens:
        if token.type in ("text", "text_special", "code_inline"):
            parts.append(token.content)
        elif token.children:
            parts.append(_plain_text(token.children))
    return "".join(parts)


def _leaf_from_token(token: Token) -> Node:
    if token.type == "text":
        return Node("text", value=token.content)
    if token.type in ("html_inline", "html_block"):
        return Node(token.type, value=token.content, token=token)

    attrs = dict(token.attrs)
    if token.type == "image":
        url = attrs.pop("src", "")
        attrs.pop("alt", None)
        title = attrs.pop("title", None)
        alt = _plain_text(token.children) if token.children else token.content
        return Node(
            "image",
            url=str(url),
            alt=alt,
            title=str(title) if title is not None else None,
            data=attrs,
            token=token,
        )
    return Node(token.type, value=token.content, data=attrs, token=token)


# ---------------------------------------------------------------------------
# Tree -> tokens
# ---------------------------------------------------------------------------


def to_tokens(tree: Node) -> list[Token]:
    """Flatten a tree back into a markdown-it token stream for rendering."""
    tokens: list[Token] = []
    _emit_children(tree, tokens)
    return tokens


def _render_attrs(node: Node) -> dict[str, str]:
    return {key: str(value) for key, value in node.data.items() if value is not None}


def _emit_children(node: Node, out: list[Token]) -> None:
    if node.phrasing:
        children: list[Token] = []
        for child in node.children:
            _emit(child, children)
        content = "".join(child.content for child in children if child.type == "text")
        out.append(Token("inline", "", 0, children=children, content=content, block=True))
    else:
        for child in node.children:
            _emit(child, out)


def _is_container(node: Node) -> bool:
    if node.token is not None:
        return node.token.nesting == 1
    return bool(node.children) or node.type in _DEFAULT_TAGS


def _emit(node: Node, out: list[Token]) -> None:
    if node.type == "text":
        out.append(Token("text", "", 0, content=node.value))
    elif node.type in ("html_inline", "html_block"):
        out.append(
            Token(
                node.type,
                "",
                0,
                content=node.value,
                block=node.type == "html_block",
            )
        )
    elif node.type == "image":
        out.append(_image_token(node))
    elif _is_container(node):
        opener = _open_token(node)
        out.append(opener)
        _emit_children(node, out)
        out.append(
            Token(
                opener.type[: -len("_open")] + "_close"
                if opener.type.endswith("_open")
                else f"{opener.type}_close",
                opener.tag,
                -1,
                markup=opener.markup,
                block=opener.block,
                hidden=opener.hidden,
                level=opener.level,
            )
        )
    elif node.token is not None:
        out.append(node.token.copy(content=node.value, attrs=_render_attrs(node)))
    else:
        out.append(Token(node.type, "", 0, content=node.value, attrs=_render_attrs(node)))


def _open_token(node: Node) -> Token:
    attrs: dict[str, str] = {}
    if node.type == "link":
        attrs["href"] = node.url or ""
        if node.title:
            attrs["title"] = node.title
    attrs.update(_render_attrs(node))

    if node.token is not None:
        return node.token.copy(attrs=attrs, children=None)
    return Token(
        f"{node.type}_open",
        _DEFAULT_TAGS.get(node.type, "div"),
        1,
        attrs=attrs,
        block=node.type in _BLOCK_TYPES,
    )


def _image_token(node: Node) -> Token:
    alt = node.alt or ""
    attrs = {"src": node.url or "", "alt": ""}
    if node.title:
        attrs["title"] = node.title
    attrs.update(_render_attrs(node))
    return Token(
        "image",
        "img",
        0,
        attrs=attrs,
        children=[Token("text", "", 0, content=alt)] if alt else [],
        content=alt,
    )
