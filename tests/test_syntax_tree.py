"""Tests for the markdown syntax tree."""

from markdown_it import MarkdownIt

from vellum.syntax_tree import (
    Node,
    find_all,
    from_tokens,
    get_classes,
    html_block,
    image,
    link,
    paragraph,
    set_classes,
    text,
    to_tokens,
    walk,
)

SAMPLE = """\
# Title

Some *emphasis*, **strong** and `code` with a [link](https://example.com "Example").

- one
- two

1. first
2. second

> quoted ![alt text](cat.png "A cat")

```python
print("hi")
```

---
"""


def render(md, tree, env=None):
    return md.renderer.render(to_tokens(tree), md.options, env or {})


class TestFromTokens:
    """Tests for building trees from markdown-it tokens."""

    def test_block_structure(self):
        md = MarkdownIt("commonmark")
        tree = from_tokens(md.parse("# Title\n\nBody text"))

        assert [child.type for child in tree.children] == ["heading", "paragraph"]
        assert tree.children[0].depth == 1
        assert tree.children[1].children == [text("Body text")]

    def test_link_and_image_fields(self):
        md = MarkdownIt("commonmark")
        tree = from_tokens(md.parse('[a](/x "T") ![cat *pic*](c.png "Cap")'))

        (anchor,) = find_all(tree, "link")
        (img,) = find_all(tree, "image")
        assert anchor.url == "/x"
        assert anchor.title == "T"
        assert anchor.children == [text("a")]
        assert img.url == "c.png"
        assert img.alt == "cat pic"
        assert img.title == "Cap"
        assert img.data == {}

    def test_text_content(self):
        md = MarkdownIt("commonmark")
        tree = from_tokens(md.parse("## Hello *big* `world`"))

        assert tree.children[0].text_content() == "Hello big world"


class TestRoundTrip:
    """Tree -> tokens must render exactly like the original token stream."""

    def test_unmodified_tree_renders_identically(self):
        md = MarkdownIt("commonmark")
        tree = from_tokens(md.parse(SAMPLE))

        assert render(md, tree) == md.render(SAMPLE)

    def test_attribute_bag_becomes_html_attributes(self):
        md = MarkdownIt("commonmark")
        tree = from_tokens(md.parse("![a](x.png) ![b](y.png)"))
        tree.children[0].data["class"] = "image-grid"
        find_all(tree, "image")[0].data["data-caption"] = "First"

        html = render(md, tree)

        assert '<p class="image-grid">' in html
        assert 'data-caption="First"' in html

    def test_new_nodes_render(self):
        md = MarkdownIt("commonmark")
        tree = Node("root")
        tree.children = [
            paragraph([text("see "), link("/posts/Page", [text("Page")])]),
            html_block("<div>raw</div>\n"),
        ]

        html = render(md, tree)

        assert html == '<p>see <a href="/posts/Page">Page</a></p>\n<div>raw</div>\n'

    def test_new_image_renders_alt(self):
        md = MarkdownIt("commonmark")
        tree = Node("root", children=[paragraph([image("./cat.png", "A cat")])])

        assert render(md, tree) == '<p><img src="./cat.png" alt="A cat" /></p>\n'


class TestHelpers:
    """Tests for tree traversal and class helpers."""

    def test_walk_yields_parents(self):
        child = text("x")
        para = paragraph([child])
        root = Node("root", children=[para])

        pairs = list(walk(root))

        assert pairs == [(root, None), (para, root), (child, para)]

    def test_walk_tolerates_replacement(self):
        root = Node("root", children=[paragraph([text("a")]), paragraph([text("b")])])
        seen = []
        for node, parent in walk(root):
            if node.type == "paragraph":
                seen.append(node.children[0].value)
                parent.children[parent.children.index(node)] = html_block("<hr>")

        assert seen == ["a", "b"]
        assert [c.type for c in root.children] == ["html_block", "html_block"]

    def test_classes(self):
        node = paragraph([])
        assert get_classes(node) == []

        set_classes(node, ["a", "b"])
        assert node.data["class"] == "a b"
        assert get_classes(node) == ["a", "b"]

        set_classes(node, [])
        assert "class" not in node.data

    def test_depth_only_for_headings(self):
        assert paragraph([]).depth is None
