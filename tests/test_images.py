"""Tests for image path resolution, captions and grids."""

from markdown_it import MarkdownIt

from vellum.images import add_captions, add_image_grids, process_images, resolve_image_paths
from vellum.paths import Classification, resolve_published_image_path
from vellum.syntax_tree import (
    Node,
    find_all,
    from_tokens,
    get_classes,
    image,
    link,
    paragraph,
    text,
)

FOLDER_POST = Classification("posts", "my-post", True)


def tree_for(source):
    return from_tokens(MarkdownIt("commonmark").parse(source))


class TestResolveImagePaths:
    def test_resolves_every_image(self):
        tree = tree_for("![a](attachments/cover.jpg)\n\n> ![b](images/inner.png)")
        resolve_image_paths(tree, FOLDER_POST)

        assert [n.url for n in find_all(tree, "image")] == ["./cover.jpg", "./inner.png"]

    def test_custom_resolver(self):
        tree = tree_for("![a](cover.png)")
        resolve_image_paths(tree, FOLDER_POST, resolve_published_image_path)

        assert find_all(tree, "image")[0].url == "/posts/my-post/cover.webp"


class TestCaptions:
    def test_title_becomes_caption(self):
        tree = tree_for('![a](x.png "Sunset over the bay")')
        add_captions(tree)

        (img,) = find_all(tree, "image")
        assert img.data["data-caption"] == "Sunset over the bay"
        assert img.data["title"] == "Sunset over the bay"

    def test_no_title_no_caption(self):
        tree = tree_for("![a](x.png)")
        add_captions(tree)

        assert "data-caption" not in find_all(tree, "image")[0].data


class TestImageGrids:
    """Tests for image grid grouping."""

    def test_three_images(self):
        tree = tree_for("![a](1.png)\n![b](2.png)\n![c](3.png)")
        add_image_grids(tree)

        classes = get_classes(tree.children[0])
        assert "image-grid" in classes
        assert "image-grid-3" in classes

    def test_whitespace_between_images_is_ignored(self):
        para = paragraph([image("1.png"), text("  "), image("2.png")])
        tree = Node("root", children=[para])
        add_image_grids(tree)

        assert get_classes(para) == ["image-grid", "image-grid-2"]

    def test_single_image_is_not_a_grid(self):
        tree = tree_for("![a](1.png)")
        add_image_grids(tree)

        assert get_classes(tree.children[0]) == []

    def test_text_disqualifies(self):
        tree = tree_for("![a](1.png) and ![b](2.png)")
        add_image_grids(tree)

        assert get_classes(tree.children[0]) == []

    def test_linked_image_counts_as_other(self):
        para = paragraph([image("1.png"), link("/x", [image("2.png")]), image("3.png")])
        root = Node("root", children=[para])
        add_image_grids(root)

        assert get_classes(para) == []

    def test_capped_at_six_columns(self):
        source = "\n".join(f"![{i}]({i}.png)" for i in range(8))
        tree = tree_for(source)
        add_image_grids(tree)

        assert "image-grid-6" in get_classes(tree.children[0])

    def test_idempotent(self):
        tree = tree_for("![a](1.png) ![b](2.png)")
        add_image_grids(tree)
        once = get_classes(tree.children[0])
        add_image_grids(tree)

        assert get_classes(tree.children[0]) == once
        assert once.count("image-grid-2") == 1

    def test_existing_classes_preserved_and_stale_grid_replaced(self):
        tree = tree_for("![a](1.png) ![b](2.png)")
        tree.children[0].data["class"] = "wide image-grid-5"
        add_image_grids(tree)

        assert get_classes(tree.children[0]) == ["wide", "image-grid", "image-grid-2"]


class TestProcessImages:
    def test_runs_all_steps(self):
        tree = tree_for('![a](attachments/1.png "One")\n![b](2.png)')
        process_images(tree, FOLDER_POST)

        first, second = find_all(tree, "image")
        assert first.url == "./1.png"
        assert first.data["data-caption"] == "One"
        assert second.url == "./2.png"
        assert "image-grid-2" in get_classes(tree.children[0])
