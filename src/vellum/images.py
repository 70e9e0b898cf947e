"""Image enrichment passes: path resolution, captions and image grids."""

from collections.abc import Callable

from .paths import Classification, resolve_image_path
from .syntax_tree import Node, find_all, get_classes, set_classes

MAX_GRID_COLUMNS = 6

Resolver = Callable[[str, Classification], str]


def resolve_image_paths(
    tree: Node,
    classification: Classification,
    resolver: Resolver = resolve_image_path,
) -> None:
    for node in find_all(tree, "image"):
        if node.url:
            node.url = resolver(node.url, classification)


def add_captions(tree: Node) -> None:
    """Expose image titles as captions on the rendered element."""
    for node in find_all(tree, "image"):
        if node.title:
            node.data["data-caption"] = node.title
            node.data["title"] = node.title


def _grid_size(paragraph: Node) -> int:
    """Number of images in a paragraph made only of images, else 0."""
    images = 0
    for child in paragraph.children:
        if child.type == "image":
            images += 1
        elif child.type == "softbreak":
            continue
        elif child.type == "text" and not child.value.strip():
            continue
        else:
            # Anything else, including a linked image, disqualifies the grid.
            return 0
    return images


def add_image_grids(tree: Node) -> None:
    """Mark paragraphs holding two or more bare images as image grids.

    The paragraph gets ``image-grid`` and ``image-grid-{n}`` classes, with
    ``n`` capped at six. Earlier grid classes are replaced, so running the
    pass again changes nothing.
    """
    for paragraph in find_all(tree, "paragraph"):
        count = _grid_size(paragraph)
        if count < 2:
            continue
        classes = [c for c in get_classes(paragraph) if not c.startswith("image-grid")]
        classes += ["image-grid", f"image-grid-{min(count, MAX_GRID_COLUMNS)}"]
        set_classes(paragraph, classes)


def process_images(
    tree: Node,
    classification: Classification,
    resolver: Resolver = resolve_image_path,
) -> Node:
    """Resolve image paths, then add captions, then group grids."""
    resolve_image_paths(tree, classification, resolver)
    add_captions(tree)
    add_image_grids(tree)
    return tree
