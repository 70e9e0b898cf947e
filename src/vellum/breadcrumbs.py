"""Breadcrumb trails for page headers."""

from dataclasses import dataclass

COLLECTION_LABELS = {
    "posts": "Posts",
    "docs": "Notes",
    "projects": "Projects",
}


@dataclass
class BreadcrumbItem:
    """One crumb; the current page has no href."""

    label: str
    href: str | None = None


def slug_to_title(slug: str) -> str:
    """``"getting-started"`` -> ``"Getting Started"``."""
    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-"))


def _parts(pathname: str) -> list[str]:
    return [part for part in pathname.strip("/").split("/") if part]


def from_path(pathname: str) -> list[BreadcrumbItem]:
    """One crumb per path segment, linking every segment but the last."""
    parts = _parts(pathname)
    crumbs = []
    current = ""
    for index, part in enumerate(parts):
        current += f"/{part}"
        is_last = index == len(parts) - 1
        crumbs.append(BreadcrumbItem(slug_to_title(part), None if is_last else current))
    return crumbs


def post(slug: str, title: str | None = None) -> list[BreadcrumbItem]:
    return [BreadcrumbItem("Posts", "/posts"), BreadcrumbItem(title or slug_to_title(slug))]


def post_tag(tag: str) -> list[BreadcrumbItem]:
    return [BreadcrumbItem("Posts", "/posts"), BreadcrumbItem(f"Tag: {tag}")]


def doc(slug: str, title: str | None = None) -> list[BreadcrumbItem]:
    return [BreadcrumbItem("Notes", "/docs"), BreadcrumbItem(title or slug_to_title(slug))]


def doc_tag(tag: str) -> list[BreadcrumbItem]:
    return [BreadcrumbItem("Notes", "/docs"), BreadcrumbItem(f"Tag: {tag}")]


def doc_series(series: str) -> list[BreadcrumbItem]:
    return [BreadcrumbItem("Notes", "/docs"), BreadcrumbItem(f"Series: {series}")]


def doc_in_series(
    title: str, series: str, series_slug: str | None = None
) -> list[BreadcrumbItem]:
    return [
        BreadcrumbItem("Notes", "/docs"),
        BreadcrumbItem(series, f"/docs/series/{series_slug}" if series_slug else None),
        BreadcrumbItem(title),
    ]


def project(slug: str, title: str | None = None) -> list[BreadcrumbItem]:
    return [BreadcrumbItem("Projects", "/projects"), BreadcrumbItem(title or slug_to_title(slug))]


def page(slug: str, title: str | None = None) -> list[BreadcrumbItem]:
    return [BreadcrumbItem(title or slug_to_title(slug))]


def category(
    collection: str, category_name: str, slug: str, title: str | None = None
) -> list[BreadcrumbItem]:
    label = COLLECTION_LABELS.get(collection, collection.capitalize())
    return [
        BreadcrumbItem(label, f"/{collection}"),
        BreadcrumbItem(category_name, f"/{collection}/category/{category_name.lower()}"),
        BreadcrumbItem(title or slug_to_title(slug)),
    ]


def smart_breadcrumbs(
    pathname: str,
    title: str | None = None,
    tag: str | None = None,
    series: str | None = None,
    category_name: str | None = None,
) -> list[BreadcrumbItem]:
    """Pick the breadcrumb trail that fits a URL path.

    Tag and series listings, category pages and ``/{collection}/{slug}``
    pages get their dedicated trails; anything else falls back to
    :func:`from_path`.
    """
    parts = _parts(pathname)
    if not parts:
        return []

    collection = parts[0]
    second = parts[1] if len(parts) > 1 else None

    if second == "tag" and tag:
        if collection == "posts":
            return post_tag(tag)
        if collection == "docs":
            return doc_tag(tag)

    if second == "series" and series:
        return doc_series(series)

    if category_name:
        return category(collection, category_name, parts[-1], title)

    if len(parts) == 2:
        slug = parts[1]
        if collection == "posts":
            return post(slug, title)
        if collection == "docs":
            if series:
                return doc_in_series(title or slug_to_title(slug), series)
            return doc(slug, title)
        if collection == "projects":
            return project(slug, title)
        if collection == "pages":
            return page(slug, title)

    return from_path(pathname)
