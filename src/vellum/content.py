"""Content store: discovers collection entries and normalises frontmatter."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .markdown_utils import parse_markdown_file, titleify, to_datetime
from .paths import COLLECTION_ALIASES, COLLECTIONS, Classification, classify, strip_brackets

MARKDOWN_SUFFIXES = (".md", ".mdx")

DEFAULT_DESCRIPTION = "No description provided"

DEFAULT_TITLES = {
    "posts": "Untitled Post",
    "pages": "Untitled Page",
    "docs": "Untitled Documentation",
    "gallery": "Untitled Gallery",
}

PROJECT_STATUSES = ("active", "archived", "wip")

# Collections whose entries are dated
_DATED = ("posts", "projects", "docs", "gallery")


@dataclass
class Entry:
    """One document of a collection.

    Attributes:
        id: Slug used in URLs (``my-post`` or ``guides/setup``).
        collection: Collection name.
        path: Source file.
        relative_path: Posix path of the source relative to the content root.
        body: Markdown body without frontmatter.
        data: Normalised frontmatter.
        classification: Where the document sits in the vault.
    """

    id: str
    collection: str
    path: Path
    relative_path: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    classification: Classification = field(default_factory=Classification)

    @property
    def title(self) -> str:
        return self.data.get("title", "")

    @property
    def url(self) -> str:
        return f"/{self.collection}/{self.id}/"


def normalize_image(value: Any) -> str | None:
    """Frontmatter image as a plain path.

    Obsidian writes ``image: [[cover.png]]``, which YAML reads as a nested
    list; lists give their first item and brackets are removed.
    """
    while isinstance(value, list):
        value = value[0] if value else None
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    value = strip_brackets(value)
    return value or None


def _coerce_date(value: Any, fallback: datetime, source: Path) -> datetime:
    from .logging import warning

    if value is None:
        return fallback
    parsed = to_datetime(value)
    if parsed is None:
        warning(f"Invalid date '{value}' in {source}, using file modification time")
        return fallback
    # Naive UTC, so entries with and without offsets sort together
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _tags(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(tag) for tag in value if tag]


def normalize_frontmatter(
    meta: dict[str, Any], collection: str, source: Path
) -> dict[str, Any]:
    """Apply the collection's defaults and coercions to raw frontmatter."""
    data = dict(meta)
    mtime = datetime.fromtimestamp(source.stat().st_mtime) if source.exists() else datetime.now()

    if collection == "projects":
        data["title"] = data.get("title") or titleify(source.stem)
    else:
        data["title"] = data.get("title") or DEFAULT_TITLES[collection]
    data["description"] = data.get("description") or DEFAULT_DESCRIPTION

    if collection in _DATED:
        data["date"] = _coerce_date(data.get("date"), mtime, source)
    if "lastModified" in data:
        data["lastModified"] = _coerce_date(data["lastModified"], mtime, source)

    data["tags"] = _tags(data.get("tags"))
    data["draft"] = bool(data.get("draft", False))
    data["featured"] = bool(data.get("featured", False))
    data["image"] = normalize_image(data.get("image"))

    if collection == "docs":
        data["category"] = data.get("category") or "General"
        data["order"] = data.get("order") or 0
        data.setdefault("series", None)
        data.setdefault("seriesOrder", None)
    elif collection == "projects":
        status = data.get("status") or "active"
        data["status"] = status if status in PROJECT_STATUSES else "active"
    elif collection == "gallery":
        data["imageDir"] = data.get("imageDir") or "./attachments"
        data["coverImage"] = normalize_image(data.get("coverImage"))
    elif collection == "posts":
        data.setdefault("series", None)
        data.setdefault("seriesOrder", None)

    return data


def entry_id(relative_path: str, classification: Classification, slug: str | None) -> str:
    """URL id of an entry: frontmatter slug, folder slug, or path stem."""
    if slug:
        return str(slug).strip("/")
    if classification.is_folder_based:
        within = relative_path.split("/", 1)[1] if "/" in relative_path else relative_path
        return within.rsplit("/", 1)[0]
    within = relative_path.split("/", 1)[1] if "/" in relative_path else relative_path
    return within.rsplit(".", 1)[0]


def _is_attachment(path: Path, collection_dir: Path) -> bool:
    folders = path.relative_to(collection_dir).parts[:-1]
    return "attachments" in folders or "images" in folders


def load_collection(content_root: Path, directory: str) -> list[Entry]:
    """Load every markdown file of one collection directory."""
    collection = COLLECTION_ALIASES.get(directory, directory)
    collection_dir = content_root / directory
    if not collection_dir.is_dir():
        return []

    entries = []
    for path in sorted(collection_dir.rglob("*")):
        if path.suffix not in MARKDOWN_SUFFIXES or not path.is_file():
            continue
        if _is_attachment(path, collection_dir):
            continue

        meta, body = parse_markdown_file(path)
        relative_path = path.relative_to(content_root).as_posix()
        classification = classify(relative_path)
        entries.append(
            Entry(
                id=entry_id(relative_path, classification, meta.get("slug")),
                collection=collection,
                path=path,
                relative_path=relative_path,
                body=body,
                data=normalize_frontmatter(meta, collection, path),
                classification=classification,
            )
        )
    return entries


def load_entries(content_root: Path) -> dict[str, list[Entry]]:
    """Load all collections under ``content_root``.

    Returns:
        Mapping of collection name to entries; every collection is present.
    """
    from .logging import debug

    collections: dict[str, list[Entry]] = {name: [] for name in COLLECTIONS}
    for directory in (*COLLECTIONS, *COLLECTION_ALIASES):
        entries = load_collection(content_root, directory)
        if entries:
            collection = COLLECTION_ALIASES.get(directory, directory)
            collections[collection].extend(entries)
            debug(f"  Loaded {len(entries)} {directory} entries")
    return collections
