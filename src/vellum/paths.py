"""Document classification and image path resolution.

A document's location in the vault decides where its images live. Posts and
other collections come in two shapes:

* single-file: ``posts/my-post.md`` with images in ``posts/attachments/``
* folder-based: ``posts/my-post/index.md`` with images beside the index file

:func:`classify` derives the collection and slug from the path once per
document, and the resolvers rewrite raw image references against that
result.
"""

import re
from dataclasses import dataclass

COLLECTIONS = ("posts", "projects", "docs", "pages", "gallery")
COLLECTION_ALIASES = {"special": "pages"}
INDEX_FILENAMES = ("index.md", "index.mdx")

AUDIO_EXTENSIONS = {".mp3", ".wav", ".ogg", ".m4a", ".3gp", ".flac", ".aac"}
VIDEO_EXTENSIONS = {".mp4", ".webm", ".ogv", ".mov", ".mkv", ".avi"}
DOCUMENT_EXTENSIONS = {".pdf"}
NON_IMAGE_EXTENSIONS = AUDIO_EXTENSIONS | VIDEO_EXTENSIONS | DOCUMENT_EXTENSIONS

_ATTACHMENT_PREFIXES = ("attachments/", "images/")
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
_RASTER_RE = re.compile(r"\.(jpg|jpeg|png|gif|bmp|tiff|tif)$", re.IGNORECASE)


@dataclass(frozen=True)
class Classification:
    """Where a document sits in the vault.

    Attributes:
        collection: Collection name, or None when the path is outside every
            known collection.
        slug: Folder name of a folder-based document, otherwise None.
        is_folder_based: True when the document is an index file inside its
            own folder.
    """

    collection: str | None = None
    slug: str | None = None
    is_folder_based: bool = False

    def __post_init__(self) -> None:
        if self.is_folder_based != (self.slug is not None):
            raise ValueError("slug must be set exactly when the document is folder-based")


UNCLASSIFIED = Classification()


def _segments(path: str) -> list[str]:
    return [segment for segment in path.replace("\\", "/").split("/") if segment]


def classify(file_path: str | None) -> Classification:
    """Infer the collection and slug of a document from its file path.

    The first directory segment naming a collection wins, so
    ``posts/docs/x.md`` belongs to ``posts``. ``special`` is read as
    ``pages``.

    Examples:
        >>> classify("content/posts/hello/index.md")
        Classification(collection='posts', slug='hello', is_folder_based=True)
        >>> classify("content/posts/hello.md").slug is None
        True
    """
    if not file_path:
        return UNCLASSIFIED

    segments = _segments(file_path)
    directories = segments[:-1]

    for position, segment in enumerate(directories):
        collection = COLLECTION_ALIASES.get(segment, segment)
        if collection not in COLLECTIONS:
            continue

        filename = segments[-1]
        has_slug = position + 1 < len(directories)
        if filename in INDEX_FILENAMES and has_slug:
            return Classification(collection, directories[position + 1], True)
        return Classification(collection)

    return UNCLASSIFIED


def strip_brackets(raw: str) -> str:
    """Remove Obsidian ``[[...]]`` wrapping from a reference."""
    value = raw.strip()
    if value.startswith("[[") and value.endswith("]]"):
        return value[2:-2].strip()
    return value


def extension(path: str) -> str:
    """Lowercased extension of a path or URL, ignoring query and fragment."""
    path = path.split("?", 1)[0].split("#", 1)[0]
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[-1].lower()


def is_non_image_attachment(path: str) -> bool:
    """True for audio, video and PDF references."""
    return extension(path) in NON_IMAGE_EXTENSIONS


def _is_rooted(path: str) -> bool:
    if not path:
        return True
    if path.startswith(("http://", "https://", "/", "./", "../")):
        return True
    return bool(_SCHEME_RE.match(path))


def _strip_attachment_prefix(path: str) -> str:
    for prefix in _ATTACHMENT_PREFIXES:
        if path.startswith(prefix):
            return path[len(prefix) :]
    return path


def _effective_collection(path: str, classification: Classification) -> str | None:
    if classification.collection:
        return classification.collection
    if path.startswith("attachments/"):
        return "pages"
    return None


def _relative_path(path: str, classification: Classification) -> str:
    if _effective_collection(path, classification) is None:
        return path
    if classification.is_folder_based:
        return f"./{_strip_attachment_prefix(path)}"
    if path.startswith(_ATTACHMENT_PREFIXES):
        return f"./{_strip_attachment_prefix(path)}"
    return f"./attachments/{path}"


def _published_path(path: str, classification: Classification) -> str:
    collection = _effective_collection(path, classification)
    if collection is None:
        return path
    if classification.is_folder_based:
        return f"/{collection}/{classification.slug}/{_strip_attachment_prefix(path)}"
    if path.startswith("attachments/"):
        return f"/{collection}/{path}"
    return f"/{collection}/attachments/{path}"


def resolve_image_path(raw_url: str, classification: Classification) -> str:
    """Rewrite a raw image reference relative to its document.

    Folder-based documents keep images beside the index file, so an
    ``images/`` or ``attachments/`` prefix is dropped. Single-file documents
    share their collection's ``attachments/`` folder, so bare filenames are
    pointed there.

    References that are already resolved (``/``, ``./``, ``../``), remote, or
    audio/video/PDF attachments come back unchanged, as do references in
    documents outside every collection. Every rewritten value starts with
    ``./``, so the function is idempotent.
    """
    path = strip_brackets(raw_url)
    if _is_rooted(path) or is_non_image_attachment(path):
        return path
    return _relative_path(path, classification)


def resolve_published_image_path(raw_url: str, classification: Classification) -> str:
    """Rewrite a raw image reference to its published, collection-rooted URL.

    Uses the same skip rules as :func:`resolve_image_path` but produces
    absolute URLs such as ``/posts/my-post/cover.webp``, with raster
    extensions replaced by ``.webp``.
    """
    path = strip_brackets(raw_url)
    if _is_rooted(path) or is_non_image_attachment(path):
        return path
    resolved = _published_path(path, classification)
    if resolved == path:
        return path
    return convert_to_webp(resolved)


def resolve_attachment_path(
    raw_url: str, classification: Classification, style: str = "relative"
) -> str:
    """Rewrite an audio, video or PDF reference like an image reference.

    No WebP substitution is applied.
    """
    path = strip_brackets(raw_url)
    if _is_rooted(path):
        return path
    if style == "published":
        return _published_path(path, classification)
    return _relative_path(path, classification)


def convert_to_webp(path: str) -> str:
    """Swap a raster image extension for ``.webp``.

    Remote URLs, SVGs and paths that are already WebP are returned as is.
    """
    if not path or path.startswith("http"):
        return path
    lowered = path.lower()
    if lowered.endswith((".svg", ".webp")):
        return path
    return _RASTER_RE.sub(".webp", path)


def get_resolver(style: str):
    """Return the image path resolver for a ``[markdown] image_paths`` style."""
    if style == "published":
        return resolve_published_image_path
    return resolve_image_path
