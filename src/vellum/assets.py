"""Asset handling for vellum.

The content tree is scanned once per build into an :class:`AssetIndex`.
Rendering code looks references up in the index instead of touching the
filesystem, and the build copies whatever was referenced into the output.
"""

import posixpath
import re
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path

from .paths import strip_brackets

# Images the build publishes
SUPPORTED_IMAGE_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".webp",
    ".avif",
    ".gif",
    ".svg",
}

# Raster sources a published .webp URL may stand for
_WEBP_SOURCES = (".png", ".jpg", ".jpeg", ".gif")

# Attachments mirrored into the output by sync_attachments
ATTACHMENT_EXTENSIONS = {
    # Documents
    ".pdf",
    ".csv",
    ".xlsx",
    ".docx",
    ".pptx",
    # Media
    ".mp4",
    ".webm",
    ".mov",
    ".mp3",
    ".wav",
    ".ogg",
    ".m4a",
    # Archives
    ".zip",
    ".tar",
    ".gz",
    ".7z",
}

SUPPORTED_ASSET_EXTENSIONS = SUPPORTED_IMAGE_EXTENSIONS | ATTACHMENT_EXTENSIONS

SYNC_COLLECTIONS = ("posts", "pages", "docs")

_REMOTE_RE = re.compile(r"^https?://", re.IGNORECASE)


@dataclass(frozen=True)
class EmbeddedImage:
    """An image file inside the content tree, published by the build.

    ``source`` is ``"shared"`` for files under a top-level ``attachments/``
    folder and ``"post"`` for files that belong to one document.
    """

    vault_path: str
    file: Path
    source: str = "post"

    @property
    def url(self) -> str:
        return f"/{self.vault_path}"


@dataclass(frozen=True)
class StaticAsset:
    """A file served verbatim from the site root."""

    url: str
    source: str | None = None


@dataclass(frozen=True)
class RemoteImage:
    """An external image URL, left untouched."""

    url: str


ResolvedImage = EmbeddedImage | StaticAsset | RemoteImage


@dataclass
class AssetIndex:
    """Known asset files under a content root, keyed by vault path.

    Vault paths are posix paths relative to the content root, e.g.
    ``posts/my-post/attachments/cover.jpg``.
    """

    root: Path | None = None
    files: dict[str, Path] = field(default_factory=dict)
    _by_name: dict[str, list[str]] = field(default_factory=dict, repr=False)

    @classmethod
    def scan(
        cls, content_root: Path, extensions: set[str] = SUPPORTED_ASSET_EXTENSIONS
    ) -> "AssetIndex":
        """Index every asset file below ``content_root``."""
        from .logging import debug

        index = cls(root=content_root)
        if content_root.exists():
            for path in sorted(content_root.rglob("*")):
                if path.is_file() and path.suffix.lower() in extensions:
                    index.add(path.relative_to(content_root).as_posix(), path)
        debug(f"Indexed {len(index.files)} assets in {content_root}")
        return index

    def add(self, vault_path: str, file: Path) -> None:
        self.files[vault_path] = file
        self._by_name.setdefault(posixpath.basename(vault_path), []).append(vault_path)

    def __contains__(self, vault_path: str) -> bool:
        return vault_path in self.files

    def __len__(self) -> int:
        return len(self.files)

    def lookup(self, vault_path: str) -> Path | None:
        return self.files.get(vault_path.lstrip("/"))

    def lookup_name(self, name: str) -> str | None:
        """Vault path of the only file called ``name``, if it is unique."""
        matches = self._by_name.get(name, [])
        return matches[0] if len(matches) == 1 else None

    def lookup_relative(self, document_path: str, src: str) -> str | None:
        """Find the vault path a document-relative reference points at.

        Tries the reference beside the document, then inside the document's
        ``attachments/`` and ``images/`` folders, then the vault-wide
        ``attachments/`` folder, and finally a unique filename anywhere in
        the vault.

        Args:
            document_path: Vault path of the referencing document
            src: Reference as written in the rendered HTML

        Returns:
            Vault path of the asset, or None if it is not indexed
        """
        src = src.split("?", 1)[0].split("#", 1)[0]
        doc_dir = posixpath.dirname(document_path)
        candidates = [
            posixpath.join(doc_dir, src),
            posixpath.join(doc_dir, "attachments", src),
            posixpath.join(doc_dir, "images", src),
            posixpath.join("attachments", src),
        ]
        for candidate in candidates:
            vault_path = posixpath.normpath(candidate)
            if vault_path.startswith("../"):
                continue
            if vault_path in self.files:
                return vault_path
        return self.lookup_name(posixpath.basename(src))

    def lookup_published(self, url: str) -> str | None:
        """Find the vault file behind a collection-rooted URL.

        ``/posts/my-post/cover.svg`` is published from the entry's
        ``attachments/`` or ``images/`` folder. A ``.webp`` URL with no WebP
        file in the vault falls back to a raster source of the same name.

        Args:
            url: Rooted URL as written in the rendered HTML

        Returns:
            Vault path of the asset, or None if it is not indexed
        """
        path = url.split("?", 1)[0].split("#", 1)[0].lstrip("/")
        if not path:
            return None
        candidates = [path]
        stem, ext = posixpath.splitext(path)
        if ext.lower() == ".webp":
            candidates += [stem + raster for raster in _WEBP_SOURCES]
            candidates += [stem + raster.upper() for raster in _WEBP_SOURCES]
        for candidate in candidates:
            vault_path = self._lookup_folder(candidate)
            if vault_path is not None:
                return vault_path
        return None

    def _lookup_folder(self, path: str) -> str | None:
        if path in self.files:
            return path
        parts = path.split("/")
        for i in range(len(parts) - 1, 0, -1):
            for folder in ("attachments", "images"):
                vault_path = "/".join(parts[:i] + [folder] + parts[i:])
                if vault_path in self.files:
                    return vault_path
        return None


def resolve_image(raw: str | None, index: AssetIndex) -> ResolvedImage | None:
    """Classify a raw image reference as embedded, static or remote.

    Args:
        raw: Reference from frontmatter or markdown, optionally ``[[...]]``
        index: Asset index of the content tree

    Returns:
        The resolved variant, or None for empty references
    """
    if not raw or not isinstance(raw, str):
        return None

    cleaned = strip_brackets(raw)
    if _REMOTE_RE.match(cleaned):
        return RemoteImage(cleaned)

    vault_path = cleaned.lstrip("/")
    ext = posixpath.splitext(vault_path)[1].lower()
    if ext in SUPPORTED_IMAGE_EXTENSIONS and vault_path in index:
        source = "shared" if vault_path.startswith("attachments/") else "post"
        return EmbeddedImage(vault_path, index.files[vault_path], source)

    if vault_path.startswith("attachments/"):
        return StaticAsset(f"/{vault_path}", "attachments")
    return StaticAsset(f"/{vault_path}")


def robust_rmtree(path: Path, retries: int = 3, delay: float = 0.1) -> None:
    """Remove a directory tree with retry logic for macOS file descriptor races."""
    for attempt in range(retries):
        try:
            shutil.rmtree(path)
            return
        except OSError:
            if attempt < retries - 1:
                time.sleep(delay * (attempt + 1))
            else:
                raise


def copy_file_incremental(src_file: Path, target_file: Path, force: bool = False) -> bool:
    """Copy a file unless the target is already up to date.

    Returns:
        True if the file was copied
    """
    if (
        not force
        and target_file.exists()
        and src_file.stat().st_mtime <= target_file.stat().st_mtime
    ):
        return False
    target_file.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src_file, target_file)
    return True


def copy_assets(
    assets: dict[str, str], index: AssetIndex, output_dir: Path, force: bool = False
) -> int:
    """Copy referenced assets into the output directory.

    Args:
        assets: Mapping of output path to the vault path it is copied from
        index: Asset index of the content tree
        output_dir: Build output directory
        force: Copy even when the target is up to date

    Returns:
        Number of files copied
    """
    copied = 0
    for output_path, vault_path in sorted(assets.items()):
        src_file = index.lookup(vault_path)
        if src_file is None:
            continue
        if copy_file_incremental(src_file, output_dir / output_path, force):
            copied += 1
    return copied


def _find_attachments(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(
        path
        for path in directory.rglob("*")
        if path.is_file() and path.suffix.lower() in ATTACHMENT_EXTENSIONS
    )


def sync_attachments(content_root: Path, output_dir: Path, force: bool = False) -> int:
    """Mirror non-image attachments into the output directory.

    For each of posts, pages and docs:
    - ``{type}/attachments/**`` is copied to ``{output}/{type}/attachments/``
    - ``{type}/{entry}/attachments/**`` is copied to ``{output}/{type}/{entry}/``
      without the ``attachments/`` level

    Args:
        content_root: Root of the collection folders
        output_dir: Build output directory
        force: Copy even when targets are up to date

    Returns:
        Number of files copied
    """
    from .logging import debug

    copied = 0
    for collection in SYNC_COLLECTIONS:
        collection_dir = content_root / collection

        shared_dir = collection_dir / "attachments"
        shared_files = _find_attachments(shared_dir)
        for src_file in shared_files:
            target = output_dir / collection / "attachments" / src_file.relative_to(shared_dir)
            copied += copy_file_incremental(src_file, target, force)
        if shared_files:
            debug(f"  {collection}: synced shared attachments")

        if not collection_dir.is_dir():
            continue
        for entry_dir in sorted(collection_dir.iterdir()):
            if not entry_dir.is_dir() or entry_dir.name == "attachments":
                continue
            attachment_dir = entry_dir / "attachments"
            files = _find_attachments(attachment_dir)
            for src_file in files:
                target = (
                    output_dir
                    / collection
                    / entry_dir.name
                    / src_file.relative_to(attachment_dir)
                )
                copied += copy_file_incremental(src_file, target, force)
            if files:
                debug(f"  {collection}/{entry_dir.name}: synced attachments")

    return copied
