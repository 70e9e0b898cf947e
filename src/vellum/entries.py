"""Query helpers over collection entries.

Every helper takes a list of entries and returns a new list (or mapping);
inputs are never reordered in place.
"""

import math
import posixpath
import random
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from .assets import AssetIndex
from .content import Entry

GALLERY_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}


@dataclass
class Pagination:
    """One page of a paginated listing."""

    entries: list[Entry]
    current_page: int
    total_pages: int
    total_entries: int
    has_next: bool
    has_prev: bool


@dataclass
class GalleryImage:
    vault_path: str
    filename: str
    file: Path


# --- Filtering and sorting -------------------------------------------------


def filter_drafts(entries: list[Entry], include_drafts: bool = False) -> list[Entry]:
    if include_drafts:
        return list(entries)
    return [entry for entry in entries if not entry.data.get("draft")]


def sort_by_date(entries: list[Entry]) -> list[Entry]:
    """Newest first."""
    return sorted(entries, key=lambda entry: entry.data["date"], reverse=True)


def sort_by_custom_date(entries: list[Entry], field: str) -> list[Entry]:
    """Newest first by ``field``; entries without it go last."""
    dated = [entry for entry in entries if entry.data.get(field)]
    undated = [entry for entry in entries if not entry.data.get(field)]
    return sorted(dated, key=lambda entry: entry.data[field], reverse=True) + undated


def sort_by_order(entries: list[Entry]) -> list[Entry]:
    return sorted(entries, key=lambda entry: entry.data.get("order") or 0)


def group_by_year(entries: list[Entry]) -> list[tuple[str, list[Entry]]]:
    """Entries grouped by year, newest year first and newest entry first."""
    groups: dict[str, list[Entry]] = {}
    for entry in sort_by_date(entries):
        groups.setdefault(str(entry.data["date"].year), []).append(entry)
    return sorted(groups.items(), key=lambda item: int(item[0]), reverse=True)


def group_by(entries: list[Entry], field: str) -> dict[str, list[Entry]]:
    """Group entries by a frontmatter field; missing values go to ``Uncategorized``."""
    groups: dict[str, list[Entry]] = {}
    for entry in entries:
        value = entry.data.get(field)
        key = str(value) if value not in (None, "") else "Uncategorized"
        groups.setdefault(key, []).append(entry)
    return groups


# --- Tags ------------------------------------------------------------------


def unique_tags(entries: list[Entry]) -> list[str]:
    return sorted({tag for entry in entries for tag in entry.data.get("tags") or []})


def entries_by_tag(entries: list[Entry], tag: str) -> list[Entry]:
    return [entry for entry in entries if tag in (entry.data.get("tags") or [])]


def tag_counts(entries: list[Entry]) -> dict[str, int]:
    return dict(Counter(tag for entry in entries for tag in entry.data.get("tags") or []))


def filter_by_tags(entries: list[Entry], tags: list[str]) -> list[Entry]:
    """Entries carrying every tag in ``tags``, compared case-insensitively."""
    if not tags:
        return list(entries)
    wanted = [tag.lower() for tag in tags]
    return [
        entry
        for entry in entries
        if all(tag in {t.lower() for t in entry.data.get("tags") or []} for tag in wanted)
    ]


# --- Selection -------------------------------------------------------------


def featured(entries: list[Entry]) -> list[Entry]:
    return [entry for entry in entries if entry.data.get("featured") is True]


def filter_by(
    entries: list[Entry], field: str | Callable[[Entry], bool], value: Any = None
) -> list[Entry]:
    """Entries whose ``field`` equals ``value``, or that satisfy a predicate."""
    if callable(field):
        return [entry for entry in entries if field(entry)]
    return [entry for entry in entries if entry.data.get(field) == value]


def by_ids(entries: list[Entry], ids: list[str]) -> list[Entry]:
    wanted = set(ids)
    return [entry for entry in entries if entry.id in wanted]


def optional_section(entries: list[Entry], entry_id: str) -> Entry | None:
    """An entry used as an optional page section, if it exists and has a body."""
    for entry in entries:
        if entry.id == entry_id:
            return entry if entry.body.strip() else None
    return None


# --- Navigation ------------------------------------------------------------


def adjacent(entries: list[Entry], current_id: str) -> tuple[Entry | None, Entry | None]:
    """``(prev, next)`` neighbours of an entry in list order."""
    for index, entry in enumerate(entries):
        if entry.id == current_id:
            prev = entries[index - 1] if index > 0 else None
            next_ = entries[index + 1] if index < len(entries) - 1 else None
            return prev, next_
    return None, None


def adjacent_in_group(
    entries: list[Entry], current: Entry, field: str
) -> tuple[Entry | None, Entry | None]:
    """Neighbours among entries sharing ``current``'s value of ``field``."""
    value = current.data.get(field)
    if not value:
        return adjacent(entries, current.id)
    return adjacent([entry for entry in entries if entry.data.get(field) == value], current.id)


# --- Series ----------------------------------------------------------------


def series_entries(entries: list[Entry], series: str) -> list[Entry]:
    """Entries of one series in ``seriesOrder``."""
    members = [entry for entry in entries if entry.data.get("series") == series]
    return sorted(members, key=lambda entry: entry.data.get("seriesOrder") or 0)


def unique_series(entries: list[Entry]) -> list[str]:
    return sorted({entry.data["series"] for entry in entries if entry.data.get("series")})


def all_series(entries: list[Entry]) -> dict[str, list[Entry]]:
    """Series with at least two entries."""
    result = {}
    for name in unique_series(entries):
        members = series_entries(entries, name)
        if len(members) >= 2:
            result[name] = members
    return result


def latest_series(entries: list[Entry]) -> tuple[str, list[Entry]] | None:
    """The series whose newest entry is the most recent of all."""
    latest = None
    for name, members in all_series(entries).items():
        newest = sort_by_date(members)[0].data["date"]
        if latest is None or newest > latest[0]:
            latest = (newest, name, members)
    return (latest[1], latest[2]) if latest else None


def adjacent_in_series(
    entries: list[Entry], current: Entry
) -> tuple[Entry | None, Entry | None]:
    series = current.data.get("series")
    if not series:
        return None, None
    return adjacent(series_entries(entries, series), current.id)


# --- Discovery -------------------------------------------------------------


def related(entries: list[Entry], current: Entry, limit: int = 3) -> list[Entry]:
    """Entries sharing the most tags with ``current``, newer first on ties."""
    current_tags = set(current.data.get("tags") or [])
    if not current_tags:
        return []

    scored = []
    for entry in entries:
        if entry.id == current.id:
            continue
        score = len(current_tags & set(entry.data.get("tags") or []))
        if score:
            scored.append((score, entry))
    scored.sort(
        key=lambda item: (item[0], item[1].data.get("date") or datetime.min),
        reverse=True,
    )
    return [entry for _, entry in scored[:limit]]


def search(entries: list[Entry], query: str) -> list[Entry]:
    """Case-insensitive search over title and description."""
    return search_in_fields(entries, query, ["title", "description"])


def search_in_fields(entries: list[Entry], query: str, fields: list[str]) -> list[Entry]:
    """Case-insensitive search over string and list-of-string fields."""
    needle = query.lower()

    def matches(value: Any) -> bool:
        if isinstance(value, str):
            return needle in value.lower()
        if isinstance(value, list):
            return any(isinstance(item, str) and needle in item.lower() for item in value)
        return False

    return [entry for entry in entries if any(matches(entry.data.get(f)) for f in fields)]


def paginate(entries: list[Entry], page: int, per_page: int) -> Pagination:
    """Slice out page ``page`` (1-based, clamped to the valid range)."""
    total_entries = len(entries)
    total_pages = math.ceil(total_entries / per_page) if per_page > 0 else 0
    current_page = max(1, min(page, total_pages))
    start = (current_page - 1) * per_page
    return Pagination(
        entries=entries[start : start + per_page],
        current_page=current_page,
        total_pages=total_pages,
        total_entries=total_entries,
        has_next=current_page < total_pages,
        has_prev=current_page > 1,
    )


# --- Docs ------------------------------------------------------------------


def doc_categories(docs: list[Entry]) -> list[str]:
    return sorted({doc.data["category"] for doc in docs if doc.data.get("category")})


def docs_by_category(docs: list[Entry], category: str | None) -> list[Entry]:
    """Docs in ``category``; ``None`` or ``"all"`` returns every doc."""
    if not category or category == "all":
        return list(docs)
    return [doc for doc in docs if doc.data.get("category") == category]


# --- Projects --------------------------------------------------------------


def projects_by_status(projects: list[Entry], status: str) -> list[Entry]:
    return filter_by(projects, "status", status)


def projects_with_repo(projects: list[Entry]) -> list[Entry]:
    return filter_by(projects, lambda project: bool(project.data.get("repositoryUrl")))


def project_stats(projects: list[Entry]) -> dict[str, int]:
    return {
        "total": len(projects),
        "active": len(projects_by_status(projects, "active")),
        "wip": len(projects_by_status(projects, "wip")),
        "archived": len(projects_by_status(projects, "archived")),
        "featured": len(featured(projects)),
        "tags": len(unique_tags(projects)),
        "with_repo": len(projects_with_repo(projects)),
    }


# --- Gallery ---------------------------------------------------------------


def gallery_images(
    index: AssetIndex, gallery_id: str, rng: random.Random | None = None
) -> list[GalleryImage]:
    """Images in a gallery's ``attachments/`` folder, in shuffled order."""
    folder = f"gallery/{gallery_id}/attachments"
    images = [
        GalleryImage(vault_path, posixpath.basename(vault_path), file)
        for vault_path, file in sorted(index.files.items())
        if posixpath.dirname(vault_path) == folder
        and posixpath.splitext(vault_path)[1].lower() in GALLERY_IMAGE_EXTENSIONS
    ]
    (rng or random.Random()).shuffle(images)
    return images


def gallery_cover_image(
    index: AssetIndex, gallery: Entry, rng: random.Random | None = None
) -> GalleryImage | None:
    """The gallery's ``coverImage`` if present among its images, else any image."""
    images = gallery_images(index, gallery.id, rng)
    if not images:
        return None
    cover = gallery.data.get("coverImage")
    if cover:
        for image in images:
            if image.filename == cover:
                return image
    return images[0]
