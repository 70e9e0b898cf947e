"""Core build logic for vellum static site generator."""

import json
import posixpath
from datetime import datetime
from pathlib import Path

from bs4 import BeautifulSoup
from jinja2 import Environment

from . import breadcrumbs
from .assets import AssetIndex, copy_assets, sync_attachments
from .config import Config
from .content import Entry, load_entries
from .entries import (
    adjacent,
    adjacent_in_group,
    adjacent_in_series,
    entries_by_tag,
    featured,
    filter_drafts,
    group_by_year,
    optional_section,
    paginate,
    related,
    series_entries,
    sort_by_date,
    sort_by_order,
    tag_counts,
    unique_tags,
)
from .logging import ProblemCounter
from .markdown_utils import calculate_reading_time, slugify
from .pipeline import render_markdown
from .seo import home_seo, index_seo, meta_tags, seo_for_entry
from .templates import create_environment

HOME_INTRO_ID = "home-intro"

# Elements whose local sources are published through the index
_ASSET_SELECTORS = (
    "img[src]",
    "audio[src]",
    "video[src]",
    "source[src]",
    "iframe.pdf-embed[src]",
)


def _is_local_reference(src: str) -> bool:
    if not src or src.startswith(("#", "//")):
        return False
    return ":" not in src.split("/", 1)[0]


def publish_asset_urls(
    html: str, entry: Entry, index: AssetIndex
) -> tuple[str, dict[str, str]]:
    """Point media sources at files the build will publish.

    A document-relative source such as ``./attachments/cat.png`` is looked
    up relative to the entry and rewritten to ``/{vault_path}``. A rooted
    source such as ``/posts/my-post/cat.png`` keeps its URL and is traced
    back to the vault file it is published from; when only a raster source
    stands behind a ``.webp`` URL, the URL takes the source's name.
    Sources the index does not know are left as they are.

    Returns:
        Tuple of (html, mapping of output path to referenced vault path)
    """
    soup = BeautifulSoup(html, "html.parser")
    referenced = {}
    for element in soup.select(", ".join(_ASSET_SELECTORS)):
        src = element["src"]
        if not _is_local_reference(src):
            continue
        if src.startswith("/"):
            vault_path = index.lookup_published(src)
            if vault_path is None:
                continue
            url_path = src.split("?", 1)[0].split("#", 1)[0]
            output_path = posixpath.join(
                posixpath.dirname(url_path), posixpath.basename(vault_path)
            ).lstrip("/")
        else:
            vault_path = index.lookup_relative(entry.relative_path, src.removeprefix("./"))
            if vault_path is None:
                continue
            output_path = vault_path
        element["src"] = f"/{output_path}"
        referenced[output_path] = vault_path
    return str(soup), referenced


def _og_image_vault_path(og_url: str, config: Config, index: AssetIndex) -> str | None:
    site_url = config.site.url.rstrip("/")
    if not og_url.startswith(site_url + "/"):
        return None
    vault_path = og_url[len(site_url) + 1 :]
    return vault_path if vault_path in index else None


def _summary(entry: Entry) -> dict:
    return {
        "id": entry.id,
        "title": entry.title,
        "url": entry.url,
        "date": entry.data.get("date"),
        "description": entry.data.get("description"),
        "tags": entry.data.get("tags", []),
    }


def _write(output_file: Path, html: str) -> None:
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(html, encoding="utf-8")


def _page_path(output_dir: Path, url: str) -> Path:
    return output_dir / url.strip("/") / "index.html"


def _neighbours(entry: Entry, siblings: list[Entry]) -> tuple[Entry | None, Entry | None]:
    if entry.collection == "docs":
        if entry.data.get("series"):
            return adjacent_in_series(siblings, entry)
        return adjacent_in_group(siblings, entry, "category")
    return adjacent(siblings, entry.id)


def create_page_object(
    entry: Entry, siblings: list[Entry], config: Config, index: AssetIndex
) -> tuple[dict, dict[str, str]]:
    """Render an entry and collect everything its template needs.

    Returns:
        Tuple of (page dict, output paths mapped to the vault files they reference)
    """
    document = render_markdown(
        entry.body, classification=entry.classification, options=config.markdown
    )
    html, referenced = publish_asset_urls(document.html, entry, index)

    toc_depth = config.markdown.toc_depth
    page = _summary(entry)
    page.update(
        {
            "collection": entry.collection,
            "html": html,
            "headings": [h for h in document.headings if h.depth <= toc_depth],
            "scripts": document.scripts,
            "reading_time": None,
            "word_count": None,
            "series": None,
            "related": [],
        }
    )

    prev, next_ = _neighbours(entry, siblings)
    page["prev"] = _summary(prev) if prev else None
    page["next"] = _summary(next_) if next_ else None

    if entry.collection == "posts":
        reading = calculate_reading_time(entry.body)
        if config.posts.reading_time:
            page["reading_time"] = reading
        if config.posts.word_count:
            page["word_count"] = reading.words
        page["related"] = [
            _summary(item) for item in related(siblings, entry, config.posts.related_posts)
        ]

    series = entry.data.get("series")
    if series:
        page["series"] = {
            "name": series,
            "entries": [_summary(item) for item in series_entries(siblings, series)],
        }

    return page, referenced


def render_page_to_file(
    page: dict, entry: Entry, env: Environment, config: Config, index: AssetIndex
) -> str | None:
    """Render an entry's page and write it to ``{output}/{collection}/{id}/``.

    Returns:
        Vault path of a local Open Graph image to publish, if any
    """
    seo = seo_for_entry(entry, config, index)
    trail = breadcrumbs.smart_breadcrumbs(
        entry.url,
        title=entry.title,
        series=entry.data.get("series") if entry.collection == "docs" else None,
    )
    html = env.get_template("page.html").render(
        page=page,
        seo=seo,
        meta_tags=meta_tags(seo),
        scripts=page["scripts"],
        breadcrumbs=trail,
    )
    _write(_page_path(config.get_output_dir(), entry.url), html)
    return _og_image_vault_path(seo.og_image.url, config, index)


def _sort_collection(collection: str, entries: list[Entry]) -> list[Entry]:
    if collection == "docs":
        return sort_by_order(entries)
    if collection == "pages":
        return list(entries)
    return sort_by_date(entries)


def process_entries(
    collections: dict[str, list[Entry]],
    env: Environment,
    config: Config,
    index: AssetIndex,
) -> tuple[list[Entry], dict[str, str]]:
    """Render every entry. Failures are logged and the entry is skipped.

    Returns:
        Tuple of (entries written, output paths mapped to referenced vault paths)
    """
    from .logging import debug, error

    written = []
    referenced: dict[str, str] = {}
    for collection, entries in collections.items():
        siblings = _sort_collection(collection, entries)
        for entry in siblings:
            try:
                page, assets = create_page_object(entry, siblings, config, index)
                og_image = render_page_to_file(page, entry, env, config, index)
            except Exception as e:
                error(f"Failed to render {entry.relative_path}: {e}")
                continue
            debug(f"  Built: {entry.url}")
            referenced |= assets
            if og_image:
                referenced[og_image] = og_image
            written.append(entry)
    return written, referenced


def _listing_url(number: int) -> str:
    return "/posts/" if number == 1 else f"/posts/page/{number}/"


def render_post_listing(posts: list[Entry], env: Environment, config: Config) -> int:
    """Write ``/posts/`` and ``/posts/page/{n}/``. Returns the number of pages."""
    output_dir = config.get_output_dir()
    ordered = sort_by_date(posts)
    per_page = config.posts.posts_per_page
    total_pages = max(1, paginate(ordered, 1, per_page).total_pages)
    template = env.get_template("list.html")

    for number in range(1, total_pages + 1):
        pagination = paginate(ordered, number, per_page)
        url = _listing_url(number)
        if config.posts.group_by_year:
            groups = [
                (year, [_summary(e) for e in items])
                for year, items in group_by_year(pagination.entries)
            ]
        else:
            groups = [(None, [_summary(e) for e in pagination.entries])]

        seo = index_seo("posts", config, config.absolute_url(url), page=number)
        html = template.render(
            heading="Posts",
            groups=groups,
            pagination=pagination,
            prev_url=_listing_url(number - 1) if pagination.has_prev else None,
            next_url=_listing_url(number + 1) if pagination.has_next else None,
            seo=seo,
            meta_tags=meta_tags(seo),
            breadcrumbs=breadcrumbs.from_path(url),
        )
        _write(_page_path(output_dir, url), html)
    return total_pages


def render_tag_pages(posts: list[Entry], env: Environment, config: Config) -> int:
    """Write one page per tag plus the tag index. Returns the number of tags."""
    output_dir = config.get_output_dir()
    tags_base = config.markdown.tags_base
    counts = tag_counts(posts)
    tags = unique_tags(posts)
    list_template = env.get_template("list.html")

    for tag in tags:
        url = f"{tags_base}{slugify(tag)}/"
        seo = index_seo("tags", config, config.absolute_url(url), tag=tag)
        html = list_template.render(
            heading=f"Posts tagged #{tag}",
            groups=[(None, [_summary(e) for e in sort_by_date(entries_by_tag(posts, tag))])],
            pagination=None,
            seo=seo,
            meta_tags=meta_tags(seo),
            breadcrumbs=breadcrumbs.post_tag(tag),
        )
        _write(_page_path(output_dir, url), html)

    seo = index_seo("tags", config, config.absolute_url(tags_base))
    html = env.get_template("tags.html").render(
        tags=[
            {"name": tag, "url": f"{tags_base}{slugify(tag)}/", "count": counts[tag]}
            for tag in tags
        ],
        seo=seo,
        meta_tags=meta_tags(seo),
    )
    _write(_page_path(output_dir, tags_base), html)
    return len(tags)


def render_home_page(
    posts: list[Entry], pages: list[Entry], env: Environment, config: Config
) -> None:
    """Write ``/index.html`` with the optional intro section and recent posts."""
    intro = None
    intro_entry = optional_section(pages, HOME_INTRO_ID)
    if intro_entry is not None:
        intro = render_markdown(
            intro_entry.body,
            classification=intro_entry.classification,
            options=config.markdown,
        ).html

    ordered = sort_by_date(posts)
    seo = home_seo(config, config.absolute_url("/"))
    html = env.get_template("home.html").render(
        intro=intro,
        featured=[_summary(e) for e in featured(ordered)],
        recent=[_summary(e) for e in ordered[: config.posts.posts_per_page]],
        seo=seo,
        meta_tags=meta_tags(seo),
    )
    _write(config.get_output_dir() / "index.html", html)


def generate_search_index(output_dir: Path, entries: list[Entry]) -> None:
    """Generate search.json for client-side search."""
    search_data = []
    for entry in entries:
        date = entry.data.get("date")
        search_data.append(
            {
                "title": entry.title,
                "url": entry.url,
                "collection": entry.collection,
                "description": entry.data.get("description", ""),
                "tags": entry.data.get("tags", []),
                "date": date.isoformat() if isinstance(date, datetime) else "",
                "content": entry.body[:500],
            }
        )
    (output_dir / "search.json").write_text(
        json.dumps(search_data, indent=2), encoding="utf-8"
    )


def generate_sitemap(output_dir: Path, urls: list[str], config: Config) -> None:
    """Generate sitemap.txt with every page URL."""
    lines = [config.absolute_url(url) for url in urls]
    (output_dir / "sitemap.txt").write_text("\n".join(lines), encoding="utf-8")


def _print_build_summary(
    written: list[Entry],
    listing_pages: int,
    tag_count: int,
    copied: int,
    synced: int,
    output_dir: Path,
    problems: ProblemCounter,
) -> None:
    from .logging import debug, info

    debug("\nBuild complete!")
    debug(f"  - {len(written)} entries rendered")
    debug(f"  - {listing_pages} listing pages, {tag_count} tag pages")
    debug(f"  - {copied} assets copied, {synced} attachments synced")
    debug(f"  - Output directory: {output_dir.absolute()}")
    summary = f"Done: {len(written)} pages, {tag_count} tags, {copied + synced} files copied"
    if problems.total:
        summary += f" ({problems.summary()})"
    info(summary)


def build(config: Config, include_drafts: bool | None = None, force: bool = False) -> int:
    """Build the static site from the configured content directory.

    Args:
        config: Configuration object
        include_drafts: Render draft entries (default from config)
        force: Copy assets even when the output is up to date

    Returns:
        Number of entry pages written
    """
    from .logging import count_problems, debug, error, info

    if include_drafts is None:
        include_drafts = config.build.include_drafts

    content_dir = config.get_content_dir()
    if not content_dir.exists():
        error(f"Content directory '{content_dir}' does not exist")
        return 0

    output_dir = config.get_output_dir()
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%H:%M:%S")
    info(f"[{timestamp}] Building...")

    with count_problems() as problems:
        index = AssetIndex.scan(content_dir)
        collections = {
            name: filter_drafts(entries, include_drafts)
            for name, entries in load_entries(content_dir).items()
        }
        env = create_environment(config)

        written, referenced = process_entries(collections, env, config, index)

        posts = [entry for entry in written if entry.collection == "posts"]
        pages = collections.get("pages", [])
        listing_pages = render_post_listing(posts, env, config)
        tag_count = render_tag_pages(posts, env, config)
        render_home_page(posts, pages, env, config)

        listing_urls = ["/", "/posts/", config.markdown.tags_base]
        listing_urls += [f"/posts/page/{n}/" for n in range(2, listing_pages + 1)]
        listing_urls += [f"{config.markdown.tags_base}{slugify(t)}/" for t in unique_tags(posts)]
        generate_sitemap(output_dir, listing_urls + [entry.url for entry in written], config)
        generate_search_index(output_dir, written)

        debug("Copying assets...")
        copied = copy_assets(referenced, index, output_dir, force)
        synced = sync_attachments(content_dir, output_dir, force)

    _print_build_summary(written, listing_pages, tag_count, copied, synced, output_dir, problems)
    return len(written)


def render_file(file_path: Path, config: Config) -> str:
    """Render one markdown file to HTML, classified by its path in the vault."""
    from .markdown_utils import parse_markdown_file

    _, body = parse_markdown_file(file_path)
    resolved = file_path.resolve()
    content_dir = config.get_content_dir().resolve()
    try:
        relative = resolved.relative_to(content_dir).as_posix()
    except ValueError:
        relative = posixpath.basename(resolved.as_posix())
    return render_markdown(body, relative, options=config.markdown).html
