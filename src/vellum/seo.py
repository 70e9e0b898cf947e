"""SEO metadata for rendered pages."""

from dataclasses import dataclass, field
from datetime import timezone

from .assets import AssetIndex, resolve_image
from .config import Config
from .content import Entry
from .markdown_utils import to_datetime
from .paths import strip_brackets

OG_IMAGE_WIDTH = 1200
OG_IMAGE_HEIGHT = 630

INDEX_PAGES = {
    "posts": ("Posts", "Browse all blog posts on {site}"),
    "docs": ("Documentation", "Browse documentation on {site}"),
}


@dataclass
class OpenGraphImage:
    url: str
    alt: str
    width: int = OG_IMAGE_WIDTH
    height: int = OG_IMAGE_HEIGHT


@dataclass
class SEOData:
    """Everything the page head needs for search engines and link previews."""

    title: str
    description: str
    canonical: str
    og_image: OpenGraphImage
    og_type: str = "website"
    published_time: str | None = None
    modified_time: str | None = None
    tags: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    no_index: bool = False
    twitter_card: str = "summary_large_image"

    @property
    def robots(self) -> str:
        return robots_meta(self.no_index)


def default_og_image(config: Config) -> OpenGraphImage:
    site = config.site
    return OpenGraphImage(
        url=config.absolute_url(site.default_og_image),
        alt=site.default_og_image_alt or site.title,
    )


def process_og_image(
    image: str | list | None,
    alt: str | None,
    config: Config,
    index: AssetIndex,
    document_path: str | None = None,
) -> OpenGraphImage:
    """Resolve a frontmatter image into an absolute Open Graph image.

    Relative references are first looked up beside ``document_path``; any
    other reference goes through :func:`vellum.assets.resolve_image`. A
    missing image falls back to the site default.
    """
    if isinstance(image, list):
        image = image[0] if image else None
    if not image:
        return default_og_image(config)

    cleaned = strip_brackets(str(image))
    url = None
    if document_path and not cleaned.startswith(("/", "http://", "https://")):
        vault_path = index.lookup_relative(document_path, cleaned.removeprefix("./"))
        if vault_path:
            url = f"/{vault_path}"
    if url is None:
        resolved = resolve_image(cleaned, index)
        if resolved is None:
            return default_og_image(config)
        url = resolved.url

    return OpenGraphImage(
        url=config.absolute_url(url),
        alt=alt or config.site.default_og_image_alt or config.site.title,
    )


def format_schema_date(value) -> str | None:
    """ISO 8601 timestamp in UTC, as schema.org and Open Graph expect."""
    if not value:
        return None
    parsed = to_datetime(value)
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def robots_meta(no_index: bool = False) -> str:
    return "noindex, nofollow" if no_index else "index, follow"


def home_seo(config: Config, url: str) -> SEOData:
    return SEOData(
        title=config.site.title,
        description=config.site.description,
        canonical=url,
        og_image=default_og_image(config),
    )


def post_seo(post: Entry, config: Config, index: AssetIndex, url: str) -> SEOData:
    data = post.data
    return SEOData(
        title=f"{data['title']} | {config.site.title}",
        description=data.get("description") or config.site.description,
        canonical=url,
        og_image=process_og_image(
            data.get("image"), data.get("imageAlt"), config, index, post.relative_path
        ),
        og_type="article",
        published_time=format_schema_date(data.get("date")),
        modified_time=format_schema_date(data.get("lastModified")),
        tags=list(data.get("tags") or []),
        keywords=list(data.get("tags") or []),
        no_index=bool(data.get("draft") or data.get("noIndex")),
    )


def page_seo(page: Entry, config: Config, index: AssetIndex, url: str) -> SEOData:
    data = page.data
    site_title = config.site.title
    title = site_title if data["title"] == site_title else f"{data['title']} | {site_title}"
    return SEOData(
        title=title,
        description=data.get("description") or config.site.description,
        canonical=url,
        og_image=process_og_image(
            data.get("image"), data.get("imageAlt"), config, index, page.relative_path
        ),
        no_index=bool(data.get("noIndex")),
    )


def doc_seo(doc: Entry, config: Config, index: AssetIndex, url: str) -> SEOData:
    data = doc.data
    return SEOData(
        title=f"{data['title']} | Docs | {config.site.title}",
        description=data.get("description") or config.site.description,
        canonical=url,
        og_image=process_og_image(
            data.get("image"), data.get("imageAlt"), config, index, doc.relative_path
        ),
        og_type="article",
        modified_time=format_schema_date(data.get("lastModified")),
        no_index=bool(data.get("noIndex")),
    )


def index_seo(
    kind: str,
    config: Config,
    url: str,
    tag: str | None = None,
    page: int | None = None,
) -> SEOData:
    """SEO for listing pages: ``posts``, ``tags`` (optionally one tag) or ``docs``."""
    site = config.site.title
    if kind == "tags":
        if tag:
            title = f'Posts tagged "{tag}"'
            description = f"Browse all posts tagged with {tag} on {site}"
        else:
            title, description = "Tags", f"Browse posts by tags on {site}"
    else:
        title, description = INDEX_PAGES[kind]
        description = description.format(site=site)

    if page and page > 1:
        title = f"{title} - Page {page}"
        description = f"{description} - Page {page}"

    return SEOData(
        title=f"{title} | {site}",
        description=description,
        canonical=url,
        og_image=default_og_image(config),
        keywords=[tag] if tag else [],
    )


def seo_for_entry(entry: Entry, config: Config, index: AssetIndex) -> SEOData:
    url = config.absolute_url(entry.url)
    if entry.collection == "posts":
        return post_seo(entry, config, index, url)
    if entry.collection == "docs":
        return doc_seo(entry, config, index, url)
    return page_seo(entry, config, index, url)


def meta_tags(seo: SEOData) -> list[dict[str, str]]:
    """``<meta>`` attributes for the page head, in output order."""
    tags = [
        {"name": "description", "content": seo.description},
        {"name": "robots", "content": seo.robots},
        {"property": "og:type", "content": seo.og_type},
        {"property": "og:title", "content": seo.title},
        {"property": "og:description", "content": seo.description},
        {"property": "og:url", "content": seo.canonical},
        {"property": "og:image", "content": seo.og_image.url},
        {"property": "og:image:alt", "content": seo.og_image.alt},
        {"property": "og:image:width", "content": str(seo.og_image.width)},
        {"property": "og:image:height", "content": str(seo.og_image.height)},
        {"name": "twitter:card", "content": seo.twitter_card},
        {"name": "twitter:title", "content": seo.title},
        {"name": "twitter:description", "content": seo.description},
        {"name": "twitter:image", "content": seo.og_image.url},
    ]
    if seo.published_time:
        tags.append({"property": "article:published_time", "content": seo.published_time})
    if seo.modified_time:
        tags.append({"property": "article:modified_time", "content": seo.modified_time})
    for tag in seo.tags:
        tags.append({"property": "article:tag", "content": tag})
    if seo.keywords:
        tags.append({"name": "keywords", "content": ", ".join(seo.keywords)})
    return tags
