"""Tests for SEO metadata."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from vellum.assets import AssetIndex
from vellum.config import Config, SiteConfig
from vellum.content import Entry
from vellum.seo import (
    format_schema_date,
    index_seo,
    meta_tags,
    process_og_image,
    robots_meta,
    seo_for_entry,
)


@pytest.fixture
def config():
    return Config(
        site=SiteConfig(
            url="https://notes.example.org/",
            title="Field Notes",
            description="Notes from the field",
            default_og_image="/og.png",
        )
    )


@pytest.fixture
def index():
    index = AssetIndex()
    index.add("posts/hello/attachments/cover.jpg", Path("cover.jpg"))
    index.add("attachments/banner.png", Path("banner.png"))
    return index


def make_entry(collection, entry_id, relative_path=None, **data):
    data.setdefault("title", "Hello")
    return Entry(
        id=entry_id,
        collection=collection,
        path=Path(relative_path or f"{collection}/{entry_id}.md"),
        relative_path=relative_path or f"{collection}/{entry_id}.md",
        body="",
        data=data,
    )


class TestProcessOgImage:
    """Tests for Open Graph image resolution."""

    def test_missing_image_uses_default(self, config, index):
        image = process_og_image(None, None, config, index)

        assert image.url == "https://notes.example.org/og.png"
        assert image.alt == "Field Notes"
        assert (image.width, image.height) == (1200, 630)

    def test_relative_to_document(self, config, index):
        image = process_og_image(
            "[[cover.jpg]]", "A cover", config, index, "posts/hello/index.md"
        )

        assert image.url == "https://notes.example.org/posts/hello/attachments/cover.jpg"
        assert image.alt == "A cover"

    def test_vault_path(self, config, index):
        image = process_og_image(["/attachments/banner.png"], None, config, index)

        assert image.url == "https://notes.example.org/attachments/banner.png"

    def test_remote(self, config, index):
        image = process_og_image("https://cdn.example.com/a.png", None, config, index)

        assert image.url == "https://cdn.example.com/a.png"


class TestDates:
    def test_naive_dates_are_utc(self):
        assert format_schema_date(datetime(2024, 5, 1, 8, 30)) == "2024-05-01T08:30:00Z"

    def test_aware_dates_are_converted(self):
        value = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        assert format_schema_date(value) == "2024-05-01T10:00:00Z"

    def test_missing(self):
        assert format_schema_date(None) is None
        assert format_schema_date("not a date") is None


class TestEntrySeo:
    def test_post(self, config, index):
        post = make_entry(
            "posts",
            "hello",
            "posts/hello/index.md",
            description="Hi",
            date=datetime(2024, 1, 2),
            tags=["python"],
            image="cover.jpg",
        )

        seo = seo_for_entry(post, config, index)

        assert seo.title == "Hello | Field Notes"
        assert seo.canonical == "https://notes.example.org/posts/hello/"
        assert seo.og_type == "article"
        assert seo.published_time == "2024-01-02T00:00:00Z"
        assert seo.og_image.url.endswith("/posts/hello/attachments/cover.jpg")
        assert seo.robots == "index, follow"

    def test_draft_post_is_not_indexed(self, config, index):
        seo = seo_for_entry(make_entry("posts", "wip", draft=True), config, index)

        assert seo.robots == "noindex, nofollow"

    def test_doc(self, config, index):
        seo = seo_for_entry(make_entry("docs", "setup", title="Setup"), config, index)

        assert seo.title == "Setup | Docs | Field Notes"

    def test_page_titled_like_site(self, config, index):
        seo = seo_for_entry(make_entry("pages", "home", title="Field Notes"), config, index)

        assert seo.title == "Field Notes"
        assert seo.description == "Notes from the field"


class TestIndexSeo:
    def test_posts_page_two(self, config):
        seo = index_seo("posts", config, "https://notes.example.org/posts/page/2/", page=2)

        assert seo.title == "Posts - Page 2 | Field Notes"
        assert seo.description == "Browse all blog posts on Field Notes - Page 2"

    def test_single_tag(self, config):
        seo = index_seo("tags", config, "https://notes.example.org/tags/python/", tag="python")

        assert seo.title == 'Posts tagged "python" | Field Notes'
        assert seo.keywords == ["python"]

    def test_tags_index(self, config):
        assert index_seo("tags", config, "u").title == "Tags | Field Notes"


class TestMetaTags:
    def test_article_tags(self, config, index):
        post = make_entry(
            "posts",
            "hello",
            date=datetime(2024, 1, 2),
            lastModified=datetime(2024, 2, 3),
            tags=["a", "b"],
        )
        tags = meta_tags(seo_for_entry(post, config, index))

        assert {"name": "robots", "content": "index, follow"} in tags
        assert {"property": "og:image:width", "content": "1200"} in tags
        assert {"property": "article:modified_time", "content": "2024-02-03T00:00:00Z"} in tags
        assert [t["content"] for t in tags if t.get("property") == "article:tag"] == ["a", "b"]
        assert {"name": "keywords", "content": "a, b"} in tags

    def test_robots_meta(self):
        assert robots_meta() == "index, follow"
        assert robots_meta(True) == "noindex, nofollow"
