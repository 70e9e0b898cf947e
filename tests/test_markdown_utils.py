"""Tests for vellum markdown utilities."""

from datetime import date, datetime

import pytest

from vellum import markdown_utils


class TestExtractDescription:
    """Tests for extract_description() function."""

    def test_empty_content(self):
        """Returns empty string for empty content."""
        assert markdown_utils.extract_description("") == ""

    def test_strips_markdown_formatting(self):
        """Strips bold, italic, and other markdown formatting."""
        content = "This is **bold** and *italic* text with some content here to make it long enough."
        result = markdown_utils.extract_description(content)
        assert "**" not in result
        assert "bold" in result
        assert "italic" in result

    def test_strips_links(self):
        """Strips markdown links but keeps text."""
        content = "Check out [this link](https://example.com) for more information about the topic."
        result = markdown_utils.extract_description(content)
        assert "[" not in result
        assert "this link" in result
        assert "https://example.com" not in result

    def test_strips_obsidian_syntax(self):
        """Drops embeds and comments, keeps wikilink labels."""
        content = "See [[Other Page|the other page]] and [[Plain]] ![[cover.png]] %%note to self%% today."
        result = markdown_utils.extract_description(content)
        assert result == "See the other page and Plain today."

    def test_strips_callout_markers(self):
        content = "> [!tip] Worth knowing\n> The callout body carries enough words to be picked."
        result = markdown_utils.extract_description(content)
        assert "[!tip]" not in result
        assert result.startswith("Worth knowing")

    def test_strips_code_blocks(self):
        """Removes code blocks."""
        content = "Some text.\n\n```python\nprint('hello')\n```\n\nMore text here that is long enough to be a paragraph."
        result = markdown_utils.extract_description(content)
        assert "```" not in result
        assert "print" not in result

    def test_prefers_long_paragraph(self):
        content = "# Header\n\nShort.\n\nThis is a paragraph with enough content to be selected as description."
        result = markdown_utils.extract_description(content)
        assert result.startswith("This is a paragraph")

    def test_truncates_long_content(self):
        """Truncates content longer than max_length."""
        content = "A" * 200
        result = markdown_utils.extract_description(content, max_length=100)
        assert len(result) <= 100
        assert result.endswith("...")

    def test_truncates_at_word_boundary(self):
        content = "word " * 60
        result = markdown_utils.extract_description(content, max_length=30)
        assert result == "word word word word word..."


class TestExtractFirstImage:
    """Tests for extract_first_image() function."""

    def test_empty_content(self):
        """Returns None for empty content."""
        assert markdown_utils.extract_first_image("") is None
        assert markdown_utils.extract_first_image(None) is None

    def test_finds_markdown_image(self):
        assert markdown_utils.extract_first_image("Some text ![alt](image.png) more") == "image.png"

    def test_finds_html_image(self):
        content = "Some text <img src='image.png'> more text"
        assert markdown_utils.extract_first_image(content) == "image.png"

    def test_finds_obsidian_embed(self):
        content = "Intro ![[attachments/cover.jpg|Cover]]"
        assert markdown_utils.extract_first_image(content) == "attachments/cover.jpg"

    def test_earliest_wins(self):
        content = "![[first.png]] then ![second](second.png)"
        assert markdown_utils.extract_first_image(content) == "first.png"

    def test_no_image_found(self):
        assert markdown_utils.extract_first_image("Just some text") is None


class TestParseMarkdownFile:
    """Tests for parse_markdown_file() function."""

    def test_parses_frontmatter(self, tmp_path):
        """Correctly parses YAML frontmatter."""
        md_file = tmp_path / "test.md"
        md_file.write_text(
            """---
title: Test Page
draft: false
tags:
  - test
  - example
---

# Content

This is the content.
"""
        )

        meta, content = markdown_utils.parse_markdown_file(md_file)

        assert meta["title"] == "Test Page"
        assert meta["draft"] is False
        assert meta["tags"] == ["test", "example"]
        assert "This is the content." in content

    def test_handles_no_frontmatter(self, tmp_path):
        md_file = tmp_path / "test.md"
        md_file.write_text("# Just Content\n\nNo frontmatter here.")

        meta, content = markdown_utils.parse_markdown_file(md_file)

        assert meta == {}
        assert "# Just Content" in content

    def test_invalid_yaml_warns(self, tmp_path, capsys):
        md_file = tmp_path / "broken.md"
        md_file.write_text("---\ntitle: [unclosed\n---\nBody\n")

        meta, content = markdown_utils.parse_markdown_file(md_file)

        assert (meta, content) == ({}, "")
        assert "YAML parsing error" in capsys.readouterr().err


class TestReadingTime:
    def test_minimum_one_minute(self):
        result = markdown_utils.calculate_reading_time("A few words.")
        assert result.minutes == 1
        assert result.text == "1 min read"
        assert result.time == 60000
        assert result.words == 3

    def test_rounds_up(self):
        result = markdown_utils.calculate_reading_time("word " * 226)
        assert result.minutes == 2

    def test_ignores_images_and_markup(self):
        content = "## Title\n\n![alt text](a.png) ![[b.png]] **bold** [link text](/x)"
        assert markdown_utils.count_words(content) == 4

    def test_keeps_prose_between_embed_and_link(self):
        content = "![[b.png]] one two three [four](/x) ![c](c.png)"
        assert markdown_utils.count_words(content) == 4


class TestSlugs:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Hello World!", "hello-world"),
            ("  Getting   Started ", "getting-started"),
            ("a--b", "a-b"),
            ("python/asyncio", "pythonasyncio"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_slugify(self, value, expected):
        assert markdown_utils.slugify(value) == expected

    def test_humanize(self):
        assert markdown_utils.humanize("my_first-post") == "My first post"

    def test_titleify(self):
        assert markdown_utils.titleify("my_first-post") == "My First Post"


class TestDates:
    def test_format_styles(self):
        value = date(2024, 12, 1)
        assert markdown_utils.format_date(value) == "2024-12-01"
        assert markdown_utils.format_date(value, "short") == "2024 · 12"
        assert markdown_utils.format_date(value, "full") == "December 01, 2024"

    def test_format_iso_string(self):
        assert markdown_utils.format_date("2024-03-05T10:00:00Z") == "2024-03-05"

    def test_format_invalid(self):
        assert markdown_utils.format_date("not a date") == ""
        assert markdown_utils.format_date(None) == ""

    def test_to_datetime(self):
        assert markdown_utils.to_datetime(date(2024, 1, 2)) == datetime(2024, 1, 2)
        assert markdown_utils.to_datetime(object()) is None

    @pytest.mark.parametrize(
        "value,expected",
        [
            (date(2024, 1, 1), True),
            ("2024-01-01", True),
            ("1969-12-31", False),
            ("garbage", False),
            (None, False),
        ],
    )
    def test_is_valid_date(self, value, expected):
        assert markdown_utils.is_valid_date(value) is expected
