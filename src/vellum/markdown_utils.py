"""Markdown text utilities for vellum."""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

import frontmatter

WORDS_PER_MINUTE = 225

# Compiled patterns for extract_description (ordered by application)
_DESCRIPTION_PATTERNS = [
    # Remove YAML frontmatter
    (re.compile(r"^---\s*\n.*?\n---\s*\n", re.DOTALL), ""),
    # Remove code blocks
    (re.compile(r"```.*?```", re.DOTALL), ""),
    (re.compile(r"`[^`]+`"), ""),
    # Remove Obsidian comments and embeds
    (re.compile(r"%%.*?%%", re.DOTALL), ""),
    (re.compile(r"!\[\[[^\]]*\]\]"), ""),
    # Remove images
    (re.compile(r"!\[.*?\]\(.*?\)"), ""),
    # Remove links but keep text
    (re.compile(r"\[([^\]]+)\]\([^\)]+\)"), r"\1"),
    # Remove wikilinks but keep the alias, or the target without one
    (re.compile(r"\[\[[^\]|]+\|([^\]]+)\]\]"), r"\1"),
    (re.compile(r"\[\[([^\]]+)\]\]"), r"\1"),
    # Remove callout markers
    (re.compile(r"^>\s*\[![^\]]+\][+-]?", re.MULTILINE), ""),
    # Remove headers
    (re.compile(r"^#+\s+", re.MULTILINE), ""),
    # Remove bold/italic/highlight markers
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"_([^_]+)_"), r"\1"),
    (re.compile(r"==([^=]+)=="), r"\1"),
    # Remove blockquotes
    (re.compile(r"^>\s*", re.MULTILINE), ""),
    # Remove horizontal rules
    (re.compile(r"^[-*_]{3,}\s*$", re.MULTILINE), ""),
    # Remove HTML tags
    (re.compile(r"<[^>]+>"), ""),
]
_WHITESPACE_PATTERN = re.compile(r"[ \t]+")

# Patterns for reading-time word counts
_READING_PATTERNS = [
    (re.compile(r"^---\n.*?\n---\n", re.DOTALL), ""),
    (re.compile(r"!\[\[[^\]]*\]\]"), ""),
    (re.compile(r"!\[[^\]]*\]\([^)]*\)"), ""),
    (re.compile(r"\[([^\]]*)\]\([^)]*\)"), r"\1"),
    (re.compile(r"`{1,3}.*?`{1,3}", re.DOTALL), ""),
    (re.compile(r"#{1,6}\s+"), ""),
    (re.compile(r"[*_~`]"), ""),
]


@dataclass
class ReadingTime:
    """Estimated reading time of a document.

    Attributes:
        text: Display string, e.g. ``"3 min read"``.
        minutes: Whole minutes, at least 1.
        time: Duration in milliseconds.
        words: Word count.
    """

    text: str
    minutes: int
    time: int
    words: int


def extract_description(markdown_content: str, max_length: int = 160) -> str:
    """Extract a plain text description from markdown content.

    Args:
        markdown_content: Raw markdown text
        max_length: Maximum character length for description

    Returns:
        Plain text description string
    """
    if not markdown_content:
        return ""

    content = markdown_content
    for pattern, replacement in _DESCRIPTION_PATTERNS:
        content = pattern.sub(replacement, content)

    # Get first meaningful paragraph (at least 50 chars)
    paragraphs = [
        _WHITESPACE_PATTERN.sub(" ", p.replace("\n", " ")).strip()
        for p in content.split("\n\n")
    ]
    paragraphs = [p for p in paragraphs if p]
    for para in paragraphs:
        if len(para) >= 50:
            content = para
            break
    else:
        content = paragraphs[0] if paragraphs else ""

    # Truncate to max length at word boundary
    if len(content) > max_length:
        content = content[: max_length - 3].rsplit(" ", 1)[0] + "..."

    return content


def extract_first_image(markdown_content: str) -> str | None:
    """Extract the first image reference from markdown content.

    Markdown images, HTML ``<img>`` tags and Obsidian ``![[...]]`` embeds are
    all considered; the earliest one in the text wins.

    Args:
        markdown_content: Raw markdown text

    Returns:
        Image URL string or None if no image found
    """
    if not markdown_content:
        return None

    candidates = []

    # Match markdown images: ![alt](url)
    match = re.search(r"!\[[^\]]*\]\(([^\)\s]+)[^\)]*\)", markdown_content)
    if match:
        candidates.append((match.start(), match.group(1)))

    # Match HTML images: <img src="url">
    match = re.search(r'<img[^>]+src=["\']([^"\']+)["\']', markdown_content)
    if match:
        candidates.append((match.start(), match.group(1)))

    # Match Obsidian embeds: ![[image.png|alt]]
    match = re.search(r"!\[\[([^\]|]+)(?:\|[^\]]*)?\]\]", markdown_content)
    if match:
        candidates.append((match.start(), match.group(1).strip()))

    if not candidates:
        return None
    return min(candidates)[1]


def parse_markdown_file(filepath: Path) -> tuple[dict, str]:
    """Parse a markdown file with YAML frontmatter.

    Unreadable files and invalid YAML are reported as warnings and yield
    empty metadata and content.

    Args:
        filepath: Path to the markdown file

    Returns:
        Tuple of (metadata dict, markdown content string)
    """
    from .logging import warning

    try:
        with open(filepath, "r", encoding="utf-8") as f:
            post = frontmatter.load(f)
        return dict(post.metadata), post.content
    except Exception as e:
        warning(f"YAML parsing error in {filepath}: {e}")
        return {}, ""


def count_words(markdown_content: str) -> int:
    """Number of words in the readable text of a markdown document."""
    if not markdown_content:
        return 0
    content = markdown_content
    for pattern, replacement in _READING_PATTERNS:
        content = pattern.sub(replacement, content)
    return len(content.split())


def calculate_reading_time(markdown_content: str) -> ReadingTime:
    """Estimate reading time at 225 words per minute, never below a minute."""
    words = count_words(markdown_content)
    minutes = max(1, math.ceil(words / WORDS_PER_MINUTE))
    return ReadingTime(
        text=f"{minutes} min read",
        minutes=minutes,
        time=minutes * 60 * 1000,
        words=words,
    )


def slugify(value: str | None) -> str:
    """Lowercase, hyphenated form of a title or tag.

    >>> slugify("Hello World!")
    'hello-world'
    """
    if not value:
        return ""
    slug = value.strip().lower()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w-]+", "", slug)
    slug = re.sub(r"--+", "-", slug)
    return slug.strip("-")


def humanize(value: str) -> str:
    """``"my_first-post"`` -> ``"My first post"``."""
    value = re.sub(r"^[\s_]+|[\s_]+$", "", value)
    value = re.sub(r"[_\s]+", " ", value)
    value = re.sub(r"[-\s]+", " ", value)
    if value[:1].islower():
        value = value[0].upper() + value[1:]
    return value


def titleify(value: str) -> str:
    """``"my_first-post"`` -> ``"My First Post"``."""
    return " ".join(word[:1].upper() + word[1:] for word in humanize(value).split(" "))


def to_datetime(value) -> datetime | None:
    """Parse a date, datetime, ISO string or millisecond timestamp."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def format_date(value, style: str = "long") -> str:
    """Format a date for display.

    Styles: ``long`` (``2024-12-31``), ``short`` (``2024 · 12``) and
    ``full`` (``December 01, 2024``). Unparseable values give ``""``.
    """
    parsed = to_datetime(value)
    if parsed is None:
        return ""
    if style == "short":
        return f"{parsed.year} · {parsed.month:02d}"
    if style == "full":
        return f"{parsed.strftime('%B')} {parsed.day:02d}, {parsed.year}"
    return f"{parsed.year}-{parsed.month:02d}-{parsed.day:02d}"


def is_valid_date(value) -> bool:
    """True for parseable dates after the Unix epoch."""
    parsed = to_datetime(value)
    if parsed is None:
        return False
    if parsed.tzinfo is not None:
        return parsed.timestamp() > 0
    return parsed > datetime(1970, 1, 1)
