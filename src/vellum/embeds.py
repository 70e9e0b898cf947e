"""Embeds for standalone social links and media attachments.

A paragraph holding nothing but a YouTube or Twitter/X link becomes the
provider's embed markup. Image syntax pointing at audio, video or PDF files
becomes the matching HTML media element.
"""

import re

from markdown_it.common.utils import escapeHtml

from .paths import (
    AUDIO_EXTENSIONS,
    DOCUMENT_EXTENSIONS,
    VIDEO_EXTENSIONS,
    Classification,
    extension,
    resolve_attachment_path,
)
from .syntax_tree import Node, html_block, html_inline

TWITTER_WIDGET_SCRIPT = "https://platform.twitter.com/widgets.js"

_YOUTUBE_ID_PATTERNS = [
    re.compile(r"[?&]v=([^&#]+)"),
    re.compile(r"youtu\.be/([^?#]+)"),
    re.compile(r"youtube\.com/embed/([^?#]+)"),
]
_YOUTUBE_ID_RE = re.compile(r"[A-Za-z0-9_-]+")
_TWEET_ID_RE = re.compile(r"/status/(\d+)")

YOUTUBE_TEMPLATE = """\
<div class="youtube-embed" style="position: relative; padding-bottom: 56.25%; height: 0; overflow: hidden; max-width: 100%; margin: 1.5rem 0;">
  <iframe style="position: absolute; top: 0; left: 0; width: 100%; height: 100%;" src="https://www.youtube.com/embed/{video_id}" title="YouTube video player" frameborder="0" allow="accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture; web-share" referrerpolicy="strict-origin-when-cross-origin" allowfullscreen loading="lazy"></iframe>
</div>
"""

TWITTER_TEMPLATE = """\
<div class="twitter-embed" style="margin: 1.5rem 0;">
  <blockquote class="twitter-tweet" data-dnt="true" data-theme="dark">
    <a href="{url}"></a>
  </blockquote>
</div>
"""


def is_youtube_url(url: str) -> bool:
    return "youtube.com/watch" in url or "youtu.be/" in url or "youtube.com/embed/" in url


def is_twitter_url(url: str) -> bool:
    return ("twitter.com" in url or "x.com" in url) and "/status/" in url


def extract_youtube_id(url: str) -> str | None:
    """Video id of a YouTube URL, or None if it is missing or malformed.

    >>> extract_youtube_id("https://youtu.be/dQw4w9WgXcQ?t=42")
    'dQw4w9WgXcQ'
    """
    for pattern in _YOUTUBE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            video_id = match.group(1)
            return video_id if _YOUTUBE_ID_RE.fullmatch(video_id) else None
    return None


def youtube_embed(url: str) -> Node | None:
    video_id = extract_youtube_id(url)
    if video_id is None:
        return None
    return html_block(YOUTUBE_TEMPLATE.format(video_id=video_id))


def twitter_embed(url: str) -> Node | None:
    clean_url = url.split("?", 1)[0]
    if not _TWEET_ID_RE.search(clean_url):
        return None
    return html_block(TWITTER_TEMPLATE.format(url=escapeHtml(clean_url)))


def _add_script(tree: Node, src: str) -> None:
    scripts = tree.data.setdefault("scripts", [])
    if src not in scripts:
        scripts.append(src)


def embed_for_link(link: Node) -> tuple[Node | None, str | None]:
    """Embed node for a link and the script it needs, if any."""
    url = link.url or ""
    if is_youtube_url(url):
        return youtube_embed(url), None
    if is_twitter_url(url):
        return twitter_embed(url), TWITTER_WIDGET_SCRIPT
    return None, None


def rewrite_social_links(tree: Node) -> Node:
    """Replace single-link paragraphs that point at YouTube or Twitter/X.

    Script dependencies of the inserted embeds are collected in
    ``tree.data["scripts"]``. Links whose id cannot be extracted stay as
    plain links.
    """
    _rewrite_social_children(tree, tree)
    return tree


def _rewrite_social_children(parent: Node, root: Node) -> None:
    for index, child in enumerate(parent.children):
        if child.type != "paragraph":
            _rewrite_social_children(child, root)
            continue
        if len(child.children) != 1 or child.children[0].type != "link":
            continue
        embed, script = embed_for_link(child.children[0])
        if embed is None:
            continue
        parent.children[index] = embed
        if script:
            _add_script(root, script)


def media_html(src: str, title: str = "") -> str | None:
    """HTML element for an audio, video or PDF source, or None."""
    ext = extension(src)
    src = escapeHtml(src)
    if ext in AUDIO_EXTENSIONS:
        return f'<audio class="media-embed" controls preload="metadata" src="{src}"></audio>'
    if ext in VIDEO_EXTENSIONS:
        return f'<video class="media-embed" controls preload="metadata" src="{src}"></video>'
    if ext in DOCUMENT_EXTENSIONS:
        label = escapeHtml(title or src)
        return (
            f'<iframe class="pdf-embed" src="{src}" title="{label}" '
            f'width="100%" height="600" loading="lazy"></iframe>'
        )
    return None


def embed_media(
    tree: Node, classification: Classification, style: str = "relative"
) -> Node:
    """Turn image syntax that points at audio, video or PDF files into players."""
    _embed_media_children(tree, classification, style)
    return tree


def _embed_media_children(parent: Node, classification: Classification, style: str) -> None:
    for index, child in enumerate(parent.children):
        if child.type != "image":
            _embed_media_children(child, classification, style)
            continue
        src = resolve_attachment_path(child.url or "", classification, style)
        markup = media_html(src, child.alt or "")
        if markup is not None:
            parent.children[index] = html_inline(markup)
