"""Markdown to HTML pipeline.

Each document is parsed once into a syntax tree, rewritten by the Obsidian
passes in a fixed order, rendered by markdown-it and finished on the HTML
tree by :mod:`vellum.postprocess`.
"""

from dataclasses import dataclass, field
from functools import lru_cache

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from markdown_it.rules_core import StateCore, replace, smartquotes
from markdown_it.token import Token
from mdit_py_plugins.anchors import anchors_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .callouts import convert_callouts
from .config import MarkdownConfig
from .embeds import embed_media, rewrite_social_links
from .images import process_images
from .obsidian import link_inline_tags, rewrite_obsidian
from .paths import Classification, classify, get_resolver
from .postprocess import finalize_html
from .syntax_tree import Node, find_all, from_tokens, to_tokens

PERMALINK_SYMBOL = "#"


@dataclass
class Heading:
    """A heading for the table of contents."""

    depth: int
    slug: str
    text: str


@dataclass
class RenderedDocument:
    """Output of :func:`render_markdown`.

    Attributes:
        html: Final HTML body.
        tree: Syntax tree after every markdown pass.
        headings: Headings with ids, for a table of contents.
        scripts: External scripts the embeds need, in first-use order.
    """

    html: str
    tree: Node
    headings: list[Heading] = field(default_factory=list)
    scripts: list[str] = field(default_factory=list)


def highlight_code(code: str, lang: str, attrs: str) -> str:
    """Pygments highlighting for fenced code; empty for unknown languages."""
    if not lang:
        return ""
    try:
        lexer = get_lexer_by_name(lang)
    except ClassNotFound:
        return ""
    formatter = HtmlFormatter(nowrap=True)
    body = highlight(code, lexer, formatter)
    return (
        f'<pre class="highlight"><code class="language-{escapeHtml(lang)}">'
        f"{body}</code></pre>\n"
    )


@lru_cache(maxsize=8)
def get_parser(
    linkify: bool = True, typographer: bool = True, heading_anchors: bool = True
) -> MarkdownIt:
    """Get or create a cached markdown-it parser for the given options."""
    md = MarkdownIt(
        "commonmark",
        {
            "html": True,
            "linkify": linkify,
            "typographer": typographer,
            "highlight": highlight_code,
        },
    )
    md.enable(["table", "strikethrough"])
    if linkify:
        md.enable("linkify")
    md.use(footnote_plugin).use(tasklists_plugin)
    if heading_anchors:
        md.use(
            anchors_plugin,
            min_level=2,
            max_level=6,
            permalink=True,
            permalinkSymbol=PERMALINK_SYMBOL,
        )
    return md


def apply_typography(md: MarkdownIt, tokens: list[Token], env: dict) -> None:
    """Run markdown-it's replacements and smartquotes over a rewritten stream.

    The rules are kept out of the parser's core chain so that wikilink and
    embed targets reach the Obsidian passes exactly as written.
    """
    state = StateCore("", md, env, tokens)
    replace(state)
    smartquotes(state)


def transform(
    tree: Node,
    classification: Classification,
    options: MarkdownConfig | None = None,
) -> Node:
    """Run the markdown passes over ``tree`` in their fixed order."""
    options = options or MarkdownConfig()
    rewrite_obsidian(tree, options.wikilink_base)
    link_inline_tags(tree, options.tags_base)
    embed_media(tree, classification, options.image_paths)
    process_images(tree, classification, get_resolver(options.image_paths))
    rewrite_social_links(tree)
    convert_callouts(tree)
    return tree


def extract_headings(tree: Node, max_depth: int = 6) -> list[Heading]:
    """Headings that carry an id, down to ``max_depth``."""
    headings = []
    for node in find_all(tree, "heading"):
        depth = node.depth
        slug = node.data.get("id")
        if depth is None or not slug or depth > max_depth:
            continue
        headings.append(Heading(depth, str(slug), node.text_content().strip()))
    return headings


def render_markdown(
    content: str,
    file_path: str | None = None,
    classification: Classification | None = None,
    options: MarkdownConfig | None = None,
) -> RenderedDocument:
    """Render Obsidian-flavoured markdown to HTML.

    Args:
        content: Markdown body without frontmatter
        file_path: Path of the source document, used for classification
        classification: Precomputed classification, overriding file_path
        options: Markdown settings; defaults apply when omitted

    Returns:
        RenderedDocument with the HTML, tree, headings and scripts
    """
    options = options or MarkdownConfig()
    if classification is None:
        classification = classify(file_path)

    md = get_parser(options.linkify, options.typographer, options.heading_anchors)
    env: dict = {}
    tree = from_tokens(md.parse(content, env))
    transform(tree, classification, options)

    tokens = to_tokens(tree)
    apply_typography(md, tokens, env)
    html = md.renderer.render(tokens, md.options, env)
    return RenderedDocument(
        html=finalize_html(html),
        tree=tree,
        headings=extract_headings(tree, options.toc_depth),
        scripts=list(tree.data.get("scripts", [])),
    )
