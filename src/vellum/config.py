"""Site configuration for vellum.

Settings live in ``vellum.toml`` at the root of the vault. Every section is
optional; missing keys fall back to the dataclass defaults below.
"""

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, TypeVar

T = TypeVar("T")

CONFIG_FILENAME = "vellum.toml"

IMAGE_PATH_STYLES = ("relative", "published")


def _similarity(a: str, b: str) -> float:
    """Return 1 - normalized edit distance between two strings."""
    if not a or not b:
        return 0.0

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(
                min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost)
            )
        previous = current

    return 1.0 - previous[-1] / max(len(a), len(b))


def _closest_key(key: str, valid_keys: set[str], threshold: float = 0.6) -> str | None:
    """Suggest the valid key closest to an unknown one, if any is close enough."""
    best, best_score = None, 0.0
    for candidate in sorted(valid_keys):
        score = _similarity(key.lower(), candidate.lower())
        if score > best_score:
            best, best_score = candidate, score
    return best if best_score >= threshold else None


def _warn_unknown_keys(
    data: dict, valid_keys: set[str], section: str, config_path: Path | None = None
) -> None:
    """Log a warning for each key in ``data`` that the section does not define."""
    from .logging import warning

    for key in sorted(set(data) - valid_keys):
        location = f" in {config_path}" if config_path else ""
        msg = f"Unknown config key '{key}' in [{section}]{location}"
        suggestion = _closest_key(key, valid_keys)
        if suggestion:
            msg += f". Did you mean '{suggestion}'?"
        warning(msg)


def _load_section(
    cls: type[T],
    data: dict,
    defaults: T,
    section: str,
    config_path: Path | None = None,
    transforms: dict[str, Callable[[Any], Any]] | None = None,
) -> T:
    """Build a section dataclass from TOML data, falling back to defaults."""
    transforms = transforms or {}
    _warn_unknown_keys(data, {f.name for f in fields(cls)}, section, config_path)

    kwargs = {}
    for f in fields(cls):
        value = data.get(f.name, getattr(defaults, f.name))
        if f.name in transforms:
            value = transforms[f.name](value)
        kwargs[f.name] = value
    return cls(**kwargs)


def _image_path_style(value: str) -> str:
    if value not in IMAGE_PATH_STYLES:
        raise ValueError(
            f"markdown.image_paths must be one of {', '.join(IMAGE_PATH_STYLES)}, "
            f"got '{value}'"
        )
    return value


def _url_prefix(value: str) -> str:
    """Normalise a URL prefix to the '/prefix/' form."""
    stripped = value.strip("/")
    return f"/{stripped}/" if stripped else "/"


@dataclass
class SiteConfig:
    """Site identity, used for SEO metadata and page chrome."""

    url: str = "https://example.com"
    title: str = "My Vault"
    description: str = ""
    author: str = ""
    language: str = "en"
    default_og_image: str = "/og-image.png"
    default_og_image_alt: str = ""


@dataclass
class BuildConfig:
    """Where content is read from and where the site is written."""

    content_dir: str = "content"
    output_dir: str = "dist"
    templates_dir: str = "templates"
    include_drafts: bool = False


@dataclass
class PostsConfig:
    """Post listing options."""

    posts_per_page: int = 6
    group_by_year: bool = True
    reading_time: bool = True
    word_count: bool = True
    related_posts: int = 3


@dataclass
class MarkdownConfig:
    """Options for the markdown pipeline."""

    image_paths: str = "relative"
    wikilink_base: str = "/posts/"
    tags_base: str = "/tags/"
    linkify: bool = True
    typographer: bool = True
    heading_anchors: bool = True
    toc_depth: int = 4


@dataclass
class NavItem:
    """A header navigation link."""

    title: str
    url: str


@dataclass
class Config:
    """Top-level configuration container."""

    site: SiteConfig = field(default_factory=SiteConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    posts: PostsConfig = field(default_factory=PostsConfig)
    markdown: MarkdownConfig = field(default_factory=MarkdownConfig)
    nav: list[NavItem] = field(default_factory=list)

    vault_path: Path | None = None
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path) -> "Config":
        """Load configuration from a ``vellum.toml`` file.

        A missing file yields the defaults, rooted at the file's directory.

        Raises:
            tomllib.TOMLDecodeError: If the file is not valid TOML.
            ValueError: If a value is outside its allowed set.
        """
        config = cls()
        config.config_path = config_path
        config.vault_path = config_path.parent

        if not config_path.exists():
            config.nav = default_nav()
            return config

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        _warn_unknown_keys(
            data, {"site", "build", "posts", "markdown", "nav"}, "top-level", config_path
        )

        if "site" in data:
            config.site = _load_section(
                SiteConfig, data["site"], config.site, "site", config_path
            )
        if "build" in data:
            config.build = _load_section(
                BuildConfig, data["build"], config.build, "build", config_path
            )
        if "posts" in data:
            config.posts = _load_section(
                PostsConfig, data["posts"], config.posts, "posts", config_path
            )
        if "markdown" in data:
            config.markdown = _load_section(
                MarkdownConfig,
                data["markdown"],
                config.markdown,
                "markdown",
                config_path,
                transforms={
                    "image_paths": _image_path_style,
                    "wikilink_base": _url_prefix,
                    "tags_base": _url_prefix,
                },
            )

        if "nav" in data and "items" in data["nav"]:
            config.nav = [
                NavItem(title=item["title"], url=item["url"])
                for item in data["nav"]["items"]
            ]
        else:
            config.nav = default_nav()

        return config

    @classmethod
    def find_and_load(cls, start_path: Path | None = None) -> "Config":
        """Find ``vellum.toml`` upward from ``start_path`` and load it.

        Raises:
            FileNotFoundError: If no config file exists in any parent.
        """
        config_path = cls.find_config(start_path or Path.cwd())
        if config_path is None:
            raise FileNotFoundError(
                f"No {CONFIG_FILENAME} found. Run 'vellum init' first."
            )
        return cls.load(config_path)

    @staticmethod
    def find_config(start_path: Path) -> Path | None:
        """Return the nearest ``vellum.toml`` at or above ``start_path``."""
        current = start_path.resolve()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            if current.parent == current:
                return None
            current = current.parent

    def _root(self) -> Path:
        return self.vault_path or Path.cwd()

    def get_content_dir(self) -> Path:
        """Directory holding the collection folders."""
        return self._root() / self.build.content_dir

    def get_output_dir(self) -> Path:
        """Directory the built site is written to."""
        return self._root() / self.build.output_dir

    def get_templates_dir(self) -> Path | None:
        """User template overrides, if the directory exists."""
        templates_dir = self._root() / self.build.templates_dir
        return templates_dir if templates_dir.exists() else None

    def absolute_url(self, path: str) -> str:
        """Join a site-relative path onto the configured site URL."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.site.url.rstrip('/')}/{path.lstrip('/')}"

    def to_template_context(self) -> dict:
        """Values every page template receives."""
        return {
            "site_title": self.site.title,
            "site_url": self.site.url,
            "site_description": self.site.description,
            "site_author": self.site.author,
            "language": self.site.language,
            "nav": [{"title": item.title, "url": item.url} for item in self.nav],
        }


def default_nav() -> list[NavItem]:
    return [
        NavItem(title="Posts", url="/posts/"),
        NavItem(title="Tags", url="/tags/"),
    ]
