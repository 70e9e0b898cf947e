"""Template management for vellum."""

import importlib.resources

from jinja2 import BaseLoader, ChoiceLoader, Environment, FileSystemLoader, TemplateNotFound

from .config import Config
from .markdown_utils import format_date, slugify

DEFAULT_TEMPLATES_PACKAGE = "vellum.defaults.templates"


class PackageLoader(BaseLoader):
    """Jinja2 loader that loads templates from a Python package."""

    def __init__(self, package: str):
        self.package = package

    def get_source(self, environment, template):
        try:
            pkg = importlib.resources.files(self.package)
            template_file = pkg.joinpath(template)
            if template_file.is_file():
                source = template_file.read_text(encoding="utf-8")
                return source, str(template_file), lambda: True
        except (TypeError, FileNotFoundError, ModuleNotFoundError):
            pass
        raise TemplateNotFound(template)

    def list_templates(self):
        templates = []
        try:
            pkg = importlib.resources.files(self.package)
            for item in pkg.iterdir():
                if item.is_file() and item.name.endswith(".html"):
                    templates.append(item.name)
        except (TypeError, FileNotFoundError, ModuleNotFoundError):
            pass
        return sorted(templates)


def get_template_loader(config: Config) -> ChoiceLoader:
    """Get a Jinja2 template loader with override support.

    Template resolution order:
    1. User templates in the configured ``templates_dir``
    2. Bundled default templates

    Args:
        config: Site configuration

    Returns:
        ChoiceLoader that checks user templates first, then bundled defaults
    """
    loaders = []

    user_templates = config.get_templates_dir()
    if user_templates is not None:
        loaders.append(FileSystemLoader(str(user_templates)))

    loaders.append(PackageLoader(DEFAULT_TEMPLATES_PACKAGE))

    return ChoiceLoader(loaders)


def create_environment(config: Config) -> Environment:
    """Jinja2 environment with vellum's filters and the site context as globals."""
    env = Environment(loader=get_template_loader(config), autoescape=True)
    env.filters["format_date"] = format_date
    env.filters["slugify"] = slugify
    env.globals.update(config.to_template_context())
    env.globals["tags_base"] = config.markdown.tags_base
    return env
