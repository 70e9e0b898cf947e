"""Bundled Jinja2 page templates."""
