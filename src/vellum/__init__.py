"""Vellum - publish an Obsidian vault as a static blog and docs site."""

__version__ = "0.1.0"
