"""Bundled defaults for vellum."""
