"""Bundled data files (theme defaults)."""
