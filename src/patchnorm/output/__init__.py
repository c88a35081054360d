"""Renderers for normalized diffs and commit stats."""
