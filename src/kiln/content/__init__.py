"""Content discovery and parsing."""

from kiln.content.loader import discover_content, load_content, parse_content

__all__ = ["discover_content", "load_content", "parse_content"]
