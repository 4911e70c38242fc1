"""Build errors for Kiln.

Every error here is fatal: a build never produces partial output.
"""

from __future__ import annotations


class KilnError(Exception):
    """Base exception for all Kiln errors."""


class ConfigError(KilnError):
    """Raised when a required configuration key is missing or invalid."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for '{key}': {reason}")


class ContentParseError(KilnError):
    """Raised when a content file cannot be parsed."""

    def __init__(self, path: str, field: str, reason: str) -> None:
        self.path = path
        self.field = field
        self.reason = reason
        super().__init__(f"Failed to parse '{path}' ({field}): {reason}")


class RouteCollisionError(KilnError):
    """Raised when two outputs resolve to the same route."""

    def __init__(self, route: str, first: str, second: str) -> None:
        self.route = route
        self.first = first
        self.second = second
        super().__init__(
            f"Route collision on '{route or '/'}': '{first}' and '{second}' map to the same output"
        )


class TemplateRenderError(KilnError):
    """Raised when a page template fails to load or render."""

    def __init__(self, template: str, route: str, reason: str) -> None:
        self.template = template
        self.route = route
        self.reason = reason
        super().__init__(f"Template '{template}' failed for route '{route or '/'}': {reason}")
