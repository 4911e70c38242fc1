"""Front matter splitting for TOML (``+++``) and YAML (``---``) headers."""

from __future__ import annotations

import logging
import re
import tomllib
from typing import Any

import yaml
from frontmatter.default_handlers import BaseHandler, YAMLHandler

logger = logging.getLogger(__name__)


class TOMLFrontMatterHandler(BaseHandler):
    """python-frontmatter handler for ``+++`` delimited TOML, parsed with tomllib."""

    FM_BOUNDARY = re.compile(r"^\+{3,}\s*$", re.MULTILINE)
    START_DELIMITER = END_DELIMITER = "+++"

    def load(self, fm: str, **kwargs: Any) -> Any:
        return tomllib.loads(fm)


HANDLERS: tuple[BaseHandler, ...] = (TOMLFrontMatterHandler(), YAMLHandler())


class FrontMatterError(ValueError):
    """Raised when a front matter block exists but cannot be read."""


def split_front_matter(text: str) -> tuple[dict[str, Any], str] | None:
    """Split a document into its metadata mapping and Markdown body.

    Args:
        text: Full file contents.

    Returns:
        ``(metadata, body)``, or ``None`` when the text does not start with a
        front matter delimiter.

    Raises:
        FrontMatterError: If the block is unterminated, malformed, or not a table.

    """
    text = text.lstrip("\ufeff")
    handler = next((candidate for candidate in HANDLERS if candidate.detect(text)), None)
    if handler is None:
        return None

    try:
        raw, body = handler.split(text)
    except ValueError as exc:
        msg = f"unterminated {handler.START_DELIMITER} block"
        raise FrontMatterError(msg) from exc

    try:
        metadata = handler.load(raw)
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise FrontMatterError(str(exc)) from exc

    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        msg = f"expected a table of keys, got {type(metadata).__name__}"
        raise FrontMatterError(msg)

    logger.debug("Parsed %s front matter with keys %s", handler.START_DELIMITER, sorted(metadata))
    return metadata, body.lstrip("\n")
