"""Content discovery and parsing.

Each Markdown file below the content root becomes one immutable
``ContentItem``. Files are parsed in parallel but the result is always a
list in discovery order (sorted relative path), so builds are reproducible.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any

from kiln.content.frontmatter import FrontMatterError, split_front_matter
from kiln.core.config import SiteConfig
from kiln.core.exceptions import ConfigError, ContentParseError
from kiln.core.types import ContentItem
from kiln.core.utils import slugify

logger = logging.getLogger(__name__)

CONTENT_SUFFIX = ".md"
SECTION_INDEX = "_index.md"


def discover_content(root: Path) -> list[Path]:
    """Return every content file below ``root`` in discovery order.

    Hidden files and directories and section descriptors (``_index.md``) are
    skipped.

    Raises:
        ConfigError: If ``root`` is not a directory.

    """
    if not root.is_dir():
        raise ConfigError("content_dir", f"content directory {root} does not exist")

    found = []
    for path in root.rglob(f"*{CONTENT_SUFFIX}"):
        rel = path.relative_to(root)
        if any(part.startswith(".") for part in rel.parts):
            continue
        if path.name == SECTION_INDEX or not path.is_file():
            continue
        found.append(path)

    return sorted(found, key=lambda p: p.relative_to(root).as_posix())


def _coerce_date(path: Path, value: Any) -> dt.date | None:
    if value is None:
        return None
    # datetime is a date subclass, check it first
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return dt.date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return dt.datetime.fromisoformat(text).date()
        except ValueError as exc:
            raise ContentParseError(str(path), "date", f"'{value}' is not an ISO-8601 date") from exc
    raise ContentParseError(str(path), "date", f"expected an ISO-8601 date, got {type(value).__name__}")


def _optional_str(path: Path, metadata: dict[str, Any], key: str) -> str | None:
    value = metadata.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ContentParseError(str(path), key, f"expected a string, got {type(value).__name__}")
    return value


def _coerce_terms(path: Path, name: str, value: Any) -> tuple[str, ...]:
    field = f"taxonomies.{name}"
    if not isinstance(value, list):
        raise ContentParseError(str(path), field, f"expected a list of strings, got {type(value).__name__}")

    terms: list[str] = []
    for term in value:
        if not isinstance(term, str) or not term.strip():
            raise ContentParseError(str(path), field, f"invalid term {term!r}")
        term = term.strip()
        if term not in terms:
            terms.append(term)
    return tuple(terms)


def _coerce_taxonomies(path: Path, value: Any, declared: Iterable[str]) -> dict[str, tuple[str, ...]]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ContentParseError(str(path), "taxonomies", f"expected a table, got {type(value).__name__}")

    allowed = set(declared)
    taxonomies: dict[str, tuple[str, ...]] = {}
    for name, terms in value.items():
        if name not in allowed:
            raise ContentParseError(
                str(path), f"taxonomies.{name}", f"taxonomy '{name}' is not declared in config.toml"
            )
        taxonomies[name] = _coerce_terms(path, name, terms)
    return taxonomies


def _resolve_slug(path: Path, metadata: dict[str, Any], title: str) -> str:
    explicit = _optional_str(path, metadata, "slug")
    if explicit is not None:
        slug = slugify(explicit)
        if not slug:
            raise ContentParseError(str(path), "slug", f"'{explicit}' does not produce a usable slug")
        return slug

    slug = slugify(title) or slugify(path.stem)
    if not slug:
        raise ContentParseError(str(path), "title", "neither title nor file name give a usable slug")
    return slug


def parse_content(
    path: Path,
    text: str,
    *,
    root: Path,
    pages_section: str = "pages",
    taxonomies: Iterable[str] = ("tags",),
) -> ContentItem:
    """Parse one content file into a ``ContentItem``.

    Args:
        path: Source file, used as the item identity and in error messages.
        text: The file contents.
        root: Content root, used to work out the item's section.
        pages_section: Section whose items are kept out of date-ordered listings.
        taxonomies: Taxonomy names the site declares.

    Raises:
        ContentParseError: On malformed front matter, a missing title or an invalid field.

    """
    try:
        parsed = split_front_matter(text)
    except FrontMatterError as exc:
        raise ContentParseError(str(path), "front matter", str(exc)) from exc

    if parsed is None:
        raise ContentParseError(str(path), "title", "no front matter block found")
    metadata, body = parsed

    title = metadata.get("title")
    if not isinstance(title, str) or not title.strip():
        raise ContentParseError(str(path), "title", "a non-empty string title is required")
    title = title.strip()

    draft = metadata.get("draft", False)
    if not isinstance(draft, bool):
        raise ContentParseError(str(path), "draft", f"expected a boolean, got {type(draft).__name__}")

    extra = metadata.get("extra", {})
    if not isinstance(extra, dict):
        raise ContentParseError(str(path), "extra", f"expected a table, got {type(extra).__name__}")

    section = path.relative_to(root).parent.parts

    return ContentItem(
        path=path,
        title=title,
        slug=_resolve_slug(path, metadata, title),
        body=body,
        date=_coerce_date(path, metadata.get("date")),
        description=_optional_str(path, metadata, "description"),
        draft=draft,
        section=section,
        chronological=not (section and section[0] == pages_section),
        taxonomies=_coerce_taxonomies(path, metadata.get("taxonomies"), taxonomies),
        extra=extra,
    )


def _load_file(path: Path, root: Path, config: SiteConfig) -> ContentItem:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ContentParseError(str(path), "file", str(exc)) from exc

    item = parse_content(
        path,
        text,
        root=root,
        pages_section=config.pages_section,
        taxonomies=config.taxonomy_names,
    )
    logger.debug("Loaded %s as '%s'", path, item.slug)
    return item


def load_content(
    root: Path,
    config: SiteConfig,
    *,
    include_drafts: bool = False,
    max_workers: int | None = None,
) -> list[ContentItem]:
    """Load every content item below ``root``.

    Files are read and parsed on a thread pool. The first failure cancels the
    remaining work and is re-raised; when several files fail together the one
    earliest in discovery order is reported.

    Args:
        root: Content root directory.
        config: Site configuration (pages section, declared taxonomies).
        include_drafts: Keep items marked ``draft = true``.
        max_workers: Thread pool size, ``None`` lets the executor decide.

    Returns:
        Items in discovery order.

    """
    paths = discover_content(root)
    if not paths:
        logger.warning("No content found in %s", root)
        return []

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="kiln-load") as executor:
        futures = [executor.submit(_load_file, path, root, config) for path in paths]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        failed = [future for future in futures if future in done and future.exception() is not None]
        if failed:
            for future in pending:
                future.cancel()
            raise failed[0].exception()  # type: ignore[misc]
        items = [future.result() for future in futures]

    if not include_drafts:
        drafts = [item for item in items if item.draft]
        if drafts:
            logger.info("Skipping %d draft(s)", len(drafts))
        items = [item for item in items if not item.draft]

    logger.info("Loaded %d content item(s) from %s", len(items), root)
    return items
