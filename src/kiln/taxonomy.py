"""Taxonomy indexing: term -> items declaring it."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from kiln.core.config import SiteConfig
from kiln.core.types import ContentItem, TagIndex

logger = logging.getLogger(__name__)


def listing_order(items: Sequence[ContentItem]) -> list[ContentItem]:
    """Order items newest first, undated items last.

    The sort is stable, so items sharing a date (and all undated items) keep
    the order they were given in.
    """
    dated = [item for item in items if item.date is not None]
    undated = [item for item in items if item.date is None]
    dated.sort(key=lambda item: item.date, reverse=True)  # type: ignore[arg-type, return-value]
    return dated + undated


def build_tag_index(items: Sequence[ContentItem], taxonomy: str = "tags") -> TagIndex:
    """Group a fully loaded item list by the terms of one taxonomy.

    Args:
        items: Every item of the build, in discovery order.
        taxonomy: Front matter taxonomy to index (``tags`` by default).

    Returns:
        A ``TagIndex`` whose keys appear in first-seen order.

    """
    grouped: dict[str, list[ContentItem]] = {}
    for item in items:
        for term in item.terms(taxonomy):
            grouped.setdefault(term, []).append(item)

    index = TagIndex(
        taxonomy=taxonomy,
        entries={term: tuple(listing_order(members)) for term, members in grouped.items()},
    )
    logger.debug("Indexed %d term(s) for taxonomy '%s'", len(index), taxonomy)
    return index


def build_taxonomy_indexes(items: Sequence[ContentItem], config: SiteConfig) -> dict[str, TagIndex]:
    """Build one index per taxonomy declared in the site configuration."""
    return {name: build_tag_index(items, name) for name in config.taxonomy_names}
