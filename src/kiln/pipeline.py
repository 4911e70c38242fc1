"""One site build, from config.toml to the output directory."""

from __future__ import annotations

import logging
from pathlib import Path

from kiln.content.loader import load_content
from kiln.core.config import SiteConfig
from kiln.search import build_search_index
from kiln.site.assembler import assemble_site
from kiln.site.writer import BuildReport, SiteWriter
from kiln.taxonomy import build_taxonomy_indexes

logger = logging.getLogger(__name__)


def run_build(
    config: SiteConfig,
    *,
    include_drafts: bool = False,
    dry_run: bool = False,
    max_workers: int | None = None,
) -> BuildReport:
    """Build the site described by ``config``.

    Every phase runs to completion before the next one starts. Any error
    aborts the build before a single file is written.

    Args:
        config: Site configuration, passed explicitly through every phase.
        include_drafts: Publish items marked as drafts.
        dry_run: Render everything but skip writing (``kiln check``).
        max_workers: Thread pool size for content parsing.

    """
    items = load_content(
        config.abs_content_dir, config, include_drafts=include_drafts, max_workers=max_workers
    )
    indexes = build_taxonomy_indexes(items, config)
    documents = build_search_index(items) if config.build_search_index else []
    plan = assemble_site(config, items, indexes.values(), documents)

    if config.compile_sass:
        logger.debug("compile_sass is set, stylesheets are left to the theme")

    return SiteWriter(config).write(plan, dry_run=dry_run)


def build_site(
    site_root: Path,
    *,
    output_dir: Path | None = None,
    base_url: str | None = None,
    include_drafts: bool = False,
    dry_run: bool = False,
) -> BuildReport:
    """Load ``config.toml`` from ``site_root`` and build the site."""
    config = SiteConfig.load(site_root, output_dir=output_dir, base_url=base_url)
    logger.info("Building %s for %s", site_root, config.base_url)
    return run_build(config, include_drafts=include_drafts, dry_run=dry_run)
