"""Writes an assembled ``SitePlan`` to the output directory."""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path

from jinja2 import TemplateError
from pydantic import BaseModel

from kiln.core.config import SiteConfig
from kiln.core.exceptions import ConfigError, TemplateRenderError
from kiln.core.rendering import create_renderer, render_html
from kiln.core.types import Page, PageKind, SitePlan
from kiln.site.assembler import item_route, term_route
from kiln.site.template_loader import TemplateLoader

logger = logging.getLogger(__name__)

STATIC_DIR = "static"

_TEMPLATES = {
    PageKind.HOME: "index.html",
    PageKind.ITEM: "page.html",
    PageKind.TAXONOMY: "taxonomy_list.html",
    PageKind.TERM: "taxonomy_single.html",
    PageKind.NOT_FOUND: "404.html",
    PageKind.SITEMAP: "sitemap.xml",
}

_SITEMAP_KINDS = (PageKind.HOME, PageKind.ITEM, PageKind.TAXONOMY, PageKind.TERM)


class BuildReport(BaseModel):
    """Summary of one build."""

    output_dir: Path
    routes: list[str]
    items: int = 0
    terms: int = 0
    search_documents: int = 0
    written: bool = True


def output_path(output_dir: Path, route: str) -> Path:
    """File a route is written to: ``index.html`` inside directory routes."""
    if route == "" or route.endswith("/"):
        return output_dir / route / "index.html"
    return output_dir / route


class SiteWriter:
    """Renders a ``SitePlan`` with Jinja2 templates and writes it to disk.

    Every page is rendered in memory first. Only then is the output
    directory wiped, ``static/`` copied over and the pages written on top.
    """

    def __init__(self, config: SiteConfig, templates: TemplateLoader | None = None) -> None:
        self.config = config
        self.templates = templates or TemplateLoader(override_dir=config.abs_templates_dir)
        self.renderer = create_renderer(highlight_code=config.markdown.highlight_code)
        self.templates.env.globals.update(
            config=config,
            theme=config.extra.model_extra or {},
            url=config.absolute_url,
            item_route=item_route,
            term_route=term_route,
        )

    def write(self, plan: SitePlan, *, dry_run: bool = False) -> BuildReport:
        """Render the whole plan, then replace the output directory with it.

        Nothing on disk changes until every page has rendered, so a failing
        template leaves the previous build in place. With ``dry_run`` the
        pages are rendered and discarded.

        Raises:
            ConfigError: If the output directory would overwrite the site itself.
            TemplateRenderError: If any page fails to render.

        """
        output_dir = self.config.abs_output_dir
        self._check_output_dir(output_dir)
        rendered = self.render(plan)

        report = BuildReport(
            output_dir=output_dir,
            routes=list(rendered),
            items=len(plan.pages_of_kind(PageKind.ITEM)),
            terms=len(plan.pages_of_kind(PageKind.TERM)),
            search_documents=len(plan.search_documents),
            written=not dry_run,
        )
        if dry_run:
            logger.info("Rendered %d page(s), nothing written", len(rendered))
            return report

        self._reset_output_dir(output_dir)
        for route, text in rendered.items():
            target = output_path(output_dir, route)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
            logger.debug("Wrote /%s", route)

        logger.info("Wrote %d page(s) to %s", len(rendered), output_dir)
        return report

    def render(self, plan: SitePlan) -> dict[str, str]:
        """Render every page of the plan in memory, keyed by route in plan order."""
        rendered: dict[str, str] = {}
        for page in plan.pages:
            try:
                rendered[page.route] = self.render_page(page, plan)
            except TemplateError as exc:
                template = _TEMPLATES.get(page.kind, page.route)
                raise TemplateRenderError(template, page.route, str(exc)) from exc
        return rendered

    def render_page(self, page: Page, plan: SitePlan) -> str:
        """Render one page of the plan to text."""
        if page.kind == PageKind.SEARCH_INDEX:
            return self.render_search_index(plan)
        if page.kind == PageKind.SITEMAP:
            return self.render_sitemap(plan)

        content = ""
        if page.kind == PageKind.ITEM and page.item is not None:
            content = render_html(page.item.body, self.renderer)

        return self.templates.render_template(
            _TEMPLATES[page.kind],
            page=page,
            menu=plan.menu,
            content=content,
            page_title=self._page_title(page),
            permalink=self.config.absolute_url(page.route),
        )

    def render_sitemap(self, plan: SitePlan) -> str:
        entries = [
            (self.config.absolute_url(page.route), page.item.date if page.item is not None else None)
            for page in plan.pages
            if page.kind in _SITEMAP_KINDS
        ]
        return self.templates.render_template(_TEMPLATES[PageKind.SITEMAP], entries=entries)

    def render_search_index(self, plan: SitePlan) -> str:
        rows = [
            {
                "slug": document.slug,
                "title": document.title,
                "url": self.config.absolute_url(plan.route_for(document.slug)),
                "body": document.body,
            }
            for document in plan.search_documents
        ]
        return json.dumps(rows, ensure_ascii=False)

    def _page_title(self, page: Page) -> str:
        if page.kind == PageKind.ITEM and page.item is not None:
            return page.item.title
        if page.kind == PageKind.TAXONOMY:
            return page.taxonomy or ""
        if page.kind == PageKind.TERM:
            return f"{page.taxonomy}: {page.term}"
        if page.kind == PageKind.NOT_FOUND:
            return "Page not found"
        return self.config.title or "Home"

    def _check_output_dir(self, output_dir: Path) -> None:
        resolved = output_dir.resolve()
        protected = {self.config.site_root.resolve(), self.config.abs_content_dir.resolve()}
        if resolved in protected or any(resolved in path.parents for path in protected):
            raise ConfigError("output_dir", f"refusing to overwrite {output_dir}")

    def _reset_output_dir(self, output_dir: Path) -> None:
        if output_dir.exists():
            shutil.rmtree(output_dir)
        output_dir.mkdir(parents=True)

        static_dir = self.config.site_root / STATIC_DIR
        if static_dir.is_dir():
            shutil.copytree(static_dir, output_dir, dirs_exist_ok=True)
            logger.debug("Copied static files from %s", static_dir)
