"""Site assembly: bind every output to a route and reject collisions."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from kiln.core.config import BASE_URL_PLACEHOLDER, SiteConfig
from kiln.core.exceptions import ContentParseError, RouteCollisionError
from kiln.core.types import (
    ContentItem,
    Page,
    PageKind,
    ResolvedMenuItem,
    SearchDocument,
    SitePlan,
    TagIndex,
)
from kiln.core.utils import slugify
from kiln.taxonomy import listing_order

logger = logging.getLogger(__name__)

HOME_ROUTE = ""
NOT_FOUND_ROUTE = "404.html"
SITEMAP_ROUTE = "sitemap.xml"
SEARCH_INDEX_ROUTE = "search_index.json"


def resolve_menu(config: SiteConfig) -> list[ResolvedMenuItem]:
    """Substitute ``$BASE_URL`` in every menu URL.

    The base URL loses its trailing slash first, so ``$BASE_URL/tags`` never
    ends up with a double slash.
    """
    base_url = config.base_url.rstrip("/")
    return [
        ResolvedMenuItem(
            name=item.name,
            url=item.url.replace(BASE_URL_PLACEHOLDER, base_url),
            newtab=item.newtab,
        )
        for item in config.extra.menu_items
    ]


def item_route(item: ContentItem) -> str:
    """Route of a content item: its section directories, then its slug."""
    segments = [slugify(part) or part for part in item.section]
    return "/".join([*segments, item.slug]) + "/"


def taxonomy_route(taxonomy: str) -> str:
    return f"{slugify(taxonomy) or taxonomy}/"


def term_route(taxonomy: str, term: str) -> str:
    return f"{taxonomy_route(taxonomy)}{slugify(term)}/"


class RouteTable:
    """Records which identity claimed each route."""

    def __init__(self) -> None:
        self._owners: dict[str, str] = {}

    def claim(self, route: str, owner: str) -> str:
        if route in self._owners:
            raise RouteCollisionError(route, self._owners[route], owner)
        self._owners[route] = owner
        return route

    def __len__(self) -> int:
        return len(self._owners)


def check_unique_slugs(items: Iterable[ContentItem]) -> None:
    """Raise ``RouteCollisionError`` if two items share a slug."""
    seen: dict[str, ContentItem] = {}
    for item in items:
        if item.slug in seen:
            raise RouteCollisionError(item.slug, str(seen[item.slug].path), str(item.path))
        seen[item.slug] = item


def _term_pages(index: TagIndex, table: RouteTable) -> list[Page]:
    listing_owner = f"taxonomy '{index.taxonomy}'"
    listing_route = table.claim(taxonomy_route(index.taxonomy), listing_owner)

    pages = []
    rows = []
    for term, members in index.items():
        if not slugify(term):
            raise ContentParseError(
                str(members[0].path),
                f"taxonomies.{index.taxonomy}",
                f"term '{term}' does not produce a usable route",
            )
        owner = f"{index.taxonomy} term '{term}'"
        route = table.claim(term_route(index.taxonomy, term), owner)
        pages.append(
            Page(
                kind=PageKind.TERM,
                route=route,
                owner=owner,
                taxonomy=index.taxonomy,
                term=term,
                items=members,
            )
        )
        rows.append((term, route, len(members)))

    rows.sort(key=lambda row: (row[0].casefold(), row[0]))
    listing = Page(
        kind=PageKind.TAXONOMY,
        route=listing_route,
        owner=listing_owner,
        taxonomy=index.taxonomy,
        terms=tuple(rows),
    )
    return [listing, *pages]


def assemble_site(
    config: SiteConfig,
    items: Sequence[ContentItem],
    indexes: Iterable[TagIndex],
    search_documents: Sequence[SearchDocument] = (),
) -> SitePlan:
    """Resolve every output route of the build.

    Args:
        config: Site configuration.
        items: Every content item, in discovery order.
        indexes: One ``TagIndex`` per declared taxonomy.
        search_documents: Documents for the search export, if it is enabled.

    Returns:
        A ``SitePlan`` listing pages in a deterministic order.

    Raises:
        RouteCollisionError: If two items share a slug or two outputs share a route.
        ContentParseError: If a taxonomy term slugifies to nothing.

    """
    check_unique_slugs(items)

    table = RouteTable()
    pages: list[Page] = []

    home_items = listing_order([item for item in items if item.chronological])
    home_route = table.claim(HOME_ROUTE, "home page")
    pages.append(Page(kind=PageKind.HOME, route=home_route, owner="home page", items=tuple(home_items)))

    item_routes: dict[str, str] = {}
    for item in items:
        route = table.claim(item_route(item), str(item.path))
        item_routes[item.slug] = route
        pages.append(Page(kind=PageKind.ITEM, route=route, owner=str(item.path), item=item))

    for index in indexes:
        pages.extend(_term_pages(index, table))

    not_found = table.claim(NOT_FOUND_ROUTE, "404 page")
    pages.append(Page(kind=PageKind.NOT_FOUND, route=not_found, owner="404 page"))
    pages.append(Page(kind=PageKind.SITEMAP, route=table.claim(SITEMAP_ROUTE, "sitemap"), owner="sitemap"))
    if config.build_search_index:
        pages.append(
            Page(
                kind=PageKind.SEARCH_INDEX,
                route=table.claim(SEARCH_INDEX_ROUTE, "search index"),
                owner="search index",
            )
        )

    logger.info("Assembled %d route(s) for %d item(s)", len(table), len(items))
    return SitePlan(
        pages=tuple(pages),
        menu=tuple(resolve_menu(config)),
        search_documents=tuple(search_documents) if config.build_search_index else (),
        item_routes=item_routes,
    )
