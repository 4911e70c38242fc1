"""Core data types shared by every build phase."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContentItem(BaseModel):
    """One Markdown source file, parsed.

    Created once per build by the loader and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Source file, the item identity")
    title: str
    slug: str
    body: str = ""
    date: dt.date | None = None
    description: str | None = None
    draft: bool = False
    section: tuple[str, ...] = Field(default=(), description="Directories below the content root")
    chronological: bool = Field(default=True, description="False for items of the pages collection")
    taxonomies: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    extra: dict[str, Any] = Field(default_factory=dict)

    @property
    def tags(self) -> tuple[str, ...]:
        return self.taxonomies.get("tags", ())

    def terms(self, taxonomy: str) -> tuple[str, ...]:
        return self.taxonomies.get(taxonomy, ())


class TagIndex(BaseModel):
    """Mapping from term to the items declaring it, for one taxonomy.

    Keys keep first-seen order; items within a term are ordered newest first,
    undated items last.
    """

    model_config = ConfigDict(frozen=True)

    taxonomy: str = "tags"
    entries: dict[str, tuple[ContentItem, ...]] = Field(default_factory=dict)

    def __getitem__(self, term: str) -> tuple[ContentItem, ...]:
        return self.entries[term]

    def __contains__(self, term: object) -> bool:
        return term in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def terms(self) -> list[str]:
        return list(self.entries)

    def items(self) -> list[tuple[str, tuple[ContentItem, ...]]]:
        return list(self.entries.items())


class SearchDocument(BaseModel):
    """Plain-text view of a content item for client-side search."""

    model_config = ConfigDict(frozen=True)

    slug: str
    title: str
    body: str


class ResolvedMenuItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    newtab: bool = False


class PageKind(str, Enum):
    HOME = "home"
    ITEM = "item"
    TAXONOMY = "taxonomy"
    TERM = "term"
    NOT_FOUND = "404"
    SITEMAP = "sitemap"
    SEARCH_INDEX = "search_index"


class Page(BaseModel):
    """One output of the build, bound to its route."""

    model_config = ConfigDict(frozen=True)

    kind: PageKind
    route: str = Field(..., description="Output path relative to the site root, '' for the home page")
    owner: str = Field(..., description="Identity that claimed the route, used in collision reports")
    item: ContentItem | None = None
    taxonomy: str | None = None
    term: str | None = None
    items: tuple[ContentItem, ...] = ()
    terms: tuple[tuple[str, str, int], ...] = Field(
        default=(), description="(term, route, item count) rows of a taxonomy listing"
    )


class SitePlan(BaseModel):
    """Everything the writer needs, with every route already resolved."""

    model_config = ConfigDict(frozen=True)

    pages: tuple[Page, ...]
    menu: tuple[ResolvedMenuItem, ...] = ()
    search_documents: tuple[SearchDocument, ...] = ()
    item_routes: dict[str, str] = Field(default_factory=dict, description="slug -> route")

    def routes(self) -> list[str]:
        return [page.route for page in self.pages]

    def pages_of_kind(self, kind: PageKind) -> list[Page]:
        return [page for page in self.pages if page.kind == kind]

    def route_for(self, slug: str) -> str:
        return self.item_routes[slug]
