"""Shared fixtures: throwaway sites under tmp_path."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from kiln.core.config import SiteConfig

DEFAULT_CONFIG = """\
base_url = "https://example.com/"
title = "Example"
theme = "terminimal"
compile_sass = true
build_search_index = true

taxonomies = [
    {name = "tags"}
]

[markdown]
highlight_code = true

[extra]
accent_color = "pink"
logo_text = "Example"

menu_items = [
    {name = "blog", url = "$BASE_URL"},
    {name = "tags", url = "$BASE_URL/tags"},
    {name = "github", url = "https://github.com/example", newtab = true},
    {name = "errata", url = "$BASE_URL/pages/errata"},
]
"""


def toml_post(
    title: str | None = "Hello",
    *,
    date: str | None = None,
    tags: list[str] | None = None,
    body: str = "Body text.",
    extra: str = "",
) -> str:
    """Render a content file with TOML front matter."""
    lines = ["+++"]
    if title is not None:
        lines.append(f'title = "{title}"')
    if date is not None:
        lines.append(f"date = {date}")
    if extra:
        lines.append(extra)
    if tags is not None:
        quoted = ", ".join(f'"{tag}"' for tag in tags)
        lines.extend(["", "[taxonomies]", f"tags = [{quoted}]"])
    lines.append("+++")
    return "\n".join(lines) + "\n" + body + "\n"


@pytest.fixture(autouse=True)
def _clean_kiln_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep KILN_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("KILN_"):
            monkeypatch.delenv(key)


@pytest.fixture
def post() -> Callable[..., str]:
    return toml_post


@pytest.fixture
def make_site(tmp_path: Path) -> Callable[..., Path]:
    """Create a site directory with config.toml and the given content files."""

    def _make(files: dict[str, str], config: str = DEFAULT_CONFIG) -> Path:
        root = tmp_path / "site"
        content = root / "content"
        content.mkdir(parents=True, exist_ok=True)
        (root / "config.toml").write_text(config, encoding="utf-8")
        for relative, text in files.items():
            path = content / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def config(make_site: Callable[..., Path]) -> SiteConfig:
    return SiteConfig.load(make_site({}))
