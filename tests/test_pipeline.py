from pathlib import Path

import pytest

from kiln.core.exceptions import ContentParseError, RouteCollisionError
from kiln.pipeline import build_site

ORIGINAL_CONFIG = Path(__file__).parent / "fixtures" / "config.toml"


def test_hello_scenario(make_site, post):
    root = make_site({"hello.md": post("Hello", date="2022-10-15", tags=["c++"])})

    report = build_site(root)

    assert report.items == 1
    assert report.terms == 1
    assert "hello/" in report.routes
    assert "tags/c/" in report.routes
    assert report.written is True


def test_duplicate_titles_fail_naming_both_files(make_site, post):
    root = make_site({"first.md": post("Hello"), "second.md": post("Hello")})

    with pytest.raises(RouteCollisionError) as excinfo:
        build_site(root)

    message = str(excinfo.value)
    assert str(root / "content" / "first.md") in message
    assert str(root / "content" / "second.md") in message
    assert not (root / "public").exists()


def test_parse_error_aborts_before_writing(make_site, post):
    root = make_site({"good.md": post("Good"), "broken.md": "+++\ntitle = \n+++\n"})

    with pytest.raises(ContentParseError) as excinfo:
        build_site(root)

    assert excinfo.value.path.endswith("broken.md")
    assert not (root / "public").exists()


def test_rebuild_is_deterministic(make_site, post):
    root = make_site(
        {
            "a.md": post("Alpha", date="2021-03-01", tags=["rust", "c++"]),
            "b.md": post("Beta", date="2022-03-01", tags=["rust"]),
            "c.md": post("Gamma", tags=["meta"]),
            "pages/errata.md": post("Errata"),
        }
    )

    first = build_site(root)
    sitemap = (root / "public" / "sitemap.xml").read_text()
    listing = (root / "public" / "tags" / "rust" / "index.html").read_text()
    second = build_site(root)

    assert first.routes == second.routes
    assert (root / "public" / "sitemap.xml").read_text() == sitemap
    assert (root / "public" / "tags" / "rust" / "index.html").read_text() == listing
    assert listing.index("Beta") < listing.index("Alpha")


def test_dry_run_writes_nothing(make_site, post):
    root = make_site({"hello.md": post("Hello", tags=["c++"])})

    report = build_site(root, dry_run=True)

    assert report.written is False
    assert "tags/c/" in report.routes
    assert report.terms == 1
    assert not (root / "public").exists()


def test_drafts_are_published_on_request(make_site, post):
    root = make_site({"wip.md": post("Work in progress", extra="draft = true")})

    assert "work-in-progress/" not in build_site(root).routes
    assert "work-in-progress/" in build_site(root, include_drafts=True).routes


def test_blog_with_original_configuration(make_site, post):
    root = make_site(
        {
            "hello.md": post("Hello", date="2022-10-15", tags=["c++"]),
            "pages/errata.md": post("Errata"),
        },
        config=ORIGINAL_CONFIG.read_text(),
    )

    report = build_site(root)

    assert "pages/errata/" in report.routes
    html = (root / "public" / "index.html").read_text()
    assert 'href="https://hotarubiemu.github.io/pages/errata"' in html
    assert 'href="https://hotarubiemu.github.io/tags"' in html
    assert "Hotarubi" in html
