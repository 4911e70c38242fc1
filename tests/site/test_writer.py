import json

import pytest

from kiln.core.config import SiteConfig
from kiln.core.exceptions import ConfigError, TemplateRenderError
from kiln.pipeline import build_site, run_build
from kiln.site.writer import output_path


@pytest.fixture
def hello_site(make_site, post):
    return make_site(
        {
            "hello.md": post(
                "Hello", date="2022-10-15", tags=["c++"], body="Body text.\n\n```cpp\nint x;\n```"
            ),
            "pages/errata.md": post("Errata", body="Fixes *here*."),
        }
    )


def test_output_path(tmp_path):
    assert output_path(tmp_path, "") == tmp_path / "index.html"
    assert output_path(tmp_path, "tags/c/") == tmp_path / "tags" / "c" / "index.html"
    assert output_path(tmp_path, "sitemap.xml") == tmp_path / "sitemap.xml"


def test_writes_every_route(hello_site):
    report = build_site(hello_site)

    public = hello_site / "public"
    assert report.output_dir == public
    for relative in [
        "index.html",
        "hello/index.html",
        "pages/errata/index.html",
        "tags/index.html",
        "tags/c/index.html",
        "404.html",
        "sitemap.xml",
        "search_index.json",
    ]:
        assert (public / relative).is_file(), relative


def test_item_page_content(hello_site):
    build_site(hello_site)

    html = (hello_site / "public" / "hello" / "index.html").read_text()
    assert "<h1>Hello</h1>" in html
    assert "<p>Body text.</p>" in html
    assert '<pre class="highlight" data-lang="cpp">' in html
    assert 'href="https://example.com/tags/c/"' in html
    assert "#c++" in html
    assert '<link rel="canonical" href="https://example.com/hello/">' in html


def test_menu_is_rendered_with_resolved_urls(hello_site):
    build_site(hello_site)

    html = (hello_site / "public" / "index.html").read_text()
    assert "$BASE_URL" not in html
    assert 'href="https://example.com/tags"' in html
    assert 'href="https://example.com/pages/errata"' in html
    assert 'href="https://github.com/example" target="_blank"' in html


def test_home_page_skips_pages_collection(hello_site):
    build_site(hello_site)

    html = (hello_site / "public" / "index.html").read_text()
    assert 'href="https://example.com/hello/"' in html
    assert "Errata</a></h2>" not in html


def test_term_page_lists_items(hello_site):
    build_site(hello_site)

    html = (hello_site / "public" / "tags" / "c" / "index.html").read_text()
    assert "#c++" in html
    assert 'href="https://example.com/hello/"' in html


def test_sitemap(hello_site):
    build_site(hello_site)

    sitemap = (hello_site / "public" / "sitemap.xml").read_text()
    assert "<loc>https://example.com/hello/</loc>" in sitemap
    assert "<lastmod>2022-10-15</lastmod>" in sitemap
    assert "<loc>https://example.com/tags/c/</loc>" in sitemap
    assert "404.html" not in sitemap


def test_search_index_export(hello_site):
    build_site(hello_site)

    rows = json.loads((hello_site / "public" / "search_index.json").read_text())
    assert rows == [
        {
            "slug": "hello",
            "title": "Hello",
            "url": "https://example.com/hello/",
            "body": "Body text.\n\nint x;",
        },
        {
            "slug": "errata",
            "title": "Errata",
            "url": "https://example.com/pages/errata/",
            "body": "Fixes here.",
        },
    ]


def test_site_templates_override_defaults(hello_site):
    templates = hello_site / "templates"
    templates.mkdir()
    (templates / "page.html").write_text("CUSTOM {{ page.item.title }}\n")

    build_site(hello_site)

    assert (hello_site / "public" / "hello" / "index.html").read_text() == "CUSTOM Hello\n"
    assert "<!DOCTYPE html>" in (hello_site / "public" / "index.html").read_text()


def test_static_files_are_copied_and_stale_output_removed(hello_site):
    (hello_site / "static").mkdir()
    (hello_site / "static" / "style.css").write_text("body {}")
    stale = hello_site / "public" / "stale.html"
    stale.parent.mkdir()
    stale.write_text("old")

    build_site(hello_site)

    assert (hello_site / "public" / "style.css").read_text() == "body {}"
    assert not stale.exists()


def test_refuses_to_write_over_the_site_root(hello_site):
    with pytest.raises(ConfigError) as excinfo:
        build_site(hello_site, output_dir=hello_site)

    assert excinfo.value.key == "output_dir"
    assert (hello_site / "config.toml").exists()


def test_search_index_disabled(hello_site, monkeypatch):
    monkeypatch.setenv("KILN_BUILD_SEARCH_INDEX", "false")

    report = run_build(SiteConfig.load(hello_site))

    assert "search_index.json" not in report.routes
    assert not (hello_site / "public" / "search_index.json").exists()


def test_failing_template_keeps_the_previous_build(hello_site):
    previous = hello_site / "public" / "old.html"
    previous.parent.mkdir()
    previous.write_text("previous build")
    templates = hello_site / "templates"
    templates.mkdir()
    (templates / "page.html").write_text("{{ missing.attr.call() }}\n")

    with pytest.raises(TemplateRenderError) as excinfo:
        build_site(hello_site)

    assert excinfo.value.template == "page.html"
    assert excinfo.value.route == "hello/"
    assert previous.read_text() == "previous build"
    assert sorted(path.name for path in (hello_site / "public").iterdir()) == ["old.html"]


def test_dry_run_renders_templates(hello_site):
    templates = hello_site / "templates"
    templates.mkdir()
    (templates / "index.html").write_text("{% if %}\n")

    with pytest.raises(TemplateRenderError) as excinfo:
        build_site(hello_site, dry_run=True)

    assert excinfo.value.template == "index.html"
    assert excinfo.value.route == ""
    assert not (hello_site / "public").exists()
