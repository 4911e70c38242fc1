"""Jinja2 template loading for page rendering."""

from __future__ import annotations

from importlib.resources import files
from pathlib import Path
from typing import Any

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, Template, select_autoescape

from kiln.core.utils import slugify
from kiln.site import filters


class TemplateLoader:
    """Loads and renders the page templates.

    Templates found in the site's own ``templates`` directory shadow the
    packaged defaults of the same name.
    """

    def __init__(self, override_dir: Path | None = None, default_dir: Path | None = None) -> None:
        """Initialize TemplateLoader.

        Args:
            override_dir: Site template directory, searched first when it exists.
            default_dir: Packaged templates. Defaults to ``kiln/templates``.

        """
        if default_dir is None:
            default_dir = Path(str(files("kiln").joinpath("templates")))

        self.default_dir = default_dir
        self.override_dir = override_dir

        search_path = [default_dir]
        if override_dir is not None and override_dir.is_dir():
            search_path.insert(0, override_dir)

        self.env = Environment(
            loader=ChoiceLoader([FileSystemLoader(path) for path in search_path]),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._register_filters()

    def _register_filters(self) -> None:
        self.env.filters["date_format"] = filters.date_format
        self.env.filters["truncate_words"] = filters.truncate_words
        self.env.filters["slugify"] = slugify

    def load_template(self, template_name: str) -> Template:
        """Load a template by name.

        Raises:
            TemplateNotFound: If neither directory holds the template

        """
        return self.env.get_template(template_name)

    def render_template(self, template_name: str, **context: Any) -> str:
        return self.load_template(template_name).render(**context)
