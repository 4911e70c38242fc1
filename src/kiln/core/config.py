"""Site configuration loaded from ``config.toml``."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from kiln.core.exceptions import ConfigError

CONFIG_FILENAME = "config.toml"
BASE_URL_PLACEHOLDER = "$BASE_URL"


class MenuItem(BaseModel):
    """One entry of the theme navigation menu."""

    name: str
    url: str = Field(..., description="Target URL, may contain the $BASE_URL placeholder")
    newtab: bool = Field(default=False, description="Open the link in a new tab")


class TaxonomySettings(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            msg = "taxonomy name must not be empty"
            raise ValueError(msg)
        return value.strip()


class MarkdownSettings(BaseModel):
    highlight_code: bool = Field(default=False, description="Mark fenced code for syntax highlighting")


class ExtraSettings(BaseModel):
    """Free-form theme variables.

    Only ``menu_items`` is interpreted by Kiln, everything else (``accent_color``,
    ``logo_text``, ...) is handed to templates untouched.
    """

    model_config = ConfigDict(extra="allow")

    menu_items: list[MenuItem] = Field(default_factory=list)


class SiteConfig(BaseSettings):
    """Root configuration for one site build.

    Values come from ``config.toml`` in the site root. Environment variables
    with the ``KILN_`` prefix override the file, nested keys use ``__``
    (e.g. ``KILN_MARKDOWN__HIGHLIGHT_CODE``).
    """

    base_url: str = Field(..., description="The URL the site will be built for")
    title: str | None = None
    description: str | None = None
    theme: str | None = None
    compile_sass: bool = False
    build_search_index: bool = False
    taxonomies: list[TaxonomySettings] = Field(default_factory=lambda: [TaxonomySettings(name="tags")])
    markdown: MarkdownSettings = Field(default_factory=MarkdownSettings)
    extra: ExtraSettings = Field(default_factory=ExtraSettings)

    site_root: Path = Field(default_factory=Path.cwd, description="Directory holding config.toml")
    content_dir: Path = Field(default=Path("content"), description="Content directory")
    output_dir: Path = Field(default=Path("public"), description="Output directory")
    templates_dir: Path = Field(default=Path("templates"), description="Template overrides directory")
    pages_section: str = Field(default="pages", description="Section holding non-chronological pages")

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="KILN_",
        env_nested_delimiter="__",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats the values read from config.toml.
        return env_settings, init_settings

    @field_validator("base_url")
    @classmethod
    def _base_url_not_blank(cls, value: str) -> str:
        if not value.strip():
            msg = "base_url must not be empty"
            raise ValueError(msg)
        return value.strip()

    @property
    def taxonomy_names(self) -> list[str]:
        return [taxonomy.name for taxonomy in self.taxonomies]

    @property
    def abs_content_dir(self) -> Path:
        return self._resolve(self.content_dir)

    @property
    def abs_output_dir(self) -> Path:
        return self._resolve(self.output_dir)

    @property
    def abs_templates_dir(self) -> Path:
        return self._resolve(self.templates_dir)

    def _resolve(self, path: Path) -> Path:
        if path.is_absolute():
            return path
        return self.site_root / path

    def absolute_url(self, route: str) -> str:
        """Join the base URL and a relative route."""
        return f"{self.base_url.rstrip('/')}/{route.lstrip('/')}"

    @classmethod
    def load(cls, site_root: Path | None = None, **overrides: Any) -> SiteConfig:
        """Load configuration from ``config.toml`` and environment variables.

        Priority (highest to lowest):
        1. ``overrides`` passed by the caller (CLI flags), ``None`` values are skipped
        2. Environment variables (KILN_KEY, KILN_SECTION__KEY)
        3. Config file (config.toml in ``site_root``)
        4. Defaults

        Raises:
            ConfigError: If the file is missing or unreadable, or a key fails validation.

        """
        root_path = site_root if site_root is not None else Path.cwd()
        config_file = root_path / CONFIG_FILENAME

        if not config_file.is_file():
            raise ConfigError(CONFIG_FILENAME, f"no configuration file found at {config_file}")

        try:
            with config_file.open("rb") as f:
                file_settings: dict[str, Any] = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(CONFIG_FILENAME, f"invalid TOML: {exc}") from exc

        file_settings["site_root"] = root_path
        explicit = {key: value for key, value in overrides.items() if value is not None}

        try:
            config = cls(**file_settings)
            if explicit:
                # model_validate skips the settings sources, so env cannot shadow the flags.
                config = cls.model_validate({**config.model_dump(), **explicit})
        except ValidationError as exc:
            error = exc.errors()[0]
            key = ".".join(str(part) for part in error["loc"]) or CONFIG_FILENAME
            raise ConfigError(key, error["msg"]) from exc
        return config
