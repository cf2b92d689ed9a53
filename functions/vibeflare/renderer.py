"""
Server-side page rendering.

The renderer wraps stored page bodies in a fixed HTML skeleton, appends the
site's custom stylesheet after the base theme, and optionally switches the
page into inline edit mode. Everything page-specific (theme, default
bodies, placeholder) comes in through ``RendererConfig`` so callers and tests
can swap it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from importlib.resources import files
from typing import Mapping, Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from vibeflare.config import Settings

DEFAULT_PAGES = ("home", "about")


@dataclass(frozen=True)
class RendererConfig:
    base_theme: str
    missing_page_template: str
    default_pages: Mapping[str, str] = field(default_factory=dict)
    site_title: str = "VibeFlare CMS"
    autosave_interval_seconds: int = 30
    styles_slug: str = "styles"
    api_prefix: str = "/api"


@dataclass(frozen=True)
class RenderedPage:
    html: str
    status_code: int = 200
    is_placeholder: bool = False


def _read_template(name: str) -> str:
    return files("vibeflare").joinpath("templates", name).read_text(encoding="utf-8")


def load_renderer_config(settings: Settings) -> RendererConfig:
    """Build the production renderer config from bundled templates and settings."""
    return RendererConfig(
        base_theme=_read_template("theme.css").strip(),
        missing_page_template=_read_template("missing.html"),
        default_pages={
            slug: _read_template(f"defaults/{slug}.html") for slug in DEFAULT_PAGES
        },
        site_title=settings.site_title,
        autosave_interval_seconds=settings.autosave_interval_seconds,
        styles_slug=settings.styles_slug,
        api_prefix=settings.api_prefix,
    )


class PageRenderer:
    """Turns a page body plus theme into a full HTML document."""

    def __init__(self, config: RendererConfig):
        self.config = config
        self._env = Environment(
            loader=PackageLoader("vibeflare", "templates"),
            autoescape=select_autoescape(["html"], default_for_string=True),
        )
        self._page_template = self._env.get_template("page.html")
        self._missing_template = self._env.from_string(config.missing_page_template)

    def resolve_body(self, slug: str, content: Optional[str]) -> tuple[str, bool]:
        """Return the body to show and whether it is the not-found placeholder."""
        if content is not None:
            return content, False
        default = self.config.default_pages.get(slug)
        if default is not None:
            return default, False
        placeholder = self._missing_template.render(
            slug=slug, api_prefix=self.config.api_prefix
        )
        return placeholder, True

    def render(
        self,
        slug: str,
        content: Optional[str],
        custom_css: str = "",
        edit_mode: bool = False,
    ) -> RenderedPage:
        body, is_placeholder = self.resolve_body(slug, content)
        html = self._page_template.render(
            slug=slug,
            content=body,
            base_theme=self.config.base_theme,
            custom_css=custom_css or "",
            edit_mode=edit_mode,
            site_title=self.config.site_title,
            save_url=f"{self.config.api_prefix}/page/{slug}",
            autosave_interval_seconds=self.config.autosave_interval_seconds,
        )
        return RenderedPage(
            html=html,
            status_code=404 if is_placeholder else 200,
            is_placeholder=is_placeholder,
        )
