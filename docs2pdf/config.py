"""Run configuration for PDF generation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

LOGGER = logging.getLogger(__name__)

DEFAULT_CONTENT_SELECTOR = "article"
DEFAULT_PAGINATION_SELECTOR = "a.pagination-nav__link--next"
DEFAULT_TOC_TITLE = "Table of contents:"
DEFAULT_PAPER_FORMAT = "A4"
DEFAULT_PROTOCOL_TIMEOUT = 30.0
WAIT_UNTIL_CHOICES = ("load", "domcontentloaded", "networkidle", "commit")

# Selector presets for well-known documentation generators
PRESETS: Dict[str, Dict[str, Any]] = {
    "docusaurus": {
        "content_selector": "article",
        "pagination_selector": "a.pagination-nav__link.pagination-nav__link--next",
        "exclude_selectors": (
            ".margin-vert--xl a",
            "[class^='tocCollapsible']",
            ".breadcrumbs",
            ".theme-edit-this-page",
        ),
    },
    "mkdocs-material": {
        "content_selector": "article.md-content__inner",
        "pagination_selector": "a.md-footer__link--next",
        "exclude_selectors": (
            ".md-source-file",
            ".md-content__button",
            ".headerlink",
        ),
    },
    "sphinx": {
        "content_selector": "div[role='main']",
        "pagination_selector": "a[rel='next']",
        "exclude_selectors": (
            ".headerlink",
            ".rst-footer-buttons",
        ),
    },
}


@dataclass(frozen=True)
class PdfMargin:
    """Page margins in CSS pixels."""

    top: float = 32
    right: float = 32
    bottom: float = 32
    left: float = 32

    def to_playwright(self) -> Dict[str, str]:
        return {
            "top": f"{self.top:g}px",
            "right": f"{self.right:g}px",
            "bottom": f"{self.bottom:g}px",
            "left": f"{self.left:g}px",
        }


@dataclass(frozen=True)
class CrawlConfig:
    """Immutable input for one generation run.

    Attributes:
        initial_doc_urls: Seed URLs, one pagination chain each.
        content_selector: CSS selector of the content root on every page.
        pagination_selector: CSS selector of the "next page" anchor.
        exclude_selectors: Elements removed from extracted content.
        exclude_urls: Pages whose content is dropped (exact URL match).
        exclude_paths: Pages whose path contains any of these are dropped.
        restrict_paths: Keep only pages below the seed URL's path.
        filter_keyword: Keep only pages whose keywords meta lists it.
        base_url: Origin rewritten to the crawl origin during interception.
        wait_until: Playwright load state awaited after each navigation.
        wait_for_render: Seconds to wait before printing.
        protocol_timeout: Seconds allowed for navigation and protocol calls.
    """

    initial_doc_urls: Tuple[str, ...]
    output_pdf_filename: str = "docs-to-pdf.pdf"
    content_selector: str = DEFAULT_CONTENT_SELECTOR
    pagination_selector: str = DEFAULT_PAGINATION_SELECTOR
    exclude_selectors: Tuple[str, ...] = ()
    exclude_urls: Tuple[str, ...] = ()
    exclude_paths: Tuple[str, ...] = ()
    restrict_paths: bool = False
    filter_keyword: str = ""
    base_url: str = ""
    extract_iframes: bool = False
    open_detail: bool = True
    disable_cover: bool = False
    cover_title: str = ""
    cover_image: str = ""
    cover_sub: str = ""
    disable_toc: bool = False
    toc_title: str = DEFAULT_TOC_TITLE
    toc_max_level: int = 3
    css_style: str = ""
    pdf_margin: PdfMargin = field(default_factory=PdfMargin)
    paper_format: str = DEFAULT_PAPER_FORMAT
    header_template: str = ""
    footer_template: str = ""
    wait_until: str = "networkidle"
    wait_for_render: float = 0.0
    protocol_timeout: float = DEFAULT_PROTOCOL_TIMEOUT
    browser_args: Tuple[str, ...] = ()
    headless: bool = True
    executable_path: Optional[str] = None

    def __post_init__(self) -> None:
        # Accept lists from callers while keeping the instance hashable
        for name in (
            "initial_doc_urls",
            "exclude_selectors",
            "exclude_urls",
            "exclude_paths",
            "browser_args",
        ):
            value = getattr(self, name)
            if isinstance(value, str):
                value = (value,)
            object.__setattr__(self, name, tuple(value))

    @property
    def protocol_timeout_ms(self) -> float:
        return self.protocol_timeout * 1000

    def validate(self) -> None:
        """Raise ValueError if the configuration cannot produce a run."""
        if not self.initial_doc_urls:
            raise ValueError("At least one initial document URL is required")
        for url in self.initial_doc_urls:
            if not _is_http_url(url):
                raise ValueError(f"Invalid initial document URL: {url!r}")
        if self.base_url and not _is_http_url(self.base_url):
            raise ValueError(f"Invalid base URL: {self.base_url!r}")
        if not self.content_selector.strip():
            raise ValueError("content_selector must not be empty")
        if not self.output_pdf_filename:
            raise ValueError("output_pdf_filename must not be empty")
        if not 1 <= self.toc_max_level <= 6:
            raise ValueError(
                f"toc_max_level must be between 1 and 6, got {self.toc_max_level}"
            )
        if self.wait_until not in WAIT_UNTIL_CHOICES:
            raise ValueError(
                f"wait_until must be one of {', '.join(WAIT_UNTIL_CHOICES)}"
            )
        if self.wait_for_render < 0 or self.protocol_timeout < 0:
            raise ValueError("wait_for_render and protocol_timeout must be >= 0")


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def apply_preset(config: CrawlConfig, name: str) -> CrawlConfig:
    """Return a copy of config using the selectors of a named preset.

    Exclude selectors from the preset are merged with the ones already set.
    """
    try:
        preset = PRESETS[name]
    except KeyError:
        raise ValueError(
            f"Unknown preset {name!r}; choose from {', '.join(sorted(PRESETS))}"
        ) from None
    merged = tuple(preset["exclude_selectors"]) + tuple(
        s for s in config.exclude_selectors if s not in preset["exclude_selectors"]
    )
    return replace(
        config,
        content_selector=preset["content_selector"],
        pagination_selector=preset["pagination_selector"],
        exclude_selectors=merged,
    )


def _env_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def load_browser_settings_from_env() -> Dict[str, Any]:
    """Read browser settings from environment variables.

    Supported variables:
        DOCS2PDF_EXECUTABLE_PATH: Chromium executable to launch.
        DOCS2PDF_BROWSER_ARGS: Extra launch arguments, space separated.
        DOCS2PDF_HEADLESS: Set to 0/false to show the browser window.
        DOCS2PDF_PROTOCOL_TIMEOUT: Navigation timeout in seconds.

    Returns:
        Keyword arguments for CrawlConfig; only variables that are set.
    """
    settings: Dict[str, Any] = {}

    executable = os.environ.get("DOCS2PDF_EXECUTABLE_PATH")
    if executable:
        settings["executable_path"] = executable

    args = os.environ.get("DOCS2PDF_BROWSER_ARGS")
    if args:
        settings["browser_args"] = tuple(args.split())

    headless = os.environ.get("DOCS2PDF_HEADLESS")
    if headless:
        settings["headless"] = _env_bool(headless)

    timeout = os.environ.get("DOCS2PDF_PROTOCOL_TIMEOUT")
    if timeout:
        try:
            settings["protocol_timeout"] = float(timeout)
        except ValueError:
            LOGGER.warning(
                "Ignoring DOCS2PDF_PROTOCOL_TIMEOUT=%r; expected seconds", timeout
            )

    return settings


def build_config(urls: List[str], **overrides: Any) -> CrawlConfig:
    """Build a CrawlConfig from environment, preset and explicit values.

    Explicit values win over the preset, which wins over the environment.
    Values of None are treated as unset.
    """
    settings = load_browser_settings_from_env()
    explicit = {k: v for k, v in overrides.items() if v is not None}
    preset = explicit.pop("preset", None)
    config = CrawlConfig(initial_doc_urls=tuple(urls), **settings)
    if preset:
        config = apply_preset(config, preset)
    if "exclude_selectors" in explicit:
        explicit["exclude_selectors"] = tuple(config.exclude_selectors) + tuple(
            s
            for s in explicit["exclude_selectors"]
            if s not in config.exclude_selectors
        )
    return replace(config, **explicit)
