"""Argument parser construction for the docs2pdf CLI."""

from __future__ import annotations

import argparse
from typing import List, Optional

from .config import (
    DEFAULT_CONTENT_SELECTOR,
    DEFAULT_PAGINATION_SELECTOR,
    DEFAULT_PAPER_FORMAT,
    DEFAULT_TOC_TITLE,
    PRESETS,
    WAIT_UNTIL_CHOICES,
    PdfMargin,
)


def parse_margin(value: str) -> PdfMargin:
    """Parse "32" (all sides) or "top,right,bottom,left" in pixels."""
    parts = [part.strip().removesuffix("px") for part in value.split(",")]
    try:
        numbers = [float(part) for part in parts]
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid margin {value!r}; use '32' or '10,20,10,20'"
        ) from None
    if len(numbers) == 1:
        return PdfMargin(*numbers * 4)
    if len(numbers) == 4:
        return PdfMargin(*numbers)
    raise argparse.ArgumentTypeError(
        f"margin needs 1 or 4 values, got {len(numbers)}"
    )


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docs2pdf",
        description="Crawl a paginated documentation site into a single PDF.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  # Docusaurus site with default selectors
  docs2pdf https://docusaurus.io/docs/ -o docusaurus.pdf

  # Use a preset for another generator
  docs2pdf https://squidfunk.github.io/mkdocs-material/getting-started/ --preset mkdocs-material

  # Several chains in one document, custom selectors
  docs2pdf https://docs.example.com/guide https://docs.example.com/api \\
      --content-selector main --pagination-selector 'a[rel=next]'

  # Cover page with image and subtitle, no table of contents
  docs2pdf https://docs.example.com --cover-title "Example Docs" \\
      --cover-sub "Version 2" --cover-image ./logo.png --disable-toc

  # Serve assets from production while crawling a staging deploy
  docs2pdf https://staging.example.com/docs --base-url https://docs.example.com
""",
    )

    parser.add_argument(
        "urls",
        nargs="+",
        help="Seed URL(s); each starts its own pagination chain",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output PDF file (default: docs-to-pdf.pdf)",
    )
    parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        default=None,
        help="Selector preset for a documentation generator",
    )

    content = parser.add_argument_group("content selection")
    content.add_argument(
        "--content-selector",
        type=str,
        default=None,
        help=f"CSS selector of the page content (default: {DEFAULT_CONTENT_SELECTOR})",
    )
    content.add_argument(
        "--pagination-selector",
        type=str,
        default=None,
        help=f"CSS selector of the next-page link (default: {DEFAULT_PAGINATION_SELECTOR})",
    )
    content.add_argument(
        "--exclude-selectors",
        type=_split_list,
        default=None,
        help="Comma-separated CSS selectors removed from the content",
    )
    content.add_argument(
        "--exclude-urls",
        type=_split_list,
        default=None,
        help="Comma-separated URLs whose content is skipped",
    )
    content.add_argument(
        "--exclude-paths",
        type=_split_list,
        default=None,
        help="Comma-separated path fragments; matching pages are skipped",
    )
    content.add_argument(
        "--restrict-paths",
        action="store_true",
        default=None,
        help="Only keep pages below the seed URL's path",
    )
    content.add_argument(
        "--filter-keyword",
        type=str,
        default=None,
        help="Only keep pages whose keywords meta tag lists this keyword",
    )
    content.add_argument(
        "--extract-iframes",
        action="store_true",
        default=None,
        help="Inline the content of embedded frames",
    )
    content.add_argument(
        "--no-open-detail",
        action="store_false",
        dest="open_detail",
        default=None,
        help="Do not expand collapsed <details> elements",
    )
    content.add_argument(
        "--base-url",
        type=str,
        default=None,
        help="Origin whose requests are served from the crawled origin instead",
    )

    layout = parser.add_argument_group("document layout")
    layout.add_argument(
        "--disable-cover",
        action="store_true",
        default=None,
        help="Do not add a cover page",
    )
    layout.add_argument("--cover-title", type=str, default=None, help="Cover page title")
    layout.add_argument(
        "--cover-sub", type=str, default=None, help="Cover page subtitle"
    )
    layout.add_argument(
        "--cover-image",
        type=str,
        default=None,
        help="Cover image URL or local file",
    )
    layout.add_argument(
        "--disable-toc",
        action="store_true",
        default=None,
        help="Do not add a table of contents",
    )
    layout.add_argument(
        "--toc-title",
        type=str,
        default=None,
        help=f"Table of contents heading (default: {DEFAULT_TOC_TITLE!r})",
    )
    layout.add_argument(
        "--toc-max-level",
        type=int,
        choices=range(1, 7),
        metavar="{1..6}",
        default=None,
        help="Deepest heading level listed in the table of contents (default: 3)",
    )
    layout.add_argument(
        "--css-style",
        type=str,
        default=None,
        help="Extra CSS injected before printing",
    )
    layout.add_argument(
        "--pdf-margin",
        type=parse_margin,
        default=None,
        help="Page margin in px: '32' or 'top,right,bottom,left' (default: 32)",
    )
    layout.add_argument(
        "--paper-format",
        type=str,
        default=None,
        help=f"Paper format such as A4 or Letter (default: {DEFAULT_PAPER_FORMAT})",
    )
    layout.add_argument(
        "--header-template",
        type=str,
        default=None,
        help="HTML template for the print header",
    )
    layout.add_argument(
        "--footer-template",
        type=str,
        default=None,
        help="HTML template for the print footer",
    )

    browser = parser.add_argument_group("browser")
    browser.add_argument(
        "--wait-until",
        choices=WAIT_UNTIL_CHOICES,
        default=None,
        help="Load state awaited after each navigation (default: networkidle)",
    )
    browser.add_argument(
        "--wait-for-render",
        type=float,
        default=None,
        help="Seconds to wait before printing the PDF",
    )
    browser.add_argument(
        "--protocol-timeout",
        type=float,
        default=None,
        help="Navigation timeout in seconds (default: 30)",
    )
    browser.add_argument(
        "--browser-args",
        type=str,
        default=None,
        help="Extra Chromium launch arguments, space separated",
    )
    browser.add_argument(
        "--headed",
        action="store_false",
        dest="headless",
        default=None,
        help="Show the browser window",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
