"""Merge a paginated documentation site into a single PDF.

The crawler starts at one or more seed URLs, follows each page's "next"
link, extracts the content element of every page and prints the result,
with an optional cover page and table of contents, through headless
Chromium.

Example usage:

    from docs2pdf import CrawlConfig, generate_pdf_async

    config = CrawlConfig(
        initial_doc_urls=["https://docs.example.com/intro"],
        content_selector="article",
        pagination_selector="a.pagination-nav__link--next",
        output_pdf_filename="docs.pdf",
    )
    result = await generate_pdf_async(config)
    print(result.output_path, result.stats)

    # Docusaurus selectors
    from docs2pdf.config import apply_preset
    config = apply_preset(config, "docusaurus")
"""

from __future__ import annotations

from .admission import is_page_kept
from .assembler import ImageFetchError, assemble_document
from .config import PRESETS, CrawlConfig, PdfMargin, apply_preset, build_config
from .document import (
    AssembledDocument,
    ChainResult,
    GenerationResult,
    HeaderRecord,
    PageFragment,
)
from .extractor import FrameAccessError, SelectorNotFoundError, get_html_content
from .generator import generate_pdf, generate_pdf_async
from .headers import HeaderIdAllocator
from .interception import InterceptionPolicy, RequestDecision, map_url_to_origin
from .renderer import NavigationError
from .walker import PaginationWalker, find_next_url

__all__ = [
    # Entry points
    "generate_pdf",
    "generate_pdf_async",
    # Config
    "CrawlConfig",
    "PdfMargin",
    "PRESETS",
    "apply_preset",
    "build_config",
    # Document types
    "AssembledDocument",
    "ChainResult",
    "GenerationResult",
    "HeaderRecord",
    "PageFragment",
    # Pipeline pieces
    "HeaderIdAllocator",
    "InterceptionPolicy",
    "PaginationWalker",
    "RequestDecision",
    "assemble_document",
    "find_next_url",
    "get_html_content",
    "is_page_kept",
    "map_url_to_origin",
    # Errors
    "FrameAccessError",
    "ImageFetchError",
    "NavigationError",
    "SelectorNotFoundError",
    # MCP Server
    "mcp",
]

__version__ = "1.0.0"


# Lazy import for mcp to avoid requiring fastmcp if not used
def __getattr__(name):
    if name == "mcp":
        from .mcp_server import mcp

        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
