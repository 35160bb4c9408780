"""MCP Server for docs2pdf.

Provides a tool that crawls a paginated documentation site and writes
the merged PDF to disk.

Supports both STDIO and HTTP transports.

Usage:
    # STDIO (for desktop MCP clients)
    python -m docs2pdf.mcp_server

    # HTTP (for remote access)
    python -m docs2pdf.mcp_server --transport http --port 8000

Environment Variables:
    DOCS2PDF_EXECUTABLE_PATH: Chromium executable to launch
    DOCS2PDF_BROWSER_ARGS: Extra Chromium launch arguments
    DOCS2PDF_HEADLESS: Set to 0 to show the browser window
    DOCS2PDF_PROTOCOL_TIMEOUT: Navigation timeout in seconds
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from .config import build_config
from .document import GenerationResult
from .renderer import NavigationError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
LOGGER = logging.getLogger(__name__)

# Load .env before reading environment variables
load_dotenv()

mcp = FastMCP(
    name="Docs to PDF",
    instructions="""
    Turns a documentation site into a single PDF.

    - generate_pdf: Follow the "next page" links from one or more seed URLs,
      merge the content of every page, add a cover page and a table of
      contents, and print the result to a PDF file.

    The tool returns a JSON summary with the output path, the pages that
    were included and the pages that were skipped.
    """,
)


def _format_timestamp() -> str:
    """Get current timestamp in ISO format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _result_to_dict(result: GenerationResult) -> Dict[str, Any]:
    """Convert GenerationResult to JSON-serializable dict."""
    return {
        "generated_at": _format_timestamp(),
        "status": "success",
        "output_path": result.output_path,
        "pages": result.pages,
        "skipped": result.skipped,
        "headers": [
            {"level": h.level, "id": h.id, "text": h.text} for h in result.headers
        ],
        "stats": result.stats,
    }


@mcp.tool
async def generate_pdf(
    urls: List[str],
    output_path: str = "docs-to-pdf.pdf",
    content_selector: Optional[str] = None,
    pagination_selector: Optional[str] = None,
    exclude_selectors: Optional[List[str]] = None,
    exclude_urls: Optional[List[str]] = None,
    exclude_paths: Optional[List[str]] = None,
    restrict_paths: bool = False,
    filter_keyword: Optional[str] = None,
    base_url: Optional[str] = None,
    preset: Optional[str] = None,
    cover_title: Optional[str] = None,
    cover_sub: Optional[str] = None,
    cover_image: Optional[str] = None,
    disable_cover: bool = False,
    disable_toc: bool = False,
    toc_max_level: Optional[int] = None,
    extract_iframes: bool = False,
    css_style: Optional[str] = None,
):
    """
    Crawl documentation pages by following "next" links and write one PDF.

    Args:
        urls: Seed URLs; every seed starts its own pagination chain
        output_path: Where to write the PDF (default: docs-to-pdf.pdf)
        content_selector: CSS selector of the page content (default: article)
        pagination_selector: CSS selector of the next-page link
        exclude_selectors: CSS selectors removed from the content
        exclude_urls: Exact URLs whose content is skipped
        exclude_paths: Path fragments; matching pages are skipped
        restrict_paths: Only keep pages below each seed URL's path
        filter_keyword: Only keep pages whose keywords meta lists it
        base_url: Origin whose requests are served from the crawled origin
        preset: Selector preset - "docusaurus", "mkdocs-material" or "sphinx"
        cover_title: Cover page title
        cover_sub: Cover page subtitle
        cover_image: Cover image URL or local path
        disable_cover: Skip the cover page
        disable_toc: Skip the table of contents
        toc_max_level: Deepest heading level in the table of contents (1-6)
        extract_iframes: Inline the content of embedded frames
        css_style: Extra CSS applied before printing

    Returns:
        JSON summary with output path, included and skipped pages, headings
        and statistics. On failure, a JSON object with status "failed".

    Examples:
        generate_pdf(urls=["https://docusaurus.io/docs/"])

        generate_pdf(
            urls=["https://squidfunk.github.io/mkdocs-material/getting-started/"],
            preset="mkdocs-material",
            output_path="material.pdf",
        )
    """
    from . import generate_pdf_async

    LOGGER.info("Generating %s from %d seed URL(s)", output_path, len(urls))
    try:
        config = build_config(
            urls,
            output_pdf_filename=output_path,
            content_selector=content_selector,
            pagination_selector=pagination_selector,
            exclude_selectors=exclude_selectors,
            exclude_urls=exclude_urls,
            exclude_paths=exclude_paths,
            restrict_paths=restrict_paths,
            filter_keyword=filter_keyword,
            base_url=base_url,
            preset=preset,
            cover_title=cover_title,
            cover_sub=cover_sub,
            cover_image=cover_image,
            disable_cover=disable_cover,
            disable_toc=disable_toc,
            toc_max_level=toc_max_level,
            extract_iframes=extract_iframes,
            css_style=css_style,
        )
        result = await generate_pdf_async(config)
    except (ValueError, NavigationError) as exc:
        LOGGER.error("PDF generation failed: %s", exc)
        return json.dumps(
            {
                "generated_at": _format_timestamp(),
                "status": "failed",
                "error_message": str(exc),
            },
            indent=2,
            ensure_ascii=False,
        )

    LOGGER.info(
        "Completed: %d page(s) kept, %d skipped", len(result.pages), len(result.skipped)
    )
    return json.dumps(_result_to_dict(result), indent=2, ensure_ascii=False)


def main():
    """CLI entry point for running the MCP server."""
    parser = argparse.ArgumentParser(
        description="Run the docs2pdf MCP server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
    DOCS2PDF_EXECUTABLE_PATH   Chromium executable to launch
    DOCS2PDF_BROWSER_ARGS      Extra Chromium launch arguments
    DOCS2PDF_HEADLESS          Set to 0 to show the browser window
    DOCS2PDF_PROTOCOL_TIMEOUT  Navigation timeout in seconds

Examples:
    # STDIO transport (default)
    python -m docs2pdf.mcp_server

    # HTTP transport (for remote access)
    python -m docs2pdf.mcp_server --transport http --port 8000

    # Custom host/port
    python -m docs2pdf.mcp_server --transport http --host 0.0.0.0 --port 9000
""",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to for HTTP transport (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to for HTTP transport (default: 8000)",
    )

    args = parser.parse_args()

    if args.transport == "http":
        LOGGER.info("Starting MCP server on http://%s:%d/mcp", args.host, args.port)
        mcp.run(transport="http", host=args.host, port=args.port)
    else:
        LOGGER.info("Starting MCP server with STDIO transport")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
