"""Thin layer over Playwright: browser lifecycle, navigation and printing."""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .config import CrawlConfig
from .document import AssembledDocument

LOGGER = logging.getLogger(__name__)

# Chromium falls back to its own date/title header when a template is empty
_BLANK_TEMPLATE = "<span></span>"

_REPLACE_BODY_JS = """({ html, baseUrl, title }) => {
    document.body.innerHTML = html;
    if (title) {
        document.title = title;
    }
    if (baseUrl && !document.querySelector("base")) {
        const base = document.createElement("base");
        base.href = baseUrl;
        document.head.appendChild(base);
    }
}"""


class NavigationError(RuntimeError):
    """Raised when a page cannot be loaded (bad URL, unreachable, timeout)."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load {url}: {reason}")


@asynccontextmanager
async def open_page(config: CrawlConfig) -> AsyncIterator:
    """Launch Chromium and yield a fresh page; the browser always closes."""
    async with async_playwright() as pw:
        browser = await pw.chromium.launch(
            headless=config.headless,
            args=list(config.browser_args),
            executable_path=config.executable_path or None,
        )
        try:
            context = await browser.new_context()
            page = await context.new_page()
            page.set_default_timeout(config.protocol_timeout_ms)
            page.set_default_navigation_timeout(config.protocol_timeout_ms)
            yield page
        finally:
            try:
                await browser.close()
            except PlaywrightError as exc:
                LOGGER.debug("Browser close failed: %s", exc)


async def navigate(
    page,
    url: str,
    *,
    timeout_ms: Optional[float] = None,
    wait_until: str = "networkidle",
):
    """Load url in page.

    Raises:
        NavigationError: If the load fails or times out.
    """
    LOGGER.debug("Navigating to %s", url)
    try:
        return await page.goto(url, wait_until=wait_until, timeout=timeout_ms)
    except PlaywrightError as exc:
        raise NavigationError(url, str(exc).splitlines()[0] if str(exc) else "") from exc


async def print_document(
    page,
    document: AssembledDocument,
    config: CrawlConfig,
    output_path: Optional[str] = None,
) -> Path:
    """Replace the page body with document and print it to a PDF file.

    The file is written next to the target under a temporary name and moved
    into place only once printing succeeded.
    """
    target = Path(output_path or config.output_pdf_filename).expanduser().resolve()
    target.parent.mkdir(parents=True, exist_ok=True)
    partial = target.with_name(f".{target.name}.part")

    await page.evaluate(
        _REPLACE_BODY_JS,
        {
            "html": document.body_html,
            "baseUrl": document.base_url,
            "title": document.title,
        },
    )
    if document.css:
        await page.add_style_tag(content=document.css)
    try:
        await page.wait_for_load_state("networkidle")
    except PlaywrightError as exc:
        LOGGER.debug("Network did not settle before printing: %s", exc)
    if config.wait_for_render:
        LOGGER.info("Waiting %.1fs for rendering", config.wait_for_render)
        await asyncio.sleep(config.wait_for_render)

    show_templates = bool(config.header_template or config.footer_template)
    try:
        await page.pdf(
            path=str(partial),
            format=config.paper_format,
            margin=config.pdf_margin.to_playwright(),
            print_background=True,
            display_header_footer=show_templates,
            header_template=config.header_template or _BLANK_TEMPLATE,
            footer_template=config.footer_template or _BLANK_TEMPLATE,
        )
        os.replace(partial, target)
    except BaseException:
        partial.unlink(missing_ok=True)
        raise

    LOGGER.info("Wrote %s", target)
    return target
