"""End-to-end PDF generation: crawl every chain, assemble, print."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from .assembler import (
    CoverImage,
    ImageFetchError,
    assemble_document,
    collect_headers,
    fetch_cover_image,
)
from .config import CrawlConfig
from .document import ChainResult, GenerationResult
from .headers import HeaderIdAllocator
from .interception import RequestInterceptor
from .renderer import open_page, print_document
from .walker import PaginationWalker

LOGGER = logging.getLogger(__name__)


async def _load_cover_image(config: CrawlConfig) -> Optional[CoverImage]:
    if config.disable_cover or not config.cover_image:
        return None
    try:
        return await fetch_cover_image(
            config.cover_image, timeout=config.protocol_timeout or None
        )
    except ImageFetchError as exc:
        LOGGER.warning("%s; rendering the cover without an image", exc)
        return None


async def generate_pdf_async(config: CrawlConfig) -> GenerationResult:
    """
    Crawl every pagination chain of config and print the merged PDF.

    Args:
        config: The run configuration.

    Returns:
        GenerationResult with the output path, admitted pages and stats.

    Raises:
        ValueError: If the configuration is invalid.
        NavigationError: If any page cannot be loaded; no file is written.
    """
    config.validate()
    allocator = HeaderIdAllocator()
    interceptor = RequestInterceptor()
    cover_image = await _load_cover_image(config)

    chains: List[ChainResult] = []
    async with open_page(config) as page:
        await page.route("**/*", interceptor.handle)
        walker = PaginationWalker(page, config, allocator, interceptor)

        for seed_url in config.initial_doc_urls:
            LOGGER.info("Starting chain at %s", seed_url)
            chains.append(await walker.walk(seed_url))

        fragments = [fragment for chain in chains for fragment in chain.fragments]
        if not fragments:
            LOGGER.warning("No page content was collected")
        headers = collect_headers(fragments)
        document = assemble_document(fragments, config, headers, cover_image)
        output = await print_document(page, document, config)

    visited = [url for chain in chains for url in chain.visited]
    skipped = [url for chain in chains for url in chain.skipped]
    stats = {
        "chains": len(chains),
        "visited_pages": len(visited),
        "kept_pages": len(fragments),
        "skipped_pages": len(skipped),
        "headers": len(headers),
        "rewritten_requests": interceptor.rewritten,
        "blocked_requests": interceptor.aborted,
    }
    LOGGER.info(
        "Generated %s: %d of %d page(s) kept, %d heading(s)",
        output,
        stats["kept_pages"],
        stats["visited_pages"],
        stats["headers"],
    )
    return GenerationResult(
        output_path=str(output),
        pages=[fragment.source_url for fragment in fragments],
        skipped=skipped,
        headers=headers,
        stats=stats,
    )


def generate_pdf(config: CrawlConfig) -> GenerationResult:
    """Synchronous wrapper for generate_pdf_async."""
    return asyncio.run(generate_pdf_async(config))
