"""Follow "next page" links from a seed URL and collect page fragments."""

from __future__ import annotations

import logging
from typing import Optional, Set
from urllib.parse import urljoin, urlsplit

from playwright.async_api import Error as PlaywrightError

from .admission import is_page_kept, read_page_keywords
from .config import CrawlConfig
from .document import ChainResult, PageFragment
from .extractor import SelectorNotFoundError, get_html_content, open_details
from .headers import HeaderIdAllocator
from .interception import InterceptionPolicy, RequestInterceptor, is_pdf_url, origin_of
from .renderer import navigate

LOGGER = logging.getLogger(__name__)

_NEXT_HREF_JS = "el => (typeof el.href === 'string' ? el.href : el.getAttribute('href')) || ''"


async def find_next_url(page, selector: str) -> Optional[str]:
    """Return the absolute href of the first element matching selector.

    None when nothing matches, the href is empty or not http(s), or it
    points at a PDF document.
    """
    if not selector:
        return None
    try:
        handle = await page.query_selector(selector)
    except PlaywrightError as exc:
        LOGGER.warning("Pagination selector %r failed: %s", selector, exc)
        return None
    if handle is None:
        return None

    href = (await handle.evaluate(_NEXT_HREF_JS) or "").strip()
    if not href:
        return None
    href = urljoin(page.url, href)
    if urlsplit(href).scheme not in ("http", "https"):
        LOGGER.debug("Ignoring non-http next link %s", href)
        return None
    if is_pdf_url(href):
        LOGGER.info("Next link %s is a PDF document; not following", href)
        return None
    return href


class PaginationWalker:
    """Walks pagination chains on a single page, one chain at a time.

    Every chain keeps its own visited set, so two seeds may cover the same
    pages. Heading ids come from the shared allocator and stay unique across
    chains.
    """

    def __init__(
        self,
        page,
        config: CrawlConfig,
        allocator: HeaderIdAllocator,
        interceptor: Optional[RequestInterceptor] = None,
    ) -> None:
        self.page = page
        self.config = config
        self.allocator = allocator
        self.interceptor = interceptor

    async def walk(self, seed_url: str) -> ChainResult:
        """Visit seed_url and its successors until the chain ends.

        The chain ends when there is no next link or when a URL repeats.

        Raises:
            NavigationError: If a page in the chain cannot be loaded.
        """
        config = self.config
        result = ChainResult(seed_url=seed_url)
        visited: Set[str] = set()
        restrict_path = urlsplit(seed_url).path

        if self.interceptor is not None:
            self.interceptor.set_policy(
                InterceptionPolicy(origin_of(seed_url), config.base_url)
            )

        url: Optional[str] = seed_url
        while url:
            if url in visited:
                LOGGER.info("Pagination loops back to %s; chain finished", url)
                break
            visited.add(url)
            result.visited.append(url)

            await navigate(
                self.page,
                url,
                timeout_ms=config.protocol_timeout_ms,
                wait_until=config.wait_until,
            )
            LOGGER.info("Visited %s (%d in chain)", url, len(visited))

            keywords = await read_page_keywords(self.page) if config.filter_keyword else []
            kept = is_page_kept(
                url,
                keywords,
                restrict_path=restrict_path,
                exclude_urls=config.exclude_urls,
                filter_keyword=config.filter_keyword,
                exclude_paths=config.exclude_paths,
                restrict_paths=config.restrict_paths,
            )
            if kept:
                fragment = await self._extract(url)
                if fragment is None:
                    result.skipped.append(url)
                else:
                    result.fragments.append(fragment)
            else:
                result.skipped.append(url)

            url = await find_next_url(self.page, config.pagination_selector)

        LOGGER.info(
            "Chain from %s done: %d page(s), %d kept",
            seed_url,
            len(result.visited),
            len(result.fragments),
        )
        return result

    async def _extract(self, url: str) -> Optional[PageFragment]:
        config = self.config
        if config.open_detail:
            opened = await open_details(self.page)
            if opened:
                LOGGER.debug("Opened %d details element(s) on %s", opened, url)
        try:
            content = await get_html_content(
                self.page,
                config.content_selector,
                config.exclude_selectors,
                extract_iframes=config.extract_iframes,
                allocator=self.allocator,
                max_level=config.toc_max_level,
            )
        except SelectorNotFoundError as exc:
            LOGGER.warning("%s; page contributes no content", exc)
            return None
        return PageFragment(
            source_url=url, html=content.html, headers=tuple(content.headers)
        )
