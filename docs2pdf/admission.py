"""Decide whether a visited page's content goes into the document."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional
from urllib.parse import urlsplit

LOGGER = logging.getLogger(__name__)

_KEYWORDS_JS = """() => {
    const meta = document.querySelector("meta[name='keywords' i]");
    return meta ? meta.getAttribute("content") : null;
}"""


def parse_keywords(content: Optional[str]) -> List[str]:
    """Split a keywords meta value on commas, dropping blanks."""
    if not content:
        return []
    return [part.strip() for part in content.split(",") if part.strip()]


async def read_page_keywords(page) -> List[str]:
    """Return the keywords declared by the page's keywords meta tag."""
    return parse_keywords(await page.evaluate(_KEYWORDS_JS))


def match_keyword(keywords: Iterable[str], filter_keyword: str) -> bool:
    return filter_keyword in set(keywords)


def is_page_kept(
    url: str,
    keywords: Iterable[str] = (),
    *,
    restrict_path: str = "",
    exclude_urls: Iterable[str] = (),
    filter_keyword: str = "",
    exclude_paths: Iterable[str] = (),
    restrict_paths: bool = False,
) -> bool:
    """Return True when every admission check passes for url.

    Checks run in order and the first failing one decides:

    1. url is not listed in exclude_urls.
    2. If filter_keyword is set, the page keywords contain it.
    3. The url path contains none of exclude_paths.
    4. If restrict_paths is set, the url path starts with restrict_path.
    """
    if url in set(exclude_urls):
        LOGGER.info("Excluded %s: listed in exclude URLs", url)
        return False

    if filter_keyword and not match_keyword(keywords, filter_keyword):
        LOGGER.info("Excluded %s: keyword %r not found", url, filter_keyword)
        return False

    path = urlsplit(url).path
    for excluded in exclude_paths:
        if excluded and excluded in path:
            LOGGER.info("Excluded %s: path matches %r", url, excluded)
            return False

    if restrict_paths and not path.startswith(restrict_path):
        LOGGER.info("Excluded %s: outside restricted path %r", url, restrict_path)
        return False

    return True
