"""Extract and sanitize the content element of a rendered page.

The live page is only read: the content element's HTML is copied into a
BeautifulSoup tree and every change (exclusions, frame inlining, heading
ids) is applied to that copy.
"""

from __future__ import annotations

import asyncio
import html
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from playwright.async_api import Error as PlaywrightError
from soupsieve import SelectorSyntaxError

from .document import HeaderRecord
from .headers import HeaderIdAllocator

LOGGER = logging.getLogger(__name__)

MAX_FRAME_DEPTH = 5
DETAILS_WAIT_SECONDS = 0.8
SUMMARY_CLICK_TIMEOUT_MS = 2000
MAX_DETAILS_ROUNDS = 10
PAGE_BREAK_STYLE = "break-after: page;"

_OUTER_HTML_JS = "el => el.outerHTML"
_BODY_HTML_JS = "() => document.body ? document.body.innerHTML : null"
# querySelectorAll stays out of shadow roots, unlike Playwright selectors
_ELEMENT_IFRAMES_JS = "el => [...el.querySelectorAll('iframe')]"
_DOCUMENT_IFRAMES_JS = "() => [...document.querySelectorAll('iframe')]"
_CLOSED_SUMMARY_SELECTOR = "details:not([open]) > summary"
_URL_ATTRIBUTES = ("href", "src", "poster")
_KEEP_AS_IS = ("#", "data:", "javascript:", "mailto:", "tel:", "about:")


class SelectorNotFoundError(LookupError):
    """Raised when the content selector matches nothing on a page."""

    def __init__(self, selector: str, url: str = ""):
        self.selector = selector
        self.url = url
        where = f" on {url}" if url else ""
        super().__init__(f"No element matches {selector!r}{where}")


class FrameAccessError(RuntimeError):
    """Raised when an embedded frame's document cannot be read."""


@dataclass(slots=True)
class ExtractedContent:
    html: str
    headers: List[HeaderRecord] = field(default_factory=list)


async def get_html_content(
    page,
    content_selector: str,
    exclude_selectors: Sequence[str] = (),
    extract_iframes: bool = False,
    allocator: Optional[HeaderIdAllocator] = None,
    max_level: int = 3,
) -> ExtractedContent:
    """Return the sanitized HTML of the first element matching content_selector.

    Args:
        page: Playwright page (or frame) showing the document.
        content_selector: CSS selector of the content root.
        exclude_selectors: Elements to drop from the copy.
        extract_iframes: Inline the documents of embedded frames.
        allocator: Rewrites heading ids when given; headings are left
            untouched and no records are returned otherwise.
        max_level: Deepest heading level collected for the TOC.

    Raises:
        SelectorNotFoundError: If nothing matches content_selector.
    """
    handle = await page.query_selector(content_selector)
    if handle is None:
        raise SelectorNotFoundError(content_selector, getattr(page, "url", ""))

    outer_html = await handle.evaluate(_OUTER_HTML_JS)
    soup = BeautifulSoup(outer_html, "html.parser")
    root = soup.find(True)
    if root is None:
        raise SelectorNotFoundError(content_selector, getattr(page, "url", ""))

    frames: List[Tuple[Tag, Any]] = []
    if extract_iframes:
        frames = _pair_frames(
            root, await _collect_elements(handle, _ELEMENT_IFRAMES_JS)
        )

    remove_excluded(root, exclude_selectors)
    _mark_page_break(root)
    absolutize_urls(root, getattr(page, "url", ""))

    for tag, frame_handle in frames:
        if tag.decomposed:
            continue
        await _inline_frame(tag, frame_handle, depth=1)

    headers: List[HeaderRecord] = []
    if allocator is not None:
        headers = allocator.rewrite_headings(root, max_level)

    return ExtractedContent(html=str(root), headers=headers)


def remove_excluded(root: Tag, exclude_selectors: Sequence[str]) -> int:
    """Drop every descendant of root matching one of the selectors."""
    removed = 0
    for selector in exclude_selectors:
        if not selector or not selector.strip():
            continue
        try:
            matches = root.select(selector)
        except SelectorSyntaxError as exc:
            LOGGER.warning("Skipping unsupported exclude selector %r: %s", selector, exc)
            continue
        for element in matches:
            if not element.decomposed:
                element.decompose()
                removed += 1
    return removed


def absolutize_urls(root: Tag, base_url: str) -> None:
    """Resolve relative href, src and poster attributes against base_url."""
    if not isinstance(base_url, str) or not base_url.startswith(("http://", "https://")):
        return
    for element in [root, *root.find_all(True)]:
        for attr in _URL_ATTRIBUTES:
            value = element.get(attr)
            if not isinstance(value, str):
                continue
            value = value.strip()
            if value and not value.startswith(_KEEP_AS_IS):
                element[attr] = urljoin(base_url, value)


def _mark_page_break(root: Tag) -> None:
    style = (root.get("style") or "").strip()
    if style and not style.endswith(";"):
        style += ";"
    root["style"] = f"{style} {PAGE_BREAK_STYLE}".strip()


def _pair_frames(container: Tag, handles: Sequence[Any]) -> List[Tuple[Tag, Any]]:
    """Match <iframe> tags in a parsed copy to their live element handles.

    Both lists are in document order; extra entries on either side are
    ignored. Frames inside <noscript> are not part of the live DOM.
    """
    tags = [
        tag for tag in container.find_all("iframe") if tag.find_parent("noscript") is None
    ]
    if len(tags) != len(handles):
        LOGGER.debug(
            "Frame count mismatch: %d parsed, %d live", len(tags), len(handles)
        )
    return list(zip(tags, handles))


async def _collect_elements(target, script: str) -> List[Any]:
    """Evaluate script to an array of elements and return their handles."""
    array = await target.evaluate_handle(script)
    try:
        properties = await array.get_properties()
    finally:
        await array.dispose()
    elements = []
    for key in sorted((k for k in properties if k.isdigit()), key=int):
        element = properties[key].as_element()
        if element is not None:
            elements.append(element)
    return elements


async def _read_frame(frame_handle) -> Tuple[str, str, List[Any]]:
    try:
        frame = await frame_handle.content_frame()
    except PlaywrightError as exc:
        raise FrameAccessError(f"Cannot resolve frame: {exc}") from exc
    if frame is None:
        raise FrameAccessError("Frame has no document")
    try:
        body_html = await frame.evaluate(_BODY_HTML_JS)
        children = await _collect_elements(frame, _DOCUMENT_IFRAMES_JS)
    except PlaywrightError as exc:
        raise FrameAccessError(f"Cannot read frame {frame.url!r}: {exc}") from exc
    if body_html is None:
        raise FrameAccessError(f"Frame {frame.url!r} has no body")
    return body_html, frame.url, children


async def _inline_frame(tag: Tag, frame_handle, depth: int) -> None:
    """Replace an <iframe> tag with the content of its document."""
    try:
        body_html, frame_url, children = await _read_frame(frame_handle)
    except FrameAccessError as exc:
        LOGGER.warning("Leaving embedded frame unexpanded: %s", exc)
        return

    fragment = BeautifulSoup(body_html, "html.parser")
    absolutize_urls(fragment, frame_url)
    nested = _pair_frames(fragment, children)
    if nested and depth >= MAX_FRAME_DEPTH:
        LOGGER.warning(
            "Frame nesting deeper than %d; leaving %d frame(s) unexpanded",
            MAX_FRAME_DEPTH,
            len(nested),
        )
    else:
        for child_tag, child_handle in nested:
            await _inline_frame(child_tag, child_handle, depth + 1)

    title = tag.get("title")
    label = f" {html.escape(title)}" if title else ""
    wrapper = BeautifulSoup(
        '<div class="iframe-content">'
        f'<p class="iframe-label"><strong>Embedded content:</strong>{label}</p>'
        f"{fragment}</div>",
        "html.parser",
    ).div
    tag.replace_with(wrapper)


async def _click_summary(summary) -> None:
    try:
        await summary.click(timeout=SUMMARY_CLICK_TIMEOUT_MS)
    except PlaywrightError:
        # Hidden summaries (inside closed parents) cannot be clicked
        await summary.evaluate("el => { el.parentElement.open = true; }")


async def open_details(
    page,
    click: Optional[Callable[[Any], Awaitable[None]]] = None,
    wait: Optional[Callable[[float], Awaitable[None]]] = None,
) -> int:
    """Expand every collapsed <details> element, nested ones included.

    Returns the number of summaries clicked.
    """
    click = click or _click_summary
    wait = wait or asyncio.sleep
    opened = 0
    for _ in range(MAX_DETAILS_ROUNDS):
        summaries = await page.query_selector_all(_CLOSED_SUMMARY_SELECTOR)
        if not summaries:
            break
        for summary in summaries:
            await click(summary)
            await wait(DETAILS_WAIT_SECONDS)
            opened += 1
    return opened
