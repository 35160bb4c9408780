"""Build the merged document: cover page, table of contents, page content."""

from __future__ import annotations

import base64
import html
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import httpx

from .config import CrawlConfig
from .document import AssembledDocument, HeaderRecord, PageFragment

LOGGER = logging.getLogger(__name__)

TOC_INDENT_PX = 20


class ImageFetchError(RuntimeError):
    """Raised when the cover image cannot be retrieved."""

    def __init__(self, source: str, reason: str):
        self.source = source
        super().__init__(f"Cannot load cover image {source}: {reason}")


@dataclass(frozen=True, slots=True)
class CoverImage:
    base64: str
    content_type: str


async def fetch_cover_image(
    source: str,
    *,
    timeout: float = 30.0,
    client: Optional[httpx.AsyncClient] = None,
) -> CoverImage:
    """Load the cover image from an http(s) URL or a local file.

    Raises:
        ImageFetchError: If the image cannot be read or is empty.
    """
    if source.startswith(("http://", "https://")):
        data, content_type = await _download(source, timeout, client)
    else:
        path = Path(source).expanduser()
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ImageFetchError(source, str(exc)) from exc
        content_type = mimetypes.guess_type(path.name)[0] or ""

    if not data:
        raise ImageFetchError(source, "empty response")
    if not content_type:
        content_type = mimetypes.guess_type(source)[0] or "application/octet-stream"
    LOGGER.info("Loaded cover image %s (%s, %d bytes)", source, content_type, len(data))
    return CoverImage(base64.b64encode(data).decode("ascii"), content_type)


async def _download(source: str, timeout: float, client: Optional[httpx.AsyncClient]):
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own:
                response = await own.get(source)
        else:
            response = await client.get(source)
        response.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise ImageFetchError(source, str(exc) or type(exc).__name__) from exc
    content_type = response.headers.get("content-type", "").split(";")[0].strip()
    return response.content, content_type


def render_image_html(image_base64: str, content_type: str) -> str:
    return (
        "<img\n"
        '    class="cover-img"\n'
        f'    src="data:{content_type};base64,{image_base64}"\n'
        '    alt=""\n'
        '    style="max-width: 300px; height: auto;"\n'
        "    />"
    )


def render_cover_html(title: str, image_html: str = "", subtitle: str = "") -> str:
    """Full-page cover with title, optional subtitle and optional image."""
    lines = [
        "",
        "  <div",
        '    class="pdf-cover"',
        '    style="',
        "      display: flex;",
        "      flex-direction: column;",
        "      justify-content: center;",
        "      align-items: center;",
        "      height: 100vh;",
        "      page-break-after: always;",
        "      text-align: center;",
        '    "',
        "  >",
        f"    <h1>{html.escape(title)}</h1>",
    ]
    if subtitle:
        lines.append(f"    <h3>{html.escape(subtitle)}</h3>")
    if image_html:
        lines.append(f"    {image_html}")
    lines.append("  </div>")
    return "\n".join(lines)


def render_toc_html(headers: Sequence[HeaderRecord], title: str) -> str:
    """Table of contents linking to every collected heading.

    Entries are indented by TOC_INDENT_PX for each level below h1.
    """
    items = "\n".join(
        f'    <li class="toc-item toc-item-{h.level}" '
        f'style="margin-left:{(h.level - 1) * TOC_INDENT_PX}px">'
        f'<a href="#{html.escape(h.id, quote=True)}">{html.escape(h.text)}</a></li>'
        for h in headers
    )
    return (
        '\n  <div class="toc-page" style="page-break-after: always;">\n'
        f'    <h1 class="toc-header">{html.escape(title)}</h1>\n'
        '    <ol class="toc-list" style="list-style: none; padding-left: 0;">\n'
        f"{items}\n"
        "    </ol>\n"
        "  </div>\n"
    )


def collect_headers(fragments: Iterable[PageFragment]) -> List[HeaderRecord]:
    return [header for fragment in fragments for header in fragment.headers]


def assemble_document(
    fragments: Sequence[PageFragment],
    config: CrawlConfig,
    headers: Optional[Sequence[HeaderRecord]] = None,
    cover_image: Optional[CoverImage] = None,
) -> AssembledDocument:
    """Concatenate cover, TOC and page fragments in that order."""
    parts: List[str] = []

    if not config.disable_cover:
        image_html = (
            render_image_html(cover_image.base64, cover_image.content_type)
            if cover_image
            else ""
        )
        parts.append(render_cover_html(config.cover_title, image_html, config.cover_sub))

    if not config.disable_toc:
        if headers is None:
            headers = collect_headers(fragments)
        parts.append(render_toc_html(headers, config.toc_title))

    parts.extend(fragment.html for fragment in fragments)

    return AssembledDocument(
        body_html="\n".join(parts),
        css=config.css_style,
        base_url=config.initial_doc_urls[0] if config.initial_doc_urls else "",
        title=config.cover_title,
    )
