"""Tests for docs2pdf.extractor."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError

from docs2pdf.extractor import (
    DETAILS_WAIT_SECONDS,
    SUMMARY_CLICK_TIMEOUT_MS,
    SelectorNotFoundError,
    absolutize_urls,
    get_html_content,
    open_details,
    remove_excluded,
)
from docs2pdf.headers import HeaderIdAllocator

from fakes import make_frame_handle, make_page


def _soup_root(html: str):
    return BeautifulSoup(html, "html.parser").find(True)


class TestGetHtmlContent:
    @pytest.mark.asyncio
    async def test_adds_page_break(self):
        page = make_page("<article><p>Hello</p></article>")

        content = await get_html_content(page, "article")

        root = _soup_root(content.html)
        assert root.name == "article"
        assert "break-after: page;" in root["style"]
        assert root.p.get_text() == "Hello"

    @pytest.mark.asyncio
    async def test_keeps_existing_style(self):
        page = make_page('<article style="color: red"><p>x</p></article>')
        content = await get_html_content(page, "article")
        assert _soup_root(content.html)["style"] == "color: red; break-after: page;"

    @pytest.mark.asyncio
    async def test_missing_selector_raises(self):
        page = make_page(None, url="https://docs.example.com/empty")
        with pytest.raises(SelectorNotFoundError) as excinfo:
            await get_html_content(page, "main.content")
        assert excinfo.value.selector == "main.content"
        assert excinfo.value.url == "https://docs.example.com/empty"

    @pytest.mark.asyncio
    async def test_removes_excluded_elements(self):
        page = make_page(
            "<article><nav class='toc'>x</nav><p>Body</p>"
            "<div class='edit'>edit</div></article>"
        )

        content = await get_html_content(page, "article", [".toc", ".edit"])

        assert "toc" not in content.html
        assert "edit" not in content.html
        assert "<p>Body</p>" in content.html

    @pytest.mark.asyncio
    async def test_absolutizes_relative_urls(self):
        page = make_page(
            '<article><a href="../api/">API</a><img src="/img/a.png">'
            '<a href="#local">here</a></article>',
            url="https://docs.example.com/guide/intro",
        )

        content = await get_html_content(page, "article")

        root = _soup_root(content.html)
        links = [a["href"] for a in root.find_all("a")]
        assert links == ["https://docs.example.com/api/", "#local"]
        assert root.img["src"] == "https://docs.example.com/img/a.png"

    @pytest.mark.asyncio
    async def test_headings_rewritten_with_allocator(self):
        allocator = HeaderIdAllocator()
        allocator.allocate("intro")
        page = make_page("<article><h1 id='intro'>Intro</h1><h2>Next</h2></article>")

        content = await get_html_content(page, "article", allocator=allocator)

        assert [h.id for h in content.headers] == ["intro-1", "next"]
        assert 'id="intro-1"' in content.html

    @pytest.mark.asyncio
    async def test_headings_untouched_without_allocator(self):
        page = make_page("<article><h1>Intro</h1></article>")
        content = await get_html_content(page, "article")
        assert content.headers == []
        assert "id=" not in content.html


class TestIframes:
    @pytest.mark.asyncio
    async def test_iframes_kept_when_disabled(self):
        frame = make_frame_handle("<p>Inside</p>")
        page = make_page(
            '<article><iframe srcdoc="&lt;p&gt;Inside&lt;/p&gt;"></iframe></article>',
            frames=[frame],
        )

        content = await get_html_content(page, "article", extract_iframes=False)

        assert "<iframe" in content.html
        frame.content_frame.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_srcdoc_frame_is_inlined(self):
        frame = make_frame_handle("<p>Inside frame</p>")
        page = make_page(
            '<article><p>Before</p><iframe title="Live demo"></iframe></article>',
            frames=[frame],
        )

        content = await get_html_content(page, "article", extract_iframes=True)

        root = _soup_root(content.html)
        wrapper = root.find("div", class_="iframe-content")
        assert wrapper is not None
        assert "Embedded content:" in wrapper.get_text()
        assert "Live demo" in wrapper.get_text()
        assert wrapper.find("p", string="Inside frame") is not None
        assert root.find("iframe") is None

    @pytest.mark.asyncio
    async def test_untitled_frame_has_label_only(self):
        page = make_page(
            "<article><iframe></iframe></article>",
            frames=[make_frame_handle("<span>x</span>")],
        )
        content = await get_html_content(page, "article", extract_iframes=True)
        label = _soup_root(content.html).find("p", class_="iframe-label")
        assert label.get_text(strip=True) == "Embedded content:"

    @pytest.mark.asyncio
    async def test_nested_frames_are_inlined(self):
        inner = make_frame_handle("<p>Deep</p>")
        outer = make_frame_handle(
            '<p>Outer</p><iframe title="inner"></iframe>', children=[inner]
        )
        page = make_page(
            '<article><iframe title="outer"></iframe></article>', frames=[outer]
        )

        content = await get_html_content(page, "article", extract_iframes=True)

        root = _soup_root(content.html)
        assert root.find("iframe") is None
        assert len(root.find_all("div", class_="iframe-content")) == 2
        assert "Deep" in root.get_text()

    @pytest.mark.asyncio
    async def test_frame_content_urls_use_frame_url(self):
        frame = make_frame_handle(
            '<img src="chart.png">', url="https://embed.example.net/widgets/"
        )
        page = make_page("<article><iframe></iframe></article>", frames=[frame])

        content = await get_html_content(page, "article", extract_iframes=True)

        img = _soup_root(content.html).find("img")
        assert img["src"] == "https://embed.example.net/widgets/chart.png"

    @pytest.mark.asyncio
    async def test_inaccessible_frame_left_in_place(self):
        page = make_page(
            '<article><iframe src="https://other.example.org/x"></iframe></article>',
            frames=[make_frame_handle(None, detached=True)],
        )

        content = await get_html_content(page, "article", extract_iframes=True)

        assert "<iframe" in content.html
        assert "iframe-content" not in content.html

    @pytest.mark.asyncio
    async def test_frame_read_error_left_in_place(self):
        frame = make_frame_handle("<p>x</p>")
        (await frame.content_frame()).evaluate = AsyncMock(
            side_effect=PlaywrightError("Frame was detached")
        )
        page = make_page("<article><iframe></iframe></article>", frames=[frame])

        content = await get_html_content(page, "article", extract_iframes=True)

        assert "<iframe" in content.html

    @pytest.mark.asyncio
    async def test_excluded_frame_is_not_read(self):
        skipped = make_frame_handle("<p>Advert</p>")
        kept = make_frame_handle("<p>Example</p>")
        page = make_page(
            "<article><div class='ad'><iframe></iframe></div>"
            "<iframe title='kept'></iframe></article>",
            frames=[skipped, kept],
        )

        content = await get_html_content(
            page, "article", [".ad"], extract_iframes=True
        )

        assert "Advert" not in content.html
        assert "Example" in content.html
        skipped.content_frame.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_noscript_frames_do_not_shift_pairing(self):
        live = make_frame_handle("<p>Real frame</p>")
        page = make_page(
            '<article><noscript><iframe src="/tracking"></iframe></noscript>'
            '<iframe title="real"></iframe></article>',
            frames=[live],
        )

        content = await get_html_content(page, "article", extract_iframes=True)

        root = _soup_root(content.html)
        assert root.noscript.find("iframe") is not None
        wrapper = root.find("div", class_="iframe-content")
        assert "real" in wrapper.get_text()
        assert "Real frame" in wrapper.get_text()

    @pytest.mark.asyncio
    async def test_live_frames_collected_without_piercing_shadow_roots(self):
        page = make_page(
            "<article><iframe></iframe></article>",
            frames=[make_frame_handle("<p>x</p>")],
        )

        await get_html_content(page, "article", extract_iframes=True)

        handle = await page.query_selector("article")
        script = handle.evaluate_handle.await_args.args[0]
        assert "querySelectorAll('iframe')" in script
        handle.query_selector_all.assert_not_awaited()
        handle.evaluate_handle.return_value.dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_index_properties_ignored(self):
        frame = make_frame_handle("<p>Only frame</p>")
        page = make_page("<article><iframe></iframe></article>", frames=[frame])
        handle = await page.query_selector("article")
        array = handle.evaluate_handle.return_value
        properties = await array.get_properties()
        array.get_properties = AsyncMock(
            return_value={**properties, "length": MagicMock()}
        )

        content = await get_html_content(page, "article", extract_iframes=True)

        assert "Only frame" in content.html


class TestHelpers:
    def test_remove_excluded_skips_invalid_selector(self):
        root = _soup_root("<article><p class='a'>a</p><p>b</p></article>")
        removed = remove_excluded(root, ["p[", ".a", ""])
        assert removed == 1
        assert root.get_text() == "b"

    def test_absolutize_ignores_non_http_base(self):
        root = _soup_root('<div><img src="a.png"></div>')
        absolutize_urls(root, "about:srcdoc")
        assert root.img["src"] == "a.png"

    def test_absolutize_keeps_special_schemes(self):
        root = _soup_root(
            '<div><a href="mailto:a@example.com">m</a>'
            '<img src="data:image/png;base64,AAAA"></div>'
        )
        absolutize_urls(root, "https://docs.example.com/")
        assert root.a["href"] == "mailto:a@example.com"
        assert root.img["src"].startswith("data:")


class TestOpenDetails:
    @pytest.mark.asyncio
    async def test_clicks_each_summary_and_waits(self):
        first, second = MagicMock(), MagicMock()
        page = MagicMock()
        page.query_selector_all = AsyncMock(side_effect=[[first, second], []])
        click = AsyncMock()
        wait = AsyncMock()

        opened = await open_details(page, click=click, wait=wait)

        assert opened == 2
        assert [c.args[0] for c in click.await_args_list] == [first, second]
        assert wait.await_count == 2
        wait.assert_awaited_with(DETAILS_WAIT_SECONDS)

    @pytest.mark.asyncio
    async def test_nested_details_opened_in_later_rounds(self):
        outer, inner = MagicMock(), MagicMock()
        page = MagicMock()
        page.query_selector_all = AsyncMock(side_effect=[[outer], [inner], []])

        opened = await open_details(page, click=AsyncMock(), wait=AsyncMock())

        assert opened == 2

    @pytest.mark.asyncio
    async def test_nothing_to_open(self):
        page = MagicMock()
        page.query_selector_all = AsyncMock(return_value=[])
        wait = AsyncMock()

        assert await open_details(page, click=AsyncMock(), wait=wait) == 0
        wait.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_default_click_has_bounded_timeout(self):
        summary = MagicMock()
        summary.click = AsyncMock()
        summary.evaluate = AsyncMock()
        page = MagicMock()
        page.query_selector_all = AsyncMock(side_effect=[[summary], []])

        await open_details(page, wait=AsyncMock())

        summary.click.assert_awaited_once_with(timeout=SUMMARY_CLICK_TIMEOUT_MS)
        assert SUMMARY_CLICK_TIMEOUT_MS < 30000
        summary.evaluate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unclickable_summary_opened_directly(self):
        summary = MagicMock()
        summary.click = AsyncMock(side_effect=PlaywrightError("Timeout 2000ms exceeded"))
        summary.evaluate = AsyncMock()
        page = MagicMock()
        page.query_selector_all = AsyncMock(side_effect=[[summary], []])

        opened = await open_details(page, wait=AsyncMock())

        assert opened == 1
        assert "open = true" in summary.evaluate.await_args.args[0]
