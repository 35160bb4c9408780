"""Tests for docs2pdf.admission."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from docs2pdf.admission import (
    is_page_kept,
    match_keyword,
    parse_keywords,
    read_page_keywords,
)


def test_parse_keywords():
    assert parse_keywords("docs, guide ,, api") == ["docs", "guide", "api"]
    assert parse_keywords(None) == []
    assert parse_keywords("") == []


def test_match_keyword_is_exact():
    assert match_keyword(["docs", "guide"], "guide")
    assert not match_keyword(["guides"], "guide")


@pytest.mark.asyncio
async def test_read_page_keywords():
    page = MagicMock()
    page.evaluate = AsyncMock(return_value="alpha, beta")
    assert await read_page_keywords(page) == ["alpha", "beta"]


class TestIsPageKept:
    def test_kept_by_default(self):
        assert is_page_kept("https://docs.example.com/guide/a")

    def test_excluded_url(self):
        assert not is_page_kept(
            "https://docs.example.com/guide/a",
            exclude_urls=["https://docs.example.com/guide/a"],
        )

    def test_excluded_url_is_exact_match(self):
        assert is_page_kept(
            "https://docs.example.com/guide/a/",
            exclude_urls=["https://docs.example.com/guide/a"],
        )

    def test_keyword_filter(self):
        url = "https://docs.example.com/guide/a"
        assert is_page_kept(url, ["intro", "guide"], filter_keyword="guide")
        assert not is_page_kept(url, ["intro"], filter_keyword="guide")
        assert not is_page_kept(url, [], filter_keyword="guide")

    def test_excluded_path_substring(self):
        assert not is_page_kept(
            "https://docs.example.com/blog/2024/post",
            exclude_paths=["/blog/"],
        )
        assert is_page_kept(
            "https://docs.example.com/guide/post",
            exclude_paths=["/blog/", ""],
        )

    def test_restrict_paths(self):
        assert is_page_kept(
            "https://docs.example.com/guide/b",
            restrict_path="/guide/",
            restrict_paths=True,
        )
        assert not is_page_kept(
            "https://docs.example.com/api/b",
            restrict_path="/guide/",
            restrict_paths=True,
        )

    def test_restrict_path_ignored_when_disabled(self):
        assert is_page_kept(
            "https://docs.example.com/api/b",
            restrict_path="/guide/",
            restrict_paths=False,
        )

    def test_exclude_url_checked_first(self, caplog: pytest.LogCaptureFixture):
        url = "https://docs.example.com/blog/a"
        with caplog.at_level("INFO", logger="docs2pdf.admission"):
            kept = is_page_kept(
                url,
                [],
                exclude_urls=[url],
                filter_keyword="guide",
                exclude_paths=["/blog/"],
            )
        assert not kept
        assert "listed in exclude URLs" in caplog.text
        assert "keyword" not in caplog.text
