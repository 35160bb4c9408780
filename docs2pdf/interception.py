"""Network request interception: PDF blocking and origin remapping.

The policy is a pure function of the request URL so it can be tested
without a browser. ``RequestInterceptor`` adapts it to Playwright's
``page.route`` callback.

Example:

    policy = InterceptionPolicy(
        crawl_origin="http://localhost:3000",
        base_url="https://docs.example.com",
    )
    policy.decide("https://docs.example.com/img/logo.png")
    # RequestDecision(action='rewrite', url='http://localhost:3000/img/logo.png')
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional
from urllib.parse import urlsplit, urlunsplit

from playwright.async_api import Error as PlaywrightError

LOGGER = logging.getLogger(__name__)

Action = Literal["continue", "abort", "rewrite"]


_DEFAULT_PORTS = {"http": 80, "https": 443}


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` of url, or "" when it has none.

    Default ports are dropped, so ``https://a.com:443`` and ``https://a.com``
    share an origin.
    """
    if not url:
        return ""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return ""
    scheme = parts.scheme.lower()
    host = parts.hostname
    if not scheme or not host:
        return ""
    if ":" in host:
        host = f"[{host}]"
    if port is None or port == _DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def map_url_to_origin(url: str, target_origin: str) -> str:
    """Move url onto target_origin, keeping path, query and fragment."""
    source = urlsplit(url)
    target = urlsplit(target_origin)
    return urlunsplit(
        (target.scheme, target.netloc, source.path, source.query, source.fragment)
    )


def is_pdf_url(url: str) -> bool:
    """True when url points at a PDF document."""
    return urlsplit(url).path.lower().endswith(".pdf")


@dataclass(frozen=True)
class RequestDecision:
    """What to do with one outgoing request."""

    action: Action
    url: Optional[str] = None


CONTINUE = RequestDecision("continue")
ABORT = RequestDecision("abort")


@dataclass(frozen=True)
class InterceptionPolicy:
    """Per-chain request policy.

    Remapping is active only when ``base_url`` is set and its origin differs
    from ``crawl_origin``; otherwise only PDF blocking applies.
    """

    crawl_origin: str
    base_url: str = ""

    @property
    def base_origin(self) -> str:
        return origin_of(self.base_url)

    @property
    def rewrite_enabled(self) -> bool:
        base = self.base_origin
        return bool(base) and base != origin_of(self.crawl_origin)

    def decide(self, url: str) -> RequestDecision:
        if is_pdf_url(url):
            return ABORT
        if self.rewrite_enabled and origin_of(url) == self.base_origin:
            return RequestDecision(
                "rewrite", map_url_to_origin(url, origin_of(self.crawl_origin))
            )
        return CONTINUE


class RequestInterceptor:
    """Playwright route handler driven by the current chain's policy.

    Register once with ``await page.route("**/*", interceptor.handle)`` and
    swap policies with ``set_policy`` when a new chain starts.
    """

    def __init__(self, policy: Optional[InterceptionPolicy] = None) -> None:
        self.policy = policy
        self.rewritten = 0
        self.aborted = 0

    def set_policy(self, policy: InterceptionPolicy) -> None:
        self.policy = policy
        if policy.rewrite_enabled:
            LOGGER.info(
                "Rewriting requests from %s to %s",
                policy.base_origin,
                origin_of(policy.crawl_origin),
            )

    async def handle(self, route) -> None:
        request = route.request
        if self.policy is None:
            await route.continue_()
            return

        decision = self.policy.decide(request.url)
        if decision.action == "abort":
            LOGGER.debug("Blocked request to %s", request.url)
            self.aborted += 1
            await route.abort()
        elif decision.action == "rewrite":
            LOGGER.debug("Rewrote %s -> %s", request.url, decision.url)
            self.rewritten += 1
            # continue_(url=...) refuses protocol changes, so fetch it ourselves
            try:
                response = await route.fetch(url=decision.url)
            except PlaywrightError as exc:
                LOGGER.warning("Rewritten request to %s failed: %s", decision.url, exc)
                await route.abort()
                return
            await route.fulfill(response=response)
        else:
            await route.continue_()
