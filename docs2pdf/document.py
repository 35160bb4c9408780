"""Data structures passed between the crawl and assembly stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True, slots=True)
class HeaderRecord:
    """A heading collected for the table of contents."""

    level: int
    id: str
    text: str


@dataclass(frozen=True, slots=True)
class PageFragment:
    """Sanitized content of one admitted page."""

    source_url: str
    html: str
    headers: Tuple[HeaderRecord, ...] = ()


@dataclass(slots=True)
class ChainResult:
    """Outcome of walking one pagination chain."""

    seed_url: str
    fragments: List[PageFragment] = field(default_factory=list)
    visited: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class AssembledDocument:
    """The merged document handed to the renderer."""

    body_html: str
    css: str = ""
    base_url: str = ""
    title: str = ""


@dataclass(slots=True)
class GenerationResult:
    """Result of a complete PDF generation run."""

    output_path: str
    pages: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    headers: List[HeaderRecord] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)
