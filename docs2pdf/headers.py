"""Run-wide unique heading ids for the table of contents."""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Set

from bs4 import Tag
from slugify import slugify

from .document import HeaderRecord

LOGGER = logging.getLogger(__name__)

FALLBACK_SLUG = "section"


def heading_tags(max_level: int) -> List[str]:
    return [f"h{level}" for level in range(1, max_level + 1)]


class HeaderIdAllocator:
    """Hands out heading ids that are unique for the lifetime of one run.

    Create one allocator per run and pass it to every extraction; ids
    allocated on one page are never reissued on another.
    """

    def __init__(self) -> None:
        self._used: Set[str] = set()
        self._lock = threading.Lock()

    def __contains__(self, header_id: str) -> bool:
        return header_id in self._used

    def __len__(self) -> int:
        return len(self._used)

    def allocate(self, candidate: Optional[str], text: str = "") -> str:
        """Reserve and return a unique id based on candidate or text."""
        base = (candidate or "").strip() or slugify(text) or FALLBACK_SLUG
        with self._lock:
            header_id = base
            suffix = 0
            while header_id in self._used:
                suffix += 1
                header_id = f"{base}-{suffix}"
            self._used.add(header_id)
        if header_id != base:
            LOGGER.debug("Heading id %r taken, using %r", base, header_id)
        return header_id

    def rewrite_headings(self, root: Tag, max_level: int = 3) -> List[HeaderRecord]:
        """Assign unique ids to h1..h{max_level} below root (inclusive).

        Same-fragment links to a renamed heading are updated too.
        """
        names = heading_tags(max_level)
        headings = root.find_all(names)
        if root.name in names:
            headings.insert(0, root)

        records: List[HeaderRecord] = []
        renamed = {}
        for heading in headings:
            text = heading.get_text(" ", strip=True)
            old_id = heading.get("id")
            new_id = self.allocate(old_id, text)
            if old_id and old_id != new_id:
                renamed[old_id] = new_id
            heading["id"] = new_id
            records.append(HeaderRecord(level=int(heading.name[1]), id=new_id, text=text))

        if renamed:
            for anchor in root.find_all("a", href=True):
                href = anchor["href"]
                if href.startswith("#") and href[1:] in renamed:
                    anchor["href"] = "#" + renamed[href[1:]]
        return records

