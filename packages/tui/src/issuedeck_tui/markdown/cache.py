"""
MarkdownCache: parse once per distinct source, render once per width.

Documents are keyed by the SHA-1 of their source text and rendered lines by
(hash, width). Entries are immutable, so widgets and the scheduler share
them by reference.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass

from ..style import Line
from .document import MarkdownDocument
from .highlight import highlight
from .parser import content_hash, parse
from .renderer import DEFAULT_THEME, Highlighter, MarkdownTheme, render

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    parses: int = 0
    renders: int = 0
    hits: int = 0


class MarkdownCache:
    """Bounded LRU of parsed documents and their rendered lines."""

    def __init__(
        self,
        max_documents: int = 256,
        max_renders: int = 512,
        theme: MarkdownTheme = DEFAULT_THEME,
        highlighter: Highlighter | None = highlight,
    ) -> None:
        self._documents: OrderedDict[str, MarkdownDocument] = OrderedDict()
        self._lines: OrderedDict[tuple[str, int], tuple[Line, ...]] = OrderedDict()
        self._max_documents = max_documents
        self._max_renders = max_renders
        self.theme = theme
        self.highlighter = highlighter
        self.stats = CacheStats()

    def document(self, text: str) -> MarkdownDocument:
        key = content_hash(text)
        doc = self._documents.get(key)
        if doc is not None:
            self._documents.move_to_end(key)
            return doc
        doc = parse(text)
        self.stats.parses += 1
        if doc.degraded:
            logger.debug("markdown %s degraded: %s", key[:8], doc.notices)
        self._documents[key] = doc
        if len(self._documents) > self._max_documents:
            self._documents.popitem(last=False)
        return doc

    def lines(self, text: str, width: int) -> tuple[Line, ...]:
        """Rendered lines for ``text`` at ``width``."""
        doc = self.document(text)
        key = (doc.source_hash, width)
        cached = self._lines.get(key)
        if cached is not None:
            self.stats.hits += 1
            self._lines.move_to_end(key)
            return cached
        rendered = tuple(render(doc, width, self.theme, self.highlighter))
        self.stats.renders += 1
        self._lines[key] = rendered
        if len(self._lines) > self._max_renders:
            self._lines.popitem(last=False)
        return rendered

    def clear(self) -> None:
        self._documents.clear()
        self._lines.clear()
