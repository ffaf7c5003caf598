"""
Markdown parsing: mistune AST → immutable MarkdownDocument.

parse() never raises. Input it cannot make sense of is kept as LiteralBlock
text and reported through ParseDegraded notices on the document.
"""
from __future__ import annotations

import hashlib
import logging
import re
from typing import Any

import mistune

from .document import (
    ADMONITION_KINDS,
    Admonition,
    Block,
    BlockQuote,
    Emphasis,
    FencedCode,
    Heading,
    Image,
    Inline,
    InlineCode,
    LineBreak,
    Link,
    ListBlock,
    ListItem,
    LiteralBlock,
    MarkdownDocument,
    Paragraph,
    ParseDegraded,
    Strikethrough,
    Strong,
    Text,
    ThematicBreak,
)

logger = logging.getLogger(__name__)

_FENCE_OPEN_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")
_ADMONITION_RE = re.compile(r"^\[!(\w+)\][ \t]*")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

_md: Any = None


def _markdown() -> Any:
    global _md
    if _md is None:
        _md = mistune.create_markdown(renderer=None, plugins=["strikethrough", "url"])
    return _md


def content_hash(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8", errors="replace")).hexdigest()


def _sanitize(text: str) -> str:
    """Normalize newlines/tabs and neutralize terminal control bytes."""
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\t", "   ")
    if _CONTROL_RE.search(text) is None:
        return text
    return _CONTROL_RE.sub(lambda m: f"\\x{ord(m.group()):02x}", text)


def find_unclosed_fence(lines: list[str]) -> int | None:
    """Index of the line opening a code fence that is never closed, if any."""
    open_at: int | None = None
    fence_char = ""
    fence_len = 0
    for i, ln in enumerate(lines):
        if open_at is None:
            m = _FENCE_OPEN_RE.match(ln)
            if m is None:
                continue
            fence, info = m.group(1), m.group(2)
            if fence[0] == "`" and "`" in info:
                continue
            open_at, fence_char, fence_len = i, fence[0], len(fence)
        else:
            stripped = ln.strip()
            if (
                len(ln) - len(ln.lstrip(" ")) <= 3
                and len(stripped) >= fence_len
                and stripped == fence_char * len(stripped)
            ):
                open_at = None
    return open_at


def parse(raw_text: str) -> MarkdownDocument:
    """Parse markdown source into a MarkdownDocument. Deterministic; never raises."""
    digest = content_hash(raw_text)
    text = _sanitize(raw_text)
    lines = text.split("\n")
    notices: list[ParseDegraded] = []

    head = text
    tail: str | None = None
    cut = find_unclosed_fence(lines)
    if cut is not None:
        head = "\n".join(lines[:cut])
        tail = "\n".join(lines[cut:]).rstrip("\n")
        notices.append(ParseDegraded(cut + 1, "unclosed code fence"))

    blocks: list[Block] = []
    if head.strip():
        try:
            blocks = _convert_blocks(_markdown()(head))
        except Exception as exc:
            logger.warning("markdown parser failed, rendering literally: %s", exc)
            blocks = [LiteralBlock(head.strip("\n"))]
            notices.insert(0, ParseDegraded(1, f"parser error: {exc}"))
    if tail:
        blocks.append(LiteralBlock(tail))

    return MarkdownDocument(tuple(blocks), digest, tuple(notices))


# ─────────────────────────────────────────────────────────────────────────────
# Block conversion
# ─────────────────────────────────────────────────────────────────────────────

def _convert_blocks(tokens: list[dict]) -> list[Block]:
    blocks: list[Block] = []
    for token in tokens:
        block = _convert_block(token)
        if block is not None:
            blocks.append(block)
    return blocks


def _convert_block(token: dict) -> Block | None:
    t = token.get("type", "")
    attrs = token.get("attrs") or {}

    if t in ("paragraph", "block_text"):
        children = _convert_inlines(token.get("children") or [])
        return Paragraph(children) if children else None

    if t == "heading":
        return Heading(int(attrs.get("level", 1)), _convert_inlines(token.get("children") or []))

    if t == "block_code":
        info = (attrs.get("info") or "").strip()
        language = info.split()[0] if info else None
        return FencedCode(language, token.get("raw", "").rstrip("\n"))

    if t == "block_quote":
        return _quote_or_admonition(_convert_blocks(token.get("children") or []))

    if t == "list":
        items = tuple(
            ListItem(tuple(_convert_blocks(item.get("children") or [])))
            for item in token.get("children") or []
            if item.get("type") == "list_item"
        )
        return ListBlock(bool(attrs.get("ordered", False)), int(attrs.get("start") or 1), items)

    if t == "thematic_break":
        return ThematicBreak()

    if t == "blank_line":
        return None

    # block_html and anything unrecognized is shown as its source
    raw = token.get("raw") or token.get("text") or ""
    raw = raw.strip("\n")
    return LiteralBlock(raw) if raw else None


def _quote_or_admonition(children: list[Block]) -> Block:
    """A quote whose first line is ``[!KIND]`` with a known kind becomes an Admonition."""
    if children and isinstance(children[0], Paragraph):
        inlines = children[0].children
        if inlines and isinstance(inlines[0], Text):
            m = _ADMONITION_RE.match(inlines[0].text)
            if m and m.group(1).lower() in ADMONITION_KINDS:
                rest = inlines[0].text[m.end():].lstrip()
                body = ((Text(rest),) if rest else ()) + inlines[1:]
                while body and isinstance(body[0], LineBreak):
                    body = body[1:]
                blocks = ([Paragraph(body)] if body else []) + children[1:]
                return Admonition(m.group(1).lower(), tuple(blocks))
    return BlockQuote(tuple(children))


# ─────────────────────────────────────────────────────────────────────────────
# Inline conversion
# ─────────────────────────────────────────────────────────────────────────────

def _append_text(out: list[Inline], text: str) -> None:
    if not text:
        return
    if out and isinstance(out[-1], Text):
        out[-1] = Text(out[-1].text + text)
    else:
        out.append(Text(text))


def _plain_text(tokens: list[dict]) -> str:
    parts: list[str] = []
    for token in tokens:
        t = token.get("type", "")
        if t == "softbreak":
            parts.append(" ")
        elif token.get("children"):
            parts.append(_plain_text(token["children"]))
        else:
            parts.append(token.get("raw", ""))
    return "".join(parts)


def _convert_inlines(tokens: list[dict]) -> tuple[Inline, ...]:
    out: list[Inline] = []
    for token in tokens:
        t = token.get("type", "")
        children = token.get("children") or []
        attrs = token.get("attrs") or {}

        if t == "text":
            _append_text(out, token.get("raw", ""))
        elif t == "softbreak":
            _append_text(out, " ")
        elif t == "linebreak":
            out.append(LineBreak())
        elif t == "strong":
            out.append(Strong(_convert_inlines(children)))
        elif t == "emphasis":
            out.append(Emphasis(_convert_inlines(children)))
        elif t == "strikethrough":
            out.append(Strikethrough(_convert_inlines(children)))
        elif t == "codespan":
            out.append(InlineCode(token.get("raw", "")))
        elif t == "link":
            url = attrs.get("url", "")
            out.append(Link(url, _plain_text(children) or url))
        elif t == "image":
            out.append(Image(attrs.get("url", ""), _plain_text(children)))
        else:
            # inline_html and unknown tokens keep their source text
            _append_text(out, token.get("raw", "") or _plain_text(children))
    return tuple(out)
