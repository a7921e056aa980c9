"""Block-structured rich-text content.

Long-form fields (descriptions, lore and note content) are stored as JSON text
in the editor's block format::

    {"time": 1700000000000, "blocks": [{"id": "a1", "type": "paragraph",
     "data": {"text": "Hello"}}], "version": "2.28.2"}

Values that are not block documents are treated as legacy plain text and
wrapped into a single paragraph so every reader sees the same shape.
"""

from __future__ import annotations

import html
import json
import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError

PREVIEW_LENGTH = 100
EMPTY_CONTENT_HTML = '<div class="rich-text-empty">No content available</div>'

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")


class ContentBlock(BaseModel):
    id: str | None = None
    type: str
    data: dict[str, Any] = Field(default_factory=dict)


class ContentDocument(BaseModel):
    time: int | None = None
    blocks: list[ContentBlock] = Field(default_factory=list)
    version: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.blocks


def _load_document(raw: str) -> ContentDocument | None:
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(decoded, dict) or not isinstance(decoded.get("blocks"), list):
        return None
    try:
        return ContentDocument.model_validate(decoded)
    except ValidationError:
        return None


def is_block_document(raw: str | None) -> bool:
    return bool(raw) and _load_document(raw) is not None


def parse_content(raw: str | None) -> ContentDocument:
    """Parse stored content, wrapping legacy plain text into a paragraph block."""
    if raw is None or not raw.strip():
        return ContentDocument()
    document = _load_document(raw)
    if document is not None:
        return document
    return ContentDocument(blocks=[ContentBlock(type="paragraph", data={"text": raw})])


def legacy_to_document(text: str | None) -> str | None:
    """Upgrade a plain-text value to serialized block JSON; block JSON passes through."""
    if text is None or is_block_document(text):
        return text
    return parse_content(text).model_dump_json(exclude_none=True)


def _strip_tags(value: Any) -> str:
    if value is None:
        return ""
    return html.unescape(_TAG_RE.sub("", str(value))).strip()


def _block_text(block: ContentBlock) -> list[str]:
    data = block.data
    if block.type in {"header", "paragraph"}:
        return [_strip_tags(data.get("text"))]
    if block.type == "list":
        return [_strip_tags(item) for item in data.get("items") or []]
    if block.type == "quote":
        return [_strip_tags(data.get("text")), _strip_tags(data.get("caption"))]
    if block.type == "code":
        return [str(data.get("code") or "")]
    if block.type == "table":
        return [_strip_tags(cell) for row in data.get("content") or [] for cell in row]
    if block.type == "image":
        return [_strip_tags(data.get("caption"))]
    return []


def plain_text(raw: str | None) -> str:
    parts: list[str] = []
    for block in parse_content(raw).blocks:
        parts.extend(part for part in _block_text(block) if part)
    return _WS_RE.sub(" ", " ".join(parts)).strip()


def truncate(text: str, limit: int = PREVIEW_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def preview(raw: str | None, limit: int = PREVIEW_LENGTH) -> str:
    return truncate(plain_text(raw), limit)


def image_block_url(data: dict[str, Any]) -> str | None:
    file_info = data.get("file")
    if isinstance(file_info, dict) and file_info.get("url"):
        return file_info["url"]
    return data.get("url") or data.get("src") or None


def image_urls(raw: str | None) -> list[str]:
    urls: list[str] = []
    for block in parse_content(raw).blocks:
        if block.type != "image":
            continue
        url = image_block_url(block.data)
        if url and url not in urls:
            urls.append(url)
    return urls


def removed_image_urls(old_raw: str | None, new_raw: str | None) -> list[str]:
    """Images referenced by the old content that the new content no longer uses."""
    kept = set(image_urls(new_raw))
    return [url for url in image_urls(old_raw) if url not in kept]


def _render_header(data: dict[str, Any]) -> str:
    try:
        level = int(data.get("level") or 2)
    except (TypeError, ValueError):
        level = 2
    level = min(max(level, 1), 6)
    return f"<h{level}>{html.escape(str(data.get('text') or ''))}</h{level}>"


def _render_list(data: dict[str, Any]) -> str:
    tag = "ol" if data.get("style") == "ordered" else "ul"
    items = "".join(f"<li>{item}</li>" for item in data.get("items") or [])
    return f"<{tag}>{items}</{tag}>"


def _render_quote(data: dict[str, Any]) -> str:
    body = f"<p>{data.get('text') or ''}</p>"
    caption = data.get("caption")
    if caption:
        body += f"<cite>{html.escape(str(caption))}</cite>"
    return f"<blockquote>{body}</blockquote>"


def _render_table(data: dict[str, Any]) -> str:
    rows = []
    for index, row in enumerate(data.get("content") or []):
        cell_tag = "th" if index == 0 else "td"
        cells = "".join(f"<{cell_tag}>{cell}</{cell_tag}>" for cell in row)
        rows.append(f"<tr>{cells}</tr>")
    return f"<table><tbody>{''.join(rows)}</tbody></table>"


def _render_image(data: dict[str, Any]) -> str:
    url = image_block_url(data)
    if not url:
        return '<div class="rich-text-error">Image data missing or invalid</div>'
    classes = ["rich-text-image"]
    if data.get("stretched"):
        classes.append("stretched")
    if data.get("withBorder"):
        classes.append("with-border")
    if data.get("withBackground"):
        classes.append("with-background")
    caption = str(data.get("caption") or "")
    alt = html.escape(caption or "Content image", quote=True)
    figure = f'<figure class="{" ".join(classes)}"><img src="{html.escape(url, quote=True)}" alt="{alt}">'
    if caption:
        figure += f"<figcaption>{html.escape(caption)}</figcaption>"
    return figure + "</figure>"


def render_block(block: ContentBlock) -> str:
    data = block.data
    if block.type == "header":
        return _render_header(data)
    if block.type == "paragraph":
        # Inline markup (bold, links) comes from the editor and is kept as-is.
        return f"<p>{data.get('text') or ''}</p>"
    if block.type == "list":
        return _render_list(data)
    if block.type == "quote":
        return _render_quote(data)
    if block.type == "delimiter":
        return '<hr class="rich-text-delimiter">'
    if block.type == "code":
        return f"<pre><code>{html.escape(str(data.get('code') or ''))}</code></pre>"
    if block.type == "table":
        return _render_table(data)
    if block.type == "image":
        return _render_image(data)
    return f'<div class="rich-text-unsupported">[Unsupported block type: {html.escape(block.type)}]</div>'


def render_html(raw: str | None) -> str:
    document = parse_content(raw)
    if document.is_empty:
        return EMPTY_CONTENT_HTML
    body = "".join(render_block(block) for block in document.blocks)
    return f'<div class="rich-text">{body}</div>'
