import json

import pytest

from app.services import rich_text


def _doc(*blocks):
    return json.dumps({"time": 1700000000000, "blocks": list(blocks), "version": "2.28.2"})


def _image(url_key="file", url="/media/a.png", **data):
    payload = {"file": {"url": url}} if url_key == "file" else {url_key: url}
    return {"type": "image", "data": {**payload, **data}}


class TestParsing:
    def test_legacy_text_becomes_a_paragraph(self):
        document = rich_text.parse_content("Plain old notes")
        assert [(b.type, b.data) for b in document.blocks] == [("paragraph", {"text": "Plain old notes"})]

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_blank_content_is_empty(self, raw):
        assert rich_text.parse_content(raw).is_empty

    def test_json_without_blocks_is_treated_as_text(self):
        assert not rich_text.is_block_document('{"title": "x"}')
        assert rich_text.parse_content('{"title": "x"}').blocks[0].type == "paragraph"

    def test_legacy_to_document_round_trip(self):
        upgraded = rich_text.legacy_to_document("hello")
        assert rich_text.is_block_document(upgraded)
        assert rich_text.plain_text(upgraded) == "hello"
        assert rich_text.legacy_to_document(upgraded) == upgraded
        assert rich_text.legacy_to_document(None) is None


class TestExtraction:
    def test_plain_text_strips_markup(self):
        raw = _doc(
            {"type": "header", "data": {"text": "Origins", "level": 1}},
            {"type": "paragraph", "data": {"text": "The <b>storm</b> &amp; the sea"}},
            {"type": "list", "data": {"style": "unordered", "items": ["one", "<i>two</i>"]}},
            {"type": "delimiter", "data": {}},
        )
        assert rich_text.plain_text(raw) == "Origins The storm & the sea one two"

    def test_preview_truncates_at_one_hundred_characters(self):
        raw = _doc({"type": "paragraph", "data": {"text": "x" * 150}})
        assert rich_text.preview(raw) == "x" * 100 + "..."
        assert rich_text.preview(_doc({"type": "paragraph", "data": {"text": "short"}})) == "short"

    def test_image_urls_from_every_source_key(self):
        raw = _doc(_image("file", "/media/a.png"), _image("url", "/media/b.png"), _image("src", "/media/c.png"))
        assert rich_text.image_urls(raw) == ["/media/a.png", "/media/b.png", "/media/c.png"]

    def test_removed_image_urls(self):
        old = _doc(_image(url="/media/a.png"), _image(url="/media/b.png"))
        new = _doc(_image(url="/media/b.png"))
        assert rich_text.removed_image_urls(old, new) == ["/media/a.png"]
        assert rich_text.removed_image_urls(old, None) == ["/media/a.png", "/media/b.png"]


class TestRendering:
    def test_empty_document(self):
        assert rich_text.render_html(None) == rich_text.EMPTY_CONTENT_HTML
        assert "No content available" in rich_text.EMPTY_CONTENT_HTML

    def test_renders_known_blocks(self):
        raw = _doc(
            {"type": "header", "data": {"text": "Title", "level": 9}},
            {"type": "list", "data": {"style": "ordered", "items": ["a", "b"]}},
            {"type": "quote", "data": {"text": "Wisdom", "caption": "Theron"}},
            {"type": "code", "data": {"code": "<spell>"}},
            {"type": "table", "data": {"content": [["Name", "Age"], ["Aria", "19"]]}},
        )
        html = rich_text.render_html(raw)
        assert "<h6>Title</h6>" in html
        assert "<ol><li>a</li><li>b</li></ol>" in html
        assert "<cite>Theron</cite>" in html
        assert "&lt;spell&gt;" in html
        assert "<th>Name</th>" in html and "<td>Aria</td>" in html

    def test_image_flags_and_caption(self):
        html = rich_text.render_html(_doc(_image(url="/media/a.png", caption="Map", stretched=True, withBorder=True)))
        assert 'class="rich-text-image stretched with-border"' in html
        assert 'src="/media/a.png"' in html
        assert "<figcaption>Map</figcaption>" in html

    def test_unknown_block_placeholder(self):
        html = rich_text.render_html(_doc({"type": "embed", "data": {}}))
        assert "[Unsupported block type: embed]" in html
