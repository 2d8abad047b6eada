"""Tests for Markdown to Anki HTML conversion."""

import pytest

from anki_agent_mcp.normalizer import MarkdownNormalizer, normalize


class TestNormalize:
    """Test suite for normalize."""

    def test_plain_text_has_no_wrapper(self) -> None:
        assert normalize("hablar") == "hablar"

    def test_emphasis(self) -> None:
        assert normalize("**bold** and *em*") == "<strong>bold</strong> and <em>em</em>"

    def test_inline_code(self) -> None:
        assert normalize("Use `git status`") == "Use <code>git status</code>"

    def test_newline_becomes_line_break(self) -> None:
        assert normalize("line one\nline two") == "line one<br />\nline two"

    def test_list(self) -> None:
        assert normalize("- one\n- two") == "<ul>\n<li>one</li>\n<li>two</li>\n</ul>"

    def test_multiple_paragraphs_keep_wrappers(self) -> None:
        assert normalize("first\n\nsecond") == "<p>first</p>\n<p>second</p>"

    def test_surrounding_whitespace_is_trimmed(self) -> None:
        assert normalize("  to speak \n") == "to speak"

    def test_raw_inline_html_is_escaped(self) -> None:
        result = normalize("a <b>bold</b> claim")

        assert "<b>" not in result
        assert "&lt;b&gt;bold&lt;/b&gt;" in result

    def test_raw_block_html_is_escaped(self) -> None:
        result = normalize("<script>alert(1)</script>")

        assert "<script>" not in result
        assert "&lt;script&gt;" in result

    @pytest.mark.parametrize("text", ["hablar", "to speak", "Q & A", "El perro come."])
    def test_idempotent_on_plain_text(self, text: str) -> None:
        once = normalize(text)

        assert normalize(once) == once

    def test_escaped_html_is_stable(self) -> None:
        """Test that raw tags stay literal text across repeated normalization."""
        once = normalize("<strong>hablar</strong>")

        assert once == "&lt;strong&gt;hablar&lt;/strong&gt;"
        assert normalize(once) == once

    def test_instances_do_not_share_state(self) -> None:
        normalizer = MarkdownNormalizer()

        assert normalizer.normalize("*a*") == "<em>a</em>"
        assert normalizer.normalize("b") == "b"
