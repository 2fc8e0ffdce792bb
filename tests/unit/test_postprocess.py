"""
Unit tests for postprocessors.
"""

from staticserver.handlers.postprocess import (
    DEFAULT_POSTPROCESSORS,
    PostprocessorRegistry,
    render_markdown,
)


class TestRenderMarkdown:

    def test_heading(self):
        assert render_markdown(b"# Title") == b"<h1>Title</h1>"

    def test_paragraph_and_emphasis(self):
        html = render_markdown(b"Some *text* here.\n")
        assert html == b"<p>Some <em>text</em> here.</p>"

    def test_raw_html_passes_through(self):
        html = render_markdown(b"<div>kept</div>\n")
        assert b"<div>kept</div>" in html

    def test_invalid_utf8_tolerated(self):
        html = render_markdown(b"# caf\xe9")
        assert html.startswith(b"<h1>caf")

    def test_empty(self):
        assert render_markdown(b"") == b""


class TestPostprocessorRegistry:

    def test_defaults(self):
        registry = PostprocessorRegistry()

        assert registry.lookup("md") is render_markdown
        assert registry.lookup("MD") is render_markdown
        assert registry.lookup("txt") is None
        assert registry.lookup("") is None
        assert set(DEFAULT_POSTPROCESSORS) == {"md"}

    def test_custom(self):
        def shout(content: bytes) -> bytes:
            return content.upper()

        registry = PostprocessorRegistry({".TXT": shout})

        assert "txt" in registry
        assert "md" not in registry
        assert registry.lookup("txt")(b"hi") == b"HI"

    def test_empty_registry_disables_markdown(self):
        assert PostprocessorRegistry({}).lookup("md") is None
