import pytest

from glassbox.errors import RenderError
from glassbox.protocols import BodyRenderer
from glassbox.renderers import (
    MarkdownRenderer,
    _generate_heading_id,
    highlight_css,
    smarten,
)


def render(text: str) -> str:
    return MarkdownRenderer().render(text)


def test_markdown_renderer_satisfies_protocol():
    assert isinstance(MarkdownRenderer(), BodyRenderer)


def test_headings_get_unique_anchor_ids():
    html = render("# Hello World\n\n## Hello World\n\n## Other")
    assert '<h1 id="hello-world">Hello World</h1>' in html
    assert '<h2 id="hello-world-1">Hello World</h2>' in html
    assert '<h2 id="other">Other</h2>' in html


def test_heading_ids_do_not_leak_between_renders():
    renderer = MarkdownRenderer()
    renderer.render("# Intro")
    assert 'id="intro"' in renderer.render("# Intro")


def test_tables_strikethrough_and_autolinks():
    html = render(
        "| a | b |\n| - | - |\n| 1 | 2 |\n\n"
        "~~gone~~\n\n"
        "see https://example.com today"
    )
    assert "<table>" in html
    assert "<del>gone</del>" in html
    assert '<a href="https://example.com">' in html


def test_raw_html_passes_through():
    html = render('<div class="hero"><span>HTML stays</span></div>\n')
    assert '<div class="hero"><span>HTML stays</span></div>' in html


def test_text_is_still_escaped():
    html = render("1 < 2 & 3")
    assert "1 &lt; 2 &amp; 3" in html


def test_fenced_code_is_highlighted():
    html = render("```python\ndef hello():\n    return 1\n```\n")
    assert '<div class="highlight">' in html
    assert "hello" in html


def test_unknown_language_falls_back_to_plain_block():
    html = render("```nosuchlang\na < b\n```\n")
    assert '<pre><code class="language-nosuchlang">a &lt; b' in html


def test_typographic_substitutions_in_text():
    html = render("Wait... -- then---nothing")
    assert "Wait… – then—nothing" in html


def test_code_spans_are_not_smartened():
    html = render("run `a -- b`")
    assert "<code>a -- b</code>" in html


def test_smarten_quotes():
    assert smarten('"Wait..." -- she said') == "“Wait…” – she said"
    assert smarten("it's 'quoted'") == "it’s ‘quoted’"


def test_smarten_uses_preceding_character():
    assert smarten('" loudly', previous="p") == "” loudly"
    assert smarten('"quoted', previous=" ") == "“quoted"
    assert smarten("'s own", previous="n") == "’s own"


@pytest.mark.parametrize(
    "source, expected",
    [
        ('He said "*stop*" loudly.', "He said “<em>stop</em>” loudly."),
        ('"**bold**"', "“<strong>bold</strong>”"),
        ('"[link](https://example.com)"', '“<a href="https://example.com">link</a>”'),
        ("'`code`'", "‘<code>code</code>’"),
    ],
)
def test_quotes_around_inline_markup(source, expected):
    assert render(source) == f"<p>{expected}</p>\n"


def test_quote_direction_resets_between_paragraphs():
    html = render('ends with "*x*"\n\n"starts" again')
    assert "<p>“starts” again</p>" in html


def test_generate_heading_id():
    assert _generate_heading_id("Hello, World!") == "hello-world"
    assert _generate_heading_id("<em>Styled</em> title") == "styled-title"
    assert _generate_heading_id("!!!") == "heading"


def test_highlight_css_targets_highlight_class():
    css = highlight_css()
    assert ".highlight" in css
    assert css == highlight_css()


def test_engine_failures_become_render_errors(monkeypatch):
    def broken(*args, **kwargs):
        def markdown(text):
            raise ValueError("boom")

        return markdown

    monkeypatch.setattr("glassbox.renderers.mistune.create_markdown", broken)
    with pytest.raises(RenderError, match="boom"):
        render("anything")
