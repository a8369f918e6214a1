from __future__ import annotations

from quiz_taker.core.markdown_math_renderer import MarkdownMathRenderer


def test_fragment_keeps_math_source_for_mathjax():
    html = MarkdownMathRenderer().render_fragment("Solve **for** $x^2 = 4$")

    assert html.startswith("<p>")
    assert "<strong>for</strong>" in html
    assert "$x^2 = 4$" in html


def test_raw_html_is_escaped_by_default():
    html = MarkdownMathRenderer().render_fragment("<script>alert(1)</script>")

    assert "<script>" not in html


def test_blank_inputs_have_placeholders():
    renderer = MarkdownMathRenderer()

    assert "No content" in renderer.render_fragment("   ")
    assert renderer.render_inline("") == "(empty)"
    assert renderer.render_inline("*Nile*") == "<em>Nile</em>"
