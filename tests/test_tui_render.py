from ui.tui.render import markdown_to_rich


def test_markdown_to_rich_plain_text_layout() -> None:
    text = markdown_to_rich("# Oferta\n- **Frete** grátis\n---\nFim")
    lines = text.plain.splitlines()
    assert lines[0] == "Oferta"
    assert lines[1] == "• Frete grátis"
    assert set(lines[2]) == {"─"}
    assert lines[3] == "Fim"


def test_markdown_to_rich_styles_strong_spans() -> None:
    text = markdown_to_rich("a **b**")
    styles = [str(span.style) for span in text.spans]
    assert any("bold" in style for style in styles)
