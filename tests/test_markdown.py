from core.markdown import (
    BlankLine,
    BulletList,
    Emphasis,
    Heading,
    Paragraph,
    Rule,
    Strong,
    TextSpan,
    markdown_to_html,
    parse,
    parse_inline,
    strip_markdown,
)


def test_parse_blocks() -> None:
    blocks = parse("# Título\n\n- um\n- dois\n---\ntexto")
    assert isinstance(blocks[0], Heading)
    assert blocks[0].level == 1
    assert isinstance(blocks[1], BlankLine)
    assert isinstance(blocks[2], BulletList)
    assert len(blocks[2].items) == 2
    assert isinstance(blocks[3], Rule)
    assert isinstance(blocks[4], Paragraph)


def test_heading_keeps_trailing_hash_in_word() -> None:
    blocks = parse("## Curso de C#")
    assert strip_markdown("## Curso de C#") == "Curso de C#"
    assert isinstance(blocks[0], Heading)
    assert blocks[0].level == 2


def test_parse_inline_strong_and_emphasis() -> None:
    nodes = parse_inline("a **b** *c*")
    assert nodes[0] == TextSpan(text="a ")
    assert isinstance(nodes[1], Strong)
    assert nodes[1].children == [TextSpan(text="b")]
    assert isinstance(nodes[3], Emphasis)


def test_unclosed_markers_stay_literal() -> None:
    assert strip_markdown("preço **especial") == "preço **especial"
    assert strip_markdown("5 * 3") == "5 * 3"


def test_markdown_to_html() -> None:
    html = markdown_to_html("### Oferta\n- **Frete** grátis\n<b>")
    assert "<h3>Oferta</h3>" in html
    assert "<ul><li><strong>Frete</strong> grátis</li></ul>" in html
    assert "&lt;b&gt;" in html


def test_strip_markdown_keeps_line_layout() -> None:
    text = "# Legendas\n\n* **Opção 1**: corra mais\n* *Opção 2*\n\nFim"
    assert strip_markdown(text) == "Legendas\n\n- Opção 1: corra mais\n- Opção 2\n\nFim"


def test_trailing_blank_lines_dropped() -> None:
    assert strip_markdown("oi\n\n\n") == "oi"
