from typing import List

from rich.text import Text

from core.markdown import (
    BlankLine,
    BulletList,
    Emphasis,
    Heading,
    Inline,
    Paragraph,
    Rule,
    Strong,
    parse,
)

HEADING_STYLES = {1: "bold underline", 2: "bold", 3: "bold italic"}
RULE_WIDTH = 40


def markdown_to_rich(text: str) -> Text:
    lines: List[Text] = []
    for block in parse(text):
        if isinstance(block, Heading):
            lines.append(_inline_rich(block.children, HEADING_STYLES.get(block.level, "bold")))
        elif isinstance(block, BulletList):
            for item in block.items:
                line = Text("• ")
                line.append_text(_inline_rich(item))
                lines.append(line)
        elif isinstance(block, Rule):
            lines.append(Text("─" * RULE_WIDTH, style="dim"))
        elif isinstance(block, Paragraph):
            lines.extend(_inline_rich(line) for line in block.lines)
        elif isinstance(block, BlankLine):
            lines.append(Text(""))
    return Text("\n").join(lines)


def _inline_rich(nodes: List[Inline], style: str = "") -> Text:
    out = Text()
    for node in nodes:
        if isinstance(node, Strong):
            out.append_text(_inline_rich(node.children, f"{style} bold".strip()))
        elif isinstance(node, Emphasis):
            out.append_text(_inline_rich(node.children, f"{style} italic".strip()))
        else:
            out.append(node.text, style=style or None)
    return out
