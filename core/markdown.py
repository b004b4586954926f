"""Parser and renderers for the small Markdown subset the generation service emits.

Supported blocks are ATX headings (``#`` to ``###``), bullet items (``-`` or
``*``), horizontal rules (``---``), paragraphs and blank lines. Inline markup is
limited to ``**strong**`` and ``*emphasis*``. Nested lists, tables and fenced
code are not recognised and come through as paragraphs.

Every source line maps to exactly one block line, so the plain-text rendering
keeps the original line layout.
"""

import html
import re
from typing import List, Union

from pydantic import BaseModel, ConfigDict

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)(?:\s+#+)?\s*$")
_BULLET_RE = re.compile(r"^\s*[-*]\s+(.*)$")
_RULE_RE = re.compile(r"^\s*(?:-{3,}|\*{3,}|_{3,})\s*$")


class TextSpan(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str


class Strong(BaseModel):
    model_config = ConfigDict(frozen=True)

    children: List["Inline"]


class Emphasis(BaseModel):
    model_config = ConfigDict(frozen=True)

    children: List["Inline"]


Inline = Union[TextSpan, Strong, Emphasis]
Strong.model_rebuild()
Emphasis.model_rebuild()


class Heading(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: int
    children: List[Inline]


class BulletList(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: List[List[Inline]]


class Rule(BaseModel):
    model_config = ConfigDict(frozen=True)


class Paragraph(BaseModel):
    model_config = ConfigDict(frozen=True)

    lines: List[List[Inline]]


class BlankLine(BaseModel):
    model_config = ConfigDict(frozen=True)


Block = Union[Heading, BulletList, Rule, Paragraph, BlankLine]


def parse(text: str) -> List[Block]:
    blocks: List[Block] = []
    for raw_line in text.replace("\r\n", "\n").split("\n"):
        line = raw_line.rstrip()
        if not line.strip():
            blocks.append(BlankLine())
            continue
        if _RULE_RE.match(line):
            blocks.append(Rule())
            continue
        heading = _HEADING_RE.match(line)
        if heading:
            level = min(len(heading.group(1)), 3)
            blocks.append(Heading(level=level, children=parse_inline(heading.group(2))))
            continue
        bullet = _BULLET_RE.match(line)
        if bullet:
            item = parse_inline(bullet.group(1))
            if blocks and isinstance(blocks[-1], BulletList):
                blocks[-1] = BulletList(items=[*blocks[-1].items, item])
            else:
                blocks.append(BulletList(items=[item]))
            continue
        inlines = parse_inline(line)
        if blocks and isinstance(blocks[-1], Paragraph):
            blocks[-1] = Paragraph(lines=[*blocks[-1].lines, inlines])
        else:
            blocks.append(Paragraph(lines=[inlines]))
    while blocks and isinstance(blocks[-1], BlankLine):
        blocks.pop()
    return blocks


def parse_inline(text: str) -> List[Inline]:
    nodes: List[Inline] = []
    buffer: List[str] = []
    i = 0

    def flush() -> None:
        if buffer:
            nodes.append(TextSpan(text="".join(buffer)))
            buffer.clear()

    while i < len(text):
        if text.startswith("**", i):
            end = text.find("**", i + 2)
            if end > i + 2:
                flush()
                nodes.append(Strong(children=parse_inline(text[i + 2 : end])))
                i = end + 2
                continue
            buffer.append("**")
            i += 2
            continue
        if text[i] == "*":
            end = _find_single_star(text, i + 1)
            if end > i + 1:
                flush()
                nodes.append(Emphasis(children=parse_inline(text[i + 1 : end])))
                i = end + 1
                continue
        buffer.append(text[i])
        i += 1
    flush()
    return nodes


def _find_single_star(text: str, start: int) -> int:
    i = start
    while i < len(text):
        if text.startswith("**", i):
            close = text.find("**", i + 2)
            if close == -1:
                return -1
            i = close + 2
            continue
        if text[i] == "*":
            return i
        i += 1
    return -1


def to_html(blocks: List[Block]) -> str:
    parts: List[str] = []
    for block in blocks:
        if isinstance(block, Heading):
            parts.append(f"<h{block.level}>{_inline_html(block.children)}</h{block.level}>")
        elif isinstance(block, BulletList):
            items = "".join(f"<li>{_inline_html(item)}</li>" for item in block.items)
            parts.append(f"<ul>{items}</ul>")
        elif isinstance(block, Rule):
            parts.append("<hr />")
        elif isinstance(block, Paragraph):
            lines = "<br />".join(_inline_html(line) for line in block.lines)
            parts.append(f"<p>{lines}</p>")
    return "\n".join(parts)


def _inline_html(nodes: List[Inline]) -> str:
    out: List[str] = []
    for node in nodes:
        if isinstance(node, Strong):
            out.append(f"<strong>{_inline_html(node.children)}</strong>")
        elif isinstance(node, Emphasis):
            out.append(f"<em>{_inline_html(node.children)}</em>")
        else:
            out.append(html.escape(node.text))
    return "".join(out)


def to_plain_text(blocks: List[Block]) -> str:
    lines: List[str] = []
    for block in blocks:
        if isinstance(block, Heading):
            lines.append(inline_text(block.children))
        elif isinstance(block, BulletList):
            lines.extend(f"- {inline_text(item)}" for item in block.items)
        elif isinstance(block, Paragraph):
            lines.extend(inline_text(line) for line in block.lines)
        else:
            lines.append("")
    return "\n".join(lines)


def inline_text(nodes: List[Inline]) -> str:
    out: List[str] = []
    for node in nodes:
        if isinstance(node, (Strong, Emphasis)):
            out.append(inline_text(node.children))
        else:
            out.append(node.text)
    return "".join(out)


def markdown_to_html(text: str) -> str:
    return to_html(parse(text))


def strip_markdown(text: str) -> str:
    return to_plain_text(parse(text))
