"""Markdown to HTML conversion for chat display.

Assistant output is untrusted, so rendering is done in two passes:

1. Block pass - split the text into fenced code, headings, list runs,
   paragraphs and blank lines. Code fences are captured before anything
   else looks at the text, so their content is never read as markup.
2. Inline pass - each non-code text run is escaped first, then bold,
   italic, inline code and links are applied to the escaped text.

Every piece of source text goes through the escaper exactly once, and the
only tags in the output are the ones produced here. Safe to call on a
partial stream buffer: an unterminated fence simply runs to the end.
"""

import html
import re
from dataclasses import dataclass, field

_FENCE_OPEN = re.compile(r"^```\s*([\w+#.-]*)\s*$")
_FENCE_CLOSE = re.compile(r"^```\s*$")
_HEADING = re.compile(r"^(#{1,6}) (.*)$")
_BULLET_ITEM = re.compile(r"^\s*[-*+] (.*)$")
_ORDERED_ITEM = re.compile(r"^\s*\d+\. (.*)$")

_CODE_SPAN = re.compile(r"`([^`]+)`")
_LINK = re.compile(r"\[([^\]]+)\]\((https?://[^)\s]+)\)")
# Emphasis content never contains '*', so bold and italic cannot interleave
_BOLD = re.compile(r"\*\*([^*]+?)\*\*")
_ITALIC = re.compile(r"(?<!\*)\*([^*]+?)\*(?!\*)")


@dataclass
class _Block:
    kind: str
    lines: list[str] = field(default_factory=list)
    level: int = 0
    lang: str = ""


def _escape(text: str) -> str:
    return html.escape(text, quote=False)


def _render_emphasis(text: str) -> str:
    """Escape a plain text run and apply bold then italic."""
    out = _escape(text)
    out = _BOLD.sub(r"<strong>\1</strong>", out)
    return _ITALIC.sub(r"<em>\1</em>", out)


def _render_links(text: str) -> str:
    """Turn http(s) links into anchors; anything else stays literal."""
    parts: list[str] = []
    pos = 0
    for match in _LINK.finditer(text):
        parts.append(_render_emphasis(text[pos : match.start()]))
        label, url = match.groups()
        parts.append(
            f'<a href="{html.escape(url, quote=True)}" target="_blank" '
            f'rel="noopener noreferrer">{_render_emphasis(label)}</a>'
        )
        pos = match.end()
    parts.append(_render_emphasis(text[pos:]))
    return "".join(parts)


def render_inline(text: str) -> str:
    """Render inline markup for a single line of raw text.

    Inline code spans are cut out first so their content is shown
    verbatim (escaped) and never picks up emphasis or links.

    Args:
        text: Raw, unescaped line content.

    Returns:
        HTML fragment with no block-level tags.
    """
    parts: list[str] = []
    pos = 0
    for match in _CODE_SPAN.finditer(text):
        parts.append(_render_links(text[pos : match.start()]))
        parts.append(f"<code>{_escape(match.group(1))}</code>")
        pos = match.end()
    parts.append(_render_links(text[pos:]))
    return "".join(parts)


def _collect_run(lines: list[str], start: int, pattern: re.Pattern[str]) -> list[str]:
    items: list[str] = []
    for line in lines[start:]:
        match = pattern.match(line)
        if not match:
            break
        items.append(match.group(1))
    return items


def _tokenize(text: str) -> list[_Block]:
    """Split normalized text into block tokens."""
    lines = text.split("\n")
    blocks: list[_Block] = []
    i = 0

    while i < len(lines):
        line = lines[i]

        if fence := _FENCE_OPEN.match(line):
            end = i + 1
            while end < len(lines) and not _FENCE_CLOSE.match(lines[end]):
                end += 1
            blocks.append(_Block("code", lines[i + 1 : end], lang=fence.group(1)))
            i = end + 1
            continue

        bullets = _collect_run(lines, i, _BULLET_ITEM)
        if bullets:
            blocks.append(_Block("ul", bullets))
            i += len(bullets)
            continue

        numbered = _collect_run(lines, i, _ORDERED_ITEM)
        if numbered:
            blocks.append(_Block("ol", numbered))
            i += len(numbered)
            continue

        if heading := _HEADING.match(line):
            level = len(heading.group(1))
            blocks.append(_Block("heading", [heading.group(2).strip()], level=level))
        elif line.strip():
            blocks.append(_Block("paragraph", [line]))
        else:
            blocks.append(_Block("blank"))
        i += 1

    return blocks


def _render_block(block: _Block) -> str:
    if block.kind == "code":
        body = _escape("\n".join(block.lines))
        css = f' class="language-{block.lang}"' if block.lang else ""
        return f'<pre class="chat-code"><code{css}>{body}</code></pre>'
    if block.kind == "heading":
        return f"<h{block.level}>{render_inline(block.lines[0])}</h{block.level}>"
    if block.kind in ("ul", "ol"):
        items = "".join(f"<li>{render_inline(item)}</li>" for item in block.lines)
        return f"<{block.kind}>{items}</{block.kind}>"
    if block.kind == "paragraph":
        return f"<p>{render_inline(block.lines[0])}</p>"
    return ""


def markdown_to_html(raw: str | None) -> str:
    """Convert markdown to HTML for chat display.

    Supports: headings, bold, italic, inline code, fenced code blocks,
    http(s) links, unordered and ordered lists, paragraphs. Not CommonMark.

    Args:
        raw: Untrusted markdown text, possibly a partial stream buffer.

    Returns:
        Sanitized HTML fragment, or an empty string for empty input.
    """
    if not raw:
        return ""
    text = re.sub(r"\r\n?", "\n", str(raw))
    return "\n".join(_render_block(block) for block in _tokenize(text))


def plain_text_to_html(text: str | None) -> str:
    """Show text literally: escaped, with newlines as line breaks."""
    if not text:
        return ""
    return _escape(re.sub(r"\r\n?", "\n", str(text))).replace("\n", "<br>")
