from __future__ import annotations

from typing import List, Sequence

from booker.core.model import HeadingEntry, Options

LIST_INDENT = "  "

def render(headings: Sequence[HeadingEntry], options: Options) -> str:
    """
    Nested Markdown list of Obsidian heading links:
      "- [[#Chapter]]"
      "  - [[#Section]]"
    An empty toc_title drops the heading line instead of falling back to the default.
    """
    if not options.toc:
        return ""

    lines: List[str] = []
    for h in headings:
        if h.level == 1 and not options.toc_include_h1:
            continue
        if h.level > options.toc_depth:
            continue
        indent = LIST_INDENT * max(h.level - 1, 0)
        lines.append(f"{indent}- [[#{h.text}]]")

    block = "\n".join(lines)
    title = options.toc_title
    if title == "":
        return block
    if not block:
        return f"# {title}"
    return f"# {title}\n\n{block}"

def apply(
    content: str,
    headings: Sequence[HeadingEntry],
    options: Options,
    insert_after_title: bool,
) -> str:
    block = render(headings, options)
    if not block:
        return content

    body = content.rstrip()
    if insert_after_title:
        lines = body.split("\n")
        if lines[0].startswith("# "):
            rest = "\n".join(lines[1:]).lstrip("\n")
            parts = [lines[0], block] + ([rest] if rest else [])
            return "\n\n".join(parts) + "\n"

    body = body.lstrip("\n")
    if not body:
        return block + "\n"
    return f"{block}\n\n{body}\n"
