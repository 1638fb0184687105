from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Sequence, Tuple

from booker.core.model import HeadingEntry, Options

MAX_HEADING_LEVEL = 6

_RE_FENCE = re.compile(r"^\s*(```+|~~~+)")
_RE_HEADING = re.compile(r"^(#{1,6})(\s+.*)$")
_RE_CLOSING_HASHES = re.compile(r"\s+#+\s*$")

def _scan(lines: Sequence[str]) -> Iterator[Tuple[str, bool]]:
    """
    Yield (line, outside_fence) for every line.
    Fence marker lines themselves count as inside.
    """
    in_fence = False
    marker = ""
    for line in lines:
        m = _RE_FENCE.match(line)
        if m:
            if not in_fence:
                in_fence = True
                marker = m.group(1)
            elif line.lstrip().startswith(marker):
                in_fence = False
                marker = ""
            yield line, False
            continue
        yield line, not in_fence

def strip_frontmatter(content: str) -> str:
    # malformed blocks (no closing line) are left untouched
    if not content.startswith("---"):
        return content
    lines = content.splitlines(keepends=True)
    if lines[0].strip() != "---":
        return content
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            return "".join(lines[i + 1 :])
    return content

def strip_first_h1(content: str) -> str:
    lines = content.split("\n")
    for i, line in enumerate(lines):
        if line.startswith("# "):
            end = i + 2 if i + 1 < len(lines) and lines[i + 1] == "" else i + 1
            return "\n".join(lines[:i] + lines[end:])
    return content

def shift_headings(content: str, offset: int) -> str:
    if offset <= 0:
        return content

    out: List[str] = []
    for line, outside in _scan(content.split("\n")):
        m = _RE_HEADING.match(line) if outside else None
        if not m:
            out.append(line)
            continue
        level = min(len(m.group(1)) + offset, MAX_HEADING_LEVEL)
        out.append("#" * level + m.group(2))
    return "\n".join(out)

def extract_headings(content: str, source_path: str) -> List[HeadingEntry]:
    found: List[HeadingEntry] = []
    for line, outside in _scan(content.split("\n")):
        if not outside:
            continue
        m = _RE_HEADING.match(line)
        if not m:
            continue
        text = _RE_CLOSING_HASHES.sub("", m.group(2)).strip()
        if text:
            found.append(HeadingEntry(level=len(m.group(1)), text=text, source_path=source_path))
    return found

def apply(content: str, options: Options) -> str:
    out = content
    if options.strip_frontmatter:
        out = strip_frontmatter(out)
    if options.strip_h1:
        out = strip_first_h1(out)
    return out

def apply_heading_offset(content: str, options: Options) -> str:
    return shift_headings(content, options.heading_offset)

def join_chunks(chunks: Iterable[str], separator: str) -> str:
    return separator.join(chunks)
