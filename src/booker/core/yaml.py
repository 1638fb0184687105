from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import yaml

from booker.core.errors import FrontmatterSyntaxError

# the YAML block starts on the line after the opening '---'
_FIRST_YAML_LINE = 2

@dataclass(frozen=True)
class Frontmatter:
    data: Optional[Dict[str, Any]]
    body: str

def split_frontmatter(md: str) -> Tuple[Optional[str], str]:
    """Return (yaml_text, body); yaml_text is None when the note has no block."""
    if not md.startswith("---"):
        return None, md

    lines = md.splitlines(keepends=True)
    if not lines or lines[0].strip() != "---":
        return None, md

    end_idx = None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end_idx = i
            break
    if end_idx is None:
        raise FrontmatterSyntaxError(
            "Missing closing '---' for YAML frontmatter.",
            line=len(md.splitlines()),
        )

    yaml_text = "".join(lines[1:end_idx])
    body = "".join(lines[end_idx + 1 :])
    return yaml_text, body

def _first_content_line(yaml_text: str) -> Optional[int]:
    for i, ln in enumerate(yaml_text.splitlines()):
        if ln.strip() and not ln.lstrip().startswith("#"):
            return i + _FIRST_YAML_LINE
    return None

def parse_frontmatter(md: str) -> Frontmatter:
    yaml_text, body = split_frontmatter(md)
    if yaml_text is None:
        return Frontmatter(data=None, body=body)
    try:
        data = yaml.safe_load(yaml_text)
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark or e.context_mark
        reason = (e.problem or e.context or "Invalid YAML").strip()
        reason = reason[:1].upper() + reason[1:]
        if mark is None:
            raise FrontmatterSyntaxError(reason) from e
        raise FrontmatterSyntaxError(
            reason, line=mark.line + _FIRST_YAML_LINE, column=mark.column + 1
        ) from e
    except yaml.YAMLError as e:
        raise FrontmatterSyntaxError(str(e).strip() or "Invalid YAML") from e

    if data is None:
        data = {}
    if isinstance(data, (str, int, float, bool)):
        raise FrontmatterSyntaxError("Missing ':' after key", line=_first_content_line(yaml_text))
    if not isinstance(data, dict):
        raise FrontmatterSyntaxError(
            "Top-level frontmatter must be a mapping of keys to values",
            line=_first_content_line(yaml_text),
        )
    return Frontmatter(data=data, body=body)

def dump_frontmatter(data: Dict[str, Any]) -> str:
    y = yaml.safe_dump(
        data,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=88,
    ).strip()
    return f"---\n{y}\n---\n\n"
