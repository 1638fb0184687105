from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from booker.core.errors import FrontmatterSyntaxError
from booker.core.links import LinkResolver
from booker.core.model import NoteType
from booker.core.paths import normalize_path
from booker.stages.messages import format_user_message
from booker.stages.parse import FrontmatterDeprecation, FrontmatterParser, normalize_order
from booker.stages.report import resolve_file_label

@dataclass(frozen=True)
class StatusItem:
    label: str
    resolved: bool

@dataclass(frozen=True)
class NoteStatus:
    path: str
    state: str  # "booker" | "not-booker" | "invalid"
    kind: Optional[NoteType] = None
    label: str = ""
    output_path: Optional[str] = None
    output_exists: bool = False
    items: List[StatusItem] = field(default_factory=list)
    deprecations: List[FrontmatterDeprecation] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def missing_count(self) -> int:
        return sum(1 for item in self.items if not item.resolved)

def _output_for(parser: FrontmatterParser, fm: Mapping[str, Any], path: str, kind: NoteType) -> Optional[str]:
    if kind is NoteType.RECIPE:
        raw = fm.get("output")
    else:
        block = fm.get("aggregate")
        raw = fm.get("aggregate_output")
        if not isinstance(raw, str) and isinstance(block, Mapping):
            raw = block.get("output")
    if not isinstance(raw, str) or not raw.strip():
        return None
    return parser.resolve_output_path(raw, path)

def inspect_note(vault, index, parser: FrontmatterParser, resolver: LinkResolver, path: str) -> NoteStatus:
    """Read-only view of a recipe or bundle: output, sources/targets, deprecations."""
    path = normalize_path(path)
    try:
        fm = parser.get_frontmatter(path)
    except FrontmatterSyntaxError as e:
        return NoteStatus(path=path, state="invalid", label=resolve_file_label(path), error=format_user_message(e).text)

    type_info = parser.normalize_type(fm.get("type") if fm else None)
    if fm is None or type_info.normalized is None:
        return NoteStatus(path=path, state="not-booker", label=resolve_file_label(path, fm))

    kind = type_info.normalized
    output = _output_for(parser, fm, path, kind)
    exists = False
    if output:
        ref = vault.lookup_by_path(output)
        exists = ref is not None and ref.kind == "file"

    def item(raw: str) -> StatusItem:
        linkpath = resolver.normalize_link_string(raw)
        return StatusItem(
            label=linkpath or raw.strip(),
            resolved=resolver.resolve_to_file(linkpath, path) is not None,
        )

    items: List[StatusItem] = []
    if kind is NoteType.RECIPE:
        items = [item(raw) for raw in normalize_order(fm.get("order"))]
    else:
        targets = fm.get("targets")
        for i, raw in enumerate(targets if isinstance(targets, list) else []):
            if isinstance(raw, str):
                items.append(item(raw))
            else:
                items.append(StatusItem(label=f"Target {i + 1}", resolved=False))

    return NoteStatus(
        path=path,
        state="booker",
        kind=kind,
        label=resolve_file_label(path, fm),
        output_path=output,
        output_exists=exists,
        items=items,
        deprecations=parser.get_deprecation_warnings(fm, kind, index.get_raw_frontmatter(path)),
    )

def format_status(status: NoteStatus) -> List[str]:
    if status.state == "invalid":
        return [f"❌ [{status.label}] {status.error}"]
    if status.state == "not-booker":
        return [f"ℹ️ [{status.label}] Not a Booker note."]

    kind = "Recipe" if status.kind is NoteType.RECIPE else "Bundle"
    noun = "Sources" if status.kind is NoteType.RECIPE else "Steps"
    out = [f"{status.label} ({kind})"]
    if status.output_path:
        suffix = "" if status.output_exists else " (not generated yet)"
        out.append(f"Output: {status.output_path}{suffix}")
    else:
        out.append("Output: (none)")
    out.append(f"{noun}: {len(status.items)} (missing: {status.missing_count})")
    for it in status.items:
        out.append(f"  {'✅' if it.resolved else '❌'} {it.label}")
    for d in status.deprecations:
        where = ""
        if d.location is not None:
            where = f" (line {d.location.line}, col {d.location.column})"
        out.append(f"⚠️ {d.category}{where}: {d.hint}")
    return out
