from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from booker.core.errors import (
    DeprecatedBundleSchema,
    MissingAggregateOutput,
    MissingOrder,
    MissingOutput,
    MissingTargets,
)
from booker.core.model import (
    BUILD_OPTION_KEYS,
    OPTION_KEYS,
    TOC_SCOPES,
    AggregateConfig,
    BuildOptions,
    BundleConfig,
    NoteType,
    Options,
    RecipeConfig,
    TypeInfo,
)
from booker.core.paths import get_dirname, normalize_path

_TYPES = {
    "booker-recipe": TypeInfo(NoteType.RECIPE, deprecated=False),
    "booker-bundle": TypeInfo(NoteType.BUNDLE, deprecated=False),
    "booker": TypeInfo(NoteType.RECIPE, deprecated=True),
    "booker-build": TypeInfo(NoteType.BUNDLE, deprecated=True),
}

@dataclass(frozen=True)
class FrontmatterLocation:
    line: int
    column: Optional[int]

@dataclass(frozen=True)
class FrontmatterDeprecation:
    category: str
    keys: Tuple[str, ...]
    hint: str
    location: Optional[FrontmatterLocation] = None

# ---- primitive readers: anything of the wrong shape counts as "not set" ----

def read_string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None

def read_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None

def read_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None

def read_toc_scope(value: Any) -> Optional[str]:
    if value == "self":
        return "file"
    if value in TOC_SCOPES:
        return value
    return None

_OPTION_READERS = {
    "strip_frontmatter": read_bool,
    "strip_h1": read_bool,
    "strip_title": read_bool,
    "separator": read_string,
    "heading_offset": read_int,
    "toc": read_bool,
    "toc_title": read_string,
    "toc_scope": read_toc_scope,
    "toc_depth": read_int,
    "toc_include_h1": read_bool,
}

_BUILD_OPTION_READERS = {key: read_bool for key in BUILD_OPTION_KEYS}

def read_source(
    source: Any, readers: Mapping[str, Any], prefix: str = ""
) -> Dict[str, Any]:
    """Collect the well-typed keys of one option source, e.g. {"recipe_toc": True} -> {"toc": True}."""
    if not isinstance(source, Mapping):
        return {}
    out: Dict[str, Any] = {}
    for key, reader in readers.items():
        value = reader(source.get(f"{prefix}{key}"))
        if value is not None:
            out[key] = value
    return out

def resolve_sources(sources: Sequence[Mapping[str, Any]], keys: Sequence[str]) -> Dict[str, Any]:
    """
    Per-key precedence: for each key, the first source (highest precedence) that
    defines it wins. Sources never win or lose as whole objects.
    """
    resolved: Dict[str, Any] = {}
    for key in keys:
        for source in sources:
            if key in source:
                resolved[key] = source[key]
                break
    return resolved

def normalize_type(raw_type: Any) -> TypeInfo:
    if not isinstance(raw_type, str):
        return TypeInfo(None, deprecated=False)
    return _TYPES.get(raw_type, TypeInfo(None, deprecated=False))

def resolve_output_path(output: str, active_path: str) -> str:
    """Output paths are relative to the note's folder; a leading "~" means vault root."""
    s = output.strip()
    if s.startswith("~"):
        return normalize_path(s[1:])
    folder = get_dirname(active_path)
    return normalize_path(f"{folder}/{s}" if folder else s)

def normalize_order(order: Any) -> List[str]:
    if not isinstance(order, list):
        return []
    return [item for item in order if isinstance(item, str)]

class FrontmatterParser:
    """Turns raw, untrusted front matter into closed, typed Recipe/Bundle configs."""

    def __init__(self, index) -> None:
        self.index = index

    def get_frontmatter(self, path: str) -> Optional[Dict[str, Any]]:
        return self.index.get_frontmatter(path)

    normalize_type = staticmethod(normalize_type)
    resolve_output_path = staticmethod(resolve_output_path)
    normalize_order = staticmethod(normalize_order)

    def parse_recipe_config(self, frontmatter: Mapping[str, Any], path: str) -> RecipeConfig:
        output = read_string(frontmatter.get("output"))
        if not output or not output.strip():
            raise MissingOutput()

        order = normalize_order(frontmatter.get("order"))
        if not order:
            raise MissingOrder()

        options = self._resolve_options(
            read_source(frontmatter, _OPTION_READERS, prefix="recipe_"),
            read_source(frontmatter.get("options"), _OPTION_READERS),
            read_source(frontmatter, _OPTION_READERS),
        )
        return RecipeConfig(
            title=_read_title(frontmatter.get("title")),
            output_path=resolve_output_path(output, path),
            order=tuple(order),
            options=options,
        )

    def parse_bundle_config(self, frontmatter: Mapping[str, Any], path: str) -> BundleConfig:
        targets = self._parse_targets(frontmatter.get("targets"))
        aggregate = self._parse_aggregate(frontmatter, path)

        nested = frontmatter.get("build_options")
        resolved = resolve_sources(
            [
                read_source(frontmatter, _BUILD_OPTION_READERS, prefix="build_"),
                read_source(nested, _BUILD_OPTION_READERS),
                read_source(frontmatter, _BUILD_OPTION_READERS),
            ],
            BUILD_OPTION_KEYS,
        )
        return BundleConfig(
            targets=targets,
            aggregate=aggregate,
            build_options=replace(BuildOptions(), **resolved),
        )

    def _parse_targets(self, raw: Any) -> Tuple[str, ...]:
        if not isinstance(raw, list) or not raw:
            raise MissingTargets()
        # inline target objects are the retired bundle schema
        if any(not isinstance(t, str) for t in raw):
            raise DeprecatedBundleSchema()
        targets = tuple(t.strip() for t in raw if t.strip())
        if not targets:
            raise MissingTargets()
        return targets

    def _parse_aggregate(self, frontmatter: Mapping[str, Any], path: str) -> Optional[AggregateConfig]:
        block = frontmatter.get("aggregate")
        nested: Mapping[str, Any] = block if isinstance(block, Mapping) else {}
        prefixed = read_source(frontmatter, _OPTION_READERS, prefix="aggregate_")

        mentioned = (
            block is not None
            or isinstance(frontmatter.get("aggregate_output"), str)
            or isinstance(frontmatter.get("aggregate_title"), str)
            or any(frontmatter.get(f"aggregate_{key}") is not None for key in OPTION_KEYS)
        )

        output = read_string(frontmatter.get("aggregate_output"))
        if output is None:
            output = read_string(nested.get("output"))
        if not output or not output.strip():
            if mentioned:
                raise MissingAggregateOutput()
            return None

        title = _read_title(frontmatter.get("aggregate_title"))
        if title is None:
            title = _read_title(nested.get("title"))

        options = self._resolve_options(
            prefixed,
            read_source(nested.get("options"), _OPTION_READERS),
            read_source(frontmatter, _OPTION_READERS),
        )
        return AggregateConfig(
            title=title,
            output_path=resolve_output_path(output, path),
            options=options,
        )

    def _resolve_options(self, *sources: Mapping[str, Any]) -> Options:
        return replace(Options(), **resolve_sources(sources, OPTION_KEYS))

    # ---- advisory deprecation scan ----

    def get_deprecation_warnings(
        self,
        frontmatter: Mapping[str, Any],
        note_type: NoteType,
        raw_frontmatter: Optional[str] = None,
    ) -> List[FrontmatterDeprecation]:
        if note_type is NoteType.RECIPE:
            return self._recipe_deprecations(frontmatter, raw_frontmatter)
        return self._bundle_deprecations(frontmatter, raw_frontmatter)

    def _recipe_deprecations(
        self, frontmatter: Mapping[str, Any], raw: Optional[str]
    ) -> List[FrontmatterDeprecation]:
        warnings: List[FrontmatterDeprecation] = []
        nested = frontmatter.get("options")
        if isinstance(nested, Mapping):
            keys = [f"options.{k}" for k in _option_keys_in(nested)]
            if keys:
                hint = _option_hint("recipe_", keys)
            else:
                keys = ["options"]
                hint = "Move nested `options` values to `recipe_*` keys."
            warnings.append(_deprecation("Deprecated recipe schema", keys, ["options"], raw, hint))

        flat = _option_keys_in(frontmatter)
        if flat:
            warnings.append(
                _deprecation("Deprecated unprefixed keys", flat, flat, raw, _option_hint("recipe_", flat))
            )
        return warnings

    def _bundle_deprecations(
        self, frontmatter: Mapping[str, Any], raw: Optional[str]
    ) -> List[FrontmatterDeprecation]:
        warnings: List[FrontmatterDeprecation] = []
        keys: List[str] = []
        where: List[str] = []

        if frontmatter.get("aggregate"):
            keys.append("aggregate")
            where.append("aggregate")
            block = frontmatter.get("aggregate")
            if isinstance(block, Mapping):
                keys.extend(f"aggregate.options.{k}" for k in _option_keys_in(block.get("options")))
        if frontmatter.get("build_options"):
            keys.append("build_options")
            where.append("build_options")

        if keys:
            hints = []
            if any(k.startswith("aggregate") for k in keys):
                hints.append(
                    "Move `aggregate.output` to `aggregate_output` and `aggregate.options.*` to `aggregate_*` keys."
                )
            if "build_options" in keys:
                hints.append("Move `build_options.*` to `build_*` keys.")
            warnings.append(_deprecation("Deprecated bundle schema", keys, where, raw, " ".join(hints)))

        flat = _option_keys_in(frontmatter)
        if flat:
            warnings.append(
                _deprecation("Deprecated unprefixed keys", flat, flat, raw, _option_hint("aggregate_", flat))
            )

        targets = frontmatter.get("targets")
        if isinstance(targets, list) and any(not isinstance(t, str) for t in targets):
            warnings.append(
                _deprecation(
                    "Deprecated bundle target schema",
                    ["targets"],
                    ["targets"],
                    raw,
                    "Replace inline target objects with a plain list of strings under `targets`.",
                )
            )
        return warnings

def _read_title(value: Any) -> Optional[str]:
    s = read_string(value)
    if s is None or not s.strip():
        return None
    return s.strip()

def _option_keys_in(source: Any) -> List[str]:
    if not isinstance(source, Mapping):
        return []
    return [key for key in OPTION_KEYS if key in source]

def _option_hint(prefix: str, keys: Sequence[str]) -> str:
    mapped = [f"{prefix}{k.rsplit('.', 1)[-1]}" for k in keys]
    return f"Move {', '.join(keys)} to {', '.join(mapped)}."

def _deprecation(
    category: str,
    keys: Sequence[str],
    location_keys: Sequence[str],
    raw: Optional[str],
    hint: str,
) -> FrontmatterDeprecation:
    location = find_location(raw, location_keys) if raw else None
    return FrontmatterDeprecation(category=category, keys=tuple(keys), hint=hint, location=location)

def find_location(raw: str, keys: Sequence[str]) -> Optional[FrontmatterLocation]:
    """Best-effort line/column of the first `key:` line; lines count from the opening '---'."""
    if not keys:
        return None
    patterns = [re.compile(rf"^(\s*){re.escape(k)}\s*:") for k in keys]
    for i, line in enumerate(raw.splitlines()):
        for pat in patterns:
            m = pat.match(line)
            if m:
                # +2: 1-based, plus the opening '---' line
                return FrontmatterLocation(line=i + 2, column=len(m.group(1)) + 1)
    return None
