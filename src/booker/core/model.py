from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, List, Optional, Tuple

class NoteType(str, Enum):
    RECIPE = "booker-recipe"
    BUNDLE = "booker-bundle"

class Level(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

# severity rank; the roll-up status is the highest counted level
SEVERITY = {Level.INFO: 0, Level.SUCCESS: 1, Level.WARNING: 2, Level.ERROR: 3}

TOC_SCOPES = ("file", "tree")

@dataclass(frozen=True)
class Options:
    strip_frontmatter: bool = True
    strip_h1: bool = False
    strip_title: bool = False
    separator: str = "\n\n---\n\n"
    heading_offset: int = 1       # 0 disables shifting
    toc: bool = False
    toc_title: str = "Table of Contents"  # "" suppresses the TOC heading line
    toc_scope: str = "tree"
    toc_depth: int = 4
    toc_include_h1: bool = True

@dataclass(frozen=True)
class BuildOptions:
    stop_on_error: bool = True
    continue_on_missing: bool = False
    dry_run: bool = False
    summary_notice: bool = True

OPTION_KEYS: Tuple[str, ...] = tuple(f.name for f in fields(Options))
BUILD_OPTION_KEYS: Tuple[str, ...] = tuple(f.name for f in fields(BuildOptions))

@dataclass(frozen=True)
class RecipeConfig:
    output_path: str
    order: Tuple[str, ...]
    options: Options = field(default_factory=Options)
    title: Optional[str] = None

@dataclass(frozen=True)
class AggregateConfig:
    output_path: str
    options: Options = field(default_factory=Options)
    title: Optional[str] = None

@dataclass(frozen=True)
class BundleConfig:
    targets: Tuple[str, ...]
    aggregate: Optional[AggregateConfig] = None
    build_options: BuildOptions = field(default_factory=BuildOptions)

@dataclass(frozen=True)
class TypeInfo:
    normalized: Optional[NoteType]
    deprecated: bool = False

@dataclass(frozen=True)
class HeadingEntry:
    level: int
    text: str
    source_path: str

@dataclass(frozen=True)
class ContentChunk:
    content: str
    basename: str
    source_path: str = ""

@dataclass(frozen=True)
class CompiledDocument:
    content: str
    headings: Tuple[HeadingEntry, ...]

@dataclass(frozen=True)
class CompileResult:
    content: str
    headings: Tuple[HeadingEntry, ...]
    missing_links: Tuple[str, ...]
    skipped_self_includes: Tuple[str, ...]
    resolved_count: int

@dataclass(frozen=True)
class TargetResult:
    name: str
    output_path: str
    success: bool
    resolved_count: int = 0
    missing_links: Tuple[str, ...] = ()
    skipped_self_includes: Tuple[str, ...] = ()

@dataclass(frozen=True)
class AggregateResult:
    attempted: bool
    success: bool
    output_path: Optional[str] = None

@dataclass(frozen=True)
class BuildResult:
    targets: Tuple[TargetResult, ...]
    successes: int
    failures: int
    missing_total: int
    aggregate: AggregateResult

@dataclass(frozen=True)
class BuildEvent:
    level: Level
    file_label: str
    message: str

@dataclass(frozen=True)
class BuildReport:
    status: Level
    counts: Dict[Level, int]
    events: List[BuildEvent]
