from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

@dataclass(frozen=True)
class RunConfig:
    vault_root: Path
    dry_run: bool = False   # overrides every bundle's build_dry_run
    verbose: bool = False
