from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import pytest

from booker.config import RunConfig
from booker.context import BookerContext
from booker.core.yaml import dump_frontmatter
from booker.stages.report import RecordingNotice

def _note(frontmatter: Dict[str, Any], body: str = "") -> str:
    return dump_frontmatter(frontmatter) + body

def _write(root: Path, files: Dict[str, str]) -> None:
    for rel, text in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")

@pytest.fixture
def note():
    """note({"type": "booker-recipe", ...}, body) -> Markdown text with a front matter block."""
    return _note

@pytest.fixture
def vault_root(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    root.mkdir()
    return root

@pytest.fixture
def make_booker(vault_root: Path):
    def make(
        files: Optional[Dict[str, str]] = None,
        dry_run: bool = False,
    ) -> Tuple[BookerContext, RecordingNotice]:
        _write(vault_root, files or {})
        notice = RecordingNotice()
        ctx = BookerContext(RunConfig(vault_root=vault_root, dry_run=dry_run), notice=notice)
        return ctx, notice

    return make
