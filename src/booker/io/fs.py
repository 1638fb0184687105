from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from booker.core.paths import get_dirname, normalize_path
from booker.core.yaml import parse_frontmatter, split_frontmatter

@dataclass(frozen=True)
class FileRef:
    path: str
    kind: str  # "file" | "folder"

def ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def _is_hidden(rel: Path) -> bool:
    return any(part.startswith(".") for part in rel.parts)

def iter_md_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.rglob("*.md")):
        if p.is_file() and not _is_hidden(p.relative_to(root)):
            yield p

def relpath_under(root: Path, p: Path) -> Path:
    return p.resolve().relative_to(root.resolve())

def read_text_utf8(p: Path) -> str:
    data = p.read_bytes()
    return data.decode("utf-8")

def write_text_utf8(p: Path, s: str) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(s, encoding="utf-8", newline="\n")

class Vault:
    """Storage collaborator: a vault rooted at a directory, addressed by vault paths."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _abs(self, path: str) -> Path:
        rel = normalize_path(path)
        return self.root / rel if rel else self.root

    def read(self, path: str) -> str:
        return read_text_utf8(self._abs(path))

    def write(self, path: str, text: str) -> None:
        write_text_utf8(self._abs(path), text)

    def create_folder(self, path: str) -> None:
        ensure_dir(self._abs(path))

    def lookup_by_path(self, path: str) -> Optional[FileRef]:
        p = self._abs(path)
        if p.is_file():
            return FileRef(path=normalize_path(path), kind="file")
        if p.is_dir():
            return FileRef(path=normalize_path(path), kind="folder")
        return None

    def list_children(self, folder: str, recursive: bool = False) -> List[FileRef]:
        base = self._abs(folder)
        if not base.is_dir():
            return []
        found = base.rglob("*") if recursive else base.iterdir()
        out: List[FileRef] = []
        for p in sorted(found):
            rel = relpath_under(self.root, p)
            if not p.is_file() or _is_hidden(rel):
                continue
            out.append(FileRef(path=rel.as_posix(), kind="file"))
        return out

    def md_paths(self) -> List[str]:
        return [relpath_under(self.root, p).as_posix() for p in iter_md_files(self.root)]

class VaultIndex:
    """
    Link/metadata collaborator over a Vault.

    Resolution order for a reference:
    - vault-root path, then path relative to the referencing note's folder
      (".md" appended when missing)
    - basename/suffix match anywhere, preferring the referencing note's folder,
      then the shortest path, then lexical order
    """

    def __init__(self, vault: Vault) -> None:
        self.vault = vault

    def _is_file(self, path: str) -> bool:
        ref = self.vault.lookup_by_path(path)
        return ref is not None and ref.kind == "file"

    def resolve(self, reference: str, from_path: str) -> Optional[str]:
        ref = normalize_path(reference)
        if not ref:
            return None
        names = [ref] if ref.endswith(".md") else [f"{ref}.md", ref]

        folder = get_dirname(from_path)
        for base in ("", folder):
            for name in names:
                cand = normalize_path(f"{base}/{name}" if base else name)
                if self._is_file(cand):
                    return cand

        matches = [
            p for p in self.vault.md_paths()
            if any(p == n or p.endswith("/" + n) for n in names)
        ]
        if not matches:
            return None
        matches.sort(key=lambda p: (get_dirname(p) != folder, p.count("/"), p))
        return matches[0]

    def get_frontmatter(self, path: str) -> Optional[Dict[str, Any]]:
        if not self._is_file(path):
            return None
        return parse_frontmatter(self.vault.read(path)).data

    def get_raw_frontmatter(self, path: str) -> Optional[str]:
        if not self._is_file(path):
            return None
        yaml_text, _ = split_frontmatter(self.vault.read(path))
        return yaml_text
