from __future__ import annotations

from typing import Optional, Protocol

class LinkIndex(Protocol):
    def resolve(self, reference: str, from_path: str) -> Optional[str]: ...

def normalize_link_string(raw: str) -> str:
    """
    "[[Folder/Note|Alias]]" -> "Folder/Note"
    "  Folder/Note "        -> "Folder/Note"
    """
    s = (raw or "").strip()
    if s.startswith("[[") and s.endswith("]]"):
        inner = s[2:-2]
        return inner.split("|", 1)[0].strip()
    return s

class LinkResolver:
    def __init__(self, index: LinkIndex) -> None:
        self.index = index

    def normalize_link_string(self, raw: str) -> str:
        return normalize_link_string(raw)

    def resolve_to_file(self, linkpath: str, from_path: str) -> Optional[str]:
        # None means "missing", never an exception
        if not linkpath:
            return None
        return self.index.resolve(linkpath, from_path)
