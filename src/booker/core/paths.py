from __future__ import annotations

from typing import List

def normalize_path(path: str) -> str:
    """
    Vault path form used everywhere:
    - forward slashes
    - no leading slash or "./"
    - "." and ".." segments collapsed, never climbing above the vault root
    """
    s = (path or "").replace("\\", "/").strip()
    parts: List[str] = []
    for seg in s.split("/"):
        if seg in {"", "."}:
            continue
        if seg == "..":
            if parts:
                parts.pop()
            continue
        parts.append(seg)
    return "/".join(parts)

def get_dirname(path: str) -> str:
    p = normalize_path(path)
    idx = p.rfind("/")
    return "" if idx == -1 else p[:idx]

def get_basename(path: str) -> str:
    p = normalize_path(path)
    name = p.rsplit("/", 1)[-1]
    return name[:-3] if name.endswith(".md") else name

def join_path(folder: str, name: str) -> str:
    folder = normalize_path(folder)
    return normalize_path(f"{folder}/{name}" if folder else name)
