from __future__ import annotations

from typing import Any, Dict, List, Optional

from booker.core.errors import FrontmatterSyntaxError
from booker.core.paths import join_path, normalize_path
from booker.core.yaml import dump_frontmatter
from booker.logging import get_logger
from booker.stages.parse import FrontmatterParser
from booker.stages.report import UserMessagePresenter

log = get_logger()

KINDS = ("recipe", "bundle")
PLACEHOLDER = "[[]]"

RECIPE_BODY = """# New Recipe

Describe what this recipe generates.

ℹ️ Edit the YAML above to list the notes to combine.
"""

BUNDLE_BODY = """# New Bundle

This bundle combines multiple recipes or bundles.

ℹ️ Edit the YAML above to list the recipes and bundles to run.
"""

def recipe_frontmatter(name: str, order: List[str]) -> Dict[str, Any]:
    return {
        "type": "booker-recipe",
        "title": name,
        "output": f"output/{name}.md",
        "order": order or [PLACEHOLDER],
        "recipe_strip_frontmatter": True,
        "recipe_strip_h1": True,
        "recipe_heading_offset": 1,
    }

def bundle_frontmatter(name: str, targets: List[str]) -> Dict[str, Any]:
    return {
        "type": "booker-bundle",
        "title": name,
        "targets": targets or [PLACEHOLDER],
        "aggregate_output": f"output/{name}.md",
    }

def render_template(kind: str, name: str, items: Optional[List[str]] = None) -> str:
    items = list(items or [])
    if kind == "recipe":
        return dump_frontmatter(recipe_frontmatter(name, items)) + RECIPE_BODY
    return dump_frontmatter(bundle_frontmatter(name, items)) + BUNDLE_BODY

class Scaffolder:
    """Creates recipe/bundle notes from templates, optionally prefilled from a folder."""

    def __init__(self, vault, parser: FrontmatterParser, presenter: UserMessagePresenter) -> None:
        self.vault = vault
        self.parser = parser
        self.presenter = presenter

    def create(
        self,
        kind: str,
        path: str,
        *,
        prefill: bool = False,
        include_subfolders: bool = False,
    ) -> Optional[str]:
        if kind not in KINDS:
            raise ValueError(f"unknown template kind: {kind!r}")

        head, _, name = (path or "").replace("\\", "/").rpartition("/")
        folder = normalize_path(head)
        name = name.strip()
        if not name or name == ".md":
            self.presenter.show_warning("Please enter a filename.")
            return None

        filename = name if name.endswith(".md") else f"{name}.md"
        target = join_path(folder, filename)
        if self.vault.lookup_by_path(target) is not None:
            self.presenter.show_warning("That file already exists. Choose a new name.")
            return None

        items: List[str] = []
        if prefill:
            items = self.collect_prefill(kind, folder, include_subfolders, exclude=target)
            log.debug(f"prefill for {target}: {len(items)} link(s) from {folder or '<root>'}")

        self.vault.write(target, render_template(kind, filename[:-3], items))
        self.presenter.show_success(f"Created {target}.")
        log.info(f"created {kind} {target}")
        return target

    def collect_prefill(self, kind: str, folder: str, include_subfolders: bool, exclude: str) -> List[str]:
        paths = sorted(
            normalize_path(ref.path)
            for ref in self.vault.list_children(folder, recursive=include_subfolders)
        )
        return [f"[[{p[:-3]}]]" for p in paths if self._eligible(kind, p, normalize_path(exclude))]

    def _eligible(self, kind: str, path: str, exclude: str) -> bool:
        if not path or path == exclude or not path.endswith(".md"):
            return False
        if "output" in path.split("/"):
            return False
        try:
            fm = self.parser.get_frontmatter(path)
        except FrontmatterSyntaxError:
            log.debug(f"prefill: unreadable front matter in {path}, treated as a plain note")
            fm = None
        info = self.parser.normalize_type(fm.get("type") if fm else None)
        is_booker = info.normalized is not None
        return not is_booker if kind == "recipe" else is_booker
