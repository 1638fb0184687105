from __future__ import annotations

from typing import List, Optional, Sequence

from booker.core import markdown, toc
from booker.core.links import LinkResolver
from booker.core.model import (
    CompiledDocument,
    CompileResult,
    ContentChunk,
    HeadingEntry,
    RecipeConfig,
)
from booker.core.paths import get_basename, get_dirname, normalize_path
from booker.logging import get_logger

log = get_logger()

def ensure_filename_title(content: str, filename: str) -> str:
    title_line = f"# {filename}"
    trimmed = content.lstrip()
    if trimmed.startswith(f"{title_line}\n") or trimmed == title_line:
        return content
    return f"{title_line}\n\n{trimmed}"

def compile_from_chunks(
    chunks: Sequence[ContentChunk],
    config: RecipeConfig,
    toc_headings: Optional[Sequence[HeadingEntry]] = None,
) -> CompiledDocument:
    """
    Pure: the same (chunks, config) always gives the same document.

    Per chunk: strip front matter / first H1, add "# <basename>" unless
    strip_title, shift headings, collect headings, trim.
    """
    opts = config.options
    headings: List[HeadingEntry] = []
    if config.title:
        # the document title sits at level 1 and is never shifted
        headings.append(HeadingEntry(level=1, text=config.title, source_path=config.output_path))

    pieces: List[str] = []
    for chunk in chunks:
        content = markdown.apply(chunk.content, opts)
        if not opts.strip_title:
            content = ensure_filename_title(content, chunk.basename)
        content = markdown.apply_heading_offset(content, opts)
        headings.extend(markdown.extract_headings(content, chunk.source_path))
        pieces.append(content.strip())

    prefix = f"# {config.title}\n\n" if config.title else ""
    joined = markdown.join_chunks(pieces, opts.separator)
    content = f"{prefix}{joined}".rstrip() + "\n"

    if opts.toc:
        listed = headings if toc_headings is None else list(toc_headings)
        content = toc.apply(content, listed, opts, insert_after_title=bool(config.title))

    return CompiledDocument(content=content, headings=tuple(headings))

class Compiler:
    def __init__(self, link_resolver: LinkResolver, storage) -> None:
        self.link_resolver = link_resolver
        self.storage = storage

    def compile(self, config: RecipeConfig, context_path: str) -> CompileResult:
        chunks: List[ContentChunk] = []
        missing: List[str] = []
        skipped: List[str] = []
        own_output = normalize_path(config.output_path)

        for item in config.order:
            linkpath = self.link_resolver.normalize_link_string(item)
            target = self.link_resolver.resolve_to_file(linkpath, context_path)
            if target is None:
                missing.append(linkpath)
                continue
            target = normalize_path(target)
            if target == own_output:
                skipped.append(target)
                continue
            try:
                content = self.storage.read(target)
            except UnicodeDecodeError:
                log.error(f"Non-UTF8 rejected: {target}")
                missing.append(linkpath)
                continue
            chunks.append(ContentChunk(content=content, basename=get_basename(target), source_path=target))

        doc = compile_from_chunks(chunks, config)
        return CompileResult(
            content=doc.content,
            headings=doc.headings,
            missing_links=tuple(missing),
            skipped_self_includes=tuple(skipped),
            resolved_count=len(chunks),
        )

    def compile_from_chunks(
        self,
        chunks: Sequence[ContentChunk],
        config: RecipeConfig,
        toc_headings: Optional[Sequence[HeadingEntry]] = None,
    ) -> CompiledDocument:
        return compile_from_chunks(chunks, config, toc_headings)

    def write_output(self, path: str, content: str) -> None:
        path = normalize_path(path)
        folder = get_dirname(path)
        if folder:
            existing = self.storage.lookup_by_path(folder)
            if existing is None or existing.kind != "folder":
                self.storage.create_folder(folder)
        self.storage.write(path, content)
        log.debug(f"wrote {path} ({len(content)} chars)")
