from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from booker.core.errors import (
    AggregateOutputConflict,
    BookerError,
    BundleMissingAggregateOutput,
    CycleDetected,
    InvalidType,
    SourceNotFound,
)
from booker.core.links import LinkResolver
from booker.core import markdown
from booker.core.markdown import MAX_HEADING_LEVEL
from booker.core.model import (
    AggregateConfig,
    AggregateResult,
    BuildOptions,
    BuildResult,
    ContentChunk,
    HeadingEntry,
    Level,
    NoteType,
    RecipeConfig,
    TargetResult,
    TypeInfo,
)
from booker.core.paths import get_basename, normalize_path
from booker.logging import get_logger
from booker.stages.compile import Compiler, ensure_filename_title
from booker.stages.messages import (
    DEPRECATED_TYPE,
    GENERIC_FAILURE,
    SELF_INCLUDE_SKIPPED,
    format_user_message,
    missing_links_message,
    missing_sources_message,
    no_sources_message,
)
from booker.stages.parse import FrontmatterParser
from booker.stages.report import (
    BuildReporter,
    UserMessagePresenter,
    resolve_file_label,
    rollup_message,
)

log = get_logger()

@dataclass(frozen=True)
class Artifact:
    path: str
    content: str
    headings: Tuple[HeadingEntry, ...] = ()

@dataclass(frozen=True)
class BuildOutcome:
    status: Level
    kind: Optional[NoteType] = None
    artifact: Optional[Artifact] = None
    target: Optional[TargetResult] = None   # recipes
    result: Optional[BuildResult] = None    # bundles

    @property
    def artifact_path(self) -> Optional[str]:
        return self.artifact.path if self.artifact else None

class BuildRunner:
    """
    Builds one note (recipe or bundle) and, for bundles, every target below it.

    call_stack is the tuple of normalized bundle paths above the current node;
    each recursive call receives a new, longer tuple.
    """

    def __init__(
        self,
        *,
        compiler: Compiler,
        parser: FrontmatterParser,
        link_resolver: LinkResolver,
        presenter: UserMessagePresenter,
        index=None,
        dry_run: bool = False,
    ) -> None:
        self.compiler = compiler
        self.parser = parser
        self.link_resolver = link_resolver
        self.presenter = presenter
        self.index = index
        self.dry_run = dry_run

    def build_current_file(
        self,
        path: str,
        call_stack: Sequence[str] = (),
        *,
        reporter: Optional[BuildReporter] = None,
        policy: Optional[BuildOptions] = None,
    ) -> BuildOutcome:
        reporter = reporter if reporter is not None else BuildReporter(self.presenter)
        path = normalize_path(path)
        stack = tuple(call_stack)
        label = get_basename(path)

        try:
            frontmatter = self.parser.get_frontmatter(path)
            label = resolve_file_label(path, frontmatter)
            if frontmatter is None:
                raise InvalidType(None)

            type_info = self.parser.normalize_type(frontmatter.get("type"))
            if type_info.normalized is None:
                raise InvalidType(frontmatter.get("type"))

            if type_info.normalized is NoteType.BUNDLE and path in stack:
                start = stack.index(path)
                raise CycleDetected(stack[start:] + (path,))

            if type_info.deprecated:
                log.warning(f"deprecated type {frontmatter.get('type')!r} in {path}")
                reporter.announce(Level.WARNING, label, DEPRECATED_TYPE)
            self._log_deprecations(path, frontmatter, type_info)

            if type_info.normalized is NoteType.RECIPE:
                return self._build_recipe(path, frontmatter, label, reporter, policy, type_info.deprecated)
            return self._build_bundle(path, frontmatter, label, stack, reporter, policy, type_info.deprecated)

        except BookerError as e:
            return BuildOutcome(status=self._report_error(reporter, label, path, e))
        except Exception:
            log.exception(f"unhandled error while building {path}")
            reporter.record(Level.ERROR, label, GENERIC_FAILURE)
            return BuildOutcome(status=Level.ERROR)

    # ---- recipes ----

    def _build_recipe(
        self,
        path: str,
        frontmatter: Mapping[str, Any],
        label: str,
        reporter: BuildReporter,
        policy: Optional[BuildOptions],
        deprecated: bool,
    ) -> BuildOutcome:
        config = self.parser.parse_recipe_config(frontmatter, path)
        result = self.compiler.compile(config, path)
        warned = deprecated

        if result.skipped_self_includes:
            log.warning(f"skipped self-inclusion for {path}: {', '.join(result.skipped_self_includes)}")
            reporter.announce(Level.WARNING, label, SELF_INCLUDE_SKIPPED)
            warned = True

        if result.missing_links:
            log.warning(f"missing files for {path}: {', '.join(result.missing_links)}")
            warned = True

        success = result.resolved_count > 0
        if result.missing_links and policy is not None and not policy.continue_on_missing:
            success = False

        target = TargetResult(
            name=get_basename(path),
            output_path=config.output_path,
            success=success,
            resolved_count=result.resolved_count,
            missing_links=result.missing_links,
            skipped_self_includes=result.skipped_self_includes,
        )

        if not success:
            if result.resolved_count == 0:
                reporter.record(Level.ERROR, label, no_sources_message())
            else:
                reporter.record(Level.ERROR, label, missing_sources_message(result.missing_links))
            return BuildOutcome(status=Level.ERROR, kind=NoteType.RECIPE, target=target)

        if result.missing_links:
            reporter.announce(Level.WARNING, label, missing_links_message(result.missing_links))

        dry_run = self._dry_run(policy)
        if not dry_run:
            self.compiler.write_output(config.output_path, result.content)

        status = Level.WARNING if warned else Level.SUCCESS
        reporter.record(status, label, _done_message(status, dry_run, config.output_path))
        return BuildOutcome(
            status=status,
            kind=NoteType.RECIPE,
            artifact=Artifact(config.output_path, result.content, result.headings),
            target=target,
        )

    # ---- bundles ----

    def _build_bundle(
        self,
        path: str,
        frontmatter: Mapping[str, Any],
        label: str,
        call_stack: Tuple[str, ...],
        reporter: BuildReporter,
        policy: Optional[BuildOptions],
        deprecated: bool,
    ) -> BuildOutcome:
        config = self.parser.parse_bundle_config(frontmatter, path)
        opts = config.build_options
        dry_run = self._dry_run(policy) or opts.dry_run
        child_policy = replace(opts, dry_run=dry_run)
        stack = call_stack + (path,)

        own = BuildReporter(self.presenter)
        n = len(config.targets)
        own.announce(Level.INFO, label, f"Running {n} target{'' if n == 1 else 's'}…")

        results: List[TargetResult] = []
        chunks: List[ContentChunk] = []
        outputs: List[str] = []
        tree: List[Tuple[ContentChunk, Sequence[HeadingEntry]]] = []

        for i, ref in enumerate(config.targets):
            target, artifact = self._build_target(ref, path, label, stack, own, child_policy)
            results.append(target)
            if artifact is not None:
                chunk = ContentChunk(artifact.content, get_basename(artifact.path), artifact.path)
                chunks.append(chunk)
                outputs.append(normalize_path(artifact.path))
                tree.append((chunk, artifact.headings))
            if not target.success and opts.stop_on_error:
                if i + 1 < n:
                    log.info(f"stop_on_error: skipping {n - i - 1} remaining target(s) of {path}")
                break

        aggregate = config.aggregate
        if aggregate is None:
            raise BundleMissingAggregateOutput(get_basename(path))

        artifact: Optional[Artifact] = None
        if not chunks:
            log.info(f"no successful targets to aggregate for {path}")
            own.announce(Level.INFO, label, "No target succeeded, so nothing was combined.")
        elif normalize_path(aggregate.output_path) in outputs:
            raise AggregateOutputConflict(aggregate.output_path)
        else:
            override = None
            if aggregate.options.toc_scope == "tree":
                override = tree_headings(aggregate, tree)
            doc = self.compiler.compile_from_chunks(
                chunks,
                RecipeConfig(
                    output_path=aggregate.output_path,
                    order=(),
                    options=aggregate.options,
                    title=aggregate.title,
                ),
                override,
            )
            if not dry_run:
                self.compiler.write_output(aggregate.output_path, doc.content)
            artifact = Artifact(aggregate.output_path, doc.content, doc.headings)

        successes = sum(1 for r in results if r.success)
        result = BuildResult(
            targets=tuple(results),
            successes=successes,
            failures=len(results) - successes,
            missing_total=sum(len(r.missing_links) for r in results),
            aggregate=AggregateResult(
                attempted=True,
                success=artifact is not None,
                output_path=aggregate.output_path,
            ),
        )

        status = own.status
        if deprecated and status is Level.SUCCESS:
            status = Level.WARNING
        reporter.record(
            status,
            label,
            rollup_message(status, own.counts),
            notify=opts.summary_notice,
        )
        return BuildOutcome(status=status, kind=NoteType.BUNDLE, artifact=artifact, result=result)

    def _build_target(
        self,
        ref: str,
        bundle_path: str,
        bundle_label: str,
        stack: Tuple[str, ...],
        reporter: BuildReporter,
        policy: BuildOptions,
    ) -> Tuple[TargetResult, Optional[Artifact]]:
        linkpath = self.link_resolver.normalize_link_string(ref)
        resolved = self.link_resolver.resolve_to_file(linkpath, bundle_path)
        if resolved is None:
            self._report_error(reporter, bundle_label, bundle_path, SourceNotFound(linkpath))
            return TargetResult(name=linkpath, output_path="", success=False), None

        outcome = self.build_current_file(resolved, stack, reporter=reporter, policy=policy)
        if outcome.target is not None:
            return outcome.target, outcome.artifact

        artifact = outcome.artifact
        target = TargetResult(
            name=get_basename(resolved),
            output_path=artifact.path if artifact else "",
            success=artifact is not None,
            resolved_count=1 if artifact else 0,
        )
        return target, artifact

    # ---- helpers ----

    def _dry_run(self, policy: Optional[BuildOptions]) -> bool:
        return self.dry_run or (policy is not None and policy.dry_run)

    def _report_error(self, reporter: BuildReporter, label: str, path: str, err: BookerError) -> Level:
        msg = format_user_message(err)
        log.debug(f"{err.code} while building {path}: {err.args[1:]}")
        reporter.record(msg.severity, label, msg.text)
        if msg.hint:
            reporter.announce(Level.INFO, label, msg.hint)
        return msg.severity

    def _log_deprecations(self, path: str, frontmatter: Mapping[str, Any], type_info: TypeInfo) -> None:
        raw = self.index.get_raw_frontmatter(path) if self.index is not None else None
        for w in self.parser.get_deprecation_warnings(frontmatter, type_info.normalized, raw):
            where = ""
            if w.location is not None:
                where = f" (line {w.location.line}, col {w.location.column})"
            log.warning(f"{path}{where}: {w.category}: {w.hint}")

def tree_headings(
    aggregate: AggregateConfig,
    children: Sequence[Tuple[ContentChunk, Sequence[HeadingEntry]]],
) -> List[HeadingEntry]:
    """
    Headings of nested builds, laid out the way the aggregate lays out its chunks:
    the "# <basename>" title it adds to a chunk, then that child's own headings,
    all shifted by the aggregate offset.
    """
    opts = aggregate.options
    offset = max(opts.heading_offset, 0)
    out: List[HeadingEntry] = []
    if aggregate.title:
        out.append(HeadingEntry(level=1, text=aggregate.title, source_path=aggregate.output_path))
    for chunk, headings in children:
        if not opts.strip_title:
            content = markdown.apply(chunk.content, opts)
            if ensure_filename_title(content, chunk.basename) != content:
                out.append(HeadingEntry(
                    level=min(1 + offset, MAX_HEADING_LEVEL),
                    text=chunk.basename,
                    source_path=chunk.source_path,
                ))
        for h in headings:
            out.append(replace(h, level=min(h.level + offset, MAX_HEADING_LEVEL)))
    return out

def _done_message(status: Level, dry_run: bool, output_path: str) -> str:
    if dry_run:
        return f"Dry run finished; {output_path} was not written."
    if status is Level.WARNING:
        return "Generation completed with warnings."
    return "Generation completed successfully."
