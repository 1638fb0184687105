from __future__ import annotations

import argparse
from pathlib import Path

from booker.config import RunConfig
from booker.context import BookerContext
from booker.core.model import Level
from booker.io.fs import relpath_under
from booker.logging import get_logger, set_verbose
from booker.stages.scaffold import KINDS
from booker.stages.status import format_status, inspect_note

log = get_logger()

def _note_path(vault_root: Path, note: str) -> str:
    p = Path(note).expanduser()
    if p.is_absolute():
        return relpath_under(vault_root, p).as_posix()
    return p.as_posix()

def _context(args) -> BookerContext:
    cfg = RunConfig(
        vault_root=Path(args.vault).expanduser().resolve(),
        dry_run=bool(getattr(args, "dry_run", False)),
        verbose=bool(args.verbose),
    )
    set_verbose(cfg.verbose)
    return BookerContext(cfg)

def _cmd_build(args) -> int:
    ctx = _context(args)
    outcome = ctx.build_runner.build_current_file(args.note)
    log.debug(f"done: {args.note} status={outcome.status.value} output={outcome.artifact_path}")
    return 1 if outcome.status is Level.ERROR else 0

def _cmd_inspect(args) -> int:
    ctx = _context(args)
    status = inspect_note(ctx.vault, ctx.index, ctx.parser, ctx.link_resolver, args.note)
    for line in format_status(status):
        print(line)
    return 1 if status.state == "invalid" else 0

def _cmd_new(args) -> int:
    ctx = _context(args)
    created = ctx.scaffolder.create(
        args.kind,
        args.path,
        prefill=bool(args.prefill),
        include_subfolders=bool(args.include_subfolders),
    )
    return 0 if created else 1

def main(argv=None) -> int:
    p = argparse.ArgumentParser(prog="booker")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    b = sub.add_parser("build", help="Build a recipe or bundle note")
    b.add_argument("vault", help="Path to the vault")
    b.add_argument("note", help="Note to build (vault-relative path)")
    b.add_argument("--dry-run", action="store_true", help="No writes; report only")
    b.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="Debug logging")
    b.set_defaults(func=_cmd_build)

    i = sub.add_parser("inspect", help="Show the status of a recipe or bundle")
    i.add_argument("vault", help="Path to the vault")
    i.add_argument("note", help="Note to inspect (vault-relative path)")
    i.set_defaults(func=_cmd_inspect)

    n = sub.add_parser("new", help="Create a recipe or bundle from a template")
    n.add_argument("kind", choices=KINDS)
    n.add_argument("vault", help="Path to the vault")
    n.add_argument("path", help="Vault-relative path of the new note")
    n.add_argument("--prefill", action="store_true", help="List notes from the same folder")
    n.add_argument("--include-subfolders", action="store_true", help="Prefill from subfolders too")
    n.set_defaults(func=_cmd_new)

    args = p.parse_args(argv)
    vault_root = Path(args.vault).expanduser().resolve()
    for attr in ("note", "path"):
        value = getattr(args, attr, None)
        if value is None:
            continue
        try:
            setattr(args, attr, _note_path(vault_root, value))
        except ValueError:
            p.error(f"{value} is not inside the vault {vault_root}")
    return args.func(args)

if __name__ == "__main__":
    raise SystemExit(main())
