from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from booker.core import errors
from booker.core.model import Level
from booker.core.paths import get_basename

YAML_HINT = "Hint: Check indentation, ensure each key has a ':' and list items start with '-'."
DEPRECATED_TYPE = "This note uses a deprecated Booker type. Update to `type: booker-recipe` or `type: booker-bundle`."
SELF_INCLUDE_SKIPPED = "I skipped one step to avoid a loop.\nA file tried to include its own output."
GENERIC_FAILURE = "Something went wrong while generating.\nCheck the log for details."

@dataclass(frozen=True)
class UserMessage:
    text: str
    severity: Level = Level.ERROR
    hint: Optional[str] = None

def format_cycle(cycle) -> str:
    return " → ".join(get_basename(p) for p in cycle)

def format_location(err: errors.FrontmatterSyntaxError) -> str:
    if err.line is None:
        return ""
    if err.column is None:
        return f" (line {err.line})"
    return f" (line {err.line}, col {err.column})"

def format_user_message(err: BaseException) -> UserMessage:
    """One remediation-oriented message per error; anything unknown gets the generic one."""
    if isinstance(err, errors.FrontmatterSyntaxError):
        return UserMessage(f"YAML syntax error{format_location(err)}: {err.reason}", hint=YAML_HINT)
    if isinstance(err, errors.InvalidType):
        return UserMessage(
            "This note isn’t a Booker recipe or bundle.\n"
            "Add `type: booker-recipe` or `type: booker-bundle` at the top."
        )
    if isinstance(err, errors.DeprecatedBundleSchema):
        return UserMessage(
            "This bundle uses the deprecated target schema.\n"
            "Update `targets` to a simple list of wikilinks or paths, then generate again.",
            severity=Level.WARNING,
        )
    if isinstance(err, errors.MissingOutput):
        return UserMessage('This recipe has no output file.\nAdd `output: "path/to/file.md"` to the YAML.')
    if isinstance(err, errors.MissingOrder):
        return UserMessage("This recipe has no sources yet.\nAdd an `order:` list with note links.")
    if isinstance(err, errors.MissingTargets):
        return UserMessage("This bundle has no targets yet.\nAdd a `targets:` list with note links.")
    if isinstance(err, errors.MissingAggregateOutput):
        return UserMessage(
            "This bundle’s aggregate has no output file.\nAdd `aggregate_output` to the YAML."
        )
    if isinstance(err, errors.SourceNotFound):
        return UserMessage(
            f"I couldn’t find the note ‘{err.reference}’.\nCheck the name or create the note."
        )
    if isinstance(err, errors.BundleMissingAggregateOutput):
        return UserMessage(
            f"The bundle ‘{err.bundle_name}’ has no final output.\n"
            "Add `aggregate_output` so it can be used here."
        )
    if isinstance(err, errors.CycleDetected):
        return UserMessage(
            f"These bundles reference each other in a loop:\n{format_cycle(err.cycle)}.\n"
            "Break the loop to continue."
        )
    if isinstance(err, errors.AggregateOutputConflict):
        return UserMessage(
            "This bundle’s final output conflicts with one of its targets.\n"
            "Choose a different `aggregate_output`."
        )
    return UserMessage(GENERIC_FAILURE)

def missing_links_message(missing) -> str:
    return f"I couldn’t find {len(missing)} note(s): {', '.join(missing)}."

def no_sources_message() -> str:
    return "None of the notes in `order` could be found.\nCheck the links, then generate again."

def missing_sources_message(missing) -> str:
    return (
        f"Some notes in `order` are missing: {', '.join(missing)}.\n"
        "Fix the links or set `build_continue_on_missing: true`."
    )
