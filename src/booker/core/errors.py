from __future__ import annotations

from typing import Any, Optional, Tuple

class BookerError(Exception):
    """Base for every configuration, resolution and build error.

    Each subclass is one entry of the error taxonomy and carries structured
    payload only; display text lives in booker.stages.messages.
    """

    code = "BOOKER_ERROR"

    def __init__(self, *args: Any) -> None:
        super().__init__(self.code, *args)

class InvalidType(BookerError):
    code = "INVALID_TYPE"

    def __init__(self, raw_type: Any = None) -> None:
        super().__init__(raw_type)
        self.raw_type = raw_type

class MissingOutput(BookerError):
    code = "MISSING_OUTPUT"

class MissingOrder(BookerError):
    code = "MISSING_ORDER"

class MissingTargets(BookerError):
    code = "MISSING_TARGETS"

class MissingAggregateOutput(BookerError):
    code = "MISSING_AGGREGATE_OUTPUT"

class BundleMissingAggregateOutput(BookerError):
    code = "BUNDLE_MISSING_AGGREGATE_OUTPUT"

    def __init__(self, bundle_name: str) -> None:
        super().__init__(bundle_name)
        self.bundle_name = bundle_name

class SourceNotFound(BookerError):
    code = "SOURCE_NOT_FOUND"

    def __init__(self, reference: str) -> None:
        super().__init__(reference)
        self.reference = reference

class CycleDetected(BookerError):
    code = "CYCLE_DETECTED"

    def __init__(self, cycle: Tuple[str, ...]) -> None:
        super().__init__(cycle)
        # normalized source paths, start node repeated at the end
        self.cycle = tuple(cycle)

class AggregateOutputConflict(BookerError):
    code = "AGGREGATE_OUTPUT_CONFLICT"

    def __init__(self, output_path: str) -> None:
        super().__init__(output_path)
        self.output_path = output_path

class DeprecatedBundleSchema(BookerError):
    code = "DEPRECATED_BUNDLE_SCHEMA"

class FrontmatterSyntaxError(BookerError):
    code = "YAML_SYNTAX"

    def __init__(self, reason: str, line: Optional[int] = None, column: Optional[int] = None) -> None:
        super().__init__(reason, line, column)
        self.reason = reason
        self.line = line
        self.column = column
