"""Data models for discovered functions and search output."""

import json
from dataclasses import asdict, dataclass, field
from enum import Enum

from fuzz_target_finder.type_shape import TypeShape


class Visibility(Enum):
    """Item visibility, using the vocabulary of the rustdoc JSON model."""

    PUBLIC = "public"  # pub
    CRATE = "crate"  # pub(crate)
    RESTRICTED = "restricted"  # private, pub(super), pub(in path)
    DEFAULT = "default"  # inherited: trait items and trait impl methods


@dataclass
class FunctionItem:
    """A function found by an extractor."""

    name: str | None
    visibility: Visibility
    parameters: list[tuple[str, TypeShape]]  # [(name, shape), ...]
    file_path: str | None = None
    line: int | None = None  # 1-based

    @property
    def has_location(self) -> bool:
        return self.file_path is not None and self.line is not None


@dataclass(frozen=True)
class Target:
    """A candidate fuzz target."""

    name: str
    file_path: str
    line: int

    def __str__(self) -> str:
        return f"{self.file_path}:{self.line}: {self.name}"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SkippedItem:
    """A matched function that could not be reported."""

    name: str | None
    reason: str


@dataclass
class SearchResult:
    """Targets kept by a search, plus the matched items that were skipped."""

    targets: list[Target] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)

    def to_json(self, indent: int | None = None) -> str:
        """Serialize the targets as a JSON array.

        Skipped items are diagnostics and are not part of the output.
        """
        return json.dumps([t.to_dict() for t in self.targets], indent=indent)

    def to_text(self) -> str:
        """One `<file path>:<line>: <name>` line per target."""
        return "\n".join(str(t) for t in self.targets)
