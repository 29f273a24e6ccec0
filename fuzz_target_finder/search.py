"""Filter discovered functions down to candidate fuzz targets."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable

from fuzz_target_finder.classifier import FuzzabilityTier, is_fuzzable
from fuzz_target_finder.extractors import rustdoc, source_parser
from fuzz_target_finder.models import (
    FunctionItem,
    SearchResult,
    SkippedItem,
    Target,
    Visibility,
)
from fuzz_target_finder.type_shape import render_shape

logger = logging.getLogger(__name__)


class CoverageRule(Enum):
    """How many parameters must be fuzzable for a function to qualify."""

    ANY_PARAM = "any"
    ALL_PARAMS = "all"
    NONE_PARAM = "none"


@dataclass(frozen=True)
class Filter:
    """Criteria a function must meet to be reported.

    Attributes:
        visibility: Required visibility, or None to accept any
        tier: Widest kind of input counted as fuzzable
        coverage: How many parameters must be fuzzable
    """

    visibility: Visibility | None = None
    tier: FuzzabilityTier = FuzzabilityTier.BINARY_OR_TEXT
    coverage: CoverageRule = CoverageRule.ANY_PARAM

    @classmethod
    def from_flags(
        cls,
        binary_only: bool = False,
        public_only: bool = False,
        coverage: CoverageRule = CoverageRule.ANY_PARAM,
    ) -> "Filter":
        """Build the filter selected by the `list` command's flags."""
        return cls(
            visibility=Visibility.PUBLIC if public_only else None,
            tier=(
                FuzzabilityTier.BINARY_ONLY
                if binary_only
                else FuzzabilityTier.BINARY_OR_TEXT
            ),
            coverage=coverage,
        )

    def accepts(self, item: FunctionItem) -> bool:
        """Check visibility first, then classify every parameter."""
        if self.visibility is not None and item.visibility is not self.visibility:
            return False

        any_fuzzable = False
        all_fuzzable = True
        for name, shape in item.parameters:
            fuzzable = is_fuzzable(shape, self.tier)
            logger.debug(
                f"{item.name}: {name}: {render_shape(shape)} "
                f"{'is' if fuzzable else 'is not'} fuzzable"
            )
            if fuzzable:
                any_fuzzable = True
            else:
                all_fuzzable = False

        if self.coverage is CoverageRule.ALL_PARAMS:
            return any_fuzzable and all_fuzzable
        if self.coverage is CoverageRule.NONE_PARAM:
            return not any_fuzzable
        return any_fuzzable


def search(
    items: Iterable[FunctionItem], policy: Filter | None = None
) -> SearchResult:
    """Select the functions that satisfy `policy`, in their original order.

    Args:
        items: Functions produced by an extractor
        policy: Criteria to apply, or None to keep every function

    Returns:
        SearchResult with a Target per kept function, and a SkippedItem for
        each kept function missing its name or location
    """
    result = SearchResult()
    candidates = 0

    for item in items:
        if policy is not None and not policy.accepts(item):
            continue
        candidates += 1

        if item.name is None or not item.has_location:
            if item.name is None:
                reason = "missing name"
            else:
                reason = "missing source location"
            logger.warning(f"Skipping function {item.name or '<unnamed>'}: {reason}")
            result.skipped.append(SkippedItem(name=item.name, reason=reason))
            continue

        result.targets.append(
            Target(name=item.name, file_path=item.file_path, line=item.line)
        )

    logger.info(
        f"Search complete: {len(result.targets)} targets, "
        f"{len(result.skipped)} skipped of {candidates} candidates"
    )
    return result


def find_targets(
    path: Path,
    policy: Filter | None = None,
    extractor: str = "source",
    toolchain: str | None = "nightly",
) -> SearchResult:
    """Extract the functions under `path` and search them.

    Args:
        path: Source file, source directory, or Cargo project root
        policy: Criteria to apply, or None to keep every function
        extractor: "source" to parse files directly, "rustdoc" to build docs
        toolchain: Rustup toolchain used by the rustdoc extractor

    Returns:
        SearchResult of the matching functions

    Raises:
        ExtractionError: If the functions could not be extracted
    """
    logger.info(f"Commencing search of {path} with {policy}")
    if extractor == "rustdoc":
        items = rustdoc.extract_functions(Path(path), toolchain=toolchain)
    elif extractor == "source":
        items = source_parser.extract_functions(Path(path))
    else:
        raise ValueError(f"Unknown extractor: {extractor}")
    logger.info(f"Extracted {len(items)} functions with the {extractor} extractor")
    return search(items, policy)
