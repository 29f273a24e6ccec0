"""Find candidate fuzz targets in Rust codebases."""

from fuzz_target_finder.classifier import FuzzabilityTier, is_fuzzable
from fuzz_target_finder.models import FunctionItem, SearchResult, Target, Visibility
from fuzz_target_finder.search import CoverageRule, Filter, find_targets, search

__all__ = [
    "CoverageRule",
    "Filter",
    "FunctionItem",
    "FuzzabilityTier",
    "SearchResult",
    "Target",
    "Visibility",
    "find_targets",
    "is_fuzzable",
    "search",
]
