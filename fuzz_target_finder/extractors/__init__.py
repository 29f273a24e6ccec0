"""Extractors turning a Rust codebase into FunctionItems."""

from fuzz_target_finder.extractors import rustdoc, source_parser

EXTRACTORS = ("source", "rustdoc")

__all__ = [
    "EXTRACTORS",
    "rustdoc",
    "source_parser",
]
