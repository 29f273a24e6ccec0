"""Tests for data models."""

import json

from fuzz_target_finder.models import (
    FunctionItem,
    SearchResult,
    SkippedItem,
    Target,
    Visibility,
)


class TestTarget:
    def test_renders_as_location_and_name(self):
        """A target prints as `<file path>:<line>: <name>`."""
        target = Target(name="parse", file_path="src/lib.rs", line=12)
        assert str(target) == "src/lib.rs:12: parse"

    def test_to_dict(self):
        target = Target(name="parse", file_path="src/lib.rs", line=12)
        assert target.to_dict() == {
            "name": "parse",
            "file_path": "src/lib.rs",
            "line": 12,
        }


class TestFunctionItem:
    def test_has_location_needs_file_and_line(self):
        """An item is only located when both file and line are known."""
        item = FunctionItem(name="f", visibility=Visibility.PUBLIC, parameters=[])
        assert item.has_location is False

        item.file_path = "src/lib.rs"
        assert item.has_location is False

        item.line = 3
        assert item.has_location is True


class TestSearchResult:
    def given_empty_result(self):
        self.result = SearchResult()

    def given_result_with_targets(self):
        self.result = SearchResult(
            targets=[
                Target(name="f", file_path="src/lib.rs", line=1),
                Target(name="h", file_path="src/lib.rs", line=9),
            ],
            skipped=[SkippedItem(name="lost", reason="missing source location")],
        )

    def when_serialized_to_json(self):
        self.parsed = json.loads(self.result.to_json())

    def test_empty_result_serializes_to_empty_array(self):
        """No targets is an empty JSON array, not an error."""
        self.given_empty_result()
        self.when_serialized_to_json()
        assert self.parsed == []

    def test_json_lists_targets_in_order(self):
        """Targets serialize as objects with name, file_path and line."""
        self.given_result_with_targets()
        self.when_serialized_to_json()
        assert self.parsed == [
            {"name": "f", "file_path": "src/lib.rs", "line": 1},
            {"name": "h", "file_path": "src/lib.rs", "line": 9},
        ]

    def test_json_leaves_out_skipped_items(self):
        self.given_result_with_targets()
        assert "lost" not in self.result.to_json()

    def test_json_indentation(self):
        self.given_result_with_targets()
        assert "\n  " in self.result.to_json(indent=2)

    def test_text_has_one_line_per_target(self):
        self.given_result_with_targets()
        assert self.result.to_text() == "src/lib.rs:1: f\nsrc/lib.rs:9: h"

    def test_empty_text(self):
        self.given_empty_result()
        assert self.result.to_text() == ""
