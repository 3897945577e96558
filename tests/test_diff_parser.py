"""Tests for diff parsing."""

import dataclasses

import pytest

from diff_parser import Diff, FileChange, extract_added_code, parse_diff
from errors import MalformedDiffError

MODIFIED_DIFF = """diff --git a/app/service.py b/app/service.py
index 83db48f..bf269f4 100644
--- a/app/service.py
+++ b/app/service.py
@@ -1,3 +1,4 @@
 import os
-import sys
+import json
+import logging
 def main():
"""


class TestParseDiff:
    def test_modified_file(self):
        diff = parse_diff(MODIFIED_DIFF)

        assert diff.files_count == 1
        change = diff.files[0]
        assert change.path == "app/service.py"
        assert change.status == "modified"
        assert change.lines_added == 2
        assert change.lines_removed == 1
        assert change.added_lines == ((2, "import json"), (3, "import logging"))

    def test_patch_text_keeps_hunk_lines(self):
        change = parse_diff(MODIFIED_DIFF).files[0]
        assert "-import sys" in change.patch_text
        assert "+import logging" in change.patch_text

    def test_raw_text_preserved(self):
        diff = parse_diff(MODIFIED_DIFF)
        assert diff.text == MODIFIED_DIFF

    def test_multiple_files_in_order(self, diff_text_builder):
        text = diff_text_builder(
            {"b.py": ["x = 1"], "a.py": ["y = 2", "z = 3"]},
        )
        diff = parse_diff(text)

        assert [f.path for f in diff] == ["b.py", "a.py"]
        assert [f.status for f in diff] == ["added", "added"]

    def test_totals_equal_sum_over_files(self, diff_text_builder):
        text = diff_text_builder(
            {"a.py": ["1", "2", "3"], "b.py": ["4"]},
            removed={"b.py": ["old", "older"]},
        )
        diff = parse_diff(text)

        assert diff.lines_added == sum(f.lines_added for f in diff) == 4
        assert diff.lines_removed == sum(f.lines_removed for f in diff) == 2
        assert diff.changed_lines == 6

    @pytest.mark.parametrize("text", ["", "   ", "\n\n\t\n"])
    def test_blank_text_is_empty_diff(self, text):
        diff = parse_diff(text)
        assert diff.files_count == 0
        assert diff.changed_lines == 0

    def test_garbage_text_is_malformed(self):
        with pytest.raises(MalformedDiffError):
            parse_diff("this is not a diff\njust some words\n")


class TestDiffModel:
    def test_diff_is_immutable(self):
        diff = Diff(files=(FileChange(path="a.py", lines_added=1, lines_removed=0),))
        with pytest.raises(dataclasses.FrozenInstanceError):
            diff.files = ()

    def test_lists_are_frozen_to_tuples(self):
        diff = Diff(files=[FileChange(path="a.py", lines_added=1, lines_removed=0)])
        assert isinstance(diff.files, tuple)

    def test_negative_counts_rejected(self):
        with pytest.raises(ValueError):
            FileChange(path="a.py", lines_added=-1, lines_removed=0)

    def test_text_falls_back_to_patches(self):
        diff = Diff(files=(
            FileChange(path="a.py", lines_added=1, lines_removed=0, patch_text="+a"),
            FileChange(path="b.py", lines_added=1, lines_removed=0, patch_text="+b"),
        ))
        assert diff.text == "+a\n+b"


def test_extract_added_code():
    change = FileChange(
        path="a.py",
        lines_added=2,
        lines_removed=0,
        added_lines=((4, "x = 1"), (5, "y = 2")),
    )
    assert extract_added_code(change) == "   4| x = 1\n   5| y = 2"
    assert extract_added_code(change, include_line_numbers=False) == "x = 1\ny = 2"
