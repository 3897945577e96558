"""Pytest configuration and fixtures for PRVerdict tests."""

from typing import Callable

import pytest

from diff_parser import Diff, FileChange


def _file_section(path: str, added: list[str], removed: list[str]) -> str:
    """Build one file's section of a git-style unified diff."""
    if removed:
        header = (
            f"diff --git a/{path} b/{path}\n"
            "index 1111111..2222222 100644\n"
            f"--- a/{path}\n"
            f"+++ b/{path}\n"
            f"@@ -1,{len(removed)} +1,{len(added)} @@\n"
        )
    else:
        header = (
            f"diff --git a/{path} b/{path}\n"
            "new file mode 100644\n"
            "index 0000000..2222222\n"
            "--- /dev/null\n"
            f"+++ b/{path}\n"
            f"@@ -0,0 +1,{len(added)} @@\n"
        )
    body = "".join(f"-{line}\n" for line in removed)
    body += "".join(f"+{line}\n" for line in added)
    return header + body


def make_diff_text(files: dict[str, list[str]], removed: dict[str, list[str]] | None = None) -> str:
    removed = removed or {}
    return "".join(
        _file_section(path, added, removed.get(path, []))
        for path, added in files.items()
    )


@pytest.fixture
def diff_text_builder() -> Callable[..., str]:
    """Build unified diff text from ``{path: [added lines]}``."""
    return make_diff_text


@pytest.fixture
def sized_diff() -> Callable[[int, int], Diff]:
    """Build a Diff with *lines* changed lines spread over *files* files."""

    def build(lines: int, files: int) -> Diff:
        per_file, extra = divmod(lines, files)
        changes = [
            FileChange(
                path=f"src/module_{i}.py",
                lines_added=per_file + (1 if i < extra else 0),
                lines_removed=0,
            )
            for i in range(files)
        ]
        return Diff(files=tuple(changes))

    return build


@pytest.fixture
def clean_diff_text() -> str:
    """A small, documented change with tests: nothing to flag."""
    return make_diff_text(
        {
            "src/math_utils.py": [
                "def add(a, b):",
                '    """Add two numbers."""',
                "    return a + b",
            ],
            "tests/test_math_utils.py": [
                '"""Tests for math utils."""',
                "from src.math_utils import add",
                "",
                "def test_add():",
                "    assert add(1, 2) == 3",
            ],
        }
    )


@pytest.fixture
def insecure_diff_text() -> str:
    """A change with a hardcoded secret and SQL built by concatenation."""
    return make_diff_text(
        {
            "app/db.py": [
                '"""Database helpers."""',
                'password = "admin123"',
                "def get_user(user_id):",
                '    query = "SELECT * FROM users WHERE id = " + user_id',
                "    return query",
            ],
        }
    )
