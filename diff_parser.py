"""Parser for unified diff format using unidiff library."""

from dataclasses import dataclass, field

from unidiff import PatchSet
from unidiff.errors import UnidiffParseError

from errors import MalformedDiffError


@dataclass(frozen=True)
class FileChange:
    """Parsed diff for a single file."""

    path: str
    lines_added: int
    lines_removed: int
    patch_text: str = ""                  # raw patch text
    status: str = "modified"              # added, deleted, modified, renamed
    added_lines: tuple[tuple[int, str], ...] = ()  # (line_num, content)

    def __post_init__(self):
        if self.lines_added < 0 or self.lines_removed < 0:
            raise ValueError(f"Negative line count for {self.path}")
        object.__setattr__(self, "added_lines", tuple(self.added_lines))

    @property
    def changed_lines(self) -> int:
        return self.lines_added + self.lines_removed


@dataclass(frozen=True)
class Diff:
    """An immutable, ordered set of file changes."""

    files: tuple[FileChange, ...] = field(default_factory=tuple)
    raw_text: str = ""

    def __post_init__(self):
        object.__setattr__(self, "files", tuple(self.files))

    def __iter__(self):
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)

    @property
    def files_count(self) -> int:
        return len(self.files)

    @property
    def lines_added(self) -> int:
        return sum(f.lines_added for f in self.files)

    @property
    def lines_removed(self) -> int:
        return sum(f.lines_removed for f in self.files)

    @property
    def changed_lines(self) -> int:
        return self.lines_added + self.lines_removed

    @property
    def text(self) -> str:
        """The diff as text: the original input, or the joined patches."""
        if self.raw_text:
            return self.raw_text
        return "\n".join(f.patch_text for f in self.files)

    @property
    def line_count(self) -> int:
        """Lines of diff text, headers and context included."""
        return len(self.text.split("\n")) if self.text else 0


def _file_status(patched_file) -> str:
    if patched_file.is_added_file:
        return "added"
    if patched_file.is_removed_file:
        return "deleted"
    if patched_file.is_rename:
        return "renamed"
    return "modified"


def parse_diff(diff_text: str) -> Diff:
    """
    Parse a unified diff into an immutable Diff.

    Empty or whitespace-only text is a valid, empty Diff. Any other text
    must contain at least one file header.

    Args:
        diff_text: Raw unified diff string

    Returns:
        Diff with one FileChange per file, in diff order

    Raises:
        MalformedDiffError: If the text is not a unified diff
    """
    if not diff_text or not diff_text.strip():
        return Diff(raw_text=diff_text or "")

    try:
        patch_set = PatchSet(diff_text)
    except UnidiffParseError as e:
        raise MalformedDiffError(f"Could not parse diff: {e}") from e

    if len(patch_set) == 0:
        raise MalformedDiffError(
            "No file changes found: expected 'diff --git' or '---'/'+++' headers"
        )

    files = []
    for patched_file in patch_set:
        added_lines = []
        for hunk in patched_file:
            for line in hunk:
                if line.is_added:
                    added_lines.append((line.target_line_no, line.value.rstrip("\n")))

        files.append(FileChange(
            path=patched_file.path,
            lines_added=patched_file.added,
            lines_removed=patched_file.removed,
            patch_text=str(patched_file),
            status=_file_status(patched_file),
            added_lines=tuple(added_lines),
        ))

    return Diff(files=tuple(files), raw_text=diff_text)


def extract_added_code(file: FileChange, include_line_numbers: bool = True) -> str:
    """
    Extract only the added lines as a code string.

    Args:
        file: FileChange object
        include_line_numbers: If True, prefix each line with its line number

    Returns:
        String containing only the new code
    """
    if not file.added_lines:
        return ""

    lines = []
    for line_num, content in file.added_lines:
        if include_line_numbers:
            lines.append(f"{line_num:4}| {content}")
        else:
            lines.append(content)

    return "\n".join(lines)
