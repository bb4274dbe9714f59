"""Patch parsing: hunk segmentation and commentable line numbers."""

import re

from src.core.exceptions import ParseError
from src.schemas.review import DiffChunk

HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$")

# Lines that may precede the first hunk of a file entry
FILE_HEADER_PREFIXES = (
    "diff --git ",
    "index ",
    "--- ",
    "+++ ",
    "new file mode",
    "deleted file mode",
    "old mode",
    "new mode",
    "similarity index",
    "dissimilarity index",
    "rename from",
    "rename to",
    "copy from",
    "copy to",
)


def segment_patch(patch: str) -> list[DiffChunk]:
    """Split one file's unified diff into per-hunk chunks, in order.

    Only the first file entry is read; a second ``diff --git`` line ends the
    scan.

    Args:
        patch: Unified diff text for a single file

    Returns:
        One DiffChunk per hunk header; empty for an empty patch

    Raises:
        ParseError: If a hunk header is malformed, a body line has an unknown
            prefix, a hunk is shorter than its header declares, or a non-empty
            patch contains no hunks
    """
    if not patch or not patch.strip():
        return []

    lines = patch.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    chunks: list[DiffChunk] = []
    seen_file_header = False
    i = 0

    while i < len(lines):
        line = lines[i]

        if line.startswith("diff --git "):
            if seen_file_header or chunks:
                break
            seen_file_header = True
            i += 1
            continue

        if not line.startswith("@@"):
            if not chunks and line.startswith(FILE_HEADER_PREFIXES):
                i += 1
                continue
            if line == "" or line.startswith("\\"):
                i += 1
                continue
            raise ParseError(
                f"Unexpected line {i + 1} outside a hunk: {line[:80]!r}",
                details={"line": i + 1},
            )

        match = HUNK_HEADER.match(line)
        if not match:
            raise ParseError(f"Malformed hunk header on line {i + 1}: {line[:80]!r}", details={"line": i + 1})

        old_start = int(match.group(1))
        old_lines = int(match.group(2)) if match.group(2) is not None else 1
        new_start = int(match.group(3))
        new_lines = int(match.group(4)) if match.group(4) is not None else 1

        body, i = _read_hunk_body(lines, i + 1, old_lines, new_lines)
        chunks.append(
            DiffChunk(
                content="\n".join([line, *body]),
                old_start=old_start,
                old_lines=old_lines,
                new_start=new_start,
                new_lines=new_lines,
            )
        )

    if not chunks:
        raise ParseError("Patch contains no hunks")

    return chunks


def _read_hunk_body(
    lines: list[str],
    start: int,
    old_remaining: int,
    new_remaining: int,
) -> tuple[list[str], int]:
    """Consume hunk body lines until the header counts are satisfied."""
    body: list[str] = []
    i = start

    while old_remaining > 0 or new_remaining > 0:
        if i >= len(lines):
            raise ParseError(
                f"Truncated hunk: {old_remaining} old and {new_remaining} new lines missing",
                details={"line": i},
            )
        line = lines[i]
        if line.startswith("@@") or line.startswith("diff --git "):
            raise ParseError(f"Truncated hunk before line {i + 1}", details={"line": i + 1})

        # Some tools strip the leading space from empty context lines
        if line.startswith(" ") or line == "":
            old_remaining -= 1
            new_remaining -= 1
        elif line.startswith("-"):
            old_remaining -= 1
        elif line.startswith("+"):
            new_remaining -= 1
        elif not line.startswith("\\"):
            raise ParseError(f"Invalid diff line {i + 1}: {line[:80]!r}", details={"line": i + 1})

        if old_remaining < 0 or new_remaining < 0:
            raise ParseError(f"Hunk longer than its header on line {i + 1}", details={"line": i + 1})

        body.append(line)
        i += 1

    # Trailing "\ No newline at end of file" markers belong to this hunk
    while i < len(lines) and lines[i].startswith("\\"):
        body.append(lines[i])
        i += 1

    return body, i


def parse_patch_line_numbers(patch: str) -> set[int]:
    """Extract valid line numbers from a unified diff patch.

    GitHub PR review comments can only be placed on lines that are part of
    the diff - specifically lines that were added (+) or removed (-).

    Args:
        patch: Unified diff patch string

    Returns:
        Set of valid line numbers (in the new file) for review comments
    """
    valid_lines = set()

    if not patch:
        return valid_lines

    current_line = 0

    for line in patch.split("\n"):
        hunk_match = HUNK_HEADER.match(line)
        if hunk_match:
            current_line = int(hunk_match.group(3))
            continue

        if current_line == 0:
            continue

        if line.startswith("+") and not line.startswith("+++"):
            valid_lines.add(current_line)
            current_line += 1
        elif line.startswith("-") and not line.startswith("---"):
            # Removed lines are anchored at the surrounding new-file position
            valid_lines.add(current_line)
        elif not line.startswith("\\"):
            current_line += 1

    return valid_lines


def split_comments_by_valid_lines(
    comments: list[dict],
    patches: dict[str, str],
) -> tuple[list[dict], list[dict]]:
    """Separate inline comments that land on a diff line from those that don't.

    Args:
        comments: Comment dicts with 'path', 'line' and 'body'
        patches: Mapping of filename to patch text

    Returns:
        Tuple of (valid_comments, invalid_comments)
    """
    valid_lines_by_file = {path: parse_patch_line_numbers(patch) for path, patch in patches.items()}

    valid = []
    invalid = []
    for comment in comments:
        line = comment.get("line")
        if isinstance(line, int) and line in valid_lines_by_file.get(comment.get("path", ""), set()):
            valid.append(comment)
        else:
            invalid.append(comment)

    return valid, invalid


def comment_anchor(chunk: DiffChunk) -> tuple[int, str]:
    """Line and side a chunk's review comment is attached to.

    Returns the last new-file line of the hunk on the RIGHT side, or the
    last old-file line on the LEFT side for hunks that only delete.
    """
    if chunk.new_lines > 0:
        return chunk.new_start + chunk.new_lines - 1, "RIGHT"
    return max(chunk.old_start + chunk.old_lines - 1, 1), "LEFT"
