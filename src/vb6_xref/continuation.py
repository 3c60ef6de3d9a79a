# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Line continuation normalizer.

Merges physical lines joined by a trailing " _" into logical lines and
keeps, for each logical line, the physical line number where it starts.
Logical lines are only used for declaration discovery; edit addressing
always goes back to physical lines.
"""

from typing import List, Tuple

CONTINUATION_MARKER = "_"


def ends_with_continuation(line: str) -> bool:
    """True when the trimmed line ends with the continuation marker."""
    stripped = line.rstrip()
    if not stripped.endswith(CONTINUATION_MARKER):
        return False
    # "_" must stand alone: "foo_" is an identifier, "foo _" is a continuation
    return len(stripped) == 1 or not (stripped[-2].isalnum() or stripped[-2] == "_")


def collapse_line_continuations(lines: List[str]) -> Tuple[List[str], List[int]]:
    """Collapse continued physical lines into logical lines.

    Args:
        lines: Physical lines of one file, without line terminators.

    Returns:
        Tuple of (logical_lines, start_lines) where start_lines[i] is the
        1-based physical line at which logical line i starts.
    """
    logical: List[str] = []
    starts: List[int] = []

    i = 0
    total = len(lines)
    while i < total:
        current = lines[i]
        start = i + 1
        while ends_with_continuation(current):
            current = current.rstrip()[: -len(CONTINUATION_MARKER)].rstrip()
            if i + 1 >= total:
                break
            i += 1
            current = current + " " + lines[i].lstrip()
        logical.append(current)
        starts.append(start)
        i += 1

    return logical, starts


def physical_spans(start_lines: List[int], total_physical: int) -> List[Tuple[int, int]]:
    """Return inclusive (first, last) physical line ranges per logical line."""
    spans: List[Tuple[int, int]] = []
    for index, start in enumerate(start_lines):
        if index + 1 < len(start_lines):
            last = start_lines[index + 1] - 1
        else:
            last = total_physical
        spans.append((start, max(start, last)))
    return spans
