"""
Text operations on the managed section of a hosts file.

The section is the span between two sentinel lines. Zero sentinels means the
file is unowned; a single sentinel is a leftover from an interrupted write and
everything from it to end of file is ours; with two or more, only the first
pair counts and anything after the second one belongs to the user.

All functions here are pure: they take the file text and return new text.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple

SECTION_MARKER = "# --+ Make Your Choice +--"


class SectionState(str, Enum):
    NONE = "none"
    COMPLETE = "complete"
    PARTIAL = "partial"


def _marker_spans(text: str, limit: int = 2) -> List[Tuple[int, int]]:
    """(start, end) offsets of up to `limit` sentinel lines, end past the newline."""
    spans: List[Tuple[int, int]] = []
    offset = 0
    for line in text.splitlines(keepends=True):
        if line.strip() == SECTION_MARKER:
            spans.append((offset, offset + len(line)))
            if len(spans) == limit:
                break
        offset += len(line)
    return spans


def locate_section(text: str) -> Optional[Tuple[int, int]]:
    """Return the owned (start, end) range, or None for an unowned file.

    For a partial section the end is len(text).
    """
    spans = _marker_spans(text)
    if not spans:
        return None
    if len(spans) == 1:
        return spans[0][0], len(text)
    return spans[0][0], spans[1][1]


def section_state(text: str) -> SectionState:
    spans = _marker_spans(text)
    if not spans:
        return SectionState.NONE
    if len(spans) == 1:
        return SectionState.PARTIAL
    return SectionState.COMPLETE


def section_inner(text: str) -> Optional[str]:
    """Content between a complete sentinel pair, else None."""
    spans = _marker_spans(text)
    if len(spans) < 2:
        return None
    return text[spans[0][1]:spans[1][0]]


def outside_section(text: str) -> str:
    """The part of the file this tool does not own."""
    located = locate_section(text)
    if located is None:
        return text
    start, end = located
    return text[:start] + text[end:]


def wrap_section(inner: str) -> str:
    if not inner:
        return ""
    if not inner.endswith("\n"):
        inner += "\n"
    return f"{SECTION_MARKER}\n{inner}{SECTION_MARKER}\n"


def replace_section(text: str, inner: str) -> str:
    """Swap the managed section for `inner`; an empty `inner` removes it.

    Appending to an unowned file leaves one blank line between the user's
    content and the block. Removing a block that sits at end of file drops
    that separator again, so apply followed by revert gives back the original.
    """
    block = wrap_section(inner)
    located = locate_section(text)

    if located is None:
        if not block:
            return text
        if not text:
            return block
        separator = "\n" if text.endswith("\n") else "\n\n"
        return text + separator + block

    start, end = located
    before, after = text[:start], text[end:]
    if not block and not after and before.endswith("\n\n"):
        before = before[:-1]
    return before + block + after
