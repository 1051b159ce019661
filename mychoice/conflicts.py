"""
Detection of user-owned hosts entries that fight with the managed section.

A line outside the section that maps one of our hostnames would win or lose
against our entries depending on resolver order, so these are shown to the
operator before anything is written.
"""

from __future__ import annotations

from typing import Iterable, List, Set

from mychoice.hosts_section import outside_section


def find_conflicts(text: str, managed_hostnames: Iterable[str]) -> List[str]:
    """Trimmed unowned lines whose hostname column names a managed host.

    Only the first hostname on a line is checked. Order of first appearance is
    kept; duplicates are dropped.
    """
    managed: Set[str] = {h.lower() for h in managed_hostnames}
    conflicts: List[str] = []
    seen: Set[str] = set()
    for raw in outside_section(text).splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) < 2:
            continue
        if parts[1].lower() in managed and line not in seen:
            seen.add(line)
            conflicts.append(line)
    return conflicts


def remove_lines(text: str, lines: Iterable[str]) -> str:
    """Drop every line of `text` whose trimmed form is in `lines`.

    Applies to the whole file, managed section included. Remaining lines keep
    their original endings.
    """
    targets = {ln.strip() for ln in lines if ln.strip()}
    if not targets:
        return text
    lines_in = text.splitlines(keepends=True)
    kept = [ln for ln in lines_in if ln.strip() not in targets]
    # An unterminated last line that gets removed leaves the file unterminated.
    last = lines_in[-1] if lines_in else ""
    if kept and last.strip() in targets and not last.endswith(("\n", "\r")):
        kept[-1] = kept[-1].rstrip("\r\n")
    return "".join(kept)
