"""Line number to byte offset translation."""

from __future__ import annotations

from typing import List, Optional


def build_line_offsets(src: bytes) -> List[int]:
    """Return offsets where ``offsets[line]`` is the first byte of ``line`` (1-based).

    Index 0 is a sentinel. One entry is added after every newline, so a file
    ending with a newline has a final entry equal to ``len(src)``.
    """
    offsets = [0, 0]
    start = 0
    while start < len(src):
        nl = src.find(b"\n", start)
        if nl < 0:
            break
        start = nl + 1
        offsets.append(start)
    return offsets


def offset_for_line(offsets: List[int], line: int) -> Optional[int]:
    if line < 1 or line >= len(offsets):
        return None
    return offsets[line]
