"""
Line diff between two text renderings of page content.

The default ``aligned`` mode compares lines at equal indexes: a single
inserted line near the top shows every following line as changed. The
``sequence`` mode uses difflib to match shifted lines instead.
"""

import difflib
import json
from typing import Any, List, Optional, Union

from .types import DiffMode, DiffResult, DiffRow, DiffRowType, DiffSummary


def render_content(content: Any) -> str:
    """Render content as 2-space-indented JSON for diffing."""
    return json.dumps(content if content is not None else {}, indent=2, ensure_ascii=False)


def _split(text: Optional[str]) -> List[str]:
    return (text or "").split("\n")


def _aligned_rows(left: List[str], right: List[str]) -> List[DiffRow]:
    rows = []
    for i in range(max(len(left), len(right))):
        a = left[i] if i < len(left) else None
        b = right[i] if i < len(right) else None
        if a == b:
            rows.append(DiffRow(type=DiffRowType.SAME, line=a))
            continue
        if a is not None:
            rows.append(DiffRow(type=DiffRowType.REMOVE, line=a))
        if b is not None:
            rows.append(DiffRow(type=DiffRowType.ADD, line=b))
    return rows


def _sequence_rows(left: List[str], right: List[str]) -> List[DiffRow]:
    rows = []
    matcher = difflib.SequenceMatcher(None, left, right, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            rows.extend(DiffRow(type=DiffRowType.SAME, line=line) for line in left[i1:i2])
            continue
        if tag in ("replace", "delete"):
            rows.extend(DiffRow(type=DiffRowType.REMOVE, line=line) for line in left[i1:i2])
        if tag in ("replace", "insert"):
            rows.extend(DiffRow(type=DiffRowType.ADD, line=line) for line in right[j1:j2])
    return rows


def diff_lines(
    from_text: Optional[str],
    to_text: Optional[str],
    mode: Union[DiffMode, str] = DiffMode.ALIGNED,
) -> DiffResult:
    """
    Compute a line-level delta.

    Args:
        from_text: Older text (None is treated as empty).
        to_text: Newer text (None is treated as empty).
        mode: ``aligned`` (index by index) or ``sequence`` (difflib).

    Returns:
        DiffResult with per-line rows and added/removed/unchanged counts.
    """
    left, right = _split(from_text), _split(to_text)
    if DiffMode(mode) == DiffMode.SEQUENCE:
        rows = _sequence_rows(left, right)
    else:
        rows = _aligned_rows(left, right)

    summary = DiffSummary(
        added=sum(1 for r in rows if r.type == DiffRowType.ADD),
        removed=sum(1 for r in rows if r.type == DiffRowType.REMOVE),
        unchanged=sum(1 for r in rows if r.type == DiffRowType.SAME),
    )
    return DiffResult(summary=summary, rows=rows)
