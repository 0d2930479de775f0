"""gradle_lint/patcher.py – apply anchored edits to the original source.

Algorithm
---------
1. Every edit maps to an insertion index in the original line list:
   before a node → ``node.line - 1``; after a node → ``node.last_line``;
   document start → ``0``.
2. Multi-line text has its common indentation stripped (the smallest
   leading whitespace of every non-blank line but the first) and every
   non-blank line is re-indented to the anchor's column.  Edits at the
   document start are not indented.
3. Insertions are applied from the highest index to the lowest so that
   no insertion shifts an index still waiting to be used.  Edits that
   land on the same index keep a fixed order: document-start edits,
   then after-edits, then before-edits, each in the order planned.

The patcher performs no validation of the result.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Sequence, Tuple

from gradle_lint.ast import Node
from gradle_lint.errors import PatchError
from gradle_lint.violation import Edit, Placement

__all__ = ["SourcePatcher", "apply_edits", "reindent", "source_snippet"]

logger = logging.getLogger(__name__)

# Same-index ordering: document start, after, before.
_DOCUMENT_RANK = 0
_AFTER_RANK = 1
_BEFORE_RANK = 2


def _leading(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def reindent(text: str, column: int) -> List[str]:
    """Strip common indentation from ``text`` and indent it to ``column``."""
    lines = [line.rstrip("\r") for line in text.split("\n")]
    rest = [line for line in lines[1:] if line.strip()]
    if rest:
        common = min(_leading(line) for line in rest)
    else:
        common = _leading(lines[0])
    pad = " " * max(column - 1, 0)
    out = []
    for line in lines:
        if not line.strip():
            out.append("")
            continue
        out.append(pad + line[min(common, _leading(line)):])
    return out


class SourcePatcher:
    """Applies a list of :class:`Edit` to one source text.

    Usage
    -----
    >>> patcher = SourcePatcher(source)
    >>> corrected = patcher.apply(violation.edits)
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.separator = "\r\n" if "\r\n" in source else "\n"
        self.lines: List[str] = source.split(self.separator) if source else []

    def _index(self, edit: Edit) -> Tuple[int, int]:
        if edit.at_document_start:
            return 0, _DOCUMENT_RANK
        node = edit.anchor
        if not isinstance(node, Node):
            raise PatchError(f"edit anchor is not a syntax node: {node!r}")
        if node.line < 1 or node.last_line > len(self.lines):
            raise PatchError(
                f"edit anchored at lines {node.line}-{node.last_line} "
                f"outside a source of {len(self.lines)} lines"
            )
        if edit.placement is Placement.INSERT_BEFORE:
            return node.line - 1, _BEFORE_RANK
        return node.last_line, _AFTER_RANK

    def apply(self, edits: Iterable[Edit]) -> str:
        grouped: Dict[int, List[Tuple[int, int, Edit]]] = defaultdict(list)
        for order, edit in enumerate(edits):
            index, rank = self._index(edit)
            grouped[index].append((rank, order, edit))

        lines = list(self.lines)
        for index in sorted(grouped, reverse=True):
            block: List[str] = []
            for _, _, edit in sorted(grouped[index], key=lambda item: item[:2]):
                column = 1 if edit.at_document_start else edit.anchor.column
                block.extend(reindent(edit.text, column))
            lines[index:index] = block
            logger.debug("inserted %d line(s) at line index %d", len(block), index)
        return self.separator.join(lines)


def apply_edits(source: str, edits: Sequence[Edit]) -> str:
    """Return ``source`` with every edit applied."""
    if not edits:
        return source
    return SourcePatcher(source).apply(edits)


def source_snippet(source_lines: Sequence[str], node: Node) -> str:
    """The code of ``node``: text outside its columns removed, common indentation stripped."""
    if node.line < 1 or node.last_line > len(source_lines):
        return node.text
    lines = list(source_lines[node.line - 1:node.last_line])
    if len(lines) == 1:
        return lines[0][node.column - 1:node.last_column - 1]
    lines[0] = lines[0][node.column - 1:]
    lines[-1] = lines[-1][:node.last_column - 1]
    body = [line for line in lines[1:] if line.strip()]
    common = min((_leading(line) for line in body), default=0)
    return "\n".join([lines[0]] + [line[min(common, _leading(line)):] for line in lines[1:]])
