"""gradle_lint/violation.py – violations and the edits that fix them.

An :class:`Edit` inserts text before or after a node of the original
parse, or at the very start of the document.  Edits are always planned
against the original text; :mod:`gradle_lint.patcher` applies them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Union

from gradle_lint.ast import Node

__all__ = ["DOCUMENT_START", "Edit", "Placement", "Violation"]


class _DocumentStart:
    """Sentinel anchor: offset 0 of the script, no indentation."""

    _instance: Optional["_DocumentStart"] = None

    def __new__(cls) -> "_DocumentStart":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DOCUMENT_START"


DOCUMENT_START = _DocumentStart()

Anchor = Union[Node, _DocumentStart]


class Placement(Enum):
    INSERT_BEFORE = auto()
    INSERT_AFTER = auto()


@dataclass(frozen=True)
class Edit:
    """Insert ``text`` before or after ``anchor``."""

    anchor: Anchor
    placement: Placement
    text: str

    @property
    def at_document_start(self) -> bool:
        return self.anchor is DOCUMENT_START


@dataclass
class Violation:
    """
    A single rule finding.

    Attributes
    ----------
    rule_id        : Id of the rule that produced this
    message        : Human-readable description
    node           : Node the finding is reported on (``None`` for whole-file findings)
    line           : 1-indexed line of ``node`` (``None`` without a node)
    source_snippet : The node's code with common indentation removed
    suppressed     : Raised inside an ignore region; never reported
    edits          : Insertions that fix the finding, in planning order
    """

    rule_id: str
    message: str
    node: Optional[Node] = None
    line: Optional[int] = None
    source_snippet: Optional[str] = None
    suppressed: bool = False
    edits: List[Edit] = field(default_factory=list)

    def insert_before(self, node: Node, text: str) -> "Violation":
        self.edits.append(Edit(node, Placement.INSERT_BEFORE, text))
        return self

    def insert_after(self, node: Node, text: str) -> "Violation":
        self.edits.append(Edit(node, Placement.INSERT_AFTER, text))
        return self

    def insert_at_document_start(self, text: str) -> "Violation":
        self.edits.append(Edit(DOCUMENT_START, Placement.INSERT_BEFORE, text))
        return self

    @property
    def fixable(self) -> bool:
        return bool(self.edits)

    def to_text(self, build_file: str = "build.gradle") -> str:
        """One-line report: ``file:line: warning: message [rule-id]``."""
        where = f"{build_file}:{self.line}" if self.line is not None else build_file
        return f"{where}: warning: {self.message} [{self.rule_id}]"
