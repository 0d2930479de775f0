"""gradle_lint/bookmarks.py – per-traversal label → node store.

A rule remembers where interesting constructs were seen (the first
plugin declaration, the last ``apply plugin:`` statement, ...) so that
it can anchor edits on them once the traversal is complete.

Each label has a fixed write policy:

* ``FIRST_WINS`` – only the first write sticks; later writes are ignored.
* ``LAST_WINS``  – every write replaces the previous node.

Labels the rule never declared behave as last-wins.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Dict, Iterator, Mapping, Optional

from gradle_lint.ast import Node
from gradle_lint.errors import RuleContractError

__all__ = ["BookmarkPolicy", "BookmarkStore"]


class BookmarkPolicy(Enum):
    FIRST_WINS = auto()
    LAST_WINS = auto()


class BookmarkStore:
    """Label → node mapping owned by one rule instance for one traversal.

    Usage
    -----
    >>> store = BookmarkStore({"firstPlugin": BookmarkPolicy.FIRST_WINS})
    >>> store.set("firstPlugin", node_a)
    >>> store.set("firstPlugin", node_b)
    >>> store.get("firstPlugin") is node_a
    True
    """

    def __init__(self, policies: Optional[Mapping[str, BookmarkPolicy]] = None) -> None:
        self._policies: Dict[str, BookmarkPolicy] = {}
        self._marks: Dict[str, Node] = {}
        for label, policy in (policies or {}).items():
            self.declare(label, policy)

    def declare(self, label: str, policy: BookmarkPolicy) -> None:
        """Fix the write policy of ``label``; changing it later is an error."""
        current = self._policies.get(label)
        if current is not None and current is not policy:
            raise RuleContractError(
                f"bookmark {label!r} already declared {current.name}, cannot redeclare {policy.name}"
            )
        self._policies[label] = policy

    def policy(self, label: str) -> BookmarkPolicy:
        return self._policies.get(label, BookmarkPolicy.LAST_WINS)

    def set(self, label: str, node: Node) -> bool:
        """Write ``node`` under ``label``; returns ``False`` when a first-wins label was already set."""
        if self.policy(label) is BookmarkPolicy.FIRST_WINS and label in self._marks:
            return False
        self._marks[label] = node
        return True

    def get(self, label: str) -> Optional[Node]:
        return self._marks.get(label)

    def clear(self) -> None:
        """Drop all bookmarks; declared policies survive."""
        self._marks.clear()

    def __contains__(self, label: str) -> bool:
        return label in self._marks

    def __iter__(self) -> Iterator[str]:
        return iter(self._marks)

    def __len__(self) -> int:
        return len(self._marks)
