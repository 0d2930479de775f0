"""gradle_lint/model.py – domain values handed to rule callbacks.

These are plain immutable values: the structural visitor builds them
from the AST and passes them to :class:`gradle_lint.rule.Rule`
callbacks alongside the call node they were recognised from.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto
from functools import total_ordering
from typing import Optional, Tuple

__all__ = [
    "DeclarationKind",
    "DependencySyntax",
    "GradleDependency",
    "GradlePlugin",
    "GradleVersion",
    "ConfigurationExclude",
]


class DeclarationKind(Enum):
    """The constructs the structural visitor recognises."""

    BUILDSCRIPT_BLOCK = auto()
    REPOSITORIES_BLOCK = auto()
    DEPENDENCIES_BLOCK = auto()
    PLUGINS_BLOCK = auto()
    APPLY_PLUGIN_STATEMENT = auto()
    PLUGIN_DECLARATION = auto()
    DEPENDENCY_DECLARATION = auto()
    TASK_DECLARATION = auto()


class DependencySyntax(Enum):
    """How a dependency declaration was written."""

    MAP_NOTATION = auto()              # compile group: 'a', name: 'b'
    STRING_NOTATION = auto()           # compile 'a:b:1.0'
    EVALUATED_ARBITRARY_CODE = auto()  # compile "$group:b:$version"


_NOTATION = re.compile(
    r"^((?P<group>[^:]+):)?(?P<name>[^:]+)"
    r"(:(?P<version>[^@:]+)(?P<classifier>:[^@]+)?(?P<ext>@.+)?)?$"
)


@dataclass(frozen=True, slots=True)
class GradleDependency:
    """One dependency declaration, e.g. ``compile 'com.google.guava:guava:19.0'``."""

    name: str
    group: Optional[str] = None
    version: Optional[str] = None
    classifier: Optional[str] = None
    ext: Optional[str] = None
    conf: Optional[str] = None
    syntax: DependencySyntax = DependencySyntax.STRING_NOTATION

    @classmethod
    def from_notation(
        cls,
        notation: str,
        conf: Optional[str] = None,
        syntax: DependencySyntax = DependencySyntax.STRING_NOTATION,
    ) -> Optional["GradleDependency"]:
        """Parse ``group:name:version:classifier@ext``; ``None`` if it does not match."""
        match = _NOTATION.match(notation)
        if match is None:
            return None
        classifier = match.group("classifier")
        ext = match.group("ext")
        return cls(
            name=match.group("name"),
            group=match.group("group"),
            version=match.group("version"),
            classifier=classifier[1:] if classifier else None,
            ext=ext[1:] if ext else None,
            conf=conf,
            syntax=syntax,
        )

    def to_notation(self) -> str:
        notation = f"{self.group or ''}:{self.name}"
        if self.version:
            notation += f":{self.version}"
        if self.classifier:
            notation += f":{self.classifier}"
        if self.ext:
            notation += f"@{self.ext}"
        return notation

    def same_module(self, other: "GradleDependency") -> bool:
        return self.group == other.group and self.name == other.name


@dataclass(frozen=True, slots=True)
class GradlePlugin:
    """A plugin declared in a ``plugins {}`` block."""

    id: str
    version: Optional[str] = None
    apply: Optional[bool] = None


@dataclass(frozen=True, slots=True)
class ConfigurationExclude:
    """``exclude group: ..., module: ...`` inside ``configurations {}``."""

    group: Optional[str] = None
    module: Optional[str] = None


@total_ordering
@dataclass(frozen=True, slots=True)
class GradleVersion:
    """A Gradle release number, compared numerically part by part.

    Pre-release suffixes (``-rc-1``, ``-milestone-2``) sort before the
    release they precede.
    """

    parts: Tuple[int, ...]
    qualifier: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "GradleVersion":
        base, _, qualifier = text.strip().partition("-")
        try:
            parts = tuple(int(piece) for piece in base.split("."))
        except ValueError:
            raise ValueError(f"not a Gradle version: {text!r}") from None
        return cls(parts, qualifier or None)

    def _key(self):
        parts = self.parts + (0,) * (4 - len(self.parts))
        return parts, self.qualifier is None

    def __lt__(self, other: "GradleVersion") -> bool:
        if not isinstance(other, GradleVersion):
            return NotImplemented
        return self._key() < other._key()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GradleVersion):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = ".".join(str(part) for part in self.parts)
        return f"{text}-{self.qualifier}" if self.qualifier else text
