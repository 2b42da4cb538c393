"""Member specification grammar.

A specification names the members of one dimension:

- ``Name`` — a single member.
- ``Parent.Name`` — a single member under an explicit parent.
- ``{ListName}`` / ``{Top.ListName}`` — a stored member list, optionally
  expanded beneath a top member, e.g. ``{[Base]}`` or ``{Group.[Descendants]}``.

The two classes are mutually exclusive: list references start with ``{``
and plain members contain no braces.  Every string either parses into
exactly one :class:`MemberSpec` or raises :class:`SpecificationError`.

Pure functions, no metadata access.  Resolution lives in
``cubectl.services.resolver``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from cubectl.domain.errors import SpecificationError

_LIST_PATTERN = re.compile(r"^\{(?:([^.{}]+)\.)?([^.{}]+)\}$")
_MEMBER_PATTERN = re.compile(r"^(?:([^.{}]+)\.)?([^.{}]+)$")


class SpecKind(StrEnum):
    MEMBER = "member"
    LIST = "list"


@dataclass(frozen=True)
class MemberSpec:
    """A parsed member specification."""

    kind: SpecKind
    name: str  # member name, or list name for LIST specs
    parent: str | None = None  # explicit parent, or list top member
    text: str = ""  # original text, kept for diagnostics

    @property
    def is_list(self) -> bool:
        return self.kind is SpecKind.LIST

    def __str__(self) -> str:
        inner = f"{self.parent}.{self.name}" if self.parent else self.name
        return f"{{{inner}}}" if self.is_list else inner


def _segments(text: str, match: re.Match[str]) -> tuple[str | None, str]:
    parent_raw, name_raw = match.group(1), match.group(2)
    name = name_raw.strip()
    parent = parent_raw.strip() if parent_raw is not None else None
    if not name:
        raise SpecificationError(text, "member name is empty")
    if parent is not None and not parent:
        raise SpecificationError(text, "parent name is empty")
    return parent, name


def parse_member_spec(text: str) -> MemberSpec:
    """Parse one specification string.

    Raises:
        SpecificationError: empty text, unbalanced or misplaced braces,
            more than one ``.`` qualifier, or an empty segment.
    """
    stripped = text.strip()
    if not stripped:
        raise SpecificationError(text, "specification is empty")

    if stripped.startswith("{"):
        match = _LIST_PATTERN.match(stripped)
        if match is None:
            raise SpecificationError(
                text, "member list references must look like {List} or {Top.List}"
            )
        parent, name = _segments(text, match)
        return MemberSpec(kind=SpecKind.LIST, name=name, parent=parent, text=text)

    if "{" in stripped or "}" in stripped:
        raise SpecificationError(text, "braces are only allowed around a member list name")

    match = _MEMBER_PATTERN.match(stripped)
    if match is None:
        raise SpecificationError(text, "members must look like Name or Parent.Name")
    parent, name = _segments(text, match)
    return MemberSpec(kind=SpecKind.MEMBER, name=name, parent=parent, text=text)


def split_spec_args(values: tuple[str, ...] | list[str]) -> list[str]:
    """Flatten repeated/comma-separated CLI values into individual specs.

    Commas inside braces are not separators, so ``{A},{B}`` gives two specs.
    Empty items are kept so that the parser reports them.
    """
    specs: list[str] = []
    for value in values:
        depth = 0
        current: list[str] = []
        for ch in value:
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth = max(0, depth - 1)
            if ch == "," and depth == 0:
                specs.append("".join(current))
                current = []
            else:
                current.append(ch)
        specs.append("".join(current))
    return specs


def compile_wildcard(pattern: str) -> re.Pattern[str]:
    """Convert a ``*``/``?`` wildcard pattern into a case-insensitive regex.

    Examples:
        >>> bool(compile_wildcard("Q?_*").match("q1_total"))
        True
        >>> bool(compile_wildcard("Jan").match("January"))
        False
    """
    escaped = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(f"^{escaped}$", re.IGNORECASE)
