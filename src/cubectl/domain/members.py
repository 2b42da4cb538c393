"""Members, entities, pending member references and member lists.

Resolution is two-phase: a :class:`MemberRef` holds whichever of id or
name is known, and :meth:`MemberRef.resolve` produces an immutable,
fully populated :class:`Member` (or :class:`Entity`).  Nothing here
queries metadata implicitly on attribute access.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Protocol

from cubectl.domain.dimensions import Dimension
from cubectl.domain.errors import SpecificationError

NO_PARENT = -1


class MemberLookup(Protocol):
    """The slice of the metadata service needed to resolve a member."""

    def member_id(self, handle: Any, name: str) -> int | None: ...

    def member_label(self, handle: Any, member_id: int) -> str | None: ...


@dataclass(frozen=True)
class Member:
    """A resolved member of a non-hierarchical dimension."""

    dimension: str
    id: int
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Entity(Member):
    """A resolved member addressed relative to a parent."""

    parent_id: int = NO_PARENT
    parent_name: str | None = None

    def __str__(self) -> str:
        if self.parent_id == NO_PARENT or not self.parent_name:
            return self.name
        return f"{self.parent_name}.{self.name}"


@dataclass(frozen=True)
class MemberRef:
    """A member known by id or by name, not yet resolved.

    For entities the parent follows the same rule: either ``parent_id`` or
    ``parent_name`` may be given.  A reference carrying neither id nor
    name is rejected at construction.
    """

    id: int | None = None
    name: str | None = None
    parent_id: int | None = None
    parent_name: str | None = None

    def __post_init__(self) -> None:
        if self.id is None and not self.name:
            msg = "A member reference needs an id or a name"
            raise ValueError(msg)

    def resolve(self, dimension: Dimension, lookup: MemberLookup) -> Member:
        """Fill in the missing half of each (id, name) pair.

        Returns an :class:`Entity` for hierarchical dimensions, otherwise a
        :class:`Member`.

        Raises:
            SpecificationError: a name is unknown or an id has no label.
        """
        member_id, name = self._pair(dimension, lookup, self.id, self.name)
        if not dimension.hierarchical:
            return Member(dimension=dimension.name, id=member_id, name=name)

        parent_id = NO_PARENT if self.parent_id is None else self.parent_id
        parent_name: str | None = None
        if self.parent_name:
            parent_id, parent_name = self._pair(dimension, lookup, None, self.parent_name)
        elif parent_id != NO_PARENT:
            parent_id, parent_name = self._pair(dimension, lookup, parent_id, None)
        return Entity(
            dimension=dimension.name,
            id=member_id,
            name=name,
            parent_id=parent_id,
            parent_name=parent_name,
        )

    @staticmethod
    def _pair(
        dimension: Dimension,
        lookup: MemberLookup,
        member_id: int | None,
        name: str | None,
    ) -> tuple[int, str]:
        if member_id is None:
            assert name is not None
            found = lookup.member_id(dimension.handle, name)
            if found is None or found < 0:
                raise SpecificationError(
                    name, "no such member", dimension=dimension.name
                )
            return found, name
        label = name or lookup.member_label(dimension.handle, member_id)
        if label is None:
            raise SpecificationError(
                f"#{member_id}", "no member with this id", dimension=dimension.name
            )
        return member_id, label


@dataclass
class MemberList:
    """Ordered member references for a single dimension.

    Append-only: :meth:`extend` concatenates without deduplicating or
    reordering, so the list reflects specification order exactly.
    """

    dimension: Dimension
    refs: list[MemberRef] = field(default_factory=list)

    def extend(self, pairs: list[tuple[int, int]]) -> None:
        """Append ``(member_id, parent_id)`` pairs."""
        for member_id, parent_id in pairs:
            self.refs.append(MemberRef(id=member_id, parent_id=parent_id))

    @property
    def member_ids(self) -> list[int]:
        return [ref.id for ref in self.refs if ref.id is not None]

    @property
    def parent_ids(self) -> list[int]:
        return [NO_PARENT if ref.parent_id is None else ref.parent_id for ref in self.refs]

    @property
    def pairs(self) -> list[tuple[int, int]]:
        return list(zip(self.member_ids, self.parent_ids, strict=True))

    def __len__(self) -> int:
        return len(self.refs)

    def __iter__(self) -> Iterator[MemberRef]:
        return iter(self.refs)
