"""Points of view and the slice that enumerates them.

A :class:`Slice` holds one tuple of resolved members per axis and
produces :attr:`Slice.combos`, the cartesian product in the fixed axis
order Scenario → Year → Period → Entity → Value with the rightmost axis
varying fastest.  Progress reporting and grouping of consecutive POVs
rely on that order.
"""

from __future__ import annotations

import itertools
import math
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from cubectl.domain.dimensions import ALL_AXES, Axis
from cubectl.domain.errors import SpecificationError
from cubectl.domain.members import NO_PARENT, Entity, Member


@dataclass(frozen=True)
class POV:
    """One concrete combination of members, the unit of work for the engine.

    ``entity`` and ``value`` are ``None`` for operations whose slice does
    not include those axes.
    """

    scenario: Member
    year: Member
    period: Member
    entity: Entity | None = None
    value: Member | None = None

    @property
    def entity_id(self) -> int:
        return self.entity.id if self.entity is not None else NO_PARENT

    @property
    def parent_id(self) -> int:
        return self.entity.parent_id if self.entity is not None else NO_PARENT

    @property
    def value_id(self) -> int:
        return self.value.id if self.value is not None else NO_PARENT

    def as_dict(self) -> dict[str, str]:
        data = {
            "scenario": self.scenario.name,
            "year": self.year.name,
            "period": self.period.name,
        }
        if self.entity is not None:
            data["entity"] = str(self.entity)
        if self.value is not None:
            data["value"] = self.value.name
        return data

    def __str__(self) -> str:
        return "/".join(self.as_dict().values())


_FIELD_FOR_AXIS: dict[Axis, str] = {axis: axis.value.lower() for axis in ALL_AXES}


class Slice:
    """Per-axis member tuples from which POVs are generated."""

    def __init__(self, axes: Sequence[Axis] = ALL_AXES) -> None:
        missing = {Axis.SCENARIO, Axis.YEAR, Axis.PERIOD} - set(axes)
        if missing:
            names = ", ".join(sorted(a.value for a in missing))
            msg = f"A slice always needs Scenario, Year and Period (missing {names})"
            raise ValueError(msg)
        # Keep the canonical order regardless of how axes were passed.
        self._axes: tuple[Axis, ...] = tuple(a for a in ALL_AXES if a in set(axes))
        self._members: dict[Axis, tuple[Member, ...]] = {}

    @property
    def axes(self) -> tuple[Axis, ...]:
        return self._axes

    def __setitem__(self, axis: Axis, members: Iterable[Member]) -> None:
        if axis not in self._axes:
            msg = f"{axis.value} is not an axis of this slice"
            raise KeyError(msg)
        members = tuple(members)
        if axis is Axis.ENTITY and not all(isinstance(m, Entity) for m in members):
            msg = "Entity axis members must carry parent context"
            raise TypeError(msg)
        self._members[axis] = members

    def __getitem__(self, axis: Axis) -> tuple[Member, ...]:
        return self._members[axis]

    def __contains__(self, axis: object) -> bool:
        return axis in self._members

    def sizes(self) -> dict[str, int]:
        """Member count per assigned axis, keyed by axis name."""
        return {axis.value: len(self._members[axis]) for axis in self._axes if axis in self}

    def _check_complete(self) -> None:
        for axis in self._axes:
            if axis not in self._members:
                raise SpecificationError(axis.value, "no members were specified for this axis")

    @property
    def count(self) -> int:
        """Total POVs; zero when any axis is empty."""
        self._check_complete()
        return math.prod(len(self._members[axis]) for axis in self._axes)

    def __iter__(self) -> Iterator[POV]:
        self._check_complete()
        fields = [_FIELD_FOR_AXIS[axis] for axis in self._axes]
        for combo in itertools.product(*(self._members[axis] for axis in self._axes)):
            yield POV(**dict(zip(fields, combo, strict=True)))  # type: ignore[arg-type]

    @property
    def combos(self) -> tuple[POV, ...]:
        """All POVs, computed eagerly so the total is known before execution."""
        return tuple(self)

    def __len__(self) -> int:
        return self.count
