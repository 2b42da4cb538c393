"""Dimension identity: the fixed POV axes and the resolved Dimension value.

Dimension names are compared case-insensitively everywhere; the
lower-cased form is the cache key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Axis(StrEnum):
    """The five fixed axes of a point of view, in enumeration order."""

    SCENARIO = "Scenario"
    YEAR = "Year"
    PERIOD = "Period"
    ENTITY = "Entity"
    VALUE = "Value"

    @classmethod
    def parse(cls, name: str) -> Axis:
        """Look up an axis by case-insensitive name."""
        key = canonical_key(name)
        for axis in cls:
            if axis.value.lower() == key:
                return axis
        msg = f"'{name}' is not a POV axis"
        raise ValueError(msg)


# Enumeration order of the cartesian product; rightmost varies fastest.
ALL_AXES: tuple[Axis, ...] = (
    Axis.SCENARIO,
    Axis.YEAR,
    Axis.PERIOD,
    Axis.ENTITY,
    Axis.VALUE,
)

# Dimensions whose members are always addressed relative to a parent.
HIERARCHICAL_DIMENSIONS = frozenset({"entity"})


def canonical_key(name: str) -> str:
    """Normalize a dimension name for case-insensitive comparison."""
    return name.strip().lower()


@dataclass(frozen=True)
class Dimension:
    """A dimension resolved through the metadata service.

    ``handle`` is whatever the metadata service returned for the dimension
    id; it is passed back unchanged on member queries.
    """

    name: str
    id: int
    handle: Any = field(compare=False, repr=False)

    @property
    def key(self) -> str:
        return canonical_key(self.name)

    @property
    def hierarchical(self) -> bool:
        """True when members require parent context (the Entity dimension)."""
        return self.key in HIERARCHICAL_DIMENSIONS

    def __str__(self) -> str:
        return self.name
