"""Operation kinds, consolidation types and calculation status flags."""

from __future__ import annotations

from enum import IntEnum, IntFlag, StrEnum


class OperationKind(StrEnum):
    """Bulk operations that can be applied to every POV of a slice."""

    ALLOCATE = "allocate"
    CALCULATE = "calculate"
    TRANSLATE = "translate"
    CONSOLIDATE = "consolidate"
    CALC_EPU = "calc_epu"


class ConsolidationType(IntEnum):
    """Consolidation modes understood by the engine.

    Values match the engine's wire codes.
    """

    ALL = 0
    ALL_WITH_DATA = 1
    ENTITY_ONLY = 2
    FORCE_ENTITY_ONLY = 3
    IMPACTED = 4

    @property
    def option_name(self) -> str:
        """CLI spelling, e.g. ``all-with-data``."""
        return self.name.lower().replace("_", "-")

    @classmethod
    def from_option(cls, value: str) -> ConsolidationType:
        """Parse a CLI/config spelling (``all-with-data``, ``ALL_WITH_DATA``...)."""
        key = value.strip().upper().replace("-", "_")
        try:
            return cls[key]
        except KeyError:
            msg = f"Unknown consolidation type: {value!r}"
            raise ValueError(msg) from None


class CalcStatus(IntFlag):
    """Per-POV calculation status bits reported by the metadata service."""

    OK = 0
    NEEDS_CALCULATION = 1
    NEEDS_TRANSLATION = 2
    NEEDS_CONSOLIDATION = 4
    SYSTEM_CHANGED = 8
    LOCKED = 16
    NO_DATA = 32

    def labels(self) -> list[str]:
        """Names of the set bits, or ``["ok"]`` when none are set."""
        names = [str(flag.name).lower() for flag in CalcStatus if flag and flag in self]
        return names or ["ok"]

    @classmethod
    def from_labels(cls, labels: list[str]) -> CalcStatus:
        status = cls.OK
        for label in labels:
            key = label.strip().upper().replace("-", "_")
            try:
                status |= cls[key]
            except KeyError:
                msg = f"Unknown calculation status: {label!r}"
                raise ValueError(msg) from None
        return status
