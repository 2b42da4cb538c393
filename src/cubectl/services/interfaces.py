"""Collaborator protocols consumed by the resolver and executor.

Three narrow, in-process interfaces:

- :class:`MetadataService` maps names to ids, expands member lists and
  reports per-POV calculation status.
- :class:`CalculationEngine` performs one operation for one POV.
- :class:`ProgressSink` renders progress and carries cooperative
  cancellation.

The sandbox application in ``cubectl.infrastructure.sandbox`` implements
the first two; ``cubectl.output.progress`` implements the third.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from cubectl.domain.pov import POV
    from cubectl.domain.types import CalcStatus


@runtime_checkable
class MetadataService(Protocol):
    """Read-only view of an application's dimension metadata."""

    def dimension_id(self, name: str) -> int | None:
        """Id of the dimension called *name* (any case), or None if undefined."""
        ...

    def get_dimension(self, dimension_id: int) -> Any:
        """Opaque handle for a dimension id, passed back on member queries."""
        ...

    def dimension_name(self, handle: Any) -> str:
        """Canonical name of the dimension behind *handle*."""
        ...

    def enum_dimensions(self) -> list[str]: ...

    def member_id(self, handle: Any, name: str) -> int | None: ...

    def member_label(self, handle: Any, member_id: int) -> str | None: ...

    def member_list_id(self, handle: Any, list_name: str) -> int | None: ...

    def expand_member_list(
        self, handle: Any, list_id: int, top_id: int
    ) -> list[tuple[int, int]]:
        """``(member_id, parent_id)`` pairs of a list, optionally beneath *top_id*."""
        ...

    def default_parent(self, handle: Any, member_id: int) -> int: ...

    def enum_members(self, handle: Any) -> list[str]: ...

    def enum_member_lists(self, handle: Any) -> list[str]: ...

    def consolidation_status(self, pov: POV) -> CalcStatus: ...


@runtime_checkable
class CalculationEngine(Protocol):
    """Per-POV engine calls.  Failures are raised, never returned."""

    def allocate(
        self, scenario: int, year: int, period: int, entity: int, parent: int, value: int
    ) -> None: ...

    def chart_logic(
        self,
        scenario: int,
        year: int,
        period: int,
        entity: int,
        parent: int,
        value: int,
        force: bool,
    ) -> None: ...

    def translate(
        self,
        scenario: int,
        year: int,
        period: int,
        entity: int,
        parent: int,
        value: int,
        force: bool,
        apply_rates: bool,
    ) -> None: ...

    def consolidate(
        self,
        scenario: int,
        year: int,
        period: int,
        entity: int,
        parent: int,
        consolidation_type: int,
    ) -> None: ...

    def calc_epu(self, scenario: int, year: int, period: int, force: bool) -> None: ...


@runtime_checkable
class ProgressSink(Protocol):
    """Progress rendering plus cooperative stop/cancel signals."""

    @property
    def cancelled(self) -> bool: ...

    def init_progress(self, label: str, total: int) -> None: ...

    def iteration_complete(self) -> bool:
        """Advance by one unit; True asks the caller to stop after this POV."""
        ...

    def end_progress(self) -> None: ...

    def monitor_blocking_task(self) -> None: ...

    def blocking_task_complete(self) -> None: ...
