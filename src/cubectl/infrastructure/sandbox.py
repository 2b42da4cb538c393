"""Sandbox application — SQLite-backed metadata service and calculation engine.

The sandbox stands in for a live consolidation server.  It holds the
dimension outline loaded by ``cubectl load`` and a per-POV calculation
status table.  :class:`SandboxEngine` performs no arithmetic: each call
is journaled in ``operation_log`` and clears the status bits the
operation would have resolved.  A POV whose status is LOCKED makes every
engine call fail.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, insert, select, update

from cubectl.domain.errors import EngineError
from cubectl.domain.members import NO_PARENT
from cubectl.domain.types import CalcStatus
from cubectl.infrastructure.database.schema import (
    calc_status,
    dimensions,
    member_list_items,
    member_lists,
    members,
    operation_log,
)
from cubectl.infrastructure.hierarchy import HierarchyGraph

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from cubectl.domain.pov import POV

logger = logging.getLogger(__name__)

# System lists exist in every dimension and are computed from the hierarchy.
SYSTEM_LISTS: tuple[str, ...] = ("[Hierarchy]", "[Descendants]", "[Children]", "[Base]")


@dataclass(frozen=True)
class SandboxDimension:
    """Dimension handle handed out by :meth:`SandboxMetadata.get_dimension`."""

    id: int
    name: str


class SandboxMetadata:
    """:class:`~cubectl.services.interfaces.MetadataService` over the sandbox tables.

    Pass *conn* to read inside an open transaction (used while loading an
    outline); otherwise each query opens its own connection.
    """

    def __init__(self, db: Engine, *, conn: Connection | None = None) -> None:
        self._db = db
        self._conn = conn
        self._graphs: dict[int, HierarchyGraph] = {}

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        if self._conn is not None:
            yield self._conn
            return
        with self._db.connect() as conn:
            yield conn

    def _graph(self, handle: SandboxDimension) -> HierarchyGraph:
        graph = self._graphs.get(handle.id)
        if graph is None:
            with self._connect() as conn:
                graph = HierarchyGraph.load(conn, handle.id)
            self._graphs[handle.id] = graph
        return graph

    # -- dimensions ------------------------------------------------------

    def dimension_id(self, name: str) -> int | None:
        with self._connect() as conn:
            row = conn.execute(
                select(dimensions.c.id).where(dimensions.c.name_key == name.strip().lower())
            ).first()
        return None if row is None else int(row.id)

    def get_dimension(self, dimension_id: int) -> SandboxDimension | None:
        with self._connect() as conn:
            row = conn.execute(
                select(dimensions.c.id, dimensions.c.name).where(dimensions.c.id == dimension_id)
            ).first()
        return None if row is None else SandboxDimension(id=row.id, name=row.name)

    def dimension_name(self, handle: SandboxDimension) -> str:
        return handle.name

    def enum_dimensions(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(select(dimensions.c.name).order_by(dimensions.c.id))
            return [row.name for row in rows]

    # -- members ---------------------------------------------------------

    def member_id(self, handle: SandboxDimension, name: str) -> int | None:
        with self._connect() as conn:
            row = conn.execute(
                select(members.c.id).where(
                    members.c.dimension_id == handle.id,
                    members.c.label_key == name.strip().lower(),
                )
            ).first()
        return None if row is None else int(row.id)

    def member_label(self, handle: SandboxDimension, member_id: int) -> str | None:
        with self._connect() as conn:
            row = conn.execute(
                select(members.c.label).where(
                    members.c.dimension_id == handle.id, members.c.id == member_id
                )
            ).first()
        return None if row is None else str(row.label)

    def enum_members(self, handle: SandboxDimension) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                select(members.c.label)
                .where(members.c.dimension_id == handle.id)
                .order_by(members.c.id)
            )
            return [row.label for row in rows]

    def default_parent(self, handle: SandboxDimension, member_id: int) -> int:
        return self._graph(handle).default_parent(member_id)

    # -- member lists ----------------------------------------------------

    def member_list_id(self, handle: SandboxDimension, list_name: str) -> int | None:
        with self._connect() as conn:
            row = conn.execute(
                select(member_lists.c.id).where(
                    member_lists.c.dimension_id == handle.id,
                    member_lists.c.name_key == list_name.strip().lower(),
                )
            ).first()
        return None if row is None else int(row.id)

    def enum_member_lists(self, handle: SandboxDimension) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                select(member_lists.c.name)
                .where(member_lists.c.dimension_id == handle.id)
                .order_by(member_lists.c.id)
            )
            return [row.name for row in rows]

    def expand_member_list(
        self, handle: SandboxDimension, list_id: int, top_id: int = NO_PARENT
    ) -> list[tuple[int, int]]:
        with self._connect() as conn:
            row = conn.execute(
                select(member_lists.c.name, member_lists.c.kind).where(
                    member_lists.c.dimension_id == handle.id, member_lists.c.id == list_id
                )
            ).first()
            if row is None:
                return []
            if row.kind == "system":
                return self._expand_system(handle, row.name, top_id)
            items = conn.execute(
                select(member_list_items.c.member_id, member_list_items.c.parent_id)
                .where(
                    member_list_items.c.dimension_id == handle.id,
                    member_list_items.c.list_id == list_id,
                )
                .order_by(member_list_items.c.position)
            )
            pairs = [(item.member_id, item.parent_id) for item in items]

        if top_id == NO_PARENT:
            return pairs
        scope = self._graph(handle).descendant_ids(top_id) | {top_id}
        return [pair for pair in pairs if pair[0] in scope]

    def _expand_system(
        self, handle: SandboxDimension, name: str, top_id: int
    ) -> list[tuple[int, int]]:
        graph = self._graph(handle)
        key = name.lower()
        if key == "[hierarchy]":
            return graph.hierarchy(top_id)
        if key == "[descendants]":
            return graph.descendants(top_id)
        if key == "[children]":
            return graph.children_of(top_id)
        return graph.base(top_id)

    # -- status ----------------------------------------------------------

    def consolidation_status(self, pov: POV) -> CalcStatus:
        """OR of every status row that covers *pov*.

        A POV without a Value covers the rows of every value; a value-level
        POV also inherits the row recorded without a value.
        """
        value = pov.value_id if pov.value is not None else None
        where = _status_where(
            pov.scenario.id, pov.year.id, pov.period.id, pov.entity_id, pov.parent_id, value
        )
        with self._connect() as conn:
            rows = conn.execute(select(calc_status.c.status).where(*where)).scalars()
            return _merge(rows)


def _status_where(
    scenario: int, year: int, period: int, entity: int, parent: int, value: int | None
) -> list[Any]:
    where = [
        calc_status.c.scenario_id == scenario,
        calc_status.c.year_id == year,
        calc_status.c.period_id == period,
        calc_status.c.entity_id == entity,
        calc_status.c.parent_id == parent,
    ]
    if value is not None:
        where.append(calc_status.c.value_id.in_([value, NO_PARENT]))
    return where


def _merge(rows: Iterable[int]) -> CalcStatus:
    status = CalcStatus.OK
    for row in rows:
        status |= CalcStatus(row)
    return status


class SandboxEngine:
    """:class:`~cubectl.services.interfaces.CalculationEngine` that journals calls.

    Each call runs in its own transaction, so POVs completed before a
    failure stay recorded.
    """

    def __init__(self, db: Engine) -> None:
        self._db = db

    def _record(
        self,
        operation: str,
        key: tuple[int, int, int, int, int, int],
        *,
        clears: CalcStatus = CalcStatus.OK,
        any_value: bool = False,
        **flags: Any,
    ) -> None:
        scenario, year, period, entity, parent, value = key
        where = _status_where(
            scenario, year, period, entity, parent, None if any_value else value
        )

        with self._db.begin() as conn:
            rows = conn.execute(select(calc_status.c.status).where(*where)).scalars()
            if CalcStatus.LOCKED in _merge(rows):
                msg = f"{operation} refused: POV {key} is locked"
                raise EngineError(msg)
            if clears:
                conn.execute(
                    update(calc_status)
                    .where(*where)
                    .values(status=calc_status.c.status.op("&")(~int(clears)))
                )
            conn.execute(
                insert(operation_log).values(
                    operation=operation,
                    scenario_id=scenario,
                    year_id=year,
                    period_id=period,
                    entity_id=entity,
                    parent_id=parent,
                    value_id=value,
                    flags=json.dumps(flags, sort_keys=True) if flags else None,
                    created=func.datetime("now"),
                )
            )
        logger.debug("%s %s", operation, key)

    def allocate(
        self, scenario: int, year: int, period: int, entity: int, parent: int, value: int
    ) -> None:
        self._record("allocate", (scenario, year, period, entity, parent, value))

    def chart_logic(
        self,
        scenario: int,
        year: int,
        period: int,
        entity: int,
        parent: int,
        value: int,
        force: bool,
    ) -> None:
        self._record(
            "calculate",
            (scenario, year, period, entity, parent, value),
            clears=CalcStatus.NEEDS_CALCULATION,
            force=force,
        )

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
    ) -> None:
        self._record(
            "translate",
            (scenario, year, period, entity, parent, value),
            clears=CalcStatus.NEEDS_TRANSLATION,
            force=force,
            apply_rates=apply_rates,
        )

    def consolidate(
        self,
        scenario: int,
        year: int,
        period: int,
        entity: int,
        parent: int,
        consolidation_type: int,
    ) -> None:
        self._record(
            "consolidate",
            (scenario, year, period, entity, parent, NO_PARENT),
            clears=(
                CalcStatus.NEEDS_CONSOLIDATION
                | CalcStatus.NEEDS_CALCULATION
                | CalcStatus.NEEDS_TRANSLATION
            ),
            any_value=True,
            consolidation_type=consolidation_type,
        )

    def calc_epu(self, scenario: int, year: int, period: int, force: bool) -> None:
        self._record(
            "calc_epu",
            (scenario, year, period, NO_PARENT, NO_PARENT, NO_PARENT),
            force=force,
        )
