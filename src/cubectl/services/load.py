"""LoadService — load a TOML application outline into the sandbox database.

The whole outline is written in one transaction: dimensions, members,
the ordered hierarchy, system and static member lists, and the initial
calculation status of any POVs the outline lists.  Static lists and
status entries use the same member-specification grammar as the CLI,
resolved against the rows written earlier in the same transaction.
"""

from __future__ import annotations

import logging
import tomllib
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from sqlalchemy import delete, insert, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from cubectl.domain.dimensions import Axis, canonical_key
from cubectl.domain.errors import CubeError, OutlineError
from cubectl.domain.members import NO_PARENT
from cubectl.domain.outline import DimensionOutline, Outline, StatusOutline
from cubectl.infrastructure.database.schema import (
    APPLICATION_TABLES,
    app_info,
    calc_status,
    dimensions,
    hierarchy,
    member_list_items,
    member_lists,
    members,
)
from cubectl.infrastructure.hierarchy import HierarchyGraph
from cubectl.infrastructure.sandbox import SYSTEM_LISTS, SandboxMetadata
from cubectl.services.base import BaseService
from cubectl.services.resolver import DimensionCache, MemberResolver
from cubectl.services.result import ServiceResult
from cubectl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from sqlalchemy import Connection

logger = logging.getLogger(__name__)


def read_outline(path: Path) -> Outline:
    """Parse and validate an outline file.

    Raises:
        OutlineError: unreadable file, invalid TOML or an invalid outline.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read outline {path}: {exc.strerror or exc}"
        raise OutlineError(msg, source=str(path)) from exc
    try:
        return Outline.model_validate(tomllib.loads(raw))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise OutlineError(msg, source=str(path)) from exc
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'outline'}: {err['msg']}"
            for err in exc.errors()
        )
        msg = f"Invalid outline {path}: {problems}"
        raise OutlineError(msg, source=str(path)) from exc


class LoadService(BaseService):
    """Populates the sandbox application."""

    @traced
    def load(self, path: Path, *, replace: bool = False) -> ServiceResult:
        """Load the outline at *path*.

        An already-loaded application is only overwritten with *replace*.
        """
        warnings: list[str] = []
        try:
            outline = read_outline(path)
            if self._app.is_loaded() and not replace:
                msg = (
                    f"An application is already loaded at {self._app.database_path}; "
                    "use --replace to overwrite it"
                )
                raise OutlineError(msg, source=str(path))

            with self._app.engine.begin() as conn:
                if replace:
                    for table in APPLICATION_TABLES:
                        conn.execute(delete(table))
                summary = self._write(conn, outline, path)
        except CubeError as exc:
            return ServiceResult.failure("load", exc, warnings=warnings)

        self._app.reset()
        total = sum(dim["members"] for dim in summary)
        logger.info(
            "Loaded %s: %d dimension(s), %d member(s)",
            outline.application.name,
            len(summary),
            total,
        )
        self._dispatch_event(
            "post_load",
            {"application": outline.application.name, "members": total},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op="load",
            data={
                "application": outline.application.name,
                "source": str(path),
                "replaced": replace,
                "dimensions": summary,
                "status": len(outline.status),
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    def _write(self, conn: Connection, outline: Outline, path: Path) -> list[dict[str, Any]]:
        conn.execute(
            insert(app_info),
            [
                {"key": "name", "value": outline.application.name},
                {"key": "description", "value": outline.application.description},
                {"key": "source", "value": str(path)},
                {"key": "loaded", "value": datetime.now(UTC).isoformat(timespec="seconds")},
            ],
        )

        summary: list[dict[str, Any]] = []
        for dim_id, dim in enumerate(outline.dimensions):
            with trace_span(f"load_{canonical_key(dim.name)}"):
                summary.append(self._write_dimension(conn, dim_id, dim))

        # Lists and status resolve through the metadata rows written above.
        metadata = SandboxMetadata(self._app.engine, conn=conn)
        resolver = MemberResolver(metadata, DimensionCache(metadata))
        for dim_id, dim in enumerate(outline.dimensions):
            self._write_lists(conn, resolver, dim_id, dim)
        for entry in outline.status:
            self._write_status(conn, resolver, entry)
        return summary

    def _write_dimension(
        self, conn: Connection, dim_id: int, dim: DimensionOutline
    ) -> dict[str, Any]:
        conn.execute(
            insert(dimensions).values(id=dim_id, name=dim.name, name_key=canonical_key(dim.name))
        )
        labels = dim.all_members()
        ids = {canonical_key(label): member_id for member_id, label in enumerate(labels)}
        if labels:
            conn.execute(
                insert(members),
                [
                    {
                        "dimension_id": dim_id,
                        "id": member_id,
                        "label": label,
                        "label_key": canonical_key(label),
                    }
                    for member_id, label in enumerate(labels)
                ],
            )

        defaults = {canonical_key(c): canonical_key(p) for c, p in dim.default_parents.items()}
        edges: list[tuple[int, int, bool]] = []
        rows: list[dict[str, Any]] = []
        seen: set[tuple[int, int]] = set()
        for parent, children in dim.hierarchy.items():
            parent_id = ids[canonical_key(parent)]
            for position, child in enumerate(children):
                child_id = ids[canonical_key(child)]
                if (parent_id, child_id) in seen:
                    msg = f"{dim.name}: '{child}' is listed twice under '{parent}'"
                    raise OutlineError(msg)
                seen.add((parent_id, child_id))
                is_default = defaults.get(canonical_key(child)) == canonical_key(parent)
                edges.append((parent_id, child_id, is_default))
                rows.append(
                    {
                        "dimension_id": dim_id,
                        "parent_id": parent_id,
                        "child_id": child_id,
                        "position": position,
                        "is_default": int(is_default),
                    }
                )

        for child, parent in dim.default_parents.items():
            child_id = ids.get(canonical_key(child))
            parent_id = ids.get(canonical_key(parent), NO_PARENT)
            if child_id is None or (parent_id, child_id) not in seen:
                msg = f"{dim.name}: default parent '{parent}' of '{child}' is not its parent"
                raise OutlineError(msg)

        graph = HierarchyGraph.from_edges(ids.values(), edges)
        cycle = graph.find_cycle()
        if cycle is not None:
            chain = " -> ".join(labels[member_id] for member_id in [*cycle, cycle[0]])
            msg = f"{dim.name}: hierarchy contains a cycle ({chain})"
            raise OutlineError(msg)
        if rows:
            conn.execute(insert(hierarchy), rows)

        conn.execute(
            insert(member_lists),
            [
                {
                    "dimension_id": dim_id,
                    "id": list_id,
                    "name": name,
                    "name_key": name.lower(),
                    "kind": "system",
                }
                for list_id, name in enumerate(SYSTEM_LISTS)
            ],
        )
        return {"name": dim.name, "members": len(labels), "lists": len(dim.lists)}

    def _write_lists(
        self,
        conn: Connection,
        resolver: MemberResolver,
        dim_id: int,
        dim: DimensionOutline,
    ) -> None:
        first_id = len(SYSTEM_LISTS)
        for list_id, (name, specs) in enumerate(dim.lists.items(), start=first_id):
            if canonical_key(name) in {s.lower() for s in SYSTEM_LISTS}:
                msg = f"{dim.name}: '{name}' is a system list name"
                raise OutlineError(msg)
            try:
                pairs = resolver.resolve_members(dim.name, specs).pairs
            except CubeError as exc:
                msg = f"{dim.name}: member list '{name}': {exc}"
                raise OutlineError(msg) from exc
            existing = conn.execute(
                select(member_lists.c.id).where(
                    member_lists.c.dimension_id == dim_id,
                    member_lists.c.name_key == canonical_key(name),
                )
            ).first()
            if existing is not None:
                msg = f"{dim.name}: duplicate member list '{name}'"
                raise OutlineError(msg)
            conn.execute(
                insert(member_lists).values(
                    dimension_id=dim_id,
                    id=list_id,
                    name=name.strip(),
                    name_key=canonical_key(name),
                    kind="static",
                )
            )
            if pairs:
                conn.execute(
                    insert(member_list_items),
                    [
                        {
                            "dimension_id": dim_id,
                            "list_id": list_id,
                            "position": position,
                            "member_id": member_id,
                            "parent_id": parent_id,
                        }
                        for position, (member_id, parent_id) in enumerate(pairs)
                    ],
                )

    def _write_status(
        self, conn: Connection, resolver: MemberResolver, entry: StatusOutline
    ) -> None:
        key: dict[str, int] = {
            "entity_id": NO_PARENT,
            "parent_id": NO_PARENT,
            "value_id": NO_PARENT,
        }
        for axis in Axis:
            spec = getattr(entry, axis.value.lower())
            if spec is None:
                continue
            try:
                pairs = resolver.resolve_members(axis.value, [spec]).pairs
            except CubeError as exc:
                msg = f"status entry {axis.value}={spec!r}: {exc}"
                raise OutlineError(msg) from exc
            if len(pairs) != 1:
                msg = f"status entry {axis.value}={spec!r} must name exactly one member"
                raise OutlineError(msg)
            member_id, parent_id = pairs[0]
            key[f"{axis.value.lower()}_id"] = member_id
            if axis is Axis.ENTITY:
                key["parent_id"] = parent_id

        stmt = sqlite_insert(calc_status).values(**key, status=int(entry.status))
        conn.execute(
            stmt.on_conflict_do_update(
                index_elements=[
                    "scenario_id",
                    "year_id",
                    "period_id",
                    "entity_id",
                    "parent_id",
                    "value_id",
                ],
                set_={"status": stmt.excluded.status},
            )
        )
