"""MetadataQueryService — read-only views of the application outline.

Dimensions, members (optionally wildcard-filtered), member lists, the
expansion of arbitrary member specifications, and the calculation status
of every POV in a slice.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from cubectl.domain.dimensions import ALL_AXES, Axis
from cubectl.domain.errors import CubeError
from cubectl.domain.members import Entity
from cubectl.domain.specs import compile_wildcard
from cubectl.services.base import BaseService
from cubectl.services.executor import CONSOLIDATION_AXES
from cubectl.services.result import ServiceResult
from cubectl.services.telemetry import trace_span, traced


class MetadataQueryService(BaseService):
    """Answers ``cubectl metadata`` and ``cubectl status``."""

    @traced
    def dimensions(self) -> ServiceResult:
        try:
            self._app.require_loaded()
            names = self._app.metadata.enum_dimensions()
        except CubeError as exc:
            return ServiceResult.failure("dimensions", exc)
        return ServiceResult(
            ok=True,
            op="dimensions",
            data={"application": self._app.name, "count": len(names), "items": names},
        )

    @traced
    def members(self, dimension: str, *, pattern: str | None = None) -> ServiceResult:
        """Members of *dimension* in outline order.

        *pattern* is a case-insensitive wildcard (``*`` and ``?``).
        """
        try:
            self._app.require_loaded()
            dim = self._app.dimensions.get_or_resolve(dimension)
            names = self._app.metadata.enum_members(dim.handle)
        except CubeError as exc:
            return ServiceResult.failure("members", exc)

        if pattern:
            regex = compile_wildcard(pattern)
            names = [name for name in names if regex.fullmatch(name)]
        return ServiceResult(
            ok=True,
            op="members",
            data={"dimension": dim.name, "filter": pattern, "count": len(names), "items": names},
        )

    @traced
    def lists(self, dimension: str) -> ServiceResult:
        try:
            self._app.require_loaded()
            dim = self._app.dimensions.get_or_resolve(dimension)
            names = self._app.metadata.enum_member_lists(dim.handle)
        except CubeError as exc:
            return ServiceResult.failure("lists", exc)
        return ServiceResult(
            ok=True,
            op="lists",
            data={"dimension": dim.name, "count": len(names), "items": names},
        )

    @traced
    def expand(self, dimension: str, specs: Sequence[str]) -> ServiceResult:
        """Resolve *specs* exactly as a subcube command would."""
        try:
            self._app.require_loaded()
            resolver = self._app.resolver()
            member_list = resolver.resolve_members(dimension, specs)
            resolved = resolver.materialize(member_list)
        except CubeError as exc:
            return ServiceResult.failure("expand", exc)

        items: list[dict[str, Any]] = []
        for member in resolved:
            item: dict[str, Any] = {"id": member.id, "name": member.name}
            if isinstance(member, Entity):
                item["parent_id"] = member.parent_id
                item["parent"] = member.parent_name
            items.append(item)
        return ServiceResult(
            ok=True,
            op="expand",
            data={
                "dimension": member_list.dimension.name,
                "specs": list(specs),
                "count": len(items),
                "items": items,
            },
        )

    @traced
    def status(self, axis_specs: Mapping[str, Sequence[str]]) -> ServiceResult:
        """Calculation status of every POV in the slice.

        The Value axis is included only when value members are given.
        """
        with_value = any(Axis.parse(key) is Axis.VALUE for key in axis_specs)
        axes = ALL_AXES if with_value else CONSOLIDATION_AXES
        try:
            self._app.require_loaded()
            with trace_span("resolve"):
                pov_slice = self._app.resolver().build_slice(axis_specs, axes=axes)
            metadata = self._app.metadata
            items = [
                {"pov": pov.as_dict(), "status": metadata.consolidation_status(pov).labels()}
                for pov in pov_slice
            ]
        except CubeError as exc:
            return ServiceResult.failure("status", exc)
        return ServiceResult(
            ok=True,
            op="status",
            data={"axes": [a.value for a in axes], "count": len(items), "items": items},
        )
