"""Dimension cache and member-specification resolution.

:class:`DimensionCache` resolves each distinct dimension name once per
run.  :class:`MemberResolver` turns specification strings into
``(member_id, parent_id)`` pairs, materializes them into members, and
assembles :class:`~cubectl.domain.pov.Slice` objects.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from cubectl.domain.dimensions import ALL_AXES, Axis, Dimension, canonical_key
from cubectl.domain.errors import ConfigurationError, SpecificationError
from cubectl.domain.members import NO_PARENT, Member, MemberList
from cubectl.domain.pov import Slice
from cubectl.domain.specs import MemberSpec, parse_member_spec
from cubectl.services.telemetry import trace_span

if TYPE_CHECKING:
    from cubectl.services.interfaces import MetadataService

logger = logging.getLogger(__name__)


class _LabelCache:
    """Memoizing :class:`~cubectl.domain.members.MemberLookup` over metadata."""

    def __init__(self, metadata: MetadataService) -> None:
        self._metadata = metadata
        self._labels: dict[int, str | None] = {}

    def member_id(self, handle: Any, name: str) -> int | None:
        return self._metadata.member_id(handle, name)

    def member_label(self, handle: Any, member_id: int) -> str | None:
        if member_id not in self._labels:
            self._labels[member_id] = self._metadata.member_label(handle, member_id)
        return self._labels[member_id]


class DimensionCache:
    """Run-scoped cache of resolved dimensions keyed by lower-cased name.

    The set of dimensions cannot change during one command, so there is
    no invalidation.
    """

    def __init__(self, metadata: MetadataService) -> None:
        self._metadata = metadata
        self._dimensions: dict[str, Dimension] = {}

    def get_or_resolve(self, name: str) -> Dimension:
        """Return the dimension called *name*, querying metadata on first use.

        Raises:
            ConfigurationError: the application defines no such dimension.
        """
        key = canonical_key(name)
        cached = self._dimensions.get(key)
        if cached is not None:
            return cached

        if not key:
            raise ConfigurationError(name, "Dimension name cannot be empty")
        dim_id = self._metadata.dimension_id(name.strip())
        if dim_id is None or dim_id < 0:
            raise ConfigurationError(name)
        handle = self._metadata.get_dimension(dim_id)
        if handle is None:
            raise ConfigurationError(name, f"Dimension '{name}' (id {dim_id}) could not be opened")

        dimension = Dimension(
            name=self._metadata.dimension_name(handle),
            id=dim_id,
            handle=handle,
        )
        logger.debug("Resolved dimension %s (id %d)", dimension.name, dim_id)
        self._dimensions[key] = dimension
        return dimension

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and canonical_key(name) in self._dimensions

    def __len__(self) -> int:
        return len(self._dimensions)


class MemberResolver:
    """Resolve member specifications against one application's metadata."""

    def __init__(self, metadata: MetadataService, dimensions: DimensionCache) -> None:
        self._metadata = metadata
        self._dimensions = dimensions

    # ------------------------------------------------------------------
    # Specification → (id, parent) pairs
    # ------------------------------------------------------------------

    def _member_id(self, dimension: Dimension, name: str, spec: MemberSpec) -> int:
        member_id = self._metadata.member_id(dimension.handle, name)
        if member_id is None or member_id < 0:
            raise SpecificationError(
                spec.text,
                f"no member named '{name}'",
                dimension=dimension.name,
            )
        return member_id

    def resolve_spec(self, dimension: Dimension, spec: MemberSpec) -> list[tuple[int, int]]:
        """Resolve one parsed specification to ``(member_id, parent_id)`` pairs."""
        if spec.is_list:
            top_id = NO_PARENT
            if spec.parent:
                top_id = self._member_id(dimension, spec.parent, spec)
            list_id = self._metadata.member_list_id(dimension.handle, spec.name)
            if list_id is None or list_id < 0:
                raise SpecificationError(
                    spec.text,
                    f"no member list named '{spec.name}'",
                    dimension=dimension.name,
                )
            return list(self._metadata.expand_member_list(dimension.handle, list_id, top_id))

        member_id = self._member_id(dimension, spec.name, spec)
        if spec.parent:
            return [(member_id, self._member_id(dimension, spec.parent, spec))]
        if dimension.hierarchical:
            return [(member_id, self._metadata.default_parent(dimension.handle, member_id))]
        return [(member_id, NO_PARENT)]

    def resolve_members(self, dimension_name: str, specs: Iterable[str]) -> MemberList:
        """Resolve each spec in order and concatenate the results.

        Raises:
            ConfigurationError: unknown dimension.
            SpecificationError: malformed spec, unknown member or list.
        """
        dimension = self._dimensions.get_or_resolve(dimension_name)
        members = MemberList(dimension)
        for text in specs:
            spec = parse_member_spec(text)
            pairs = self.resolve_spec(dimension, spec)
            logger.debug("%s: %s -> %d member(s)", dimension.name, spec, len(pairs))
            members.extend(pairs)
        return members

    # ------------------------------------------------------------------
    # Member lists → members → slices
    # ------------------------------------------------------------------

    def materialize(self, members: MemberList) -> list[Member]:
        """Resolve labels for every reference.

        Labels are looked up once per distinct id, not once per POV.
        """
        lookup = _LabelCache(self._metadata)
        return [ref.resolve(members.dimension, lookup) for ref in members]

    def build_slice(
        self,
        axis_specs: Mapping[Axis | str, Sequence[str]],
        *,
        axes: Sequence[Axis] = ALL_AXES,
    ) -> Slice:
        """Resolve specs for every axis of *axes* into a :class:`Slice`.

        An axis whose specs resolve to no members yields a slice with zero
        POVs; an axis with no specs at all is an error.
        """
        by_axis: dict[Axis, Sequence[str]] = {}
        for key, specs in axis_specs.items():
            by_axis[key if isinstance(key, Axis) else Axis.parse(key)] = specs

        pov_slice = Slice(axes)
        for axis in pov_slice.axes:
            if axis not in by_axis:
                raise SpecificationError(axis.value, "no members were specified for this axis")
            with trace_span(f"resolve_{axis.value.lower()}") as span:
                member_list = self.resolve_members(axis.value, by_axis[axis])
                pov_slice[axis] = self.materialize(member_list)
                if span:
                    span.annotate("members", len(member_list))
        return pov_slice
