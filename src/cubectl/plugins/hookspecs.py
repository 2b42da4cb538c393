"""Pluggy hook specifications for cubectl.

Three lifecycle events are dispatched synchronously around subcube
operations and outline loads.  One setup-time hook lets plugins
contribute application backends (metadata service + calculation engine).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from cubectl.infrastructure.application import BackendFactory

hookspec = pluggy.HookspecMarker("cubectl")


class CubectlHookSpec:
    """Hook specifications for the cubectl plugin system."""

    @hookspec
    def pre_subcube_operation(self, operation: str, total: int) -> None:
        """Called after the slice is resolved, before the first POV runs."""

    @hookspec
    def post_subcube_operation(
        self,
        operation: str,
        executed: int,
        skipped: int,
        cancelled: bool,
    ) -> None:
        """Called after a subcube operation finishes or is cancelled."""

    @hookspec
    def post_load(self, application: str, members: int) -> None:
        """Called after an outline is loaded; *members* counts all dimensions."""

    @hookspec
    def register_backend(self) -> dict[str, BackendFactory] | None:
        """Return backend name -> factory mappings.

        A factory receives the :class:`~cubectl.config.settings.CubeSettings`
        and returns a ``(MetadataService, CalculationEngine)`` pair.
        """
