"""CalculateService — subcube operations over a resolved slice.

Each public method resolves the member specifications for the axes its
operation needs, fires the ``pre_subcube_operation`` hook, drives the
slice through :class:`~cubectl.services.executor.SubcubeExecutor` and
reports the counts.  Cancellation and ``--max-povs`` stops are successes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from cubectl.domain.errors import CubeError
from cubectl.domain.types import ConsolidationType, OperationKind
from cubectl.services.base import BaseService
from cubectl.services.executor import build_operation
from cubectl.services.result import ServiceResult
from cubectl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from cubectl.services.executor import SubcubeOperation
    from cubectl.services.interfaces import ProgressSink

logger = logging.getLogger(__name__)

type AxisSpecs = Mapping[str, Sequence[str]]


class CalculateService(BaseService):
    """Allocate, calculate, translate, consolidate and equity pick-up."""

    @traced
    def allocate(self, axis_specs: AxisSpecs, *, progress: ProgressSink) -> ServiceResult:
        return self._run(build_operation(OperationKind.ALLOCATE), axis_specs, progress)

    @traced
    def calculate(
        self, axis_specs: AxisSpecs, *, progress: ProgressSink, force: bool = False
    ) -> ServiceResult:
        """Run chart logic for every POV; *force* recalculates clean POVs too."""
        operation = build_operation(OperationKind.CALCULATE, force=force)
        return self._run(operation, axis_specs, progress, force=force)

    @traced
    def translate(
        self,
        axis_specs: AxisSpecs,
        *,
        progress: ProgressSink,
        force: bool = False,
        apply_rates: bool | None = None,
    ) -> ServiceResult:
        if apply_rates is None:
            apply_rates = self._app.settings.translate.apply_rates
        operation = build_operation(
            OperationKind.TRANSLATE, force=force, apply_rates=apply_rates
        )
        return self._run(operation, axis_specs, progress, force=force, apply_rates=apply_rates)

    @traced
    def consolidate(
        self,
        axis_specs: AxisSpecs,
        *,
        progress: ProgressSink,
        consolidation_type: ConsolidationType | None = None,
    ) -> ServiceResult:
        """Consolidate every Scenario/Year/Period/Entity POV.

        With the default ``IMPACTED`` type, POVs whose status does not
        include NEEDS_CONSOLIDATION are skipped without an engine call.
        """
        if consolidation_type is None:
            consolidation_type = ConsolidationType.from_option(
                self._app.settings.consolidation.default_type
            )
        operation = build_operation(
            OperationKind.CONSOLIDATE, consolidation_type=consolidation_type
        )
        return self._run(
            operation, axis_specs, progress, consolidation_type=consolidation_type.option_name
        )

    @traced
    def calculate_epu(
        self, axis_specs: AxisSpecs, *, progress: ProgressSink, force: bool = False
    ) -> ServiceResult:
        """Equity pick-up over Scenario/Year/Period."""
        operation = build_operation(OperationKind.CALC_EPU, force=force)
        return self._run(operation, axis_specs, progress, force=force)

    # ------------------------------------------------------------------
    # Shared driver
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: SubcubeOperation,
        axis_specs: AxisSpecs,
        progress: ProgressSink,
        **flags: Any,
    ) -> ServiceResult:
        op = str(operation.kind)
        warnings: list[str] = []
        try:
            self._app.require_loaded()
            with trace_span("resolve"):
                pov_slice = self._app.resolver().build_slice(axis_specs, axes=operation.axes)

            sizes = {str(axis): size for axis, size in pov_slice.sizes().items()}
            if pov_slice.count == 0:
                warnings.append("Slice is empty; no POVs to process")

            self._dispatch_event(
                "pre_subcube_operation",
                {"operation": op, "total": pov_slice.count},
                warnings,
            )
            with trace_span("execute") as span:
                counts = self._app.executor().run(pov_slice, operation, progress)
                if span:
                    span.annotate("executed", counts.executed)
        except CubeError as exc:
            return ServiceResult.failure(op, exc, warnings=warnings)

        self._dispatch_event(
            "post_subcube_operation",
            {
                "operation": op,
                "executed": counts.executed,
                "skipped": counts.skipped,
                "cancelled": counts.cancelled,
            },
            warnings,
        )
        if counts.cancelled:
            warnings.append(f"Cancelled after {counts.processed} of {counts.total} POVs")
        elif counts.stopped:
            warnings.append(f"Stopped after {counts.processed} of {counts.total} POVs")

        if operation.skip_if is not None:
            logger.info(
                "%s: %d performed, %d not needed", operation.label, counts.executed, counts.skipped
            )
        else:
            logger.info("%s: %d POV(s) processed", operation.label, counts.executed)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "label": operation.label,
                **counts.as_dict(),
                "slice": sizes,
                "flags": flags,
            },
            warnings=warnings,
        )
