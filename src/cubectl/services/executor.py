"""Subcube operation executor.

Drives every POV of a :class:`~cubectl.domain.pov.Slice` through the
calculation engine, one at a time and in enumeration order:

1. ``init_progress(label, total)``
2. per POV: stop if cancelled; skip if the operation's skip policy says
   so; otherwise call the engine; then ``iteration_complete()``, which
   may ask to stop after this POV
3. ``end_progress()``, exactly once, however the loop ended

Cancellation is only observed between POVs.  An engine failure aborts
the batch with :class:`~cubectl.domain.errors.EngineError`; POVs already
executed stay executed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

import structlog

from cubectl.domain.dimensions import ALL_AXES, Axis
from cubectl.domain.errors import CubeError, EngineError
from cubectl.domain.types import CalcStatus, ConsolidationType, OperationKind

if TYPE_CHECKING:
    from cubectl.domain.pov import POV, Slice
    from cubectl.services.interfaces import CalculationEngine, MetadataService, ProgressSink

log = structlog.get_logger(__name__)

type EngineCall = Callable[[CalculationEngine, POV], None]
type SkipPolicy = Callable[[MetadataService, POV], bool]


# ---------------------------------------------------------------------------
# Operation definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SubcubeOperation:
    """How one operation kind is applied to a single POV."""

    kind: OperationKind
    label: str
    axes: tuple[Axis, ...]
    call: EngineCall
    blocking: bool = False
    skip_if: SkipPolicy | None = None


CONSOLIDATION_AXES: tuple[Axis, ...] = (Axis.SCENARIO, Axis.YEAR, Axis.PERIOD, Axis.ENTITY)
EPU_AXES: tuple[Axis, ...] = (Axis.SCENARIO, Axis.YEAR, Axis.PERIOD)

OPERATION_AXES: dict[OperationKind, tuple[Axis, ...]] = {
    OperationKind.ALLOCATE: ALL_AXES,
    OperationKind.CALCULATE: ALL_AXES,
    OperationKind.TRANSLATE: ALL_AXES,
    OperationKind.CONSOLIDATE: CONSOLIDATION_AXES,
    OperationKind.CALC_EPU: EPU_AXES,
}


def _not_impacted(metadata: MetadataService, pov: POV) -> bool:
    # Status is read just before the POV runs; earlier POVs in the batch
    # may have changed it and that is accepted.
    status = metadata.consolidation_status(pov)
    return CalcStatus.NEEDS_CONSOLIDATION not in status


def build_operation(
    kind: OperationKind | str,
    *,
    force: bool = False,
    consolidation_type: ConsolidationType = ConsolidationType.IMPACTED,
    apply_rates: bool = True,
) -> SubcubeOperation:
    """Create the :class:`SubcubeOperation` for *kind* and its flags.

    ``force`` is passed through to calculate/translate/equity pick-up;
    those operations are never pre-filtered here.  Only an ``IMPACTED``
    consolidation gets a skip policy.
    """
    kind = OperationKind(kind)
    axes = OPERATION_AXES[kind]

    if kind is OperationKind.ALLOCATE:
        return SubcubeOperation(
            kind,
            "Allocating",
            axes,
            lambda engine, pov: engine.allocate(
                pov.scenario.id, pov.year.id, pov.period.id, pov.entity_id, pov.parent_id,
                pov.value_id,
            ),
        )
    if kind is OperationKind.CALCULATE:
        return SubcubeOperation(
            kind,
            "Calculating",
            axes,
            lambda engine, pov: engine.chart_logic(
                pov.scenario.id, pov.year.id, pov.period.id, pov.entity_id, pov.parent_id,
                pov.value_id, force,
            ),
        )
    if kind is OperationKind.TRANSLATE:
        return SubcubeOperation(
            kind,
            "Translating",
            axes,
            lambda engine, pov: engine.translate(
                pov.scenario.id, pov.year.id, pov.period.id, pov.entity_id, pov.parent_id,
                pov.value_id, force, apply_rates,
            ),
        )
    if kind is OperationKind.CONSOLIDATE:
        return SubcubeOperation(
            kind,
            "Consolidating",
            axes,
            lambda engine, pov: engine.consolidate(
                pov.scenario.id, pov.year.id, pov.period.id, pov.entity_id, pov.parent_id,
                int(consolidation_type),
            ),
            blocking=True,
            skip_if=_not_impacted if consolidation_type is ConsolidationType.IMPACTED else None,
        )
    return SubcubeOperation(
        kind,
        "Equity Pick-Up",
        axes,
        lambda engine, pov: engine.calc_epu(pov.scenario.id, pov.year.id, pov.period.id, force),
    )


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


@dataclass
class SubcubeCounts:
    """Outcome of one batch."""

    total: int = 0
    executed: int = 0
    skipped: int = 0
    cancelled: bool = False
    stopped: bool = False

    @property
    def processed(self) -> int:
        return self.executed + self.skipped

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class SubcubeExecutor:
    """Run a subcube operation over every POV of a slice."""

    def __init__(self, metadata: MetadataService, engine: CalculationEngine) -> None:
        self._metadata = metadata
        self._engine = engine

    def run(
        self,
        pov_slice: Slice,
        operation: SubcubeOperation | OperationKind | str,
        progress: ProgressSink,
        **op_args: Any,
    ) -> SubcubeCounts:
        """Execute *operation* for each POV of *pov_slice*.

        *operation* is either a prepared :class:`SubcubeOperation` or an
        operation kind, in which case *op_args* go to :func:`build_operation`.

        Raises:
            EngineError: the engine or the skip policy failed; ``executed``/
                ``skipped`` on the exception are the counts reached before the
                failing POV.
        """
        if not isinstance(operation, SubcubeOperation):
            operation = build_operation(operation, **op_args)
        if pov_slice.axes != operation.axes:
            axes = ", ".join(a.value for a in operation.axes)
            msg = f"{operation.kind} needs a slice over {axes}"
            raise ValueError(msg)

        povs = pov_slice.combos
        counts = SubcubeCounts(total=len(povs))
        bound = log.bind(operation=str(operation.kind))

        progress.init_progress(operation.label, counts.total)
        try:
            for pov in povs:
                if progress.cancelled:
                    counts.cancelled = True
                    bound.info("subcube.cancelled", processed=counts.processed)
                    break

                if self._skip(operation, pov, counts):
                    bound.debug("pov.skip", pov=pov)
                    counts.skipped += 1
                else:
                    bound.debug("pov.execute", pov=pov)
                    self._execute(operation, pov, progress, counts)
                    counts.executed += 1

                if progress.iteration_complete():
                    counts.stopped = counts.processed < counts.total
                    break
        finally:
            progress.end_progress()

        bound.info("subcube.complete", **counts.as_dict())
        return counts

    def _skip(self, operation: SubcubeOperation, pov: POV, counts: SubcubeCounts) -> bool:
        if operation.skip_if is None:
            return False
        try:
            return operation.skip_if(self._metadata, pov)
        except CubeError:
            raise
        except Exception as exc:
            msg = f"{operation.label} status check failed for {pov}: {exc}"
            raise EngineError(
                msg, pov=pov, executed=counts.executed, skipped=counts.skipped
            ) from exc

    def _execute(
        self,
        operation: SubcubeOperation,
        pov: POV,
        progress: ProgressSink,
        counts: SubcubeCounts,
    ) -> None:
        if operation.blocking:
            progress.monitor_blocking_task()
        try:
            with structlog.contextvars.bound_contextvars(operation=str(operation.kind), pov=pov):
                operation.call(self._engine, pov)
        except EngineError as exc:
            exc.pov = exc.pov or pov
            exc.executed, exc.skipped = counts.executed, counts.skipped
            raise
        except Exception as exc:
            msg = f"{operation.label} failed for {pov}: {exc}"
            raise EngineError(
                msg, pov=pov, executed=counts.executed, skipped=counts.skipped
            ) from exc
        finally:
            if operation.blocking:
                progress.blocking_task_complete()
