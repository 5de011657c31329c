"""Bring a working copy's declarations in line with its buffer."""

from __future__ import annotations

from typing import List, Optional

from overlay_engine.delta import DeltaBuilder, ElementDelta
from overlay_engine.model.elements import Element
from overlay_engine.model.units import SourceUnit
from overlay_engine.status import VERIFIED_OK, ModelStatus, StatusCode

from .base import ModelOperation
from .progress import ProgressMonitor


class ReconcileWorkingCopyOperation(ModelOperation):
    """Re-derive the overlay's declarations and report what moved.

    Nothing is written to the store. A consistent overlay yields no delta.
    """

    name = "reconcile"

    def __init__(
        self,
        unit: Element,
        *,
        monitor: Optional[ProgressMonitor] = None,
        deltas: Optional[List[ElementDelta]] = None,
    ) -> None:
        super().__init__([unit], monitor=monitor, deltas=deltas)
        self.delta: Optional[ElementDelta] = None

    def verify(self) -> ModelStatus:
        unit = self.element_to_process
        if not isinstance(unit, SourceUnit) or not unit.is_working_copy():
            return ModelStatus(
                StatusCode.INVALID_ELEMENT_KIND, element=unit, message="not a working copy"
            )
        return VERIFIED_OK

    def execute(self) -> None:
        unit = self.element_to_process
        assert isinstance(unit, SourceUnit)
        if unit.is_consistent():
            return
        self.begin_task("reconcile working copy", 1)
        try:
            builder = DeltaBuilder(unit)
            unit.make_consistent()
            self.delta = builder.build_deltas()
            if self.delta is not None:
                self.add_delta(self.delta)
            self.worked(1)
        finally:
            self.done()


def reconcile(
    overlay: Element,
    *,
    monitor: Optional[ProgressMonitor] = None,
    deltas: Optional[List[ElementDelta]] = None,
) -> Optional[ElementDelta]:
    operation = ReconcileWorkingCopyOperation(overlay, monitor=monitor, deltas=deltas)
    operation.run()
    return operation.delta


__all__ = ["ReconcileWorkingCopyOperation", "reconcile"]
