"""Shared scaffolding for operations that mutate the model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from overlay_engine.delta import ElementDelta
from overlay_engine.model.elements import Element
from overlay_engine.runtime import telemetry
from overlay_engine.status import VERIFIED_OK, ModelError, ModelStatus, OperationCanceled

from .progress import NullProgressMonitor, ProgressMonitor

HAS_MODIFIED_RESOURCE_ATTR = "has_modified_resource"


@dataclass(slots=True)
class OperationResult:
    deltas: List[ElementDelta] = field(default_factory=list)
    has_modified_resource: bool = False


class ModelOperation:
    """Verify first, then execute; never mutate when verification fails.

    Deltas produced by the operation are appended to ``deltas``, which callers
    may pass in to collect the deltas of a larger unit of work.
    """

    name: str = "operation"

    def __init__(
        self,
        elements: Sequence[Element],
        *,
        force: bool = False,
        monitor: Optional[ProgressMonitor] = None,
        deltas: Optional[List[ElementDelta]] = None,
    ) -> None:
        self.elements = tuple(elements)
        self.force = force
        self.monitor: ProgressMonitor = monitor or NullProgressMonitor()
        self.deltas: List[ElementDelta] = deltas if deltas is not None else []
        self.attributes: Dict[str, object] = {}
        self.logger = telemetry.get_logger("overlay_engine.operations")

    @property
    def element_to_process(self) -> Element:
        return self.elements[0]

    @property
    def has_modified_resource(self) -> bool:
        return bool(self.attributes.get(HAS_MODIFIED_RESOURCE_ATTR, False))

    def verify(self) -> ModelStatus:
        return VERIFIED_OK

    def execute(self) -> None:  # pragma: no cover - abstract override
        raise NotImplementedError

    def run(self) -> OperationResult:
        element = self.element_to_process
        with telemetry.span(
            f"operation::{self.name}",
            component="operations",
            metadata={"element": "/".join(element.path), "force": self.force},
        ) as handle:
            status = self.verify()
            if not status.is_ok():
                handle.add_metadata("status", status.code.value)
                telemetry.record_event(
                    f"{self.name}.rejected",
                    level="warning",
                    data={"element": "/".join(element.path), "status": status.code.value},
                )
                raise ModelError.from_status(status)
            if self.monitor.is_canceled():
                handle.cancel("monitor canceled before execution")
            self.check_canceled()
            self.execute()
        return OperationResult(list(self.deltas), self.has_modified_resource)

    def add_delta(self, delta: ElementDelta) -> None:
        self.deltas.append(delta)

    def set_attribute(self, key: str, value: object) -> None:
        self.attributes[key] = value

    def check_canceled(self) -> None:
        if self.monitor.is_canceled():
            raise OperationCanceled(
                f"{self.name} canceled", element=self.element_to_process
            )

    def begin_task(self, name: str, total: int) -> None:
        self.monitor.begin_task(name, total)

    def worked(self, amount: int) -> None:
        self.monitor.worked(amount)

    def done(self) -> None:
        self.monitor.done()


__all__ = [
    "HAS_MODIFIED_RESOURCE_ATTR",
    "ModelOperation",
    "OperationResult",
]
