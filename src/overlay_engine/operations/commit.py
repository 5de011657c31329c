"""Commit the contents of a working copy to its primary unit and resource.

The persisted resource may have changed since the working copy was created
or last committed; that is an update conflict. With ``force=False`` the
commit is refused, with ``force=True`` the working copy's contents win.

Two paths exist. Units that take part in the build (and in-place working
copies) go through the primary's buffer, so the primary's declarations are
re-derived and a structural delta is reported. Anything else, e.g. a unit
outside every build root or one whose resource does not exist yet, is
written straight to the store as encoded bytes.
"""

from __future__ import annotations

from typing import List, Optional

from overlay_engine.delta import DeltaBuilder, ElementDelta
from overlay_engine.model.elements import Element
from overlay_engine.model.membership import BuildMembership, MembershipPredicate
from overlay_engine.model.units import DetachedOrigin, PrimaryOrigin, SourceUnit
from overlay_engine.runtime import telemetry
from overlay_engine.status import VERIFIED_OK, ModelStatus, StatusCode

from .base import HAS_MODIFIED_RESOURCE_ATTR, ModelOperation
from .progress import ProgressMonitor


class CommitWorkingCopyOperation(ModelOperation):
    name = "commit"

    def __init__(
        self,
        unit: Element,
        force: bool = False,
        *,
        membership: Optional[MembershipPredicate] = None,
        monitor: Optional[ProgressMonitor] = None,
        deltas: Optional[List[ElementDelta]] = None,
    ) -> None:
        super().__init__([unit], force=force, monitor=monitor, deltas=deltas)
        self.membership: MembershipPredicate = membership or BuildMembership()
        self.delta: Optional[ElementDelta] = None

    @property
    def unit(self) -> Element:
        return self.element_to_process

    def verify(self) -> ModelStatus:
        """Possible failures, checked in this order:

        * ``INVALID_ELEMENT_KIND``: the element is not a working copy;
        * ``ELEMENT_NOT_PRESENT``: the primary left the canonical tree;
        * ``UPDATE_CONFLICT``: the resource changed since the last sync point
          and the commit is not forced.

        There is no read-only check: the store decides on save.
        """

        unit = self.unit
        if not isinstance(unit, SourceUnit) or not unit.is_working_copy():
            return ModelStatus(
                StatusCode.INVALID_ELEMENT_KIND, element=unit, message="not a working copy"
            )
        if not unit.primary.is_attached():
            return ModelStatus(StatusCode.ELEMENT_NOT_PRESENT, element=unit.primary)
        if unit.has_resource_changed() and not self.force:
            return ModelStatus(
                StatusCode.UPDATE_CONFLICT,
                element=unit,
                message="resource changed since the working copy was synchronized",
            )
        return VERIFIED_OK

    def execute(self) -> None:
        unit = self.unit
        assert isinstance(unit, SourceUnit)
        self.begin_task("commit working copy", 2)
        try:
            builder: Optional[DeltaBuilder] = None
            managed = unit.is_primary() or self.membership.is_managed(unit)
            self.logger.info(
                f"commit {unit.resource_path} path={'managed' if managed else 'unmanaged'}"
                f" force={self.force}"
            )
            if managed:
                builder = self._commit_managed(unit)
            else:
                self._commit_unmanaged(unit)

            self.set_attribute(HAS_MODIFIED_RESOURCE_ATTR, True)

            # the working copy now mirrors the persisted state
            unit.update_timestamp()
            unit.make_consistent()
            self.worked(1)

            if builder is not None:
                self.delta = builder.build_deltas()
                if self.delta is not None:
                    self.add_delta(self.delta)
                    telemetry.record_event(
                        "commit.delta",
                        data={"unit": unit.resource_path, "delta": self.delta.to_dict()},
                    )
            self.worked(1)
        finally:
            self.done()

    def _commit_managed(self, unit: SourceUnit) -> Optional[DeltaBuilder]:
        origin = unit.origin
        primary = unit.primary

        # the delta builder needs the primary's current declarations
        if isinstance(origin, DetachedOrigin):
            primary.open()
            primary.make_consistent()

        builder = None
        if not self.membership.is_excluded(unit) and (
            not unit.is_primary() or not unit.is_consistent()
        ):
            builder = DeltaBuilder(primary)

        if isinstance(origin, DetachedOrigin):
            self._transfer(unit, primary)
        elif isinstance(origin, PrimaryOrigin):
            primary.buffer.save(force=self.force)
            primary.make_consistent()
        return builder

    def _transfer(self, unit: SourceUnit, primary: SourceUnit) -> None:
        """Copy the working copy's contents into the primary and save them.

        A failing save reinstates the primary buffer's previous document, so
        contents, version and declarations stay as they were.
        """

        buffer = primary.buffer
        with buffer.transaction("commit"):
            buffer.set_contents(unit.buffer.contents)
            buffer.save(force=self.force)
            primary.make_consistent()

    def _commit_unmanaged(self, unit: SourceUnit) -> None:
        backing = unit.backing()
        existed = backing.exists()
        backing.persist(unit.source, force=self.force)

        # an open primary still holds the old content; it reloads on demand
        primary = unit.primary
        if primary is not unit and primary.is_open():
            primary.close()
        telemetry.record_event(
            "commit.unmanaged",
            data={
                "unit": unit.resource_path,
                "created": not existed,
                "encoding": backing.resolved_encoding,
            },
        )


def verify(overlay: Element, force: bool = False) -> ModelStatus:
    """Check whether ``overlay`` could be committed, without side effects."""

    return CommitWorkingCopyOperation(overlay, force).verify()


def commit(
    overlay: Element,
    force: bool = False,
    *,
    membership: Optional[MembershipPredicate] = None,
    monitor: Optional[ProgressMonitor] = None,
    deltas: Optional[List[ElementDelta]] = None,
) -> Optional[ElementDelta]:
    """Commit ``overlay`` and return the primary's structural delta, if any."""

    operation = CommitWorkingCopyOperation(
        overlay, force, membership=membership, monitor=monitor, deltas=deltas
    )
    operation.run()
    return operation.delta


__all__ = ["CommitWorkingCopyOperation", "commit", "verify"]
