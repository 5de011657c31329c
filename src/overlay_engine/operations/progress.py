"""Progress reporting and cancellation hooks for model operations."""

from __future__ import annotations

from typing import Protocol


class ProgressMonitor(Protocol):
    def begin_task(self, name: str, total: int) -> None:
        ...

    def worked(self, amount: int) -> None:
        ...

    def done(self) -> None:
        ...

    def is_canceled(self) -> bool:
        ...


class NullProgressMonitor:
    """Ignores progress; cancellation can still be requested via ``cancel``."""

    def __init__(self) -> None:
        self.canceled = False

    def begin_task(self, name: str, total: int) -> None:
        del name, total

    def worked(self, amount: int) -> None:
        del amount

    def done(self) -> None:
        return None

    def is_canceled(self) -> bool:
        return self.canceled

    def cancel(self) -> None:
        self.canceled = True


__all__ = ["NullProgressMonitor", "ProgressMonitor"]
