"""Operations that mutate the model: commit and reconcile of working copies."""

from .base import HAS_MODIFIED_RESOURCE_ATTR, ModelOperation, OperationResult
from .commit import CommitWorkingCopyOperation, commit, verify
from .progress import NullProgressMonitor, ProgressMonitor
from .reconcile import ReconcileWorkingCopyOperation, reconcile

__all__ = [
    "HAS_MODIFIED_RESOURCE_ATTR",
    "ModelOperation",
    "OperationResult",
    "CommitWorkingCopyOperation",
    "commit",
    "verify",
    "NullProgressMonitor",
    "ProgressMonitor",
    "ReconcileWorkingCopyOperation",
    "reconcile",
]
