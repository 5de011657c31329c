"""Status values and the error hierarchy raised by model operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional, Type

if TYPE_CHECKING:
    from .model.elements import Element


class StatusCode(str, Enum):
    OK = "ok"
    INVALID_ELEMENT_KIND = "invalid_element_kind"
    ELEMENT_NOT_PRESENT = "element_not_present"
    UPDATE_CONFLICT = "update_conflict"
    IO_EXCEPTION = "io_exception"
    STORE_FAILURE = "store_failure"
    CANCELED = "canceled"


@dataclass(frozen=True, slots=True)
class ModelStatus:
    """Outcome of a verification step or the reason an operation failed."""

    code: StatusCode
    element: Optional["Element"] = None
    message: str = ""
    cause: Optional[BaseException] = None

    def is_ok(self) -> bool:
        return self.code is StatusCode.OK

    def describe(self) -> str:
        parts = [self.code.value]
        if self.element is not None:
            parts.append("/".join(self.element.path))
        if self.message:
            parts.append(self.message)
        return ": ".join(parts)


VERIFIED_OK = ModelStatus(StatusCode.OK)


class ModelError(RuntimeError):
    """Raised when a model operation cannot be carried out."""

    code: StatusCode = StatusCode.STORE_FAILURE

    def __init__(
        self,
        message: str = "",
        *,
        element: Optional["Element"] = None,
        status: Optional[ModelStatus] = None,
    ) -> None:
        if status is None:
            status = ModelStatus(self.code, element=element, message=message)
        super().__init__(status.describe())
        self.status = status
        self.code = status.code
        self.element = status.element

    @classmethod
    def from_status(cls, status: ModelStatus) -> "ModelError":
        error_cls = _ERRORS_BY_CODE.get(status.code, ModelError)
        error = error_cls(status=status)
        if status.cause is not None:
            error.__cause__ = status.cause
        return error


class InvalidElementKind(ModelError):
    """The element handed to an operation is not of the kind it works on."""

    code = StatusCode.INVALID_ELEMENT_KIND


class ElementNotPresent(ModelError):
    """The element (or the primary behind an overlay) left the canonical tree."""

    code = StatusCode.ELEMENT_NOT_PRESENT


class UpdateConflict(ModelError):
    """The persisted resource changed since the overlay was synchronized."""

    code = StatusCode.UPDATE_CONFLICT


class CommitFailure(ModelError):
    """The content transfer into the persisted store failed."""

    code = StatusCode.STORE_FAILURE


class EncodingFailure(CommitFailure):
    code = StatusCode.IO_EXCEPTION


class StoreWriteFailure(CommitFailure):
    code = StatusCode.STORE_FAILURE


class OperationCanceled(ModelError):
    code = StatusCode.CANCELED


_ERRORS_BY_CODE: Dict[StatusCode, Type[ModelError]] = {
    StatusCode.INVALID_ELEMENT_KIND: InvalidElementKind,
    StatusCode.ELEMENT_NOT_PRESENT: ElementNotPresent,
    StatusCode.UPDATE_CONFLICT: UpdateConflict,
    StatusCode.IO_EXCEPTION: EncodingFailure,
    StatusCode.STORE_FAILURE: StoreWriteFailure,
    StatusCode.CANCELED: OperationCanceled,
}


__all__ = [
    "StatusCode",
    "ModelStatus",
    "VERIFIED_OK",
    "ModelError",
    "InvalidElementKind",
    "ElementNotPresent",
    "UpdateConflict",
    "CommitFailure",
    "EncodingFailure",
    "StoreWriteFailure",
    "OperationCanceled",
]
