from dataclasses import dataclass
from enum import Enum
from typing import TypeVar, Union


class ErrorKind(str, Enum):
    VALIDATION = "ValidationError"
    EMPTY_ATTENDANCE = "EmptyAttendance"
    NOT_FOUND = "NotFound"
    ALREADY_LOCKED = "AlreadyLocked"
    PRECEDING_STAGE_NOT_VALIDATED = "PrecedingStageNotValidated"
    ALREADY_VALIDATED = "AlreadyValidated"
    CONFLICT = "Conflict"


_RETRYABLE = {ErrorKind.EMPTY_ATTENDANCE, ErrorKind.VALIDATION, ErrorKind.CONFLICT}


@dataclass(frozen=True)
class CoreError:
    """Expected business failure returned (not raised) by core operations."""

    kind: ErrorKind
    detail: str

    @property
    def retryable(self) -> bool:
        return self.kind in _RETRYABLE

    def as_dict(self) -> dict:
        return {"kind": self.kind.value, "detail": self.detail}


T = TypeVar("T")

Result = Union[T, CoreError]


def is_error(value) -> bool:
    return isinstance(value, CoreError)


def not_found(entity: str, entity_id) -> CoreError:
    return CoreError(ErrorKind.NOT_FOUND, f"{entity} {entity_id} not found")


def invalid(detail: str) -> CoreError:
    return CoreError(ErrorKind.VALIDATION, detail)
