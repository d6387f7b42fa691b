"""
Explicit success/error results passed from the service layer to the
routers.

Routers call the service through ``call_service`` and receive either
``Ok`` or ``Err`` instead of catching exceptions themselves.  Only the
exception classes a route asks for are converted; anything else
propagates to the framework.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Tuple, Type, Union

from event_rides_api.services.exceptions import ConflictError, NotFoundError


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    FAILED = "failed"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    UNCLASSIFIED = "unclassified"


STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.FAILED: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNCLASSIFIED: 500,
}

_EXCEPTION_KINDS = (
    (ConflictError, ErrorKind.CONFLICT),
    (NotFoundError, ErrorKind.NOT_FOUND),
)


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]


Result = Union[Ok, Err]


def kind_for(exc: Exception) -> ErrorKind:
    for exc_type, kind in _EXCEPTION_KINDS:
        if isinstance(exc, exc_type):
            return kind
    return ErrorKind.UNCLASSIFIED


def call_service(
    func: Callable[..., Any],
    *args: Any,
    handles: Tuple[Type[BaseException], ...] = (),
    unclassified: bool = False,
) -> Result:
    """Run ``func(*args)`` and wrap its outcome.

    Exceptions that are instances of ``handles`` become ``Err``; any
    other exception is re-raised untouched.  With ``unclassified`` every
    handled exception is reported as ``UNCLASSIFIED``, whatever its type.
    """
    try:
        return Ok(func(*args))
    except handles as e:
        kind = ErrorKind.UNCLASSIFIED if unclassified else kind_for(e)
        return Err(kind, str(e))


def validate_positive(message: str, **ids: int) -> Optional[Err]:
    """Return a validation error if any identifier is missing or not > 0"""
    for value in ids.values():
        if value is None or value <= 0:
            return Err(ErrorKind.VALIDATION, message)
    return None
