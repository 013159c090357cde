# core/results.py
"""
Result envelope shared by every public team-formation operation.

Operations raise ``TeamFormationError`` subclasses internally; the
``@operation`` decorator turns those (and raw store errors) into an
``OperationResult`` so callers always get ``{success, message, data?}``.
"""
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, List, Optional
import logging

from django.core.exceptions import ObjectDoesNotExist
from django.db import DatabaseError, IntegrityError
from rest_framework.response import Response

from .exceptions import (
    TeamFormationError,
    NotFoundError,
    DuplicateError,
    StoreError,
)

logger = logging.getLogger("capstone")


@dataclass
class OperationResult:
    success: bool
    message: str
    data: Any = None
    error: Optional[str] = None
    status_code: int = 200
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def ok(cls, message, data=None, warnings=None, status_code=200):
        return cls(
            success=True,
            message=message,
            data=data,
            status_code=status_code,
            warnings=list(warnings or []),
        )

    @classmethod
    def fail(cls, exc: TeamFormationError):
        return cls(
            success=False,
            message=exc.message,
            error=exc.code,
            status_code=exc.status_code,
        )

    def to_dict(self, data=None):
        payload = {"success": self.success, "message": self.message}
        if data is not None or self.data is not None:
            payload["data"] = data if data is not None else self.data
        if self.error:
            payload["error"] = self.error
        if self.warnings:
            payload["warnings"] = self.warnings
        return payload


def operation(func):
    """
    Boundary for a public operation.

    Domain errors become failed results; ORM errors are translated into the
    error taxonomy so raw storage errors never reach the caller.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except TeamFormationError as exc:
            logger.info(f"{func.__name__} rejected: {exc.code}: {exc.message}")
            return OperationResult.fail(exc)
        except ObjectDoesNotExist as exc:
            return OperationResult.fail(NotFoundError(str(exc) or None))
        except IntegrityError as exc:
            logger.warning(f"{func.__name__} hit an integrity error: {exc}")
            return OperationResult.fail(DuplicateError("A conflicting record already exists."))
        except DatabaseError:
            logger.exception(f"{func.__name__} failed against the data store")
            return OperationResult.fail(StoreError())

    return wrapper


def result_response(result, data=None):
    """Render an OperationResult with the HTTP status its outcome maps to."""
    return Response(result.to_dict(data=data), status=result.status_code)
