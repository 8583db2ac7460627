"""
Structured error responses and global exception handlers.

Every error returned by the API follows this envelope:

    {
        "error": "snake_case_code",
        "message": "Human-readable description.",
        "detail": { ... }   // optional, e.g. the clusters that broke the size bounds
    }

The clustering engine raises the `ClusteringError` family directly; the
handlers below only translate them into HTTP responses.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# Canonical error envelope
# --------------------------------------------------------------------------- #

def error_response(
    code: str,
    message: str,
    status_code: int,
    detail: Any = None,
) -> JSONResponse:
    body: dict[str, Any] = {"error": code, "message": message}
    if detail is not None:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


# --------------------------------------------------------------------------- #
# Custom exception classes
# --------------------------------------------------------------------------- #

class WardsetError(Exception):
    """Base exception for all domain errors raised inside services."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: Any = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class UnauthorizedError(WardsetError):
    def __init__(self) -> None:
        super().__init__(
            "unauthorized",
            "Missing or invalid X-Api-Key header.",
            status.HTTP_401_UNAUTHORIZED,
        )


class BatchTooLargeError(WardsetError):
    def __init__(self, received: int, max_allowed: int) -> None:
        super().__init__(
            "batch_too_large",
            f"Request contains {received} items; maximum allowed is {max_allowed}.",
            status.HTTP_422_UNPROCESSABLE_ENTITY,
        )


class ClusteringError(WardsetError):
    """Base class for every failure of a clustering run."""

    def __init__(
        self,
        message: str,
        code: str = "clustering_error",
        status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail: Any = None,
    ) -> None:
        super().__init__(code, message, status_code, detail)


class InvalidClusterInputError(ClusteringError):
    """Vectors, identifiers or size bounds are malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="invalid_cluster_input")


class InfeasibleConstraintsError(ClusteringError):
    """No partition of `n` items can satisfy the requested size bounds."""

    def __init__(self, n_items: int, min_size: int, max_size: int, reason: str) -> None:
        self.n_items = n_items
        self.min_size = min_size
        self.max_size = max_size
        self.reason = reason
        super().__init__(
            f"Cannot cluster {n_items} items with min_cluster_size={min_size} "
            f"and max_cluster_size={max_size}: {reason}.",
            code="infeasible_constraints",
            detail={
                "n_items": n_items,
                "min_cluster_size": min_size,
                "max_cluster_size": max_size,
                "reason": reason,
            },
        )


class ConstraintViolationError(ClusteringError):
    """The final partition contains clusters outside [min_size, max_size]."""

    def __init__(self, violations: list[dict[str, int]], min_size: int, max_size: int) -> None:
        self.violations = violations
        super().__init__(
            f"{len(violations)} cluster(s) violate the size bounds "
            f"[{min_size}, {max_size}].",
            code="constraint_violation",
            detail={
                "min_cluster_size": min_size,
                "max_cluster_size": max_size,
                "violations": violations,
            },
        )


class SplitFailureError(ClusteringError):
    """An oversized cluster could not be decomposed into valid sub-clusters."""

    def __init__(self, message: str) -> None:
        super().__init__(
            message,
            code="split_failure",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


# --------------------------------------------------------------------------- #
# FastAPI exception handlers, registered via register_exception_handlers()
# --------------------------------------------------------------------------- #

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(WardsetError)
    async def wardset_error_handler(
        request: Request, exc: WardsetError
    ) -> JSONResponse:
        logger.warning("WardsetError [%s]: %s", exc.code, exc.message)
        return error_response(exc.code, exc.message, exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.debug("RequestValidationError: %s", exc.errors())
        return error_response(
            code="validation_error",
            message="Request body or query parameters failed validation.",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=_jsonable_errors(exc.errors()),
        )

    @app.exception_handler(ValidationError)
    async def pydantic_validation_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return error_response(
            code="validation_error",
            message="Internal data validation error.",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=_jsonable_errors(exc.errors()),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception("Unhandled exception: %s", exc)
        return error_response(
            code="internal_error",
            message="An unexpected error occurred. Please try again later.",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


def _jsonable_errors(errors: Any) -> list[dict[str, Any]]:
    # pydantic puts the raw exception under `ctx` for model validator failures.
    cleaned = []
    for err in errors:
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        cleaned.append(err)
    return cleaned
