"""Error taxonomy for the progress engine.

Services raise these directly; FastAPI renders them as HTTP errors and
batch operations turn them into per-item rejection reasons.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception with a stable machine-readable code."""

    error_code = "ERROR"

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        if error_code is not None:
            self.error_code = error_code

    def as_reason(self) -> str:
        return f"{self.error_code}: {self.detail}"


class NotFoundError(APIException):
    """Unknown person/group/milestone, or a target outside the caller's scope."""

    def __init__(self, resource: str, identifier: Any = None):
        detail = f"{resource} not found" if identifier is None else f"{resource} not found: {identifier}"
        super().__init__(status.HTTP_404_NOT_FOUND, detail, error_code="NOT_FOUND")


class DuplicateKeyError(APIException):
    def __init__(self, detail: str):
        super().__init__(status.HTTP_409_CONFLICT, detail, error_code="DUPLICATE_KEY")


class ForbiddenError(APIException):
    def __init__(self, detail: str = "Access denied", error_code: str = "FORBIDDEN"):
        super().__init__(status.HTTP_403_FORBIDDEN, detail, error_code=error_code)


class ValidationError(APIException):
    def __init__(self, detail: str, field: Optional[str] = None):
        code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(status.HTTP_422_UNPROCESSABLE_ENTITY, detail, error_code=code)


class InternalError(APIException):
    """Storage failure; details go to the log, not to the caller."""

    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail, error_code="INTERNAL")


class UnauthorizedError(APIException):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            detail,
            error_code="UNAUTHORIZED",
        )
