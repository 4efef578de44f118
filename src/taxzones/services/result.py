"""ServiceResult and ServiceError — what every service method hands back.

Absence (no zone for an address, no default-tax zone) is a successful
result carrying ``None`` or an empty list; ``ok=False`` is reserved for
failures a caller has to act on, identified by an :class:`ErrorCode`.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(StrEnum):
    """Machine-readable failure codes carried in :attr:`ServiceError.code`."""

    NOT_FOUND = "NOT_FOUND"
    INTEGRITY_ERROR = "INTEGRITY_ERROR"
    INVALID_NAME = "INVALID_NAME"
    DUPLICATE_NAME = "DUPLICATE_NAME"
    INVALID_MEMBER = "INVALID_MEMBER"
    DUPLICATE_COUNTRY = "DUPLICATE_COUNTRY"
    DUPLICATE_STATE = "DUPLICATE_STATE"
    SEED_FAILED = "SEED_FAILED"


class ServiceError(BaseModel):
    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of a catalog or resolver operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Operation name (``"match"``, ``"save_zone"``, ...).
        data: Payload on success, e.g. ``{"zone": Zone | None}``.
        warnings: Things the caller may want to surface, such as members
            dropped by kind normalization.
        error: Set when ``ok`` is False.
        meta: Telemetry span tree when verbose mode is on.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls, op: str, code: ErrorCode, message: str, /, **detail: Any
    ) -> ServiceResult:
        """Build a failed result; *detail* keys may reuse parameter names such as ``code``."""
        return cls(
            ok=False,
            op=op,
            error=ServiceError(code=code, message=message, detail=detail),
        )
