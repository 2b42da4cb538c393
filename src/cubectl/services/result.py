"""ServiceResult and ServiceError — the contract between services and the CLI.

INVARIANT: Every public service operation returns ServiceResult.
Domain exceptions are converted at the service boundary, never rendered
directly by commands.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from cubectl.domain.errors import CubeError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: CubeError) -> ServiceError:
        """Build an error payload from a domain exception."""
        return cls(code=exc.code, message=str(exc), detail=exc.detail())


class ServiceResult(BaseModel):
    """Return type of all service operations.

    Attributes:
        ok: Whether the operation succeeded.  A cancelled batch is still ok.
        op: Operation name (e.g. ``"consolidate"``), used for renderer dispatch.
        data: Operation-specific payload.
        warnings: Non-fatal issues (plugin failures, empty slices...).
        error: Structured error when ``ok`` is False.
        meta: Timing/telemetry, only under ``--verbose``.
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
        cls,
        op: str,
        exc: CubeError,
        *,
        warnings: list[str] | None = None,
    ) -> ServiceResult:
        return cls(
            ok=False,
            op=op,
            error=ServiceError.from_exception(exc),
            warnings=warnings or [],
        )
