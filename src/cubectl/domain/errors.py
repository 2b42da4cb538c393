"""Exception taxonomy for resolution and execution failures.

Resolution-stage errors (:class:`SpecificationError`,
:class:`ConfigurationError`) are raised before any engine call is made.
:class:`EngineError` aborts a batch part-way; POVs already executed are
not rolled back.  Cancellation is not an error and has no type here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cubectl.domain.pov import POV


class CubeError(Exception):
    """Base class for all cubectl domain errors."""

    code = "CUBE_ERROR"

    def detail(self) -> dict[str, Any]:
        """Structured context for ``ServiceError.detail``."""
        return {}


class SpecificationError(CubeError, ValueError):
    """A member specification is malformed or names an unknown member/list."""

    code = "INVALID_SPEC"

    def __init__(self, text: str, reason: str, *, dimension: str | None = None) -> None:
        self.text = text
        self.reason = reason
        self.dimension = dimension
        where = f" in dimension {dimension}" if dimension else ""
        super().__init__(f"Invalid member specification '{text}'{where}: {reason}")

    def detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {"spec": self.text, "reason": self.reason}
        if self.dimension:
            detail["dimension"] = self.dimension
        return detail


class ConfigurationError(CubeError, LookupError):
    """The application does not define the named dimension."""

    code = "UNKNOWN_DIMENSION"

    def __init__(self, name: str, reason: str | None = None) -> None:
        self.name = name
        super().__init__(reason or f"No dimension named '{name}' exists in the application")

    def detail(self) -> dict[str, Any]:
        return {"dimension": self.name}


class EngineError(CubeError, RuntimeError):
    """The calculation engine failed for one POV; the batch is aborted.

    ``executed`` and ``skipped`` are the counts reached before the failing
    POV, so callers can report how far the batch got.
    """

    code = "ENGINE_FAILURE"

    def __init__(
        self,
        message: str,
        *,
        pov: POV | None = None,
        executed: int = 0,
        skipped: int = 0,
    ) -> None:
        self.pov = pov
        self.executed = executed
        self.skipped = skipped
        super().__init__(message)

    def detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {"executed": self.executed, "skipped": self.skipped}
        if self.pov is not None:
            detail["pov"] = str(self.pov)
        return detail


class OutlineError(CubeError, ValueError):
    """An application outline cannot be loaded."""

    code = "INVALID_OUTLINE"

    def __init__(self, message: str, *, source: str | None = None) -> None:
        self.source = source
        super().__init__(message)

    def detail(self) -> dict[str, Any]:
        return {"source": self.source} if self.source else {}


class NoApplicationError(CubeError, LookupError):
    """No application has been loaded into the configured database."""

    code = "NO_APPLICATION"

    def __init__(self, location: str, reason: str | None = None) -> None:
        self.location = location
        default = f"No application loaded at {location}; run 'cubectl load' first"
        super().__init__(reason or default)

    def detail(self) -> dict[str, Any]:
        return {"database": self.location}
