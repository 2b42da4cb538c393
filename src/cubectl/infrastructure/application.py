"""Application — the single dependency injected into every service.

Owns the SQLAlchemy engine for the sandbox database and, lazily, the
collaborator pair (metadata service + calculation engine) for the
configured backend, the run-scoped dimension cache, the member resolver
and the subcube executor.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from sqlalchemy import select

from cubectl.domain.errors import NoApplicationError
from cubectl.infrastructure.database.engine import init_database
from cubectl.infrastructure.database.schema import app_info
from cubectl.infrastructure.sandbox import SandboxEngine, SandboxMetadata
from cubectl.services.executor import SubcubeExecutor
from cubectl.services.resolver import DimensionCache, MemberResolver

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from cubectl.config.settings import CubeSettings
    from cubectl.plugins.manager import PluginManager
    from cubectl.services.interfaces import CalculationEngine, MetadataService

logger = logging.getLogger(__name__)

type Collaborators = tuple[MetadataService, CalculationEngine]
type BackendFactory = Callable[[CubeSettings], Collaborators]

SANDBOX_BACKEND = "sandbox"


class Application:
    """Collaborators and caches for one CLI invocation.

    Constructed lazily by the CLI context from :class:`CubeSettings`.
    Services receive it via their :class:`BaseService` constructor.
    """

    def __init__(
        self,
        settings: CubeSettings,
        *,
        plugins: PluginManager | None = None,
    ) -> None:
        self._settings = settings
        self._engine: Engine = init_database(settings.database_path)
        self._plugins = plugins
        self._collaborators: Collaborators | None = None
        self._dimensions: DimensionCache | None = None

    @property
    def settings(self) -> CubeSettings:
        return self._settings

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine for the sandbox database."""
        return self._engine

    @property
    def database_path(self) -> Path:
        return self._settings.database_path

    @property
    def plugins(self) -> PluginManager | None:
        """The plugin manager (None when plugins are disabled)."""
        return self._plugins

    @property
    def backend(self) -> str:
        return self._settings.application.backend.lower()

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def _build_collaborators(self) -> Collaborators:
        if self.backend == SANDBOX_BACKEND:
            return SandboxMetadata(self._engine), SandboxEngine(self._engine)
        factories = self._plugins.backends() if self._plugins is not None else {}
        factory = factories.get(self.backend)
        if factory is None:
            known = ", ".join(sorted({SANDBOX_BACKEND, *factories}))
            msg = f"Unknown backend '{self.backend}' (available: {known})"
            raise NoApplicationError(self.backend, msg)
        logger.debug("Using plugin backend %s", self.backend)
        return factory(self._settings)

    @property
    def metadata(self) -> MetadataService:
        if self._collaborators is None:
            self._collaborators = self._build_collaborators()
        return self._collaborators[0]

    @property
    def calc_engine(self) -> CalculationEngine:
        if self._collaborators is None:
            self._collaborators = self._build_collaborators()
        return self._collaborators[1]

    @property
    def dimensions(self) -> DimensionCache:
        """Run-scoped dimension cache, shared by every resolver."""
        if self._dimensions is None:
            self._dimensions = DimensionCache(self.metadata)
        return self._dimensions

    def resolver(self) -> MemberResolver:
        return MemberResolver(self.metadata, self.dimensions)

    def executor(self) -> SubcubeExecutor:
        return SubcubeExecutor(self.metadata, self.calc_engine)

    def reset(self) -> None:
        """Drop cached collaborators, e.g. after the outline is reloaded."""
        self._collaborators = None
        self._dimensions = None

    # ------------------------------------------------------------------
    # Sandbox state
    # ------------------------------------------------------------------

    def info(self) -> dict[str, str]:
        """The ``app_info`` rows of the loaded sandbox application."""
        with self._engine.connect() as conn:
            return {row.key: row.value for row in conn.execute(select(app_info))}

    @property
    def name(self) -> str:
        return self.info().get("name", self._settings.application.name)

    def is_loaded(self) -> bool:
        """Whether the backend has an application to work against.

        Plugin backends are assumed to be loaded.
        """
        if self.backend != SANDBOX_BACKEND:
            return True
        return bool(self.info())

    def require_loaded(self) -> None:
        if not self.is_loaded():
            raise NoApplicationError(str(self.database_path))

    def close(self) -> None:
        self._engine.dispose()
