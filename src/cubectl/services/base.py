"""BaseService — abstract foundation for all cubectl services.

Every service receives an :class:`Application` at construction time.  The
Application provides the collaborators, the dimension cache and the
plugin manager.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cubectl.infrastructure.application import Application

logger = logging.getLogger(__name__)


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class CalculateService(BaseService):
            def consolidate(self, axis_specs, ...) -> ServiceResult:
                pov_slice = self._app.resolver().build_slice(...)
                ...
    """

    def __init__(self, app: Application) -> None:
        self._app = app

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Call a lifecycle hook on every plugin. No-op without plugins.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        plugins = self._app.plugins
        if plugins is None:
            return
        try:
            getattr(plugins.hook, hook_name)(**payload)
        except Exception:
            logger.debug("Hook %s failed", hook_name, exc_info=True)
            warnings.append(f"Plugin hook failed: {hook_name}")
