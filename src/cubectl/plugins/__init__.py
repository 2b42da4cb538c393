"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) in the ``cubectl.plugins`` group.
INVARIANT: Plugin failures in lifecycle hooks are warnings, never errors.
"""

from cubectl.plugins.manager import PluginManager, hookimpl

__all__ = ["PluginManager", "hookimpl"]
