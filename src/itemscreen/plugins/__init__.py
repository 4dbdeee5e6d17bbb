"""Extension layer — load lifecycle hooks via pluggy.

Discovery: entry_points (pip-installed) in the ``itemscreen.plugins`` group.
INVARIANT: Plugin failures are warnings, never errors.
"""

from itemscreen.plugins.manager import PluginManager

__all__ = ["PluginManager"]
