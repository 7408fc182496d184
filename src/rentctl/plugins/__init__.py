"""Extension layer — lifecycle hooks via pluggy.

Discovery: entry_points (pip-installed) in the ``rentctl.plugins`` group.
INVARIANT: Plugin failures are warnings, never errors.
"""

from rentctl.plugins.event_bus import EventBus
from rentctl.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]
