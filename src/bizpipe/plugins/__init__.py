"""Extension layer — post-mutation lifecycle hooks via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin failures are warnings, never errors.
"""

from bizpipe.plugins.event_bus import EventBus
from bizpipe.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]
