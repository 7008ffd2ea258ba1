"""Plugin system: base class, hook bus and built-in plugins."""

from intex.plugins.analytics import BasicAnalyticsPlugin
from intex.plugins.base import Hook, Plugin
from intex.plugins.cache import MemoryCachePlugin
from intex.plugins.logging_plugin import LoggingPlugin
from intex.plugins.manager import PluginManager
from intex.plugins.performance import PerformancePlugin

__all__ = [
    "Hook",
    "Plugin",
    "PluginManager",
    "BasicAnalyticsPlugin",
    "MemoryCachePlugin",
    "LoggingPlugin",
    "PerformancePlugin",
]
