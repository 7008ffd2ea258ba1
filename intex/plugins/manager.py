"""Plugin registry and hook bus."""

from __future__ import annotations

import heapq
from typing import Any

from loguru import logger

from intex.core.errors import PluginDependencyError, PluginRegistrationError
from intex.core.types import ExecutionContext
from intex.plugins.base import HOOK_SLOTS, Hook, Plugin
from intex.utils.aio import maybe_await


class PluginManager:
    """
    Registers plugins and fires lifecycle hooks on them in dependency order.

    One manager is constructed by the host and handed to the framework; tests
    build a fresh one per case. Hook failures are isolated per plugin: they are
    logged, routed to that plugin's own ``on_error`` (except for the error hook
    itself), and never reach the caller.
    """

    def __init__(self) -> None:
        self._plugins: dict[str, Plugin] = {}
        self._sorted: list[Plugin] | None = None

    # ── registry ──

    def register_plugin(self, plugin: Plugin) -> None:
        if plugin.id in self._plugins:
            raise PluginRegistrationError(f"Plugin with ID {plugin.id} is already registered")
        self._plugins[plugin.id] = plugin
        self._sorted = None
        logger.info(f"Registered plugin: {plugin.id} (priority {plugin.priority})")

    def unregister_plugin(self, plugin_id: str) -> bool:
        removed = self._plugins.pop(plugin_id, None)
        if removed is None:
            return False
        self._sorted = None
        logger.info(f"Unregistered plugin: {plugin_id}")
        return True

    def get_plugin(self, plugin_id: str) -> Plugin | None:
        return self._plugins.get(plugin_id)

    def get_all_plugins(self) -> list[Plugin]:
        """Plugins in registration order."""
        return list(self._plugins.values())

    def __len__(self) -> int:
        return len(self._plugins)

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self._plugins

    # ── ordering ──

    def get_sorted_plugins(self) -> list[Plugin]:
        """
        Dependency-respecting order, highest priority first among ready plugins.

        Kahn's algorithm over the registered plugins with a heap keyed on
        ``(-priority, registration index)``, so dependencies always precede
        their dependents and ties keep registration order. Dependencies on
        unregistered ids are ignored.

        Raises:
            PluginDependencyError: the dependency graph has a cycle.
        """
        if self._sorted is not None:
            return list(self._sorted)

        plugins = list(self._plugins.values())
        index = {p.id: i for i, p in enumerate(plugins)}
        dependents: dict[str, list[str]] = {p.id: [] for p in plugins}
        pending: dict[str, int] = {}

        for plugin in plugins:
            deps = {d for d in plugin.dependencies if d in index}
            for missing in sorted(set(plugin.dependencies) - deps):
                logger.warning(f"Plugin {plugin.id} depends on unregistered plugin {missing}; ignoring")
            pending[plugin.id] = len(deps)
            for dep in deps:
                dependents[dep].append(plugin.id)

        ready = [(-p.priority, index[p.id], p.id) for p in plugins if pending[p.id] == 0]
        heapq.heapify(ready)

        ordered: list[Plugin] = []
        while ready:
            _, _, plugin_id = heapq.heappop(ready)
            ordered.append(self._plugins[plugin_id])
            for child in dependents[plugin_id]:
                pending[child] -= 1
                if pending[child] == 0:
                    heapq.heappush(ready, (-self._plugins[child].priority, index[child], child))

        if len(ordered) != len(plugins):
            stuck = sorted(pid for pid, count in pending.items() if count > 0)
            raise PluginDependencyError(f"Circular dependency detected in plugins: {', '.join(stuck)}")

        self._sorted = ordered
        return list(ordered)

    # ── lifecycle ──

    async def initialize(self) -> None:
        """Initialize every plugin in sorted order; failures are logged and skipped."""
        for plugin in self.get_sorted_plugins():
            try:
                await maybe_await(plugin.initialize())
            except Exception as e:
                logger.error(f"Error initializing plugin {plugin.id}: {e}")

    async def shutdown(self) -> None:
        """Shut plugins down in reverse sorted order; failures are logged and skipped."""
        for plugin in reversed(self.get_sorted_plugins()):
            try:
                await maybe_await(plugin.shutdown())
            except Exception as e:
                logger.error(f"Error shutting down plugin {plugin.id}: {e}")

    # ── hooks ──

    async def execute_hook(self, hook: Hook, *args: Any) -> None:
        """Fire *hook* on every plugin in sorted order with *args*."""
        slot = HOOK_SLOTS[hook]
        for plugin in self.get_sorted_plugins():
            try:
                await maybe_await(slot(plugin)(*args))
            except Exception as e:
                logger.error(f"Error executing {hook.value} on plugin {plugin.id}: {e}")
                if hook is Hook.ERROR:
                    continue
                context = args[0] if args and isinstance(args[0], ExecutionContext) else None
                try:
                    await maybe_await(plugin.on_error(e, context))
                except Exception as handler_error:
                    logger.error(f"Error handling error in plugin {plugin.id}: {handler_error}")
