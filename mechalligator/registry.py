"""Thread-safe registry of scraper plugins."""

from __future__ import annotations

import threading

from .scraper_types import Plugin, ScraperError


class Registry:
    """Holds plugins by name and finds one for a site type."""

    def __init__(self) -> None:
        self._plugins: dict[str, Plugin] = {}
        self._lock = threading.RLock()

    def register(self, plugin: Plugin) -> None:
        """Add a plugin; raise ScraperError if its name is already taken."""
        with self._lock:
            if plugin.name in self._plugins:
                raise ScraperError(f"plugin {plugin.name} already registered")
            self._plugins[plugin.name] = plugin

    def get_plugin_for_type(self, site_type: str) -> Plugin:
        """Return the first registered plugin that supports site_type."""
        with self._lock:
            for plugin in self._plugins.values():
                if site_type in plugin.supported_types():
                    return plugin
        raise ScraperError(f"no plugin found for site type {site_type}")

    def list_plugins(self) -> dict[str, Plugin]:
        """Return a copy of the name-to-plugin mapping."""
        with self._lock:
            return dict(self._plugins)