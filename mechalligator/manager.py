"""Runs scrapes through registered plugins and records metadata."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

from .registry import Registry
from .scraper_types import Plugin, ScrapeMetadata, ScrapeRequest, ScrapeResult, ScraperError


def _decimal(value: int, unit: int) -> str:
    whole, frac = divmod(value, unit)
    if not frac:
        return str(whole)
    digits = str(frac).rjust(len(str(unit)) - 1, "0").rstrip("0")
    return f"{whole}.{digits}"


def _format_duration(nanos: int) -> str:
    """Render nanoseconds as e.g. ``"1.5ms"`` or ``"2m3.25s"``."""
    if nanos == 0:
        return "0s"
    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)
    if nanos < 1_000:
        return f"{sign}{nanos}ns"
    if nanos < 1_000_000:
        return f"{sign}{_decimal(nanos, 1_000)}µs"
    if nanos < 1_000_000_000:
        return f"{sign}{_decimal(nanos, 1_000_000)}ms"
    hours, rest = divmod(nanos, 3_600_000_000_000)
    minutes, rest = divmod(rest, 60_000_000_000)
    text = f"{_decimal(rest, 1_000_000_000)}s"
    if hours:
        text = f"{hours}h{minutes}m{text}"
    elif minutes:
        text = f"{minutes}m{text}"
    return sign + text


def _describe(plugin: Plugin) -> dict[str, Any]:
    return {
        "name": plugin.name,
        "version": plugin.version,
        "supported_types": plugin.supported_types(),
        "required_credentials": plugin.required_credentials(),
        "supported_options": plugin.supported_options(),
    }


class Manager:
    """Chooses a plugin, runs it and fills in the result's metadata."""

    def __init__(self) -> None:
        self._registry = Registry()

    def register_plugin(self, plugin: Plugin) -> None:
        self._registry.register(plugin)

    def scrape_by_type(self, request: ScrapeRequest) -> ScrapeResult:
        """Scrape with the first plugin that supports the request's site type."""
        try:
            plugin = self._registry.get_plugin_for_type(request.site_type)
        except ScraperError as err:
            raise ScraperError(
                f"failed to find plugin for type {request.site_type}: {err}"
            ) from err
        return self._scrape_with_plugin(plugin, request)

    def scrape_by_plugin(self, plugin_name: str, request: ScrapeRequest) -> ScrapeResult:
        """Scrape with the plugin registered under plugin_name."""
        return self._scrape_with_plugin(self._find(plugin_name), request)

    def get_plugin_info(self, plugin_name: str) -> dict[str, Any]:
        return _describe(self._find(plugin_name))

    def list_available_plugins(self) -> dict[str, dict[str, Any]]:
        return {
            name: _describe(plugin)
            for name, plugin in self._registry.list_plugins().items()
        }

    def _find(self, plugin_name: str) -> Plugin:
        plugin = self._registry.list_plugins().get(plugin_name)
        if plugin is None:
            raise ScraperError(f"plugin {plugin_name} not found")
        return plugin

    def _scrape_with_plugin(self, plugin: Plugin, request: ScrapeRequest) -> ScrapeResult:
        try:
            plugin.validate(request)
        except Exception as err:
            raise ScraperError(f"validation failed: {err}") from err

        started_at = datetime.now(timezone.utc)
        started = time.perf_counter_ns()
        try:
            result = plugin.scrape(request)
        except Exception as err:
            raise ScraperError(f"scraping failed: {err}") from err
        elapsed = time.perf_counter_ns() - started

        result.metadata = ScrapeMetadata(
            scraped_at=started_at,
            total_found=len(result.products),
            total_errors=len(result.errors),
            duration=_format_duration(elapsed),
            plugin_name=plugin.name,
            plugin_version=plugin.version,
        )
        return result