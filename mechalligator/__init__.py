"""Keyboard store product aggregator: a Shopify scraper plugin, an SQLite-backed job queue and scheduler, and a JSON API."""

__version__ = "0.1.0"