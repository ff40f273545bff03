"""Web Package - HTTP scrape endpoint."""

from voltdb_prometheus.web.app import create_app

__all__ = ["create_app"]
