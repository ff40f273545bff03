"""
HTTP Front End - FastAPI Scrape Endpoint.

Routes:
    GET /         Plain-text identification banner
    GET /metrics  One scrape through the gate; 503 if nothing was ever
                  obtained from the database

Handlers are synchronous so FastAPI runs them on its worker thread
pool; the gate serializes them.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse, Response

from voltdb_prometheus import __version__
from voltdb_prometheus.config.models import AgentConfig
from voltdb_prometheus.engine.scrape_gate import ScrapeGate

logger = logging.getLogger(__name__)


def create_app(gate: ScrapeGate, config: AgentConfig) -> FastAPI:
    """
    Build the FastAPI application around a scrape gate.

    Args:
        gate: Scrape gate wired to a coordinator and registry
        config: Agent configuration, used for the banner

    Returns:
        Configured FastAPI app
    """
    servers = ",".join(config.servers)
    banner = f"VoltDB Prometheus Agent for {servers} port {config.port}"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Close the database connection on shutdown."""
        logger.info(f"Listening for connections on port {config.webserver_port}")
        yield
        logger.info("Shutting down, closing VoltDB connection")
        close = getattr(gate.coordinator, "close", None)
        if close is not None:
            try:
                close()
            except Exception as e:
                logger.warning(f"Error closing VoltDB connection: {e}")

    app = FastAPI(
        title="VoltDB Prometheus Agent",
        description="Republishes VoltDB @Statistics as Prometheus gauges",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.gate = gate

    @app.get("/", response_class=PlainTextResponse)
    def index() -> str:
        return banner

    @app.get("/metrics")
    def metrics() -> Response:
        result = gate.handle_scrape_request()
        if not result.upstream_available:
            return PlainTextResponse(
                f"No statistics available from VoltDB at {servers} port {config.port}\n",
                status_code=503,
            )
        return Response(content=result.payload, media_type=result.content_type)

    return app
