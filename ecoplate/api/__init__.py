"""HTTP API."""

from ecoplate.api.routes import get_engine, router

__all__ = ["get_engine", "router"]
