"""Utility modules."""

from ecoplate.utils.clock import format_time, local_now
from ecoplate.utils.logging import setup_logging

__all__ = ["setup_logging", "format_time", "local_now"]
