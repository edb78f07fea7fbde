"""Logging helpers for routing remote output and status messages."""

from bite.logging.filters import StreamRoutingFilter
from bite.logging.formatters import StreamFormatter

__all__ = ["StreamFormatter", "StreamRoutingFilter"]
