"""Telemetry and observability helpers.

This package emits deterministic stage events for generation and playback.
"""

from .logger import RunLogger, configure_logging

__all__ = ["RunLogger", "configure_logging"]
