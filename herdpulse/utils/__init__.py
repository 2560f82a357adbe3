"""Utility modules for logging, result types, and common helpers."""

from herdpulse.utils.logging import configure_logging, get_logger
from herdpulse.utils.result import Err, Ok, Result

__all__ = ["configure_logging", "get_logger", "Ok", "Err", "Result"]
