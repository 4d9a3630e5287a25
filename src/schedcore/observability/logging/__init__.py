"""Observability – structured logging helpers."""
from schedcore.observability.logging.factory import JsonLoggerFactory
from schedcore.observability.logging.processors import get_logger

__all__ = ["JsonLoggerFactory", "get_logger"]
