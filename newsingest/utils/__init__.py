"""Shared helpers."""

from .logging import configure_logging, get_logger, mask_secret

__all__ = ["configure_logging", "get_logger", "mask_secret"]
