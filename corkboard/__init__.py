"""Corkboard: tag and cluster associations for feed entries."""

__version__ = "1.0.0"
