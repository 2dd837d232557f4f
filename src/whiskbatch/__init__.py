"""Whisk Batch Generator - batch prompt queue and token-caching Whisk proxy."""

__version__ = "0.1.0"

from whiskbatch.core.config import WhiskConfig, config

__all__ = [
    "WhiskConfig",
    "config",
]
