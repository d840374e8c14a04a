"""Caching proxy for status-code images."""

__version__ = "0.1.0"
