"""Avocado ripeness classification."""

__version__ = "0.1.0"
