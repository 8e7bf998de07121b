"""Passive documentation index for framework dependencies."""

__version__ = "0.1.0"
