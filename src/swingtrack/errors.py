"""Error types raised for malformed replay input."""

from __future__ import annotations


class SwingTrackError(Exception):
    """Base class for hard input errors."""


class ConfigurationError(SwingTrackError, ValueError):
    """A level plan or configuration value is missing or inconsistent."""


class DataGapError(SwingTrackError, ValueError):
    """The bar sequence has a hole, a duplicate date or an impossible OHLC."""
