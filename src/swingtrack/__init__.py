"""Swing trade replay engine and live trigger evaluation."""

__version__ = "0.1.0"
