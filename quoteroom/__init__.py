"""Quoteroom: RFQ comparison and acceptance engine for studio procurement."""

__version__ = "0.1.0"
