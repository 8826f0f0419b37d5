"""Ticker Window - windowed price history, averages and cross-ticker correlation."""

__version__ = "0.1.0"
