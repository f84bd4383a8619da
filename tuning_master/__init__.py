"""Tuning Master: real-time pitch detection and note mapping for instrument tuning."""

__version__ = "0.1.0"
