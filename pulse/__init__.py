"""Request / query performance metrics engine."""

__version__ = "0.1.0"
