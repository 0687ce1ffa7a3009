"""Operator print desk: printer selection, authentication and dispatch to a local print gateway."""

__version__ = "1.0.0"
