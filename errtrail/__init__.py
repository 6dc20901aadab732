"""Structured, traceable application errors with IDs, correlation data and an in-memory registry."""

__version__ = "0.1.0"