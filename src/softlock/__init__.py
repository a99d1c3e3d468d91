"""Soft locks for archives shared through a plain folder."""

__version__ = "0.1.0"
