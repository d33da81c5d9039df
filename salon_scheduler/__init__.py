"""Slot availability and booking lifecycle engine for a single-chair salon."""

__version__ = "0.1.0"
