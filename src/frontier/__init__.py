"""Frontier run: a single-player survival card game engine."""

__version__ = "0.1.0"
