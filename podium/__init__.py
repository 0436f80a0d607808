"""Podium — permissioned registry of athletes and their achievements."""

__version__ = "0.1.0"
