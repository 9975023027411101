"""Server-authoritative coin arena with lag simulation and client interpolation."""

__version__ = "0.1.0"
