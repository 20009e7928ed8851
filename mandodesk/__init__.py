"""MandoDesk support ticket service."""

__version__ = "0.1.0"
