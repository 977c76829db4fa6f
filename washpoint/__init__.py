"""Washpoint backend: discovery, booking and QR check-in for public bathhouses."""

__version__ = "1.0.0"
