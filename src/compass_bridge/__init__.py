"""Compass Bridge - capability host for design, code generation and decision tools."""

__version__ = "0.1.0"
