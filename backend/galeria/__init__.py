"""Galeria - password-gated photo gallery backend and upload client."""

__version__ = "1.0.0"
