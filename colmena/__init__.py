"""Colmena condominium visits backend."""

__version__ = "1.0.0"
