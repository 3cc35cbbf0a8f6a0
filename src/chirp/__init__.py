"""Chirp micro-posting backend."""

from .api import app

__all__ = ["app"]
