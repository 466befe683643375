"""
Request lifecycle blueprint package.

Exposes requests_bp for app factory registration; routes live in routes.py.
"""

from .routes import requests_bp  # noqa: F401
