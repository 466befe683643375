"""
Catalog blueprint package.

This file just exposes the Blueprint object to be imported in procureflow.__init__.
The actual routes are in routes.py.
"""

from .routes import catalog_bp  # noqa: F401
