"""
Application package initializer.

The project is organised into logical pieces: ``core`` (settings,
database, security, errors), ``schemas`` (request/response models),
``services`` (business logic) and ``api`` (versioned routers).
"""

from .main import app  # noqa: F401
