"""Local HTTP API for the reminder app - scheduling contract and action routing."""

from .main import create_app

__all__ = ["create_app"]
