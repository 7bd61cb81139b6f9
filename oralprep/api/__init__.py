"""
API package for the oral practice feedback service
Contains FastAPI routes, schemas, and dependencies
"""

from .main import create_app

__all__ = ["create_app"]
