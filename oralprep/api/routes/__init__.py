"""
API routes package initialization
Exports all route modules for easy importing
"""

from . import sessions

__all__ = ["sessions"]
