"""
Persistence layer for practice sessions
"""

from .supabase import get_supabase_client
from .sessions import SessionRepository, session_row

__all__ = ["get_supabase_client", "SessionRepository", "session_row"]
