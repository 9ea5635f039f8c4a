"""Data store client and operations."""

from .supabase_client import SupabaseClient, get_db_client

__all__ = ["SupabaseClient", "get_db_client"]
