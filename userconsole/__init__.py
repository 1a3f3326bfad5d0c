"""Supabase-backed user management console.

Entry point for embedding applications::

    from userconsole.console import build_console
"""

__version__ = "0.1.0"
