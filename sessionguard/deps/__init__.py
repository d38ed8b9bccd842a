"""Beginner-friendly overview for this module.

WHAT: Marks `sessionguard.deps` as a package holding the navigation guard and
the FastAPI dependencies built on top of it.
WHEN: Imported by the page and session routers.
WHY: Keeps `from sessionguard.deps import NavigationGuard` short.
HOW: Re-exports the public names from `guard.py`.

File: sessionguard/deps/__init__.py
"""

from .guard import NavigationGuard, get_session_store

__all__ = ["NavigationGuard", "get_session_store"]
