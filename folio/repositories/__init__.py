"""
Persistence adapters.

EntityStore is the only component that writes rows; services reach the
database through it and through the guards built on top of it.
"""

from .entity_store import EntityStore

__all__ = ["EntityStore"]
