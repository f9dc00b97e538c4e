"""
Database models for the link store.

The tables themselves are created and evolved by
golinks_app.database.migrations, never by metadata.create_all.
"""

from .link import Link, RedirectType
from .setting import Setting

__all__ = ["Link", "RedirectType", "Setting"]
