"""Local key-value storage.

A flat string-keyed, string-valued store persisted through SQLAlchemy.
It plays the role a browser's localStorage plays for a web front end:
- Default backend: SQLite file under data/ (see ``tracker.config``)
- Any SQLAlchemy URL works (PostgreSQL, in-memory SQLite for tests)
"""

from .repo import clear, get_item, init_db, list_keys, remove_item, set_item
from .local import LocalStorage

__all__ = [
    "init_db",
    "get_item",
    "set_item",
    "remove_item",
    "list_keys",
    "clear",
    "LocalStorage",
]
