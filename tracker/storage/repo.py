"""Key-value store repository functions.

All functions take the database URL explicitly; engines are cached per URL in
``tracker.storage.db``. SQLAlchemy errors propagate to the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select

from .db import get_engine, get_sessionmaker
from .models import Base, KeyValue

logger = logging.getLogger(__name__)


def init_db(database_url: str) -> None:
    """Create the kv_store table if missing. Safe to call multiple times."""
    engine = get_engine(database_url)
    Base.metadata.create_all(engine)


def get_item(database_url: str, key: str) -> Optional[str]:
    sm = get_sessionmaker(database_url)
    with sm() as s:
        row = s.get(KeyValue, key)
        return row.value if row else None


def set_item(database_url: str, key: str, value: str) -> None:
    sm = get_sessionmaker(database_url)
    with sm() as s:
        row = s.get(KeyValue, key)
        if row is None:
            row = KeyValue(key=key)
            s.add(row)
        row.value = str(value)
        row.updated_at = datetime.utcnow()
        s.commit()
    logger.debug("kv set key=%s bytes=%d", key, len(value))


def remove_item(database_url: str, key: str) -> bool:
    sm = get_sessionmaker(database_url)
    with sm() as s:
        row = s.get(KeyValue, key)
        if not row:
            return False
        s.delete(row)
        s.commit()
    logger.debug("kv removed key=%s", key)
    return True


def list_keys(database_url: str) -> List[str]:
    sm = get_sessionmaker(database_url)
    with sm() as s:
        return list(s.execute(select(KeyValue.key).order_by(KeyValue.key)).scalars().all())


def clear(database_url: str) -> int:
    """Delete every key. Returns the number of rows removed."""
    sm = get_sessionmaker(database_url)
    with sm() as s:
        result = s.execute(delete(KeyValue))
        s.commit()
        removed = int(result.rowcount or 0)
    logger.info("kv cleared rows=%d", removed)
    return removed
