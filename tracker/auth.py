"""Static user directory and session helpers.

There is no credential check: signing in is an email lookup against
``MOCK_USERS``. The session is any mutable mapping (``LocalStorage`` or a
plain dict); the signed-in user is kept as a JSON string under ``"user"``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import MutableMapping
from typing import List, Optional

from .models import Role, User

logger = logging.getLogger(__name__)

SESSION_KEY = "user"

MOCK_USERS: List[User] = [
    User(id="1", name="Developer 1", email="developer1@example.com", role=Role.DEVELOPER),
    User(id="2", name="Manager", email="manager@example.com", role=Role.MANAGER),
    User(id="3", name="Developer 2", email="developer2@example.com", role=Role.DEVELOPER),
]


def authenticate_user(email: str) -> Optional[User]:
    user = next((u for u in MOCK_USERS if u.email == email), None)
    if user is None:
        logger.info("login rejected email=%s", email)
    return user


def get_user_by_id(user_id: str) -> Optional[User]:
    return next((u for u in MOCK_USERS if u.id == user_id), None)


def get_demo_user(role) -> Optional[User]:
    role = Role(role)
    return next((u for u in MOCK_USERS if u.role == role), None)


def list_developers(exclude_id: Optional[str] = None) -> List[User]:
    """Developers a task can be assigned to, optionally without the current user."""
    return [u for u in MOCK_USERS if u.role == Role.DEVELOPER and u.id != exclude_id]


def dashboard_for(user: User) -> str:
    return "developer" if user.role == Role.DEVELOPER else "manager"


def is_authenticated(session: MutableMapping) -> bool:
    return get_current_user(session) is not None


def get_current_user(session: MutableMapping) -> Optional[User]:
    raw = session.get(SESSION_KEY)
    if not raw:
        return None
    try:
        return User.from_dict(json.loads(raw))
    except (ValueError, KeyError, TypeError) as exc:
        logger.warning("discarding unreadable session: %s", exc)
        return None


def set_current_user(session: MutableMapping, user: User) -> None:
    session[SESSION_KEY] = json.dumps(user.to_dict())
    logger.info("signed in user=%s role=%s", user.id, user.role.value)


def clear_current_user(session: MutableMapping) -> None:
    if SESSION_KEY in session:
        del session[SESSION_KEY]
        logger.info("signed out")
