"""Configured API users.

The gateway keeps no user table: the accounts come from ``AUTH_USERS``
(``username:password:role`` entries) and their passwords are bcrypt-hashed
once, the first time they are needed.
"""
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional

from ...core import config
from . import security

logger = logging.getLogger(__name__)

ROLES = ("admin", "user", "api")


@dataclass(frozen=True)
class ConfiguredUser:
    username: str
    hashed_password: str
    role: str


def parse_user_entries(raw: str) -> Dict[str, tuple[str, str]]:
    """Parses ``AUTH_USERS`` into ``{username: (password, role)}``.

    Malformed entries and unknown roles are skipped with a warning.
    """
    users: Dict[str, tuple[str, str]] = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        parts = entry.split(":")
        if len(parts) != 3 or not all(part.strip() for part in parts):
            logger.warning("Ignoring malformed AUTH_USERS entry")
            continue
        username, password, role = (part.strip() for part in parts)
        if role not in ROLES:
            logger.warning(f"Ignoring AUTH_USERS entry for {username}: unknown role '{role}'")
            continue
        users[username] = (password, role)
    return users


@lru_cache(maxsize=1)
def _load_users(raw: str) -> Dict[str, ConfiguredUser]:
    return {
        username: ConfiguredUser(username, security.get_password_hash(password), role)
        for username, (password, role) in parse_user_entries(raw).items()
    }


def get_user_by_username(username: str) -> Optional[ConfiguredUser]:
    """Retrieves a configured user by their username.

    Args:
        username: The username of the user to retrieve.

    Returns:
        The ConfiguredUser if found, otherwise None.
    """
    return _load_users(config.AUTH_USERS).get(username)


def authenticate(username: str, password: str) -> Optional[ConfiguredUser]:
    user = get_user_by_username(username)
    if not user or not security.verify_password(password, user.hashed_password):
        return None
    return user
