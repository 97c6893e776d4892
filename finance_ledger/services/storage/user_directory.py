"""
In-Memory User Directory

Thread-safe username -> User mapping. Usernames are trimmed on every
lookup. Saving an existing username replaces the entry (last writer
wins).
"""

import threading
from typing import Optional

from finance_ledger.models.user import User
from finance_ledger.services.storage.interface import UserDirectoryInterface


class InMemoryUserDirectory(UserDirectoryInterface):
    """User directory backed by a lock-guarded dict."""

    def __init__(self):
        self._users: dict[str, User] = {}
        self._lock = threading.Lock()

    def save(self, user: User) -> None:
        if user is None:
            raise ValueError("User cannot be null")
        with self._lock:
            self._users[user.username] = user

    def find_by_username(self, username: str) -> Optional[User]:
        if username is None or not username.strip():
            return None
        with self._lock:
            return self._users.get(username.strip())

    def find_all(self) -> list[User]:
        with self._lock:
            return list(self._users.values())

    def exists(self, username: str) -> bool:
        if username is None:
            return False
        with self._lock:
            return username.strip() in self._users

    def delete(self, username: str) -> None:
        if username is None:
            return
        with self._lock:
            self._users.pop(username.strip(), None)
