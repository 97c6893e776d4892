"""
Authentication Service

Registers users, checks passwords and issues sessions.

DESIGN DECISION: Passwords are hashed with bcrypt and only the hash is
kept. A login failure never says whether the username or the password
was wrong.

A Session is the caller's explicit context. Several sessions (even
for the same user) can be active at once; nothing is global.
"""

import threading
from typing import Optional
from uuid import UUID

import bcrypt

from finance_ledger.config import get_settings
from finance_ledger.errors import AuthenticationError
from finance_ledger.logger import get_logger
from finance_ledger.models.user import Session, User
from finance_ledger.services.storage.interface import (
    UserDirectoryInterface,
    WalletStorageInterface,
)
from finance_ledger.validation import InputValidator


# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72

INVALID_CREDENTIALS = "Invalid username or password"


class AuthService:
    """Registration, login and session bookkeeping."""

    def __init__(
        self,
        user_directory: UserDirectoryInterface,
        wallet_storage: WalletStorageInterface,
        bcrypt_rounds: Optional[int] = None,
        validator: Optional[InputValidator] = None,
    ):
        self._users = user_directory
        self._wallets = wallet_storage
        self._rounds = bcrypt_rounds or get_settings().auth.bcrypt_rounds
        self._validator = validator or InputValidator()
        self._sessions: dict[UUID, Session] = {}
        self._sessions_lock = threading.Lock()
        self._register_lock = threading.Lock()
        self._logger = get_logger(__name__)

    def register(self, username: str, password: str) -> User:
        """
        Register a new user.

        Returns:
            The created user

        Raises:
            AuthenticationError: on a bad username/password or a taken username
        """
        if username is None or not username.strip():
            raise AuthenticationError("Username cannot be empty")
        if not self._validator.validate_password(password):
            raise AuthenticationError(
                f"Password must be at least {self._validator.min_password_length} characters"
            )
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise AuthenticationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        if not self._validator.validate_username(username):
            raise AuthenticationError(
                f"Username must be {self._validator.username_min_length}-"
                f"{self._validator.username_max_length} alphanumeric characters"
            )

        name = username.strip()
        with self._register_lock:
            if self._users.exists(name):
                raise AuthenticationError("Username already exists", details={"username": name})

            user = User(username=name, password_hash=self._hash(password))
            self._users.save(user)

        self._logger.info("user_registered", username=name)
        return user

    def login(self, username: str, password: str) -> Session:
        """
        Check credentials and open a session with the user's stored wallet.

        Raises:
            AuthenticationError: on unknown user or wrong password
            StorageError: if the wallet record cannot be loaded
        """
        user = self._users.find_by_username(username)
        if user is None or not self._check(password, user.password_hash):
            self._logger.warning("login_failed", username=username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        wallet = self._wallets.load(user.username)
        session = Session(user=user, wallet=wallet)
        with self._sessions_lock:
            self._sessions[session.session_id] = session

        self._logger.info("user_logged_in", username=user.username, session_id=str(session.session_id))
        return session

    def logout(self, session: Optional[Session]) -> bool:
        """
        End a session.

        The wallet is not saved here; every ledger operation has
        already persisted its changes.

        Returns:
            True if the session was active
        """
        if session is None:
            return False
        with self._sessions_lock:
            removed = self._sessions.pop(session.session_id, None) is not None
        if removed:
            self._logger.info("user_logged_out", username=session.username, session_id=str(session.session_id))
        return removed

    def is_active(self, session: Optional[Session]) -> bool:
        if session is None:
            return False
        with self._sessions_lock:
            return session.session_id in self._sessions

    def end_sessions_for(self, username: str) -> int:
        """Close every session of a user. Returns how many were closed."""
        with self._sessions_lock:
            ids = [sid for sid, s in self._sessions.items() if s.username == username]
            for sid in ids:
                del self._sessions[sid]
        return len(ids)

    def _hash(self, password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    @staticmethod
    def _check(password: Optional[str], password_hash: str) -> bool:
        if password is None:
            return False
        raw = password.encode("utf-8")
        if len(raw) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
        except ValueError:
            # Not a bcrypt hash
            return False
