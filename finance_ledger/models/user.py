"""
User and Session Models

DESIGN DECISION: There is no process-wide "current user".
Every ledger and transfer call receives an explicit Session, so any
number of callers can work side by side.

A User never holds a wallet. Wallets are addressed by username and
loaded from storage; the Session carries the caller's current view.
"""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from finance_ledger.models.wallet import Wallet


class User(BaseModel):
    """A registered user. The password is only ever stored hashed."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    username: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Unique username, also the wallet's user id"
    )
    password_hash: str = Field(
        ...,
        min_length=1,
        description="Hashed password (bcrypt)"
    )
    created_at: datetime = Field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"User[{self.username}]"


class Session(BaseModel):
    """
    An authenticated caller's context.

    The wallet is a cached view; the orchestrator refreshes it from
    storage at the start of every operation.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    session_id: UUID = Field(default_factory=uuid4)
    user: User
    wallet: Wallet
    started_at: datetime = Field(default_factory=datetime.now)

    @property
    def username(self) -> str:
        return self.user.username
