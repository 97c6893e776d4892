"""Shared fixtures: temp-dir storage, an in-memory directory and sessions."""

from decimal import Decimal

import pytest

from finance_ledger.locks import UserLockRegistry
from finance_ledger.models.ledger import Category, Transaction, TransactionKind
from finance_ledger.models.user import Session, User
from finance_ledger.models.wallet import Wallet
from finance_ledger.orchestrator import LedgerFlow
from finance_ledger.services.auth import AuthService
from finance_ledger.services.notifications import NotificationService
from finance_ledger.services.storage import InMemoryUserDirectory, JsonWalletStorage
from finance_ledger.services.transfer import TransferEngine


@pytest.fixture
def storage(tmp_path):
    return JsonWalletStorage(data_dir=tmp_path / "data")


@pytest.fixture
def directory():
    return InMemoryUserDirectory()


@pytest.fixture
def locks():
    return UserLockRegistry()


@pytest.fixture
def notifications():
    return NotificationService(warning_threshold=0.8)


@pytest.fixture
def auth(directory, storage):
    return AuthService(directory, storage, bcrypt_rounds=4)


@pytest.fixture
def engine(directory, storage, locks):
    return TransferEngine(directory, storage, locks)


@pytest.fixture
def flow(storage, directory, notifications, locks):
    return LedgerFlow(
        wallet_storage=storage,
        user_directory=directory,
        notifications=notifications,
        locks=locks,
    )


def income(amount, name="Salary", **kwargs) -> Transaction:
    return Transaction(
        amount=Decimal(amount),
        category=Category.income(name),
        kind=TransactionKind.INCOME,
        **kwargs,
    )


def expense(amount, name="Food", **kwargs) -> Transaction:
    return Transaction(
        amount=Decimal(amount),
        category=Category.expense(name),
        kind=TransactionKind.EXPENSE,
        **kwargs,
    )


@pytest.fixture
def make_user(directory, storage):
    """Register a user directly (no bcrypt) with an optional opening balance."""

    def _make(username: str, opening_balance: str = "0") -> Session:
        user = User(username=username, password_hash="x")
        directory.save(user)
        wallet = Wallet(username)
        if Decimal(opening_balance) > 0:
            wallet.post(income(opening_balance, "Opening"))
        storage.save(wallet)
        return Session(user=user, wallet=storage.load(username))

    return _make
