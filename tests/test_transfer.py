"""Tests for the transfer engine."""

from decimal import Decimal

import pytest

from finance_ledger.errors import (
    InsufficientFundsError,
    NotFoundError,
    PartialTransferError,
    SelfReferenceError,
    ValidationError,
)
from finance_ledger.models import Category, TransactionKind
from finance_ledger.services.storage import JsonWalletStorage, StorageError
from finance_ledger.services.transfer import TRANSFER_CATEGORY, TransferEngine


class FailingSaveStorage(JsonWalletStorage):
    """JSON storage that refuses to save the wallets of chosen users."""

    def __init__(self, data_dir, fail_for=()):
        super().__init__(data_dir=data_dir)
        self.fail_for = set(fail_for)

    def save(self, wallet):
        if wallet.user_id in self.fail_for:
            raise StorageError(f"disk full while saving {wallet.user_id}")
        return super().save(wallet)


def record_bytes(storage, user_id):
    path = storage.data_dir / f"{user_id}_wallet.json"
    return path.read_bytes() if path.exists() else None


class TestTransfer:
    """Tests for successful transfers."""

    def test_transfer_scenario(self, engine, storage, make_user):
        """Sender 10000.00 sends 500.00 to a recipient at 0.00."""
        alice = make_user("alice", "10000.00")
        make_user("bob")

        receipt = engine.transfer(alice, "bob", "500.00", "rent share")

        bob_wallet = storage.load("bob")
        assert alice.wallet.balance == Decimal("9500.00")
        assert storage.load("alice").balance == Decimal("9500.00")
        assert bob_wallet.balance == Decimal("500.00")

        sent = alice.wallet.transactions[-1]
        received = bob_wallet.transactions[-1]
        assert sent.kind == TransactionKind.EXPENSE
        assert sent.category == Category.expense(TRANSFER_CATEGORY)
        assert sent.description == "Transfer to bob: rent share"
        assert received.kind == TransactionKind.INCOME
        assert received.category == Category.income(TRANSFER_CATEGORY)
        assert received.description == "Transfer from alice: rent share"

        assert receipt.amount == Decimal("500.00")
        assert receipt.sender_transaction.id == sent.id
        assert receipt.recipient_transaction.id == received.id

    def test_description_optional(self, engine, storage, make_user):
        alice = make_user("alice", "100")
        make_user("bob")
        engine.transfer(alice, "bob", "10")
        assert storage.load("bob").transactions[-1].description == "Transfer from alice"

    def test_total_money_conserved(self, engine, storage, make_user):
        alice = make_user("alice", "300")
        make_user("bob", "200")
        before = storage.load("alice").balance + storage.load("bob").balance

        engine.transfer(alice, "bob", "123.45")

        after = storage.load("alice").balance + storage.load("bob").balance
        assert after == before

    def test_recipient_name_is_trimmed(self, engine, storage, make_user):
        alice = make_user("alice", "50")
        make_user("bob")
        engine.transfer(alice, "  bob ", "5")
        assert storage.load("bob").balance == Decimal("5.00")

    def test_transfer_budget_counts_outgoing_transfers(self, engine, make_user):
        alice = make_user("alice", "100")
        make_user("bob")
        alice.wallet.set_budget(Category.expense(TRANSFER_CATEGORY), Decimal("50"))

        engine.transfer(alice, "bob", "30")

        assert alice.wallet.get_budget(Category.expense(TRANSFER_CATEGORY)).spent == Decimal("30.00")


class TestTransferRejections:
    """Every rejected transfer leaves both records byte-for-byte unchanged."""

    def test_insufficient_funds_scenario(self, engine, storage, make_user):
        alice = make_user("alice", "100.00")
        make_user("bob", "42")
        before = (record_bytes(storage, "alice"), record_bytes(storage, "bob"))

        with pytest.raises(InsufficientFundsError) as exc_info:
            engine.transfer(alice, "bob", "500.00")

        assert exc_info.value.balance == Decimal("100.00")
        assert alice.wallet.balance == Decimal("100.00")
        assert (record_bytes(storage, "alice"), record_bytes(storage, "bob")) == before

    def test_self_transfer(self, engine, storage, make_user):
        alice = make_user("alice", "100")
        before = record_bytes(storage, "alice")

        with pytest.raises(SelfReferenceError):
            engine.transfer(alice, " alice ", "10")

        assert record_bytes(storage, "alice") == before
        assert len(alice.wallet.transactions) == 1

    def test_unknown_recipient(self, engine, storage, make_user):
        alice = make_user("alice", "100")
        before = record_bytes(storage, "alice")

        with pytest.raises(NotFoundError):
            engine.transfer(alice, "ghost", "10")

        assert record_bytes(storage, "alice") == before
        assert not storage.exists("ghost")

    @pytest.mark.parametrize("recipient, amount", [("", "10"), (None, "10"), ("bob", "0"), ("bob", "-1"), ("bob", "1.001")])
    def test_invalid_input(self, engine, storage, make_user, recipient, amount):
        alice = make_user("alice", "100")
        make_user("bob")
        before = (record_bytes(storage, "alice"), record_bytes(storage, "bob"))

        with pytest.raises(ValidationError):
            engine.transfer(alice, recipient, amount)

        assert (record_bytes(storage, "alice"), record_bytes(storage, "bob")) == before

    def test_missing_sender(self, engine):
        with pytest.raises(ValidationError):
            engine.transfer(None, "bob", "10")


class TestTransferPersistenceFailures:
    """Storage failures during the two saves."""

    def test_sender_save_failure_is_storage_error(self, tmp_path, directory, make_user):
        alice = make_user("alice", "100")
        make_user("bob")
        failing = FailingSaveStorage(tmp_path / "data", fail_for={"alice"})
        engine = TransferEngine(directory, failing)
        before = (record_bytes(failing, "alice"), record_bytes(failing, "bob"))

        with pytest.raises(StorageError) as exc_info:
            engine.transfer(alice, "bob", "10")

        assert not isinstance(exc_info.value, PartialTransferError)
        assert (record_bytes(failing, "alice"), record_bytes(failing, "bob")) == before

    def test_recipient_save_failure_is_partial_transfer(self, tmp_path, directory, make_user):
        alice = make_user("alice", "100")
        make_user("bob")
        failing = FailingSaveStorage(tmp_path / "data", fail_for={"bob"})
        engine = TransferEngine(directory, failing)

        with pytest.raises(PartialTransferError) as exc_info:
            engine.transfer(alice, "bob", "10")

        error = exc_info.value
        assert error.persisted_side == "sender"
        assert error.details["sender"] == "alice"
        assert error.details["recipient"] == "bob"
        assert error.details["amount"] == "10.00"
        # The sender side is durable, the recipient side is not
        assert failing.load("alice").balance == Decimal("90.00")
        assert failing.load("bob").balance == Decimal("0")
