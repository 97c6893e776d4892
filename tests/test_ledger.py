"""Tests for income/expense posting and budget management."""

from decimal import Decimal

import pytest

from finance_ledger.errors import ValidationError
from finance_ledger.models import Category, TransactionKind, Wallet
from finance_ledger.services.budgets import BudgetService
from finance_ledger.services.ledger import LedgerPostingService
from finance_ledger.services.notifications import NotificationService, NotificationSink


class ExplodingSink(NotificationSink):
    """A sink that always fails."""

    def check_after_expense(self, wallet, category, amount):
        raise RuntimeError("sink is down")

    def check_balance_status(self, wallet):
        raise RuntimeError("sink is down")


@pytest.fixture
def wallet():
    return Wallet("alice")


@pytest.fixture
def posting(notifications):
    return LedgerPostingService(notifications)


@pytest.fixture
def budgets():
    return BudgetService()


class TestPosting:
    """Tests for LedgerPostingService."""

    def test_income_scenario(self, posting, wallet):
        """Empty wallet, income 5000.00 to Salary."""
        t = posting.post_income(wallet, "5000.00", Category.income("Salary"), "March salary")
        assert wallet.balance == Decimal("5000.00")
        assert len(wallet.transactions) == 1
        assert t.kind == TransactionKind.INCOME
        assert t.description == "March salary"

    def test_expense_against_budget_scenario(self, posting, budgets, wallet):
        """Balance 5000.00, Food budget 3000.00, expense 500.00."""
        posting.post_income(wallet, "5000.00", Category.income("Salary"))
        budgets.set_budget(wallet, "Food", "3000.00")

        posting.post_expense(wallet, "500.00", Category.expense("Food"))

        assert wallet.balance == Decimal("4500.00")
        food = budgets.get_budget(wallet, "Food")
        assert food.spent == Decimal("500.00")
        assert food.remaining == Decimal("2500.00")

    def test_category_kind_normalised(self, posting, wallet):
        t = posting.post_income(wallet, "10", Category.expense("Bonus"))
        assert t.category == Category.income("Bonus")

    @pytest.mark.parametrize("amount", ["0", "-5", "1.001", None, "abc"])
    def test_invalid_amount_leaves_wallet_untouched(self, posting, wallet, amount):
        with pytest.raises(ValidationError):
            posting.post_expense(wallet, amount, Category.expense("Food"))
        assert wallet.balance == Decimal("0")
        assert wallet.transactions == ()

    def test_missing_category_rejected(self, posting, wallet):
        with pytest.raises(ValidationError):
            posting.post_income(wallet, "10", None)
        assert wallet.transactions == ()

    def test_too_long_description_rejected(self, posting, wallet):
        with pytest.raises(ValidationError):
            posting.post_income(wallet, "10", Category.income("Salary"), "x" * 501)
        assert wallet.transactions == ()

    def test_notification_failure_does_not_undo_posting(self, wallet):
        posting = LedgerPostingService(ExplodingSink())
        posting.post_expense(wallet, "25", Category.expense("Food"))
        assert wallet.balance == Decimal("-25")
        assert len(wallet.transactions) == 1

    def test_budget_warning_collected(self, posting, budgets, wallet, notifications):
        posting.post_income(wallet, "1000", Category.income("Salary"))
        budgets.set_budget(wallet, "Food", "100")
        posting.post_expense(wallet, "85", Category.expense("Food"))

        messages = notifications.get_notifications_and_clear("alice")
        assert any("BUDGET WARNING" in m for m in messages)
        assert notifications.get_notifications("alice") == []

    def test_budget_exceeded_and_negative_balance(self, posting, budgets, wallet, notifications):
        budgets.set_budget(wallet, "Food", "10")
        posting.post_expense(wallet, "20", Category.expense("Food"))

        messages = notifications.get_notifications("alice")
        assert any("BUDGET EXCEEDED" in m for m in messages)
        assert any("NEGATIVE BALANCE" in m for m in messages)

    def test_expenses_exceed_income_warning(self, posting, wallet, notifications):
        posting.post_income(wallet, "100", Category.income("Salary"))
        posting.post_expense(wallet, "150", Category.expense("Rent"))
        assert any("EXPENSES EXCEED INCOME" in m for m in notifications.get_notifications("alice"))


class TestBudgets:
    """Tests for BudgetService."""

    def test_budget_always_expense_kind(self, budgets, wallet):
        budget = budgets.set_budget(wallet, "  Food ", "100")
        assert budget.category == Category.expense("Food")

    def test_income_food_does_not_feed_expense_budget(self, posting, budgets, wallet):
        """Budgets only see the EXPENSE-kind category of the same name."""
        budgets.set_budget(wallet, "Food", "100")
        posting.post_income(wallet, "30", Category.income("Food"))
        assert budgets.get_budget(wallet, "Food").spent == Decimal("0")

    def test_spent_is_sum_of_expenses(self, posting, budgets, wallet):
        budgets.set_budget(wallet, "Food", "1000")
        amounts = ["10.10", "20.20", "30.30"]
        previous = Decimal("0")
        for amount in amounts:
            posting.post_expense(wallet, amount, Category.expense("Food"))
            spent = budgets.get_budget(wallet, "Food").spent
            assert spent >= previous
            previous = spent
        assert previous == Decimal("60.60")

    def test_edit_keeps_spent(self, posting, budgets, wallet):
        budgets.set_budget(wallet, "Food", "100")
        posting.post_expense(wallet, "40", Category.expense("Food"))
        budget = budgets.edit_budget(wallet, "Food", "50")
        assert budget.limit == Decimal("50.00")
        assert budget.spent == Decimal("40.00")

    def test_edit_creates_missing_budget(self, budgets, wallet):
        budget = budgets.edit_budget(wallet, "Travel", "500")
        assert budgets.get_budget(wallet, "Travel") == budget

    def test_delete_missing_budget_is_noop(self, budgets, wallet):
        assert budgets.delete_budget(wallet, "Food") is False
        assert budgets.delete_budget(wallet, "") is False
        budgets.set_budget(wallet, "Food", "10")
        assert budgets.delete_budget(wallet, " Food ") is True
        assert budgets.get_budget(wallet, "Food") is None

    @pytest.mark.parametrize("name, limit", [("", "10"), ("Food", "-1"), ("Food", "1.234")])
    def test_invalid_budget_rejected(self, budgets, wallet, name, limit):
        with pytest.raises(ValidationError):
            budgets.set_budget(wallet, name, limit)
        assert wallet.budgets == {}

    def test_exceeded_and_remaining_helpers(self, posting, budgets, wallet):
        assert budgets.is_budget_exceeded(None) is False
        assert budgets.remaining_budget(None) == Decimal("0")
        budgets.set_budget(wallet, "Food", "10")
        posting.post_expense(wallet, "15", Category.expense("Food"))
        budget = budgets.get_budget(wallet, "Food")
        assert budgets.is_budget_exceeded(budget)
        assert budgets.remaining_budget(budget) == Decimal("-5")


class TestNotificationService:
    """Tests for notification bookkeeping."""

    def test_empty_wallet_has_no_balance_warnings(self):
        service = NotificationService(warning_threshold=0.5)
        wallet = Wallet("bob")
        service.check_balance_status(wallet)
        assert service.get_notifications("bob") == []

    def test_per_user_isolation(self, posting, notifications):
        alice, bob = Wallet("alice"), Wallet("bob")
        posting.post_expense(alice, "5", Category.expense("Food"))
        assert notifications.get_notifications("bob") == []
        assert notifications.get_notifications("alice")
        notifications.clear_notifications()
        assert notifications.get_notifications("alice") == []
