"""
Transfer Engine

Moves money between two users as a paired double posting:
an EXPENSE on the sender and an INCOME on the recipient, both filed
under the reserved "transfer" category.

FLOW (single pass, no retries):
1. Validate sender, recipient name and amount
2. Check the sender's balance
3. Resolve the recipient in the user directory
4. Reload the recipient's wallet from storage
5. Post both legs
6. Save sender, then recipient

Steps 1-4 never mutate anything. Step 6 writes two independent
records; there is no two-phase commit:
- sender save fails  -> StorageError, nothing durable changed
- recipient save fails after the sender was saved -> PartialTransferError,
  the records disagree and need manual reconciliation

KNOWN HAZARD: step 4 ignores any unsaved in-memory state the recipient
may hold elsewhere. Callers that keep wallets in memory must refresh
them from storage before their next operation (the orchestrator does).
"""

from typing import Optional
from uuid import uuid4

from pydantic import ValidationError as SchemaValidationError

from finance_ledger.errors import (
    InsufficientFundsError,
    NotFoundError,
    PartialTransferError,
    SelfReferenceError,
    ValidationError,
)
from finance_ledger.locks import UserLockRegistry
from finance_ledger.logger import get_logger
from finance_ledger.models.ledger import Category, Transaction, TransactionKind
from finance_ledger.models.results import TransferReceipt
from finance_ledger.models.user import Session
from finance_ledger.services.storage.interface import (
    StorageError,
    UserDirectoryInterface,
    WalletStorageInterface,
)
from finance_ledger.validation import AmountInput, coerce_amount


TRANSFER_CATEGORY = "transfer"


class TransferEngine:
    """Cross-wallet transfers with load/save orchestration."""

    def __init__(
        self,
        user_directory: UserDirectoryInterface,
        wallet_storage: WalletStorageInterface,
        locks: Optional[UserLockRegistry] = None,
    ):
        self._users = user_directory
        self._wallets = wallet_storage
        self._locks = locks or UserLockRegistry()
        self._logger = get_logger(__name__)

    def transfer(
        self,
        sender: Session,
        recipient_username: str,
        amount: AmountInput,
        description: Optional[str] = None,
    ) -> TransferReceipt:
        """
        Transfer money from the sender's wallet to another user.

        Returns:
            Receipt with both posted legs

        Raises:
            ValidationError: bad sender, recipient name or amount
            SelfReferenceError: sender and recipient are the same user
            InsufficientFundsError: sender balance below amount
            NotFoundError: recipient is not registered
            StorageError: recipient load or sender save failed
            PartialTransferError: sender saved, recipient not
        """
        # Step 1: validate
        if sender is None:
            raise ValidationError("Sender cannot be null")
        if recipient_username is None or not recipient_username.strip():
            raise ValidationError("Recipient username cannot be empty")
        value = coerce_amount(amount, field="transfer amount")

        recipient_name = recipient_username.strip()
        if sender.username == recipient_name:
            raise SelfReferenceError(
                "Cannot transfer to yourself",
                details={"user": sender.username},
            )

        with self._locks.hold(sender.username, recipient_name):
            # Step 2: balance check against the sender's current wallet
            balance = sender.wallet.balance
            if balance < value:
                raise InsufficientFundsError(balance=balance, required=value)

            # Step 3: resolve recipient
            recipient = self._users.find_by_username(recipient_name)
            if recipient is None:
                raise NotFoundError(
                    f"Recipient user not found: {recipient_name}",
                    details={"recipient": recipient_name},
                )

            # Step 4: fresh recipient state from storage
            recipient_wallet = self._wallets.load(recipient.username)

            # Step 5: post both legs
            transfer_id = str(uuid4())
            suffix = f": {description}" if description else ""
            try:
                sender_leg = Transaction(
                    amount=value,
                    category=Category.expense(TRANSFER_CATEGORY),
                    kind=TransactionKind.EXPENSE,
                    description=f"Transfer to {recipient.username}{suffix}",
                )
                recipient_leg = Transaction(
                    amount=value,
                    category=Category.income(TRANSFER_CATEGORY),
                    kind=TransactionKind.INCOME,
                    description=f"Transfer from {sender.username}{suffix}",
                )
            except SchemaValidationError as e:
                raise ValidationError(f"Invalid transfer: {e.errors()[0]['msg']}") from e

            sender.wallet.post(sender_leg)
            recipient_wallet.post(recipient_leg)

            # Step 6: persist sequentially, stop on first failure
            try:
                self._wallets.save(sender.wallet)
            except StorageError as e:
                self._logger.error(
                    "transfer_sender_save_failed",
                    transfer_id=transfer_id,
                    sender=sender.username,
                    recipient=recipient.username,
                    amount=str(value),
                    error=e.message,
                )
                raise StorageError(
                    f"Failed to save sender wallet during transfer {transfer_id}: {e.message}",
                    details={"transfer_id": transfer_id, "side": "sender"},
                ) from e

            try:
                self._wallets.save(recipient_wallet)
            except StorageError as e:
                self._logger.critical(
                    "transfer_partially_persisted",
                    transfer_id=transfer_id,
                    sender=sender.username,
                    recipient=recipient.username,
                    amount=str(value),
                    persisted_side="sender",
                    sender_transaction_id=sender_leg.id,
                    recipient_transaction_id=recipient_leg.id,
                    error=e.message,
                )
                raise PartialTransferError(
                    transfer_id=transfer_id,
                    sender=sender.username,
                    recipient=recipient.username,
                    amount=value,
                    persisted_side="sender",
                    cause=e,
                ) from e

        self._logger.info(
            "transfer_completed",
            transfer_id=transfer_id,
            sender=sender.username,
            recipient=recipient.username,
            amount=str(value),
        )
        return TransferReceipt(
            transfer_id=transfer_id,
            sender=sender.username,
            recipient=recipient.username,
            amount=value,
            sender_transaction=sender_leg,
            recipient_transaction=recipient_leg,
        )
