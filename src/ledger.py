import logging
from typing import Dict, Optional, Tuple

from models import (
    Account,
    AccountSnapshot,
    ChargeBack,
    ClientId,
    Deposit,
    DepositRecord,
    Dispute,
    RejectionReason,
    ReplayStats,
    Resolve,
    Transaction,
    TransactionId,
    Withdrawal,
)

logger = logging.getLogger(__name__)


class Ledger:
    """
    Per-client account state and deposit history for a single ordered replay.

    Transactions are applied one at a time in input order. A transaction whose
    preconditions fail is logged and skipped; apply() never raises for business
    rule violations, so one bad record cannot halt the replay or touch another
    client's state. Passing something that is not a transaction is a programming
    error and raises TypeError.
    """

    def __init__(self):
        self._accounts: Dict[ClientId, Account] = {}
        self._deposits: Dict[Tuple[ClientId, TransactionId], DepositRecord] = {}
        self.stats = ReplayStats()

    def __len__(self) -> int:
        return len(self._accounts)

    def account(self, client: ClientId) -> Optional[Account]:
        """Look up an account. Callers must not mutate the result."""
        return self._accounts.get(client)

    def deposit(self, client: ClientId, tx: TransactionId) -> Optional[DepositRecord]:
        """Look up a deposit record. Callers must not mutate the result."""
        return self._deposits.get((client, tx))

    def apply(self, transaction: Transaction) -> None:
        account = self._accounts.get(transaction.client)
        if account is not None and account.locked:
            logger.info(f"Client {transaction.client} account is locked, ignoring {transaction}")
            self.stats.record_rejection(RejectionReason.LOCKED_ACCOUNT)
            return

        match transaction:
            case Deposit():
                reason = self._handle_deposit(transaction)
            case Withdrawal():
                reason = self._handle_withdrawal(account, transaction)
            case Dispute():
                reason = self._handle_dispute(account, transaction)
            case Resolve():
                reason = self._handle_resolve(account, transaction)
            case ChargeBack():
                reason = self._handle_chargeback(account, transaction)
            case _:
                raise TypeError(f"Not a transaction: {transaction!r}")

        if reason is None:
            logger.debug(f"Applied {transaction}")
            self.stats.record_applied()
        else:
            logger.warning(f"Rejected {transaction}: {reason.value}")
            self.stats.record_rejection(reason)

    def snapshot(self) -> Dict[ClientId, AccountSnapshot]:
        """Rounded point-in-time view of every known client."""
        return {client: account.snapshot() for client, account in self._accounts.items()}

    def _handle_deposit(self, transaction: Deposit) -> Optional[RejectionReason]:
        if transaction.amount < 0:
            return RejectionReason.NEGATIVE_AMOUNT

        account = self._accounts.get(transaction.client)
        if account is None:
            account = Account(client=transaction.client)
            self._accounts[transaction.client] = account

        key = (transaction.client, transaction.tx)
        if key in self._deposits:
            # Transaction ids are expected to be unique; the later deposit wins.
            logger.warning(
                f"Deposit tx {transaction.tx} for client {transaction.client} reuses an existing id, "
                f"replacing the previous deposit record"
            )

        account.credit(transaction.amount)
        self._deposits[key] = DepositRecord(amount=transaction.amount)
        return None

    def _handle_withdrawal(self, account: Optional[Account], transaction: Withdrawal) -> Optional[RejectionReason]:
        if account is None:
            return RejectionReason.UNKNOWN_CLIENT

        if transaction.amount < 0:
            return RejectionReason.NEGATIVE_AMOUNT

        if account.available - transaction.amount < 0:
            return RejectionReason.INSUFFICIENT_FUNDS

        account.debit(transaction.amount)
        return None

    def _handle_dispute(self, account: Optional[Account], transaction: Dispute) -> Optional[RejectionReason]:
        record = self._deposits.get((transaction.client, transaction.tx))
        if record is None:
            return RejectionReason.UNKNOWN_DEPOSIT

        if account is None:
            return RejectionReason.UNKNOWN_CLIENT

        if record.disputed:
            return RejectionReason.ALREADY_DISPUTED

        # May push available below zero if the deposit was already withdrawn.
        record.disputed = True
        account.hold(record.amount)
        return None

    def _handle_resolve(self, account: Optional[Account], transaction: Resolve) -> Optional[RejectionReason]:
        record = self._deposits.get((transaction.client, transaction.tx))
        if record is None:
            return RejectionReason.UNKNOWN_DEPOSIT

        if not record.disputed:
            return RejectionReason.NOT_DISPUTED

        record.disputed = False
        account.release_hold(record.amount)
        return None

    def _handle_chargeback(self, account: Optional[Account], transaction: ChargeBack) -> Optional[RejectionReason]:
        record = self._deposits.get((transaction.client, transaction.tx))
        if record is None:
            return RejectionReason.UNKNOWN_DEPOSIT

        if not record.disputed:
            return RejectionReason.NOT_DISPUTED

        record.disputed = False
        account.charge_back(record.amount)
        return None
