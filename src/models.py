from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP, localcontext
from enum import Enum
from typing import Union

ClientId = int
TransactionId = int

AMOUNT_PRECISION = Decimal("0.0001")


@dataclass(frozen=True)
class Deposit:
    client: ClientId
    tx: TransactionId
    amount: Decimal


@dataclass(frozen=True)
class Withdrawal:
    client: ClientId
    tx: TransactionId
    amount: Decimal


@dataclass(frozen=True)
class Dispute:
    client: ClientId
    tx: TransactionId


@dataclass(frozen=True)
class Resolve:
    client: ClientId
    tx: TransactionId


@dataclass(frozen=True)
class ChargeBack:
    client: ClientId
    tx: TransactionId


Transaction = Union[Deposit, Withdrawal, Dispute, Resolve, ChargeBack]


class RejectionReason(Enum):
    LOCKED_ACCOUNT = "locked_account"
    UNKNOWN_CLIENT = "unknown_client"
    UNKNOWN_DEPOSIT = "unknown_deposit"
    NEGATIVE_AMOUNT = "negative_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ALREADY_DISPUTED = "already_disputed"
    NOT_DISPUTED = "not_disputed"


def round_amount(value: Decimal) -> Decimal:
    """Round to 4 decimal places, half away from zero. Never returns -0."""
    with localcontext() as ctx:
        # The quantized coefficient carries every integer digit plus 4 fractional ones.
        ctx.prec = max(ctx.prec, value.adjusted() + 6)
        rounded = value.quantize(AMOUNT_PRECISION, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        return rounded.copy_abs()
    return rounded


@dataclass(frozen=True)
class AccountSnapshot:
    client: ClientId
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


@dataclass
class Account:
    client: ClientId
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def charge_back(self, amount: Decimal) -> None:
        # Locking is one-way, nothing ever resets it.
        self.held -= amount
        self.locked = True

    def snapshot(self) -> AccountSnapshot:
        """Export view, rounded to 4 places. Internal balances keep full precision."""
        return AccountSnapshot(
            client=self.client,
            available=round_amount(self.available),
            held=round_amount(self.held),
            total=round_amount(self.total),
            locked=self.locked,
        )


@dataclass
class DepositRecord:
    """A deposit kept for later dispute lookups. Only `disputed` changes after creation."""

    amount: Decimal
    disputed: bool = False


@dataclass
class ReplayStats:
    """Counters for a single replay."""

    applied: int = 0
    malformed: int = 0
    rejections: Counter = field(default_factory=Counter)

    @property
    def rejected(self) -> int:
        return sum(self.rejections.values())

    def record_applied(self) -> None:
        self.applied += 1

    def record_rejection(self, reason: RejectionReason) -> None:
        self.rejections[reason] += 1

    def record_malformed(self) -> None:
        self.malformed += 1

    def summary(self) -> str:
        line = f"Applied: {self.applied}, Rejected: {self.rejected}, Malformed: {self.malformed}"
        if self.rejections:
            breakdown = ", ".join(
                f"{reason.value}={count}"
                for reason, count in sorted(self.rejections.items(), key=lambda item: item[0].value)
            )
            line += f" ({breakdown})"
        return line
