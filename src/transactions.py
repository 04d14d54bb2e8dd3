import csv
from decimal import Decimal, InvalidOperation, getcontext
from enum import Enum
from typing import Dict, Iterator, Mapping, Optional, TextIO, Union

from models import ChargeBack, Deposit, Dispute, Resolve, Transaction, Withdrawal

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class MalformedRecordError(ValueError):
    """A record that cannot be turned into any transaction variant."""

    def __init__(self, message: str, row: Optional[Mapping[str, str]] = None, line_number: Optional[int] = None):
        super().__init__(message)
        self.row = row
        self.line_number = line_number

    def __str__(self) -> str:
        message = super().__str__()
        if self.line_number is not None:
            return f"line {self.line_number}: {message}"
        return message


def _parse_id(normalized: Dict, column: str, upper_bound: int) -> int:
    value = normalized.get(column, "")
    if not value:
        raise MalformedRecordError(f"missing '{column}' column")
    try:
        parsed = int(value)
    except ValueError:
        raise MalformedRecordError(f"'{column}' is not an integer: {value!r}") from None
    if not 0 <= parsed <= upper_bound:
        raise MalformedRecordError(f"'{column}' out of range: {parsed}")
    return parsed


def _parse_amount(normalized: Dict, transaction_type: TransactionType) -> Decimal:
    amount_str = normalized.get("amount", "")
    if not amount_str:
        raise MalformedRecordError(f"{transaction_type.value} requires an amount")
    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise MalformedRecordError(f"invalid amount: {amount_str!r}") from None
    if not amount.is_finite():
        raise MalformedRecordError(f"invalid amount: {amount_str!r}")
    # Must still fit the context precision once carried to 4 decimal places.
    if not amount.is_zero() and amount.adjusted() >= getcontext().prec - 5:
        raise MalformedRecordError(f"amount too large: {amount_str!r}")
    return amount


def parse_record(row: Mapping[str, str]) -> Transaction:
    """
    Build a transaction from one CSV row.

    Headers and values are whitespace-trimmed and the type tag is matched
    case-insensitively. Amounts on dispute/resolve/chargeback rows are ignored.
    Negative amounts pass through; rejecting them is the ledger's job.

    Raises:
        MalformedRecordError: the row does not describe a valid transaction.
    """
    # DictReader uses a None key for surplus fields and None values for missing ones.
    normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}

    type_str = normalized.get("type", "").lower()
    if not type_str:
        raise MalformedRecordError("missing 'type' column")
    try:
        transaction_type = TransactionType(type_str)
    except ValueError:
        raise MalformedRecordError(f"unknown transaction type: {type_str!r}") from None

    client = _parse_id(normalized, "client", MAX_CLIENT_ID)
    tx = _parse_id(normalized, "tx", MAX_TRANSACTION_ID)

    match transaction_type:
        case TransactionType.DEPOSIT:
            return Deposit(client=client, tx=tx, amount=_parse_amount(normalized, transaction_type))
        case TransactionType.WITHDRAWAL:
            return Withdrawal(client=client, tx=tx, amount=_parse_amount(normalized, transaction_type))
        case TransactionType.DISPUTE:
            return Dispute(client=client, tx=tx)
        case TransactionType.RESOLVE:
            return Resolve(client=client, tx=tx)
        case TransactionType.CHARGEBACK:
            return ChargeBack(client=client, tx=tx)


def read_transactions(stream: TextIO) -> Iterator[Union[Transaction, MalformedRecordError]]:
    """
    Lazily decode a CSV stream with a `type, client, tx, amount` header.

    Yields one item per data row, in input order: the transaction, or the
    MalformedRecordError explaining why the row was rejected.
    """
    reader = csv.DictReader(stream)
    for row in reader:
        try:
            yield parse_record(row)
        except MalformedRecordError as e:
            e.row = row
            e.line_number = reader.line_num
            yield e
