import csv
from decimal import Context, Decimal
from typing import Mapping, TextIO

from models import AccountSnapshot, ClientId

HEADER = ("client", "available", "held", "total", "locked")


def format_amount(value: Decimal) -> str:
    """Strip trailing zeros from an already-rounded amount, without exponent notation."""
    normalized = value.normalize(Context(prec=len(value.as_tuple().digits)))
    if normalized.is_zero():
        return "0"
    return f"{normalized:f}"


def write_snapshot(snapshot: Mapping[ClientId, AccountSnapshot], stream: TextIO) -> None:
    """Write one CSV row per client, ordered by client id."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(HEADER)
    for client in sorted(snapshot):
        account = snapshot[client]
        writer.writerow((
            account.client,
            format_amount(account.available),
            format_amount(account.held),
            format_amount(account.total),
            str(account.locked).lower(),
        ))
