"""
Transaction log codec.

Financial entries are stored in the generic expenses collection; the
structured fields travel inside the description column as a legacy
delimited text format:

    FINANCIAL_INCOME: Website | Payment: pix | Client: ACME | Date: 2024-05-01 | Paid: true

Segments are split on " | " and matched by literal prefix. Absent segments
default to empty / False. A free-text field containing " | " corrupts the
parse; this is accepted, not guarded against.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

SEPARATOR = " | "

INCOME_TAG = "FINANCIAL_INCOME"
EXPENSE_TAG = "FINANCIAL_EXPENSE"


class TransactionLogError(ValueError):
    pass


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"

    @property
    def tag(self) -> str:
        return INCOME_TAG if self is TransactionKind.INCOME else EXPENSE_TAG

    @property
    def counterparty_label(self) -> str:
        return "Client" if self is TransactionKind.INCOME else "Supplier"


@dataclass(frozen=True)
class TransactionEntry:
    is_income: bool
    description: str
    payment_method: str
    client_or_supplier: str
    date: str
    is_paid: bool

    @property
    def kind(self) -> TransactionKind:
        return TransactionKind.INCOME if self.is_income else TransactionKind.EXPENSE


def encode(
    kind: TransactionKind,
    description: str,
    payment_method: str,
    counterparty: str,
    date: str,
    paid: bool,
) -> str:
    try:
        kind = TransactionKind(kind)
    except ValueError:
        raise TransactionLogError(f"Unknown transaction kind: {kind!r}")
    return SEPARATOR.join([
        f"{kind.tag}: {description}",
        f"Payment: {payment_method}",
        f"{kind.counterparty_label}: {counterparty}",
        f"Date: {date}",
        f"Paid: {'true' if paid else 'false'}",
    ])


def _segment(parts: list[str], prefix: str) -> str:
    for part in parts:
        if part.startswith(prefix):
            return part[len(prefix):]
    return ""


def decode(raw: str) -> TransactionEntry:
    raw = raw or ""
    parts = raw.split(SEPARATOR)

    main = parts[0]
    leading = None
    for tag in (INCOME_TAG, EXPENSE_TAG):
        if main.startswith(f"{tag}: "):
            leading = tag
            main = main[len(tag) + 2:]
            break

    # the leading tag wins; untagged text falls back to a substring check
    if leading is not None:
        is_income = leading == INCOME_TAG
    else:
        is_income = f"{INCOME_TAG}:" in raw

    counterparty = _segment(parts, "Client: ") or _segment(parts, "Supplier: ")

    return TransactionEntry(
        is_income=is_income,
        description=main,
        payment_method=_segment(parts, "Payment: "),
        client_or_supplier=counterparty,
        date=_segment(parts, "Date: "),
        is_paid=_segment(parts, "Paid: ") == "true",
    )


def classify(description: str, value) -> TransactionKind | None:
    """
    Kind for aggregate totals, or None when tag and sign disagree.

    income: income tag and value < 0
    expense: expense tag and value > 0
    """
    value = Decimal(str(value))
    if f"{INCOME_TAG}:" in description and value < 0:
        return TransactionKind.INCOME
    if f"{EXPENSE_TAG}:" in description and value > 0:
        return TransactionKind.EXPENSE
    return None


def signed_value(kind: TransactionKind, amount: Decimal) -> Decimal:
    """Storage sign convention: income negative, expense positive."""
    amount = abs(Decimal(amount))
    return -amount if TransactionKind(kind) is TransactionKind.INCOME else amount
