"""
Canonical transaction model.

Transaction fields:
- date: Calendar date of the payment (no time of day)
- name: Display name or description (required)
- car: Optional free-text tag carried from the ledger
- depositor: Optional name of the actual remitter
- value: Non-negative amount rounded to cents
- status: pending-ledger, pending-statement or reconciled
- source: Origin, prefixed by upload channel ("Stripe - file.csv")
- payment_method: Optional method such as "Zelle" or "Credit Card"
- confidence: 0-100 match strength, set only once reconciled
- matched_transaction_id: Id of the paired transaction once reconciled
- sheet_order: Original ledger row order, display only
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from .utils import to_cents

PENDING_LEDGER = 'pending-ledger'
PENDING_STATEMENT = 'pending-statement'
RECONCILED = 'reconciled'

STATUSES = (PENDING_LEDGER, PENDING_STATEMENT, RECONCILED)

CREDIT_CARD = 'Credit Card'
ZELLE = 'Zelle'


def _new_id():
    return str(uuid.uuid4())


@dataclass
class Transaction:
    date: date
    name: str
    value: float
    status: str = PENDING_LEDGER
    source: Optional[str] = None
    car: Optional[str] = None
    depositor: Optional[str] = None
    payment_method: Optional[str] = None
    confidence: Optional[int] = None
    matched_transaction_id: Optional[str] = None
    sheet_order: Optional[int] = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if not self.name or not str(self.name).strip():
            raise ValueError("Transaction name cannot be empty")
        if self.status not in STATUSES:
            raise ValueError(f"Unknown transaction status: {self.status}")
        self.value = to_cents(self.value)
        if self.value < 0:
            raise ValueError(f"Transaction value must be non-negative, got {self.value}")

    @property
    def is_pending(self):
        return self.status in (PENDING_LEDGER, PENDING_STATEMENT)


@dataclass
class ParsedTransaction:
    """Pre-persistence shape produced by the file parsers."""

    date: date
    name: str
    value: float
    source: str
    payment_method: Optional[str] = None
    depositor: Optional[str] = None


@dataclass
class SheetTransaction:
    """Ledger row as yielded by the spreadsheet importer."""

    date: date
    name: str
    value: float
    car: Optional[str] = None
    depositor: Optional[str] = None
    payment_method: Optional[str] = None
    sheet_order: Optional[int] = None


@dataclass
class UploadedFile:
    buffer: bytes
    originalname: str


@dataclass(frozen=True)
class BankStatementRow:
    """Positional bank CSV row: date, signed value, unused, description."""

    line: int
    date: str
    value: str
    description: str


@dataclass(frozen=True)
class ProcessorRow:
    """Header CSV row with column aliases already resolved."""

    line: int
    date: Optional[str]
    value: Optional[str]
    description: Optional[str]
    captured: Optional[str] = None


@dataclass(frozen=True)
class RowOutcome:
    line: int
    kept: bool
    reason: str = ''


@dataclass
class ParseResult:
    """Transactions parsed from one file plus what happened to every row."""

    filename: str
    transactions: List[ParsedTransaction] = field(default_factory=list)
    rows: List[RowOutcome] = field(default_factory=list)

    def keep(self, line, transaction):
        self.transactions.append(transaction)
        self.rows.append(RowOutcome(line, True))

    def skip(self, line, reason):
        self.rows.append(RowOutcome(line, False, reason))

    @property
    def skipped(self):
        return [row for row in self.rows if not row.kept]


@dataclass
class ReconciliationMatch:
    statement_tx: Transaction
    ledger_tx: Transaction
    confidence: int
    reasons: List[str] = field(default_factory=list)


@dataclass
class ReconciliationResult:
    matches: List[ReconciliationMatch] = field(default_factory=list)
    unmatched_statement: List[Transaction] = field(default_factory=list)
    unmatched_ledger: List[Transaction] = field(default_factory=list)
