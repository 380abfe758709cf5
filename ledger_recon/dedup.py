"""
Duplicate detection for statement and ledger imports.

A parsed row is a duplicate of a stored transaction from the same channel when
the day and the amount are equal and the identity agrees:

- Credit card rows: day and amount alone (card exports carry no payer)
- Both sides have a depositor: depositor must match, case-insensitively
- Otherwise: name must match, case-insensitively

Ledger rows always name a client, so they are compared by identity even when
their payment method is a credit card.
"""

import logging

from .models import CREDIT_CARD
from .utils import to_cents

logger = logging.getLogger(__name__)


def channel_of(source):
    """Return the upload channel prefix of a source ("Stripe - a.csv" -> "Stripe")."""
    if not source:
        return ''
    return source.split(' - ', 1)[0]


def same_channel(transactions, channel):
    """Restrict a pool to transactions whose source starts with ``channel``."""
    return [tx for tx in transactions if tx.source and tx.source.startswith(channel)]


def _same_text(a, b):
    return (a or '').strip().lower() == (b or '').strip().lower()


def _is_card_row(parsed, by_identity):
    return not by_identity and parsed.payment_method == CREDIT_CARD


def is_duplicate(parsed, existing_same_source, by_identity=False):
    """Check whether a parsed row is already stored.

    Args:
        parsed (ParsedTransaction): Freshly parsed row
        existing_same_source (list): Stored transactions of the same channel
        by_identity (bool): Always compare depositor or name, even for card rows

    Returns:
        bool: True when any stored transaction is the same payment
    """
    value = to_cents(parsed.value)
    card_row = _is_card_row(parsed, by_identity)
    for existing in existing_same_source:
        if existing.date != parsed.date or to_cents(existing.value) != value:
            continue
        if card_row:
            return True
        if parsed.depositor and existing.depositor:
            if _same_text(parsed.depositor, existing.depositor):
                return True
            continue
        if _same_text(parsed.name, existing.name):
            return True
    return False


def filter_duplicates(parsed_transactions, existing_same_source, by_identity=False):
    """Split parsed rows into new rows and duplicates.

    Rows accepted earlier in the same batch join the comparison pool, so a
    row repeated inside one file is only kept once. Card rows are checked
    against the pool as it was before the batch: two charges of the same
    amount on the same day in one export are separate payments.

    Returns:
        tuple: (new rows, duplicate rows)
    """
    base = list(existing_same_source)
    accepted = []
    fresh, duplicates = [], []
    for parsed in parsed_transactions:
        pool = base if _is_card_row(parsed, by_identity) else base + accepted
        if is_duplicate(parsed, pool, by_identity):
            duplicates.append(parsed)
            logger.debug(f"Duplicate skipped: {parsed.date} {parsed.value:.2f} {parsed.name!r}")
            continue
        fresh.append(parsed)
        accepted.append(parsed)
    if duplicates:
        logger.info(f"Dropped {len(duplicates)} duplicate transactions")
    return fresh, duplicates
