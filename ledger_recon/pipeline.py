"""
Import and reconciliation workflow over a transaction store.

Statement uploads: parse -> prefix source with the channel -> drop duplicates
-> store as pending-statement. Ledger imports: drop duplicates -> store as
pending-ledger. Reconciliation runs on demand over whatever is still pending.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from .config import DEFAULT_CONFIG
from .dedup import filter_duplicates, same_channel
from .matcher import apply_matches, reconcile
from .models import (
    PENDING_LEDGER,
    PENDING_STATEMENT,
    ParseResult,
    Transaction,
)
from .parsers import parse_file_result

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    created: List[Transaction] = field(default_factory=list)
    duplicates: int = 0
    parse_results: List[ParseResult] = field(default_factory=list)

    @property
    def skipped_rows(self):
        return sum(len(result.skipped) for result in self.parse_results)


def channel_for(upload_type, config=None):
    """Return the channel name for an upload type ('stripe' or 'bank')."""
    config = config or DEFAULT_CONFIG
    channels = {'stripe': config.stripe_channel, 'bank': config.bank_channel}
    if upload_type not in channels:
        raise ValueError(f"Invalid upload type: {upload_type}. Expected one of: {list(channels)}")
    return channels[upload_type]


def import_statement_files(files, upload_type, store, config=None):
    """Parse uploaded statement files and store the new transactions.

    Files are processed one after another. Each file is compared against the
    store as it was when that file started, plus its own accepted rows
    (card rows only see the store).

    Args:
        files (list): UploadedFile objects
        upload_type (str): 'stripe' or 'bank'
        store (TransactionStore): Destination store
        config (ReconcileConfig, optional): Settings

    Returns:
        ImportSummary: Created transactions, duplicate count and parse outcomes

    Raises:
        ParseError: If a file cannot be parsed at all
    """
    config = config or DEFAULT_CONFIG
    channel = channel_for(upload_type, config)
    summary = ImportSummary()

    for file in files:
        parsed = parse_file_result(file, upload_type, config)
        summary.parse_results.append(parsed)

        pool = same_channel(store.list(), channel)
        fresh, duplicates = filter_duplicates(parsed.transactions, pool)
        summary.duplicates += len(duplicates)

        created = store.create_many([
            Transaction(
                date=tx.date,
                name=tx.name,
                value=tx.value,
                status=PENDING_STATEMENT,
                source=f"{channel} - {tx.source}",
                payment_method=tx.payment_method,
                depositor=tx.depositor,
            )
            for tx in fresh
        ])
        summary.created.extend(created)
        logger.info(f"Imported {len(created)} transactions from {file.originalname} ({len(duplicates)} duplicates)")

    return summary


def import_ledger(sheet_transactions, store, config=None):
    """Store ledger rows as pending-ledger transactions, skipping duplicates.

    Ledger rows are matched on date, value and depositor or client name;
    the card shortcut never applies because every row names a client.

    Returns:
        ImportSummary: Created transactions and duplicate count
    """
    config = config or DEFAULT_CONFIG
    summary = ImportSummary()
    pool = same_channel(store.list(), config.ledger_channel)
    fresh, duplicates = filter_duplicates(sheet_transactions, pool, by_identity=True)
    summary.duplicates = len(duplicates)
    summary.created = store.create_many([
        Transaction(
            date=tx.date,
            name=tx.name,
            value=tx.value,
            status=PENDING_LEDGER,
            source=config.ledger_channel,
            car=tx.car,
            depositor=tx.depositor,
            payment_method=tx.payment_method,
            sheet_order=tx.sheet_order,
        )
        for tx in fresh
    ])
    logger.info(f"Imported {len(summary.created)} ledger transactions ({summary.duplicates} duplicates)")
    return summary


def run_reconciliation(store, config=None):
    """Reconcile every pending transaction in ``store`` and persist the matches.

    Returns:
        ReconciliationResult: Result of the pass; matched transactions in the
            store are now reconciled and cross-linked
    """
    transactions = store.list()
    statement = [tx for tx in transactions if tx.status == PENDING_STATEMENT]
    ledger = [tx for tx in transactions if tx.status == PENDING_LEDGER]
    result = reconcile(statement, ledger, config)
    apply_matches(result, store)
    return result
