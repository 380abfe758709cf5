"""
Reconciliation summaries.

Builds pandas views over stored transactions for the status overview and a
plain-text summary of a reconciliation pass.
"""

import logging
from dataclasses import asdict

import pandas as pd

from .models import PENDING_LEDGER, PENDING_STATEMENT, RECONCILED, STATUSES

logger = logging.getLogger(__name__)

FRAME_COLUMNS = [
    'id', 'date', 'name', 'value', 'status', 'source', 'payment_method',
    'depositor', 'car', 'confidence', 'matched_transaction_id', 'sheet_order',
]


def transactions_to_frame(transactions):
    """Convert transactions to a DataFrame with a fixed column order."""
    if not transactions:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    frame = pd.DataFrame([asdict(tx) for tx in transactions])
    return frame[FRAME_COLUMNS]


def summarize_transactions(transactions):
    """Count and total transactions per status.

    Returns:
        pd.DataFrame: Indexed by status with ``count`` and ``total`` columns;
            every status is present even when empty
    """
    frame = transactions_to_frame(transactions)
    summary = (
        frame.groupby('status')['value']
        .agg(['count', 'sum'])
        .rename(columns={'sum': 'total'})
        .reindex(list(STATUSES), fill_value=0)
    )
    summary['count'] = summary['count'].astype(int)
    summary['total'] = summary['total'].astype(float).round(2)
    return summary


def format_status_summary(transactions):
    """Render the per-status summary as text lines."""
    summary = summarize_transactions(transactions)
    labels = {
        PENDING_LEDGER: 'Pending Ledger',
        PENDING_STATEMENT: 'Pending Statement',
        RECONCILED: 'Reconciled',
    }
    lines = [
        f"{labels[status]}: {int(row['count'])} (${row['total']:.2f})"
        for status, row in summary.iterrows()
    ]
    return "\n".join(lines)


def format_reconciliation_summary(result):
    """Summarize one reconciliation pass.

    Args:
        result (ReconciliationResult): Output of ``reconcile``

    Returns:
        str: Formatted summary text
    """
    matched_amount = sum(match.statement_tx.value for match in result.matches)
    lines = [
        f"Matched Pairs: {len(result.matches)}",
        f"Unmatched Statement Transactions: {len(result.unmatched_statement)}",
        f"Unmatched Ledger Transactions: {len(result.unmatched_ledger)}",
        f"Matched Amount: ${matched_amount:.2f}",
    ]
    if result.matches:
        average = sum(match.confidence for match in result.matches) / len(result.matches)
        lines.append(f"Average Confidence: {average:.0f}%")
    else:
        lines.append("\nNo matched transactions found")
    return "\n".join(lines)
