"""
Manual reconciliation assist.

When automatic matching cannot decide (typically a ledger row without a
depositor), the operator picks the counterpart from a short candidate list.
Candidates share the opposite pending status and the same value; date
narrowing is left to the caller.
"""

import logging

from .config import DEFAULT_CONFIG
from .errors import ReconciliationValidationError
from .matcher import link_pair, values_match
from .models import PENDING_LEDGER, PENDING_STATEMENT, RECONCILED

logger = logging.getLogger(__name__)

MANUAL_CONFIDENCE = 100

_OPPOSITE = {
    PENDING_LEDGER: PENDING_STATEMENT,
    PENDING_STATEMENT: PENDING_LEDGER,
}


def needs_manual_review(transactions):
    """Ledger transactions that automatic name matching cannot resolve."""
    return [tx for tx in transactions if tx.status == PENDING_LEDGER and not tx.depositor]


def find_manual_candidates(transaction, pool, config=None):
    """List possible counterparts for ``transaction``.

    Args:
        transaction (Transaction): Transaction being reconciled by hand
        pool (list): All transactions, in storage order
        config (ReconcileConfig, optional): Settings for epsilon and limit

    Returns:
        list: Up to ``manual_candidate_limit`` transactions with the opposite
            pending status and an equal value, earliest first
    """
    config = config or DEFAULT_CONFIG
    opposite = _OPPOSITE.get(transaction.status)
    if opposite is None:
        return []

    candidates = [
        tx for tx in pool
        if tx.status == opposite
        and tx.id != transaction.id
        and values_match(tx.value, transaction.value, config.value_epsilon)
    ]
    return candidates[:config.manual_candidate_limit]


def validate_manual_match(first, second):
    """Raise ReconciliationValidationError if the two cannot be paired."""
    if first.id == second.id:
        raise ReconciliationValidationError("Cannot reconcile a transaction with itself")
    if first.status == RECONCILED or second.status == RECONCILED:
        raise ReconciliationValidationError("Transaction is already reconciled")
    if {first.status, second.status} != {PENDING_LEDGER, PENDING_STATEMENT}:
        raise ReconciliationValidationError(
            f"Cannot reconcile {first.status} with {second.status}: "
            f"one ledger and one statement transaction are required"
        )


def manual_reconcile(store, transaction_id, match_id):
    """Reconcile two stored transactions chosen by an operator.

    Args:
        store (TransactionStore): Transaction store
        transaction_id (str): Transaction being reconciled
        match_id (str): Operator-selected counterpart

    Returns:
        tuple: Updated (transaction, match), both reconciled at confidence 100

    Raises:
        ReconciliationValidationError: If either id is unknown or the pair is invalid
    """
    first = store.get(transaction_id)
    if first is None:
        raise ReconciliationValidationError(f"Transaction not found: {transaction_id}")
    second = store.get(match_id)
    if second is None:
        raise ReconciliationValidationError(f"Transaction not found: {match_id}")

    validate_manual_match(first, second)
    logger.info(f"Manually reconciling {first.id} with {second.id}")
    return link_pair(store, first.id, second.id, MANUAL_CONFIDENCE)
