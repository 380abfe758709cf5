"""
Reconciliation Matcher

Pairs statement transactions (pending-statement) with ledger transactions
(pending-ledger). Each candidate pair must pass every gate:

1. Payment method vs source: a ledger method mentioning credit/card needs a
   statement from the processor channel; zelle/deposit needs the bank channel.
   No method on the ledger side means no gate.
2. Date: within the tolerance window (30 points)
3. Value: equal within one cent (30 points)
4. Name: card payments skip the check and earn the full 40 points; otherwise
   the best of depositor-vs-name, depositor-vs-depositor and name-vs-name
   similarity must reach the threshold and earns a proportional share of 40.

Matching is greedy: statement transactions are processed in order and each
takes the highest scoring ledger transaction still available (the first one
reaching the maximum wins ties). There is no global optimisation.
"""

import logging
import math

from .config import DEFAULT_CONFIG
from .models import (
    CREDIT_CARD,
    RECONCILED,
    ReconciliationMatch,
    ReconciliationResult,
)
from .similarity import similarity

logger = logging.getLogger(__name__)

_CARD_KEYWORDS = ('credit', 'card')
_BANK_KEYWORDS = ('zelle', 'deposit')


def dates_match(first, second, tolerance_days=2):
    """Return True when two dates are at most ``tolerance_days`` apart."""
    return abs((first - second).days) <= tolerance_days


def values_match(first, second, epsilon=0.01):
    """Return True when two amounts differ by less than ``epsilon``."""
    # Compare in whole cents so 500.01 - 500.00 is not read as 0.0099...
    return abs(round((float(first) - float(second)) * 100)) < round(epsilon * 100)


def method_compatible(statement_tx, ledger_tx, config=None):
    """Check the ledger payment method against the statement source channel.

    Returns:
        tuple: (compatible, reason) where reason is empty when no gate applied
    """
    config = config or DEFAULT_CONFIG
    method = (ledger_tx.payment_method or '').strip().lower()
    if not method:
        return True, ''

    source = statement_tx.source or ''
    if any(word in method for word in _CARD_KEYWORDS):
        ok = source.startswith(config.stripe_channel)
        return ok, f"Payment method {ledger_tx.payment_method} matches {config.stripe_channel} source"
    if any(word in method for word in _BANK_KEYWORDS):
        ok = source.startswith(config.bank_channel)
        return ok, f"Payment method {ledger_tx.payment_method} matches {config.bank_channel} source"
    return True, ''


def name_score(statement_tx, ledger_tx):
    """Best similarity among the three identity pairings, with its label."""
    pairings = [
        ("Depositor matches client name", statement_tx.depositor, ledger_tx.name),
        ("Depositor matches depositor", statement_tx.depositor, ledger_tx.depositor),
        ("Name matches", statement_tx.name, ledger_tx.name),
    ]
    best_label, best = pairings[0][0], 0
    for label, a, b in pairings:
        score = similarity(a, b)
        if score > best:
            best_label, best = label, score
    return best, best_label


def score_pair(statement_tx, ledger_tx, config=None):
    """Score one candidate pair.

    Args:
        statement_tx (Transaction): Bank or processor transaction
        ledger_tx (Transaction): Ledger transaction
        config (ReconcileConfig, optional): Settings

    Returns:
        tuple or None: (confidence, reasons) or None when any gate fails
    """
    config = config or DEFAULT_CONFIG
    reasons = []

    compatible, reason = method_compatible(statement_tx, ledger_tx, config)
    if not compatible:
        return None
    if reason:
        reasons.append(reason)

    if not dates_match(statement_tx.date, ledger_tx.date, config.date_tolerance_days):
        return None
    confidence = config.date_points
    reasons.append(f"Date within {config.date_tolerance_days} days")

    if not values_match(statement_tx.value, ledger_tx.value, config.value_epsilon):
        return None
    confidence += config.value_points
    reasons.append("Value matches")

    if statement_tx.payment_method == CREDIT_CARD:
        confidence += config.name_points
        reasons.append("Credit card payment, name check skipped")
        return confidence, reasons

    score, label = name_score(statement_tx, ledger_tx)
    if score < config.name_threshold:
        return None
    confidence += int(math.floor(score / 100 * config.name_points + 0.5))
    reasons.append(f"{label} ({score}% similar)")
    return confidence, reasons


def find_best_match(statement_tx, ledger_candidates, config=None):
    """Return the highest confidence ReconciliationMatch, or None."""
    best = None
    for ledger_tx in ledger_candidates:
        scored = score_pair(statement_tx, ledger_tx, config)
        if scored is None:
            continue
        confidence, reasons = scored
        if best is None or confidence > best.confidence:
            best = ReconciliationMatch(
                statement_tx=statement_tx,
                ledger_tx=ledger_tx,
                confidence=confidence,
                reasons=reasons,
            )
    return best


def reconcile(statement_candidates, ledger_candidates, config=None):
    """Pair statement transactions with ledger transactions.

    Args:
        statement_candidates (list): pending-statement transactions
        ledger_candidates (list): pending-ledger transactions
        config (ReconcileConfig, optional): Settings

    Returns:
        ReconciliationResult: Matches plus unmatched transactions on both sides
    """
    config = config or DEFAULT_CONFIG
    result = ReconciliationResult()
    if not statement_candidates or not ledger_candidates:
        logger.info("Nothing to reconcile: one side is empty")
        result.unmatched_statement = list(statement_candidates)
        result.unmatched_ledger = list(ledger_candidates)
        return result

    matched_ledger_ids = set()
    for statement_tx in statement_candidates:
        available = [tx for tx in ledger_candidates if tx.id not in matched_ledger_ids]
        match = find_best_match(statement_tx, available, config)
        if match is None:
            result.unmatched_statement.append(statement_tx)
            continue
        matched_ledger_ids.add(match.ledger_tx.id)
        result.matches.append(match)
        logger.debug(
            f"Matched {statement_tx.id} -> {match.ledger_tx.id} "
            f"({match.confidence}%): {'; '.join(match.reasons)}"
        )

    result.unmatched_ledger = [tx for tx in ledger_candidates if tx.id not in matched_ledger_ids]
    logger.info(
        f"Reconciliation: {len(result.matches)} matches, "
        f"{len(result.unmatched_statement)} unmatched statement, "
        f"{len(result.unmatched_ledger)} unmatched ledger"
    )
    return result


def link_pair(store, first_id, second_id, confidence):
    """Mark two stored transactions reconciled and point them at each other.

    Returns:
        tuple: Updated (first, second) transactions
    """
    first = store.update(first_id, status=RECONCILED, confidence=confidence,
                         matched_transaction_id=second_id)
    second = store.update(second_id, status=RECONCILED, confidence=confidence,
                          matched_transaction_id=first_id)
    return first, second


def apply_matches(result, store):
    """Persist every match in ``result`` to ``store``.

    Returns:
        list: Updated (statement, ledger) transaction pairs
    """
    updated = []
    for match in result.matches:
        updated.append(link_pair(store, match.statement_tx.id, match.ledger_tx.id, match.confidence))
    return updated
