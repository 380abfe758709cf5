"""
Ledger Recon - reconcile bank and payment-processor statements against a ledger.

This package provides functionality to:
- Parse OFX and CSV statements (bank and processor exports) into canonical transactions
- Drop re-imported duplicates within an upload channel
- Match statement transactions to ledger transactions with a confidence score
- Offer candidate lists for manual reconciliation of leftovers

Transaction statuses:
- pending-ledger: Present only in the ledger
- pending-statement: Present only in a bank or processor statement
- reconciled: Present on both sides, cross-linked with its counterpart
"""

from .dedup import is_duplicate
from .manual import find_manual_candidates, manual_reconcile
from .matcher import reconcile
from .parsers import parse_csv, parse_file, parse_file_result, parse_ofx
from .similarity import similarity

__all__ = [
    'parse_file',
    'parse_file_result',
    'parse_ofx',
    'parse_csv',
    'is_duplicate',
    'similarity',
    'reconcile',
    'find_manual_candidates',
    'manual_reconcile'
]
