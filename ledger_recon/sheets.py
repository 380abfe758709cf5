"""
Ledger spreadsheet import.

Maps raw spreadsheet rows to SheetTransaction records. Column layout (header
row first):

- A: Date (MM/DD/YYYY, YYYY/MM/DD or ISO)
- B: Value (currency symbols and commas allowed, sign dropped)
- C: unused
- D: Car
- E: Client name
- F: Depositor name
- G: Payment method (optional)

Fetching rows is delegated to an injected client; access tokens come from an
explicit CachedTokenProvider rather than module state.
"""

import logging
from datetime import datetime, timezone

import numpy as np

from .models import SheetTransaction
from .utils import clean_amount, parse_date

logger = logging.getLogger(__name__)

SHEET_RANGES = ['A1:G5000', 'A5001:G10000', 'A10001:G15000']


def _cell(row, idx):
    if idx >= len(row) or row[idx] is None:
        return None
    text = str(row[idx]).strip()
    return text or None


def rows_to_sheet_transactions(rows):
    """Convert spreadsheet rows (header first) into SheetTransaction records.

    Rows without a date or value, with an unparseable date, or with a
    non-numeric value are skipped.

    Args:
        rows (list): Row lists as returned by the spreadsheet API

    Returns:
        list: SheetTransaction records in sheet order
    """
    transactions = []
    data_rows = rows[1:]
    for order, row in enumerate(data_rows, start=1):
        date_cell = _cell(row, 0)
        value_cell = row[1] if len(row) > 1 else None
        if not date_cell or value_cell is None or str(value_cell).strip() == '':
            continue

        try:
            tx_date = parse_date(date_cell)
            value = clean_amount(value_cell)
        except ValueError as e:
            logger.debug(f"Sheet row {order + 1} skipped: {e}")
            continue
        if np.isnan(value):
            continue

        transactions.append(SheetTransaction(
            date=tx_date,
            name=_cell(row, 4) or 'Unknown',
            value=abs(value),
            car=_cell(row, 3),
            depositor=_cell(row, 5),
            payment_method=_cell(row, 6),
            sheet_order=order,
        ))

    logger.info(f"Sheet import: {len(transactions)} of {len(data_rows)} rows parsed")
    return transactions


def _utcnow():
    return datetime.now(timezone.utc)


def _oauth_token(settings):
    """Read ``oauth.credentials.access_token`` from connector settings."""
    oauth = settings.get('oauth') or {}
    credentials = oauth.get('credentials') or {}
    return credentials.get('access_token')


class CachedTokenProvider:
    """Caches a connector access token until it expires.

    A token without an expiry is used for one call only and fetched again on
    the next one, since nothing says how long it stays valid.

    Args:
        fetch_token (callable): Returns a mapping with ``access_token`` (or
            ``oauth.credentials.access_token``) and an optional
            timezone-aware ``expires_at`` datetime
        clock (callable, optional): Returns the current aware datetime
    """

    def __init__(self, fetch_token, clock=None):
        self._fetch_token = fetch_token
        self._clock = clock or _utcnow
        self._cached = None

    def get_token(self):
        cached = self._cached
        if cached and cached.get('expires_at') and cached['expires_at'] > self._clock():
            return cached['access_token']

        settings = self._fetch_token() or {}
        token = settings.get('access_token') or _oauth_token(settings)
        if not token:
            raise ValueError("Ledger spreadsheet not connected")
        self._cached = dict(settings, access_token=token)
        logger.debug("Fetched new spreadsheet access token")
        return token

    def invalidate(self):
        self._cached = None


def import_from_sheet(sheet_id, client, token_provider):
    """Fetch every ledger row of a spreadsheet and map it.

    Args:
        sheet_id (str): Spreadsheet identifier
        client: Object with ``batch_get(sheet_id, ranges, access_token)``
            returning a list of row lists, one per range
        token_provider (CachedTokenProvider): Access token source

    Returns:
        list: SheetTransaction records
    """
    token = token_provider.get_token()
    value_ranges = client.batch_get(sheet_id, SHEET_RANGES, access_token=token)

    rows = []
    for values in value_ranges:
        if values:
            rows.extend(values)
    if not rows:
        return []

    logger.info(f"Sheet {sheet_id}: {len(rows)} rows including header")
    return rows_to_sheet_transactions(rows)
