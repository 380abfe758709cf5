"""
Statement File Parsers

Turns the raw bytes of one uploaded statement into ParsedTransaction records.

Supported inputs:
- OFX: SGML-like ``<STMTTRN>`` blocks with ``<DTPOSTED>``, ``<TRNAMT>`` and an
  optional ``<NAME>`` or ``<MEMO>``
- Bank CSV (``upload_type='bank'``): no header, positional columns
  ``date, value, (unused), description``
- Processor CSV (``upload_type='stripe'``): header row with aliased column
  names; descriptions are ignored because card exports carry no payer name

Every row is accounted for in the returned ParseResult: kept rows become
transactions, skipped rows carry the reason. Only a file that cannot be read
at all raises ParseError.
"""

import csv
import io
import re
import logging

import numpy as np
import pandas as pd

from .config import DEFAULT_CONFIG
from .errors import ParseError, UnsupportedFormatError
from .models import (
    CREDIT_CARD,
    ZELLE,
    BankStatementRow,
    ParsedTransaction,
    ParseResult,
    ProcessorRow,
)
from .utils import clean_amount, parse_date

logger = logging.getLogger(__name__)

UPLOAD_TYPES = ('stripe', 'bank')

ENCODINGS = ['utf-8-sig', 'cp1252']

# OFX block scan
_STMTTRN = re.compile(r'<STMTTRN>(.*?)</STMTTRN>', re.IGNORECASE | re.DOTALL)
_DTPOSTED = re.compile(r'<DTPOSTED>\s*(\d{8})', re.IGNORECASE)
_TRNAMT = re.compile(r'<TRNAMT>\s*([-\d.]+)', re.IGNORECASE)
# Tag values run to the next tag or the end of the block
_NAME = re.compile(r'<NAME>([^<]*)', re.IGNORECASE)
_MEMO = re.compile(r'<MEMO>([^<]*)', re.IGNORECASE)

# CSV header sniffing and description parsing
_HEADER_HINT = re.compile(r'date|amount|value|description|name|created|captured', re.IGNORECASE)
_BANK_ZELLE_FROM = re.compile(r'ZELLE FROM\s+(.+?)\s+ON\b', re.IGNORECASE)
_ZELLE_FROM = re.compile(r'from\s+(.+)', re.IGNORECASE)
_TRAILING_ON = re.compile(r'\s+on\s+.*', re.IGNORECASE)
_TRAILING_NOISE = re.compile(r'[\d\-\(\)]+.*$')

# Header aliases, matched case-insensitively, in priority order
DATE_COLUMNS = ('date', 'data', 'created date (utc)', 'created date')
VALUE_COLUMNS = ('amount', 'value', 'valor')
DESCRIPTION_COLUMNS = ('description', 'name', 'descricao')
CAPTURED_COLUMNS = ('captured',)

# Positional layout shared by header-less files
_POSITIONAL = {'date': [0], 'value': [1], 'description': [3], 'captured': []}


def decode_content(buffer, filename):
    """Decode uploaded bytes, trying each supported encoding in turn.

    Raises:
        ParseError: If no encoding can decode the file
    """
    if isinstance(buffer, str):
        return buffer
    for encoding in ENCODINGS:
        try:
            content = buffer.decode(encoding)
            logger.debug(f"Decoded {filename} with encoding: {encoding}")
            return content
        except UnicodeDecodeError:
            continue
    raise ParseError(f"Could not decode {filename} with any supported encoding")


def parse_ofx(content, filename):
    """Parse OFX statement text.

    Blocks without a posted date or amount are skipped. The amount sign is
    dropped and the description prefers ``<NAME>``, then ``<MEMO>``, then the
    literal "Transaction".

    Args:
        content (str): Decoded OFX text
        filename (str): Source name recorded on each transaction

    Returns:
        ParseResult: Parsed transactions and per-block outcomes

    Raises:
        ParseError: If the block scan itself fails
    """
    result = ParseResult(filename)
    try:
        flattened = re.sub(r'[\r\n]', '', content)
        blocks = _STMTTRN.findall(flattened)
    except Exception as e:
        logger.error(f"Error parsing OFX {filename}: {e}")
        raise ParseError("Failed to parse OFX file") from e

    for line, block in enumerate(blocks, start=1):
        date_match = _DTPOSTED.search(block)
        amount_match = _TRNAMT.search(block)
        if not date_match or not amount_match:
            result.skip(line, "missing DTPOSTED or TRNAMT")
            continue

        posted = date_match.group(1)
        try:
            tx_date = parse_date(posted)
            value = float(amount_match.group(1))
        except ValueError as e:
            result.skip(line, str(e))
            continue
        name_match = _NAME.search(block)
        memo_match = _MEMO.search(block)
        name = name_match.group(1).strip() if name_match else ''
        if not name:
            name = memo_match.group(1).strip() if memo_match else ''
        name = name or 'Transaction'

        result.keep(line, ParsedTransaction(
            date=tx_date,
            name=name,
            value=abs(value),
            source=filename,
        ))

    logger.info(f"OFX {filename}: {len(result.transactions)} transactions, {len(result.skipped)} skipped")
    return result


def _tokenize(content, filename):
    """Split CSV text into (line number, fields) pairs, dropping blank rows."""
    records = []
    try:
        reader = csv.reader(io.StringIO(content.strip()), delimiter=',', quotechar='"')
        for row in reader:
            if not any(cell.strip() for cell in row):
                continue
            records.append((reader.line_num, row))
    except csv.Error as e:
        logger.error(f"Error tokenizing {filename}: {e}")
        raise ParseError(f"Failed to parse CSV: {e}") from e
    return records


def _extract_depositor(description):
    """Pull the payer out of a "Zelle from NAME on ..." style description."""
    match = _ZELLE_FROM.search(description)
    if not match:
        return None
    raw_name = match.group(1).strip()
    raw_name = _TRAILING_ON.sub('', raw_name)
    raw_name = _TRAILING_NOISE.sub('', raw_name)
    return raw_name.strip() or None


def _parse_bank_rows(records, result):
    filename = result.filename
    for line, fields in records:
        if len(fields) < 4:
            result.skip(line, f"expected at least 4 columns, got {len(fields)}")
            continue
        row = BankStatementRow(
            line=line,
            date=fields[0].strip(),
            value=fields[1].strip(),
            description=fields[3].strip(),
        )
        if not row.date or not row.value:
            result.skip(line, "missing date or value")
            continue

        try:
            tx_date = parse_date(row.date)
            value = clean_amount(row.value)
        except ValueError as e:
            result.skip(line, str(e))
            continue
        if np.isnan(value) or value == 0:
            result.skip(line, "zero or non-numeric value")
            continue

        depositor = None
        if 'ZELLE FROM' in row.description:
            match = _BANK_ZELLE_FROM.search(row.description)
            if match:
                depositor = match.group(1).strip()
                logger.debug(f"Row {line}: extracted depositor {depositor!r}")

        result.keep(line, ParsedTransaction(
            date=tx_date,
            name=row.description or 'Bank Transaction',
            value=abs(value),
            source=filename,
            payment_method=ZELLE if 'ZELLE' in row.description else None,
            depositor=depositor,
        ))


def resolve_columns(header):
    """Map each logical field to the header positions that may hold it.

    Args:
        header (list): Header cells from the first CSV row

    Returns:
        dict: field name -> list of column positions, in alias priority order
    """
    positions = {}
    for idx, cell in enumerate(header):
        positions.setdefault(cell.strip().lower(), idx)
    aliases = {
        'date': DATE_COLUMNS,
        'value': VALUE_COLUMNS,
        'description': DESCRIPTION_COLUMNS,
        'captured': CAPTURED_COLUMNS,
    }
    return {
        field: [positions[alias] for alias in names if alias in positions]
        for field, names in aliases.items()
    }


def _build_frame(records, width):
    """Build a string DataFrame indexed by source line number.

    Cells beyond ``width`` are dropped and narrower rows are padded with
    empty strings, so every row keeps the columns its header names.
    """
    data = [
        [cell.strip() for cell in fields[:width]] + [''] * (width - len(fields))
        for _, fields in records
    ]
    lines = [line for line, _ in records]
    return pd.DataFrame(data, index=lines, columns=range(width), dtype=object)


def _coalesce(frame, positions):
    """Pick, per row, the first non-empty cell among ``positions``."""
    picked = pd.Series('', index=frame.index, dtype=object)
    # Apply the lowest priority alias first so earlier aliases overwrite it
    for pos in reversed(positions):
        cells = frame[pos]
        picked = cells.where(cells != '', picked)
    return picked


def _parse_processor_rows(records, result, has_headers, is_credit_card, config):
    if has_headers:
        header = records[0][1]
        records = records[1:]
        columns = resolve_columns(header)
        logger.debug(f"{result.filename}: resolved columns {columns} from header {header}")
        width = len(header)
    else:
        columns = _POSITIONAL
        width = max([len(fields) for _, fields in records] + [4])

    frame = _build_frame(records, width)
    # Positional descriptions are kept even for card files; only a resolved
    # header description is discarded.
    if is_credit_card and has_headers:
        columns = dict(columns, description=[])
    fields = pd.DataFrame(
        {name: _coalesce(frame, columns[name]) for name in ('date', 'value', 'description', 'captured')},
        index=frame.index,
    )

    for line, date_cell, value_cell, description, captured in fields.itertuples(name=None):
        row = ProcessorRow(
            line=int(line),
            date=date_cell or None,
            value=value_cell or None,
            description=description or None,
            captured=captured or None,
        )
        _parse_processor_row(row, result, is_credit_card, config)


def _parse_processor_row(row, result, is_credit_card, config):
    if is_credit_card and row.captured and row.captured.lower() == 'false':
        result.skip(row.line, "uncaptured charge")
        return
    if not row.date or not row.value:
        result.skip(row.line, "missing date or value")
        return

    offset = config.card_utc_offset_hours if is_credit_card else None
    try:
        tx_date = parse_date(row.date, utc_offset_hours=offset)
        value = clean_amount(row.value)
    except ValueError as e:
        result.skip(row.line, str(e))
        return
    if np.isnan(value) or value == 0:
        result.skip(row.line, "zero or non-numeric value")
        return

    payment_method = None
    depositor = None
    description = row.description
    if description and 'zelle' in description.lower():
        payment_method = ZELLE
        depositor = _extract_depositor(description)
        name = depositor or description
    elif description:
        name = description
    else:
        # Card exports carry no payer, so every row is one unified payment
        payment_method = CREDIT_CARD
        name = 'Credit Card Payment'

    result.keep(row.line, ParsedTransaction(
        date=tx_date,
        name=name,
        value=abs(value),
        source=result.filename,
        payment_method=payment_method,
        depositor=depositor,
    ))


def parse_csv(content, filename, upload_type='stripe', config=None):
    """Parse CSV statement text.

    Args:
        content (str): Decoded CSV text
        filename (str): Source name recorded on each transaction
        upload_type (str): 'stripe' for processor exports, 'bank' for bank statements
        config (ReconcileConfig, optional): Settings, for the card UTC offset

    Returns:
        ParseResult: Parsed transactions and per-row outcomes

    Raises:
        ValueError: If upload_type is unknown
        ParseError: If the CSV cannot be tokenized
    """
    config = config or DEFAULT_CONFIG
    if upload_type not in UPLOAD_TYPES:
        raise ValueError(f"Invalid upload type: {upload_type}. Expected one of: {list(UPLOAD_TYPES)}")

    result = ParseResult(filename)
    lines = content.strip().splitlines()
    if not lines:
        logger.warning(f"Skipping empty file: {filename}")
        return result

    # Bank statements never carry a header row
    has_headers = upload_type == 'stripe' and bool(_HEADER_HINT.search(lines[0]))
    logger.debug(f"{filename}: upload type {upload_type}, {len(lines)} lines, headers={has_headers}")

    records = _tokenize(content, filename)
    if not records:
        return result

    if upload_type == 'bank' and not has_headers:
        _parse_bank_rows(records, result)
    else:
        _parse_processor_rows(
            records, result,
            has_headers=has_headers,
            is_credit_card=upload_type == 'stripe',
            config=config,
        )

    logger.info(f"CSV {filename}: {len(result.transactions)} transactions, {len(result.skipped)} skipped")
    return result


def parse_file_result(file, upload_type='stripe', config=None):
    """Dispatch an uploaded file to its parser by extension.

    Args:
        file (UploadedFile): Raw bytes plus original filename
        upload_type (str): 'stripe' or 'bank', used for CSV files
        config (ReconcileConfig, optional): Settings

    Returns:
        ParseResult: Parsed transactions and per-row outcomes

    Raises:
        UnsupportedFormatError: If the extension is neither .ofx nor .csv
        ParseError: If the file cannot be decoded or tokenized
    """
    filename = file.originalname
    lowered = filename.lower()
    if not (lowered.endswith('.ofx') or lowered.endswith('.csv')):
        raise UnsupportedFormatError("Unsupported file format")

    content = decode_content(file.buffer, filename)
    if lowered.endswith('.ofx'):
        return parse_ofx(content, filename)
    return parse_csv(content, filename, upload_type, config)


def parse_file(file, upload_type='stripe', config=None):
    """Parse an uploaded file into a list of ParsedTransaction records."""
    return parse_file_result(file, upload_type, config).transactions
