"""Command line entry point: import statements and a ledger export, then reconcile."""

import argparse
import logging
import pathlib

import pandas as pd

from .config import ReconcileConfig
from .models import UploadedFile
from .pipeline import import_ledger, import_statement_files, run_reconciliation
from .reporting import format_reconciliation_summary, format_status_summary
from .sheets import rows_to_sheet_transactions
from .storage import MemStorage
from .utils import setup_logging

logger = logging.getLogger(__name__)


def load_uploads(paths):
    """Read statement files from disk as UploadedFile objects."""
    uploads = []
    for path in paths:
        path = pathlib.Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        if path.is_dir():
            raise ValueError(f"Path is a directory: {path}")
        uploads.append(UploadedFile(buffer=path.read_bytes(), originalname=path.name))
    return uploads


def load_ledger_rows(path):
    """Read a ledger spreadsheet exported as CSV into raw row lists."""
    frame = pd.read_csv(path, header=None, dtype=str, keep_default_na=False, skip_blank_lines=True)
    return frame.values.tolist()


def main(argv=None):
    """Main execution function."""
    parser = argparse.ArgumentParser(description='Reconcile bank and processor statements against a ledger')
    parser.add_argument('--bank', nargs='*', default=[],
                        help='Bank statement files (.csv or .ofx)')
    parser.add_argument('--stripe', nargs='*', default=[],
                        help='Payment processor exports (.csv or .ofx)')
    parser.add_argument('--ledger', type=str, required=True,
                        help='Ledger spreadsheet exported as CSV')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging')
    parser.add_argument('--log-level', type=str, default='info',
                        help='Log level when --debug is not set')
    args = parser.parse_args(argv)

    setup_logging(debug=args.debug, log_level=args.log_level)
    logger.info("Starting reconciliation process")

    try:
        config = ReconcileConfig.from_env()
        store = MemStorage()

        ledger_rows = load_ledger_rows(args.ledger)
        import_ledger(rows_to_sheet_transactions(ledger_rows), store, config)

        for upload_type, paths in (('bank', args.bank), ('stripe', args.stripe)):
            if paths:
                summary = import_statement_files(load_uploads(paths), upload_type, store, config)
                logger.info(
                    f"{upload_type}: {len(summary.created)} created, "
                    f"{summary.duplicates} duplicates, {summary.skipped_rows} rows skipped"
                )

        result = run_reconciliation(store, config)
    except Exception as e:
        logger.error(f"Error during reconciliation: {str(e)}")
        raise

    print(format_reconciliation_summary(result))
    print()
    print(format_status_summary(store.list()))
    for match in result.matches:
        print(
            f"{match.statement_tx.date} ${match.statement_tx.value:.2f} "
            f"{match.statement_tx.name} <-> {match.ledger_tx.name} "
            f"({match.confidence}%)"
        )
    return 0


if __name__ == '__main__':
    main()
