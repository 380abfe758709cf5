"""
Statement Parser Tests

Test Coverage:
- OFX block scanning, description fallbacks and sign stripping
- Bank CSV positional parsing, Zelle depositor extraction and row skips
- Processor CSV header resolution, uncaptured charges and UTC shifting
- Header-less processor rows and Zelle name extraction
- Extension dispatch and whole-file failures
"""

import pytest
from datetime import date

from ledger_recon.config import ReconcileConfig
from ledger_recon.errors import ParseError, UnsupportedFormatError
from ledger_recon.models import UploadedFile
from ledger_recon.parsers import (
    _extract_depositor,
    parse_csv,
    parse_file,
    parse_file_result,
    parse_ofx,
    resolve_columns,
)


class TestOFXParsing:
    """Test suite for OFX statements."""

    def test_minimal_block(self):
        """Test a single transaction block.

        Verifies:
        - Posted date is read literally
        - Amount sign is dropped
        - MEMO is used when NAME is absent
        """
        content = (
            '<OFX><STMTTRN>\n<DTPOSTED>20240115\n<TRNAMT>-45.00\n'
            '<MEMO>Coffee Shop\n</STMTTRN></OFX>'
        )
        result = parse_ofx(content, 'mini.ofx')
        assert len(result.transactions) == 1
        tx = result.transactions[0]
        assert tx.date == date(2024, 1, 15)
        assert tx.name == 'Coffee Shop'
        assert tx.value == 45.00
        assert tx.source == 'mini.ofx'

    def test_full_statement(self, ofx_upload):
        """Test a statement with several blocks.

        Verifies:
        - NAME is preferred over MEMO
        - Timestamps with timezone suffixes keep their calendar day
        - Blocks without a date are skipped with a reason
        """
        result = parse_file_result(ofx_upload)
        assert [tx.name for tx in result.transactions] == ['Coffee Shop', 'ACME PAYROLL']
        assert result.transactions[1].date == date(2024, 1, 16)
        assert result.transactions[1].value == 100.50
        assert len(result.skipped) == 1
        assert result.skipped[0].line == 3
        assert 'DTPOSTED' in result.skipped[0].reason

    def test_description_fallback(self):
        content = '<STMTTRN><DTPOSTED>20240201<TRNAMT>12.00</STMTTRN>'
        result = parse_ofx(content, 'plain.ofx')
        assert result.transactions[0].name == 'Transaction'

    def test_windows_line_endings(self):
        content = '<STMTTRN>\r\n<DTPOSTED>20240201\r\n<TRNAMT>-7.25\r\n<NAME>Deli\r\n</STMTTRN>\r\n'
        result = parse_ofx(content, 'crlf.ofx')
        assert result.transactions[0].name == 'Deli'
        assert result.transactions[0].value == 7.25

    def test_last_tag_in_flat_block(self):
        content = '<STMTTRN><DTPOSTED>20240301<TRNAMT>-19.99<MEMO>Book Store</STMTTRN>'
        result = parse_ofx(content, 'flat.ofx')
        assert result.transactions[0].name == 'Book Store'

    def test_no_blocks(self):
        result = parse_ofx('this is not an ofx file', 'junk.ofx')
        assert result.transactions == []
        assert result.rows == []

    def test_invalid_posted_date_skipped(self):
        content = '<STMTTRN><DTPOSTED>20241301<TRNAMT>5.00</STMTTRN>'
        result = parse_ofx(content, 'bad.ofx')
        assert result.transactions == []
        assert len(result.skipped) == 1


class TestBankCSVParsing:
    """Test suite for header-less bank statements."""

    def test_rows(self, bank_upload):
        """Test positional bank rows.

        Verifies:
        - Two digit years are read as 20xx
        - Values are unsigned
        - Zelle deposits get a depositor and payment method
        - Other rows keep the description as name
        """
        result = parse_file_result(bank_upload, 'bank')
        assert len(result.transactions) == 2

        zelle, purchase = result.transactions
        assert zelle.date == date(2024, 1, 15)
        assert zelle.value == 500.00
        assert zelle.depositor == 'JOHN SMITH'
        assert zelle.payment_method == 'Zelle'
        assert zelle.name == 'ZELLE FROM JOHN SMITH ON 01/15 REF # ABC123'
        assert zelle.source == 'wells_jan.csv'

        assert purchase.value == 45.10
        assert purchase.depositor is None
        assert purchase.payment_method is None

    def test_skipped_rows(self, bank_upload):
        """Test that bad rows are skipped, not escalated.

        Verifies:
        - Zero values are skipped
        - Non-numeric values are skipped
        - Rows with fewer than four columns are skipped
        """
        result = parse_file_result(bank_upload, 'bank')
        skipped = {row.line: row.reason for row in result.skipped}
        assert sorted(skipped) == [3, 4, 5]
        assert 'zero' in skipped[3]
        assert 'Invalid amount' in skipped[4]
        assert 'columns' in skipped[5]

    def test_bank_never_detects_headers(self):
        content = 'Date,Amount,*,Description\n01/15/24,"20.00","*","DEPOSIT"\n'
        result = parse_csv(content, 'wf.csv', 'bank')
        assert len(result.transactions) == 1
        assert result.skipped[0].line == 1

    def test_zelle_without_from(self):
        content = '01/15/24,"75.00","*","ZELLE PAYMENT REF 99"\n'
        tx = parse_csv(content, 'wf.csv', 'bank').transactions[0]
        assert tx.payment_method == 'Zelle'
        assert tx.depositor is None

    def test_depositor_with_on_inside_name(self):
        content = '01/15/24,"75.00","*","ZELLE FROM ANA ONEIL ON 01/15 REF 1"\n'
        tx = parse_csv(content, 'wf.csv', 'bank').transactions[0]
        assert tx.depositor == 'ANA ONEIL'


class TestProcessorCSVParsing:
    """Test suite for payment processor exports."""

    def test_card_rows(self, stripe_upload):
        """Test header-based card exports.

        Verifies:
        - Descriptions are ignored and rows become unified card payments
        - Uncaptured and zero rows are skipped
        - UTC timestamps are shifted before truncation
        """
        result = parse_file_result(stripe_upload, 'stripe')
        assert len(result.transactions) == 2
        for tx in result.transactions:
            assert tx.name == 'Credit Card Payment'
            assert tx.payment_method == 'Credit Card'
            assert tx.depositor is None
        assert [tx.date for tx in result.transactions] == [date(2024, 2, 1), date(2024, 2, 2)]
        reasons = {row.line: row.reason for row in result.skipped}
        assert reasons[4] == 'uncaptured charge'
        assert 'zero' in reasons[5]

    def test_configurable_offset(self, stripe_upload):
        config = ReconcileConfig(card_utc_offset_hours=5)
        result = parse_file_result(stripe_upload, 'stripe', config)
        assert result.transactions[1].date == date(2024, 2, 1)

    def test_column_aliases(self):
        """Test alias resolution.

        Verifies:
        - Header names are matched case-insensitively
        - Portuguese value column is recognized
        """
        content = 'Date,VALOR,DESCRICAO\n03/05/2024,"$1,250.00",Boleto\n'
        tx = parse_csv(content, 'export.csv', 'stripe').transactions[0]
        assert tx.date == date(2024, 3, 5)
        assert tx.value == 1250.00
        assert tx.name == 'Credit Card Payment'

    def test_resolve_columns(self):
        columns = resolve_columns(['Amount', ' created date ', 'Date', 'Captured'])
        assert columns['date'] == [2, 1]
        assert columns['value'] == [0]
        assert columns['description'] == []
        assert columns['captured'] == [3]

    def test_extra_cells_are_ignored(self):
        """Test rows wider than the header.

        Verifies:
        - A trailing empty column is dropped
        - A non-empty extra cell does not cost the row
        """
        content = 'Date,Amount\n2024-02-01 20:00:00,10.00,\n2024-02-01 20:00:00,11.00,extra\n'
        result = parse_csv(content, 'cards.csv', 'stripe')
        assert [tx.value for tx in result.transactions] == [10.00, 11.00]
        assert result.skipped == []

    def test_extra_cells_keep_named_columns(self):
        content = 'Amount,Date,Description\n11.00,2024-02-02 12:00:00,Invoice 2,extra\n'
        result = parse_csv(content, 'cards.csv', 'stripe')
        tx = result.transactions[0]
        assert tx.date == date(2024, 2, 2)
        assert tx.value == 11.00
        assert tx.name == 'Credit Card Payment'
        assert tx.source == 'cards.csv'

    def test_header_only(self):
        result = parse_csv('Date,Amount,Captured\n', 'empty.csv', 'stripe')
        assert result.transactions == []

    def test_positional_rows(self):
        """Test processor files without a header row.

        Verifies:
        - Zelle descriptions yield name and depositor
        - Plain descriptions become the name
        - Missing descriptions become card payments
        """
        content = (
            '01/20/2024,250.00,,Zelle from Maria Santos on 01/20 12345\n'
            '01/21/2024,99.99,,ACME SUPPLIES\n'
            '01/22/2024,15.00\n'
        )
        zelle, plain, card = parse_csv(content, 'noheader.csv', 'stripe').transactions
        assert zelle.name == 'Maria Santos'
        assert zelle.depositor == 'Maria Santos'
        assert zelle.payment_method == 'Zelle'
        assert plain.name == 'ACME SUPPLIES'
        assert plain.payment_method is None
        assert card.name == 'Credit Card Payment'
        assert card.payment_method == 'Credit Card'

    def test_extract_depositor(self):
        assert _extract_depositor('Zelle payment from JOSE SILVA 8823 (ref)') == 'JOSE SILVA'
        assert _extract_depositor('Zelle from Ana Lima on 02/02') == 'Ana Lima'
        assert _extract_depositor('Zelle transfer') is None

    def test_invalid_upload_type(self):
        with pytest.raises(ValueError, match="Invalid upload type"):
            parse_csv('01/01/24,1.00,,X\n', 'x.csv', 'paypal')


class TestFileDispatch:
    """Test suite for extension dispatch and file-level failures."""

    def test_unsupported_extension(self):
        upload = UploadedFile(buffer=b'data', originalname='statement.xlsx')
        with pytest.raises(UnsupportedFormatError, match="Unsupported file format"):
            parse_file(upload)

    def test_extension_is_case_insensitive(self, ofx_upload):
        assert len(parse_file(ofx_upload)) == 2

    def test_undecodable_bytes(self):
        upload = UploadedFile(buffer=b'\x81\x8d', originalname='bad.csv')
        with pytest.raises(ParseError, match="Could not decode"):
            parse_file(upload, 'bank')

    def test_cp1252_fallback(self):
        upload = UploadedFile(
            buffer='01/15/24,"20.00","*","CAF\xc9 ROYAL"\n'.encode('cp1252'),
            originalname='latin.csv',
        )
        tx = parse_file(upload, 'bank')[0]
        assert tx.name == 'CAF\xc9 ROYAL'

    def test_parse_error_is_value_error(self):
        assert issubclass(ParseError, ValueError)
