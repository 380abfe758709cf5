import pytest
from datetime import date

from ledger_recon.models import (
    PENDING_LEDGER,
    PENDING_STATEMENT,
    Transaction,
    UploadedFile,
)
from ledger_recon.storage import MemStorage

# Sample data for each statement format
bank_csv_sample = (
    '01/15/24,"500.00","*","ZELLE FROM JOHN SMITH ON 01/15 REF # ABC123"\n'
    '01/16/24,"-45.10","*","PURCHASE AUTHORIZED ON 01/14 COFFEE SHOP"\n'
    '01/17/24,"0.00","*","ZERO ROW"\n'
    '01/18/24,"abc","*","BAD VALUE"\n'
    '01/19/24,"12.00"\n'
)

stripe_csv_sample = (
    'id,Created date (UTC),Amount,Description,Captured\n'
    'ch_1,2024-02-01 15:30:00,120.00,Invoice 1001,true\n'
    'ch_2,2024-02-02 04:30:00,80.00,Invoice 1002,true\n'
    'ch_3,2024-02-03 12:00:00,55.00,Invoice 1003,false\n'
    'ch_4,2024-02-04 12:00:00,0.00,Invoice 1004,true\n'
)

ofx_sample = (
    'OFXHEADER:100\n'
    'DATA:OFXSGML\n'
    '<OFX>\n'
    '<BANKMSGSRSV1><STMTTRNRS><STMTRS><BANKTRANLIST>\n'
    '<STMTTRN>\n'
    '<TRNTYPE>DEBIT\n'
    '<DTPOSTED>20240115\n'
    '<TRNAMT>-45.00\n'
    '<MEMO>Coffee Shop\n'
    '</STMTTRN>\n'
    '<STMTTRN>\n'
    '<TRNTYPE>CREDIT\n'
    '<DTPOSTED>20240116120000[-5:EST]\n'
    '<TRNAMT>100.50\n'
    '<NAME>ACME PAYROLL\n'
    '<MEMO>Direct deposit\n'
    '</STMTTRN>\n'
    '<STMTTRN>\n'
    '<TRNAMT>10.00\n'
    '<NAME>No date\n'
    '</STMTTRN>\n'
    '</BANKTRANLIST></STMTRS></STMTTRNRS></BANKMSGSRSV1>\n'
    '</OFX>\n'
)


@pytest.fixture
def bank_upload():
    return UploadedFile(buffer=bank_csv_sample.encode('utf-8'), originalname='wells_jan.csv')


@pytest.fixture
def stripe_upload():
    return UploadedFile(buffer=stripe_csv_sample.encode('utf-8'), originalname='stripe_feb.csv')


@pytest.fixture
def ofx_upload():
    return UploadedFile(buffer=ofx_sample.encode('utf-8'), originalname='statement.OFX')


@pytest.fixture
def make_tx():
    """Helper fixture to build transactions with sensible defaults"""
    def _make_tx(**overrides):
        data = {
            'date': date(2024, 1, 15),
            'name': 'Test Transaction',
            'value': 100.00,
            'status': PENDING_STATEMENT,
            'source': 'Wells Fargo - test.csv',
        }
        data.update(overrides)
        return Transaction(**data)
    return _make_tx


@pytest.fixture
def zelle_statement(make_tx):
    """Bank Zelle deposit with an extracted depositor."""
    return make_tx(
        date=date(2024, 1, 15),
        name='ZELLE FROM JOHN SMITH ON 01/15 REF # ABC123',
        value=500.00,
        payment_method='Zelle',
        depositor='John Smith',
        source='Wells Fargo - x.csv',
    )


@pytest.fixture
def card_statement(make_tx):
    """Processor payment without a payer name."""
    return make_tx(
        date=date(2024, 2, 1),
        name='Credit Card Payment',
        value=120.00,
        payment_method='Credit Card',
        source='Stripe - y.csv',
    )


@pytest.fixture
def store():
    return MemStorage()
