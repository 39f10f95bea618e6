import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from statement_ingest.config import DirectoryLayout
from statement_ingest.database import create_tables, enable_sqlite_savepoints
from statement_ingest.services.mt940_ingestion import mt940_pipeline
from statement_ingest.services.van_ingestion import van_pipeline
from statement_ingest.services.van_parser import COLUMNS

ENVELOPE = "{1:F01BANKBEBBAXXX0000000000}{2:O9401200240103BANKBEBBAXXX00000000002401031200N}{4:"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def layout(tmp_path):
    layout = DirectoryLayout(
        inbox=tmp_path / "inbox",
        processing=tmp_path / "processing",
        archive=tmp_path / "archive",
        quarantine=tmp_path / "quarantine",
    )
    for directory in layout.all():
        directory.mkdir()
    return layout


@pytest.fixture
def mt940_pipe(layout):
    return mt940_pipeline(layout, stability_window=0)


@pytest.fixture
def van_pipe(layout):
    return van_pipeline(layout, stability_window=0)


@pytest.fixture
def mt940_message():
    """Build one enveloped MT940 message; amounts use the SWIFT comma"""
    def build(
        reference="STMT-1",
        account="NL81ASNB9999999999",
        sequence="1/1",
        opening="C240101EUR100,00",
        closing="C240103EUR130,00",
        lines=None,
        opening_tag="60F",
        closing_tag="62F",
    ):
        if lines is None:
            lines = [
                ":61:2401020102C50,00NTRFINV-1//BANKREF1",
                ":86:/EREF/INV-1/REMI/Invoice 1",
                ":61:2401030103D20,00NCHGNONREF//BANKREF2",
                ":86:?00Fee?20Monthly fee",
            ]
        body = [
            ENVELOPE,
            f":20:{reference}",
            f":25:{account}",
            f":28C:{sequence}",
            f":{opening_tag}:{opening}",
            *lines,
            f":{closing_tag}:{closing}",
            "-}",
        ]
        return "\n".join(body) + "\n"

    return build


@pytest.fixture
def van_row():
    """A complete, valid VAN row keyed by header name"""
    def build(**overrides):
        row = {
            "Main Account Number": "50200012345678",
            "Virtual Account Number (VAN)": "VAN0001",
            "Transaction Reference Number": "TRN0001",
            "Bank Reference / Trace ID": "UTR0001",
            "Remitter Name": "Acme Traders",
            "Remitter Account Number": "00112233",
            "Remitter IFSC / Bank Name": "HDFC0000001",
            "Remitter VPA": "",
            "Transaction Date": "2024-01-02",
            "Value Date": "2024-01-02",
            "Amount (INR)": "1500.00",
            "Mode / Channel": "NEFT",
            "Payment Description / Narration": "Invoice 42",
            "Payment Status": "SUCCESS",
            "Mapped Customer ID / Code": "CUST-42",
            "Invoice / Reference ID": "INV-42",
            "Date & Time of Credit": "2024-01-02 10:15:00",
            "Branch / Bank Code": "BR001",
        }
        row.update(overrides)
        return row

    return build


@pytest.fixture
def van_csv():
    """Render VAN rows as CSV text with the full header"""
    def render(rows):
        header = list(COLUMNS)
        lines = [",".join(f'"{h}"' for h in header)]
        for row in rows:
            lines.append(",".join(f'"{row[h]}"' for h in header))
        return "\n".join(lines) + "\n"

    return render
