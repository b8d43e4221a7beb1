import io

import pytest
from openpyxl import Workbook

from packages.ingestion.models import StatementFile
from packages.ingestion.registry import build_default_registry
from packages.storage.memory import InMemoryStore

HDFC_HEADER = "Date,Narration,Value Dat,Debit Amount,Credit Amount,Chq/Ref Number,Closing Balance"

HDFC_ROWS = [
    "01/03/24,UPI-SWIGGY-swiggy@icici-412345678901-Order,01/03/24,250.00,0.00,412345678901,9750.00",
    "05/03/24,NEFT CR-ACME CORP SALARY MAR,05/03/24,0.00,90000.00,N123,99750.00",
    "07/03/24,IMPS-412345678901-SELF TRANSFER-SBI-XX1234,07/03/24,50000.00,0.00,412345678901,49750.00",
]

SBI_METADATA = [
    ["Account Name", "MR JOHN DOE"],
    ["Account Number", "00000012345678901"],
    ["Statement From : 01-03-2024 to 31-03-2024"],
]

SBI_HEADER = ["Txn Date", "Value Date", "Description", "Ref No./Cheque No.", "Debit", "Credit", "Balance"]

SBI_ROWS = [
    [
        "01 Mar 2024",
        "01 Mar 2024",
        "TO TRANSFER-UPI/DR/412345678901/SWIGGY/YESB/swiggy@ybl/UPI--",
        "TRANSFER TO 4897691162095",
        250.0,
        None,
        9750.0,
    ],
    [
        "02 Mar 2024",
        "02 Mar 2024",
        "BY TRANSFER-NEFT*INDB0000006*INDBN03101211261*Upwork Escrow In--",
        None,
        None,
        90000.0,
        99750.0,
    ],
    ["Note: UPI reversal pending"],
    [
        "07 Mar 2024",
        "07 Mar 2024",
        "TO TRANSFER-IMPS/506815916615/HDFC-xx991-sagar hd/Self--",
        "MMT/IMPS/506815916615",
        50000.0,
        None,
        49750.0,
    ],
]


def hdfc_csv(rows=None, header=HDFC_HEADER) -> bytes:
    lines = [header] + list(HDFC_ROWS if rows is None else rows)
    return ("\n".join(lines) + "\n").encode("utf-8")


def xlsx_bytes(rows) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def sbi_workbook(rows=None, footer=True) -> bytes:
    body = SBI_METADATA + [SBI_HEADER] + list(SBI_ROWS if rows is None else rows)
    if footer:
        body.append(["Closing Balance", "", "", "", "", "", "49750.00"])
        body.append(["01 Apr 2024", "01 Apr 2024", "AFTER FOOTER", "", 1.0, None, 1.0])
    return xlsx_bytes(body)


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def hdfc_file():
    return StatementFile(name="hdfc.csv", content=hdfc_csv())


@pytest.fixture
def sbi_file():
    return StatementFile(name="sbi.xlsx", content=sbi_workbook())


@pytest.fixture
def make_hdfc_csv():
    return hdfc_csv


@pytest.fixture
def make_sbi_workbook():
    return sbi_workbook


@pytest.fixture
def make_xlsx():
    return xlsx_bytes
