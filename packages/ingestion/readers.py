"""Raw row readers for CSV and Excel statements.

Both readers return the sheet as a list of rows (lists of cells) without
assuming where the header is; adapters locate their own header row.
Encrypted workbooks are decrypted with msoffcrypto; legacy .xls is read
with xlrd and .xlsx with openpyxl.
"""

import io
from typing import Any, List, Optional

import msoffcrypto
import pandas as pd
import structlog

from .errors import DecryptionError, FormatValidationError, PasswordRequiredError

logger = structlog.get_logger()

# OLE2 compound document magic. Encrypted .xlsx and legacy .xls both use it
_OLE2_MAGIC = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1"

CSV_ENCODINGS = ("utf-8", "utf-8-sig", "latin-1", "cp1252")

Row = List[Any]


def _is_ole2(file_content: bytes) -> bool:
    """OLE2 magic: an encrypted workbook or a legacy .xls."""
    return file_content[:8] == _OLE2_MAGIC


def _frame_to_rows(df: pd.DataFrame) -> List[Row]:
    df = df.astype(object).where(pd.notna(df), None)
    return [list(row) for row in df.itertuples(index=False, name=None)]


def read_csv_rows(content: bytes, nrows: Optional[int] = None) -> List[Row]:
    """Read delimited text into rows of strings, blank lines dropped."""
    for encoding in CSV_ENCODINGS:
        try:
            df = pd.read_csv(
                io.BytesIO(content),
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                skipinitialspace=True,
                encoding=encoding,
                nrows=nrows,
                on_bad_lines="skip",
                engine="python",
            )
        except UnicodeDecodeError:
            continue
        except pd.errors.EmptyDataError:
            return []
        logger.debug("csv_read", rows=len(df), encoding=encoding)
        return [[cell.strip() if isinstance(cell, str) else cell for cell in row] for row in _frame_to_rows(df)]

    raise FormatValidationError("Could not decode CSV file with any known encoding")


def decrypt_workbook(file_content: bytes, password: Optional[str]) -> io.BytesIO:
    """Return a readable workbook stream, decrypting OLE2 containers.

    An OLE2 container that is not encrypted is a legacy .xls workbook and
    is returned as is.
    """
    if not _is_ole2(file_content):
        # Plain .xlsx (zip based), nothing to decrypt
        return io.BytesIO(file_content)

    try:
        office_file = msoffcrypto.OfficeFile(io.BytesIO(file_content))
        encrypted = office_file.is_encrypted()
    except Exception as e:
        # msoffcrypto only understands encrypted containers; let the reader decide
        logger.debug("ole2_not_encrypted", error=str(e))
        encrypted = False

    if not encrypted:
        return io.BytesIO(file_content)
    if not password:
        raise PasswordRequiredError("Password required to open this workbook")

    decrypted = io.BytesIO()
    try:
        office_file.load_key(password=password)
        office_file.decrypt(decrypted)
    except Exception as e:
        msg = str(e).lower()
        if "password" in msg or "decrypt" in msg or "key" in msg:
            raise DecryptionError("Invalid password") from e
        raise DecryptionError(f"Failed to decrypt file: {e}") from e

    decrypted.seek(0)
    return decrypted


def excel_engine(workbook: io.BytesIO) -> str:
    """xlrd for legacy .xls (OLE2), openpyxl for .xlsx."""
    return "xlrd" if _is_ole2(workbook.getvalue()[:8]) else "openpyxl"


def read_excel_rows(
    file_content: bytes, password: Optional[str] = None, nrows: Optional[int] = None
) -> List[Row]:
    """Read the first worksheet into rows of native cell values."""
    workbook = decrypt_workbook(file_content, password)
    engine = excel_engine(workbook)
    try:
        df = pd.read_excel(workbook, header=None, nrows=nrows, engine=engine, dtype=object)
    except Exception as e:
        raise FormatValidationError(f"Could not read Excel file: {e}") from e

    logger.debug("excel_read", rows=len(df), columns=len(df.columns), engine=engine)
    return _frame_to_rows(df)
