import io
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from packages.ingestion.errors import DecryptionError, FormatValidationError, PasswordRequiredError
from packages.ingestion.readers import (
    decrypt_workbook,
    excel_engine,
    read_csv_rows,
    read_excel_rows,
)

OLE2_HEADER = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1" + b"\x00" * 56


def _office_file(encrypted=True, decrypt_error=None, payload=b""):
    office = MagicMock()
    office.is_encrypted.return_value = encrypted

    def decrypt(out):
        if decrypt_error:
            raise decrypt_error
        out.write(payload)

    office.decrypt.side_effect = decrypt
    return office


class TestCsv:
    def test_reads_rows_as_stripped_text(self):
        rows = read_csv_rows(b"Date , Narration\n 01/03/24 ,  UPI-SWIGGY  \n")
        assert rows == [["Date", "Narration"], ["01/03/24", "UPI-SWIGGY"]]

    def test_latin1_fallback(self):
        rows = read_csv_rows("Narration\nCAF\xc9 COFFEE\n".encode("latin-1"))
        assert rows[1] == ["CAF\xc9 COFFEE"]

    def test_empty(self):
        assert read_csv_rows(b"") == []

    def test_nrows(self):
        assert len(read_csv_rows(b"a\n1\n2\n3\n", nrows=2)) == 2


class TestExcel:
    def test_plain_xlsx(self, make_xlsx):
        rows = read_excel_rows(make_xlsx([["Txn Date", "Debit"], ["01 Mar 2024", 250.0]]))
        assert rows == [["Txn Date", "Debit"], ["01 Mar 2024", 250.0]]

    def test_not_a_workbook(self):
        with pytest.raises(FormatValidationError, match="Could not read Excel file"):
            read_excel_rows(b"plain text")

    def test_password_required(self):
        with patch("packages.ingestion.readers.msoffcrypto.OfficeFile", return_value=_office_file()):
            with pytest.raises(PasswordRequiredError):
                read_excel_rows(OLE2_HEADER)

    def test_wrong_password(self):
        office = _office_file(decrypt_error=Exception("The password is incorrect"))
        with patch("packages.ingestion.readers.msoffcrypto.OfficeFile", return_value=office):
            with pytest.raises(DecryptionError, match="Invalid password"):
                read_excel_rows(OLE2_HEADER, password="wrong")

    def test_other_decrypt_failure(self):
        office = _office_file(decrypt_error=Exception("unsupported cipher"))
        with patch("packages.ingestion.readers.msoffcrypto.OfficeFile", return_value=office):
            with pytest.raises(DecryptionError, match="Failed to decrypt file"):
                read_excel_rows(OLE2_HEADER, password="secret")

    def test_decrypts_with_password(self, make_xlsx):
        office = _office_file(payload=make_xlsx([["Txn Date", "Debit"], ["01 Mar 2024", 250.0]]))
        with patch("packages.ingestion.readers.msoffcrypto.OfficeFile", return_value=office):
            rows = read_excel_rows(OLE2_HEADER, password="secret")
        office.load_key.assert_called_once_with(password="secret")
        assert rows[1] == ["01 Mar 2024", 250.0]

    def test_unencrypted_ole2_passes_through(self):
        with patch(
            "packages.ingestion.readers.msoffcrypto.OfficeFile",
            return_value=_office_file(encrypted=False),
        ):
            assert decrypt_workbook(OLE2_HEADER, None).getvalue() == OLE2_HEADER

    def test_unrecognized_container_passes_through(self):
        with patch("packages.ingestion.readers.msoffcrypto.OfficeFile", side_effect=Exception("bad")):
            assert decrypt_workbook(OLE2_HEADER, "secret").getvalue() == OLE2_HEADER

    def test_legacy_xls_read_with_xlrd(self):
        frame = pd.DataFrame([["Txn Date", "Debit"], ["01 Mar 2024", 250.0]])
        with patch(
            "packages.ingestion.readers.msoffcrypto.OfficeFile",
            return_value=_office_file(encrypted=False),
        ), patch("packages.ingestion.readers.pd.read_excel", return_value=frame) as read_excel:
            rows = read_excel_rows(OLE2_HEADER)
        assert read_excel.call_args.kwargs["engine"] == "xlrd"
        assert rows[1] == ["01 Mar 2024", 250.0]

    def test_broken_legacy_xls(self):
        with patch("packages.ingestion.readers.msoffcrypto.OfficeFile", side_effect=Exception("bad")):
            with pytest.raises(FormatValidationError, match="Could not read Excel file"):
                read_excel_rows(OLE2_HEADER)

    def test_engine_selection(self, make_xlsx):
        assert excel_engine(io.BytesIO(OLE2_HEADER)) == "xlrd"
        assert excel_engine(io.BytesIO(make_xlsx([["a"]]))) == "openpyxl"
