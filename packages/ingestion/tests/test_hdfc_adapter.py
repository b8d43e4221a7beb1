"""Tests for the HDFC CSV adapter."""

from datetime import date

import pytest

from packages.ingestion.adapters.hdfc import HDFCStatementAdapter, validate_headers
from packages.ingestion.errors import FormatValidationError, NoTransactionsError
from packages.ingestion.models import StatementFile


@pytest.fixture
def adapter():
    return HDFCStatementAdapter()


class TestDetection:
    @pytest.mark.parametrize(
        "narration",
        [
            "UPI-SWIGGY-swiggy@icici",
            "NEFT CR-ACME CORP",
            "IMPS-412345678901-JOHN",
            "IB BILLPAY DR-HDFCCARD",
            "ATW-512345XXXXXX1234-S1ANMU01-MUMBAI",
            "4111111111111111/AMAZON",
        ],
    )
    def test_can_handle(self, adapter, narration):
        assert adapter.can_handle(narration)

    def test_rejects_foreign_narrations(self, adapter):
        assert not adapter.can_handle("TO TRANSFER-UPI/DR/1/X")
        assert not adapter.can_handle("")

    def test_header_validation(self):
        assert validate_headers(["Date", "Narration", "Withdrawal Amt.", "Deposit Amt.", "Closing Balance"])
        assert validate_headers(["Date", "Narration", "Debit Amount", "Credit Amount"])
        assert not validate_headers(["Date", "Narration", "Amount"])
        assert not validate_headers([])

    def test_can_parse_file(self, adapter, hdfc_file):
        assert adapter.can_parse_file(hdfc_file)
        assert not adapter.can_parse_file(StatementFile(name="x.csv", content=b"a,b,c\n1,2,3\n"))
        assert not adapter.can_parse_file(StatementFile(name="x.xlsx", content=hdfc_file.content))


class TestParse:
    def test_parses_rows(self, adapter, hdfc_file):
        result = adapter.parse(hdfc_file)
        assert len(result.transactions) == 3
        assert result.error_count == 0

        swiggy, salary, transfer = result.transactions
        assert swiggy.date == date(2024, 3, 1)
        assert swiggy.amount == -250.0
        assert swiggy.transaction_type == "debit"
        assert swiggy.balance == 9750.0
        assert swiggy.reference_no == "412345678901"
        assert swiggy.source == "HDFC-CSV"
        assert swiggy.bank_name == "HDFC Bank"
        assert swiggy.original_data["debit_amount"] == "250.00"

        assert salary.amount == 90000.0
        assert salary.transaction_type == "credit"
        assert transfer.amount == -50000.0

    def test_padded_cells(self, adapter, make_hdfc_csv):
        content = make_hdfc_csv(
            ["  01/03/24  ,  UPI-ZOMATO-zomato@hdfc-1-Order   ,01/03/24,  120.00 ,  0.00 ,1,  880.00 "]
        )
        txn = adapter.parse(StatementFile(name="s.csv", content=content)).transactions[0]
        assert txn.description == "UPI-ZOMATO-zomato@hdfc-1-Order"
        assert txn.amount == -120.0

    def test_bad_rows_are_skipped(self, adapter, make_hdfc_csv):
        content = make_hdfc_csv(
            [
                "01/03/24,UPI-SWIGGY-x@icici-1-Order,01/03/24,250.00,0.00,1,9750.00",
                "xx/yy/zz,BROKEN DATE,01/03/24,1.00,0.00,2,9749.00",
                "02/03/24,NO AMOUNT,02/03/24,0.00,0.00,3,9749.00",
                ",,,,,,",
            ]
        )
        progress = []
        result = adapter.parse(StatementFile(name="s.csv", content=content), progress.append)
        assert len(result.transactions) == 1
        assert result.skipped_rows == 3
        assert progress[-1].stage == "complete"
        stages = list(dict.fromkeys(p.stage for p in progress))
        assert stages == ["detecting", "reading", "parsing", "validating", "complete"]

    def test_invalid_headers(self, adapter):
        with pytest.raises(FormatValidationError, match="Expected HDFC bank statement headers"):
            adapter.parse(StatementFile(name="s.csv", content=b"Foo,Bar\n1,2\n"))

    def test_no_transactions(self, adapter, make_hdfc_csv):
        content = make_hdfc_csv(["02/03/24,NO AMOUNT,02/03/24,0.00,0.00,3,9749.00"])
        with pytest.raises(NoTransactionsError):
            adapter.parse(StatementFile(name="s.csv", content=content))


class TestFingerprint:
    def test_deterministic(self, adapter, hdfc_file):
        first = adapter.parse(hdfc_file).transactions[0]
        second = adapter.parse(hdfc_file).transactions[0]
        assert adapter.generate_fingerprint(first, "acc-1") == adapter.generate_fingerprint(second, "acc-1")

    def test_account_scoped(self, adapter, hdfc_file):
        txn = adapter.parse(hdfc_file).transactions[0]
        assert adapter.generate_fingerprint(txn, "acc-1") != adapter.generate_fingerprint(txn, "acc-2")

    def test_whitespace_insensitive_description(self, adapter, hdfc_file):
        txn = adapter.parse(hdfc_file).transactions[0]
        fp = adapter.generate_fingerprint(txn, "acc-1")
        txn.description = txn.description.replace("-Order", "- Order")
        assert adapter.generate_fingerprint(txn, "acc-1") == fp


class TestNarration:
    @pytest.mark.parametrize(
        "narration,key",
        [
            ("UPI-SWIGGY-swiggy@icici-412345678901-Order", "SWIGGY"),
            ("UPI-RAZORPAY-razorpay@axis-1-PAYMENT", "AXIS"),
            ("IB BILLPAY DR-HDFCCARD", "BILLPAY"),
            ("NEFT CR-ACME CORP SALARY MAR", "ACME"),
            ("ATW-512345XXXXXX1234-S1ANMU01-MUMBAI", "512345XXXXXX1234"),
            ("", "UNKNOWN"),
        ],
    )
    def test_merchant_key(self, adapter, narration, key):
        assert adapter.extract_merchant_key(narration) == key

    def test_self_transfer_hint(self, adapter):
        hints = adapter.extract_hints("IMPS-412345678901-SELF TRANSFER")
        assert hints.is_self_transfer
        assert hints.possible_category == "transfers"

    def test_type_hints(self, adapter):
        assert adapter.extract_hints("IB BILLPAY DR-HDFCCARD").transaction_type == "billpay"
        assert adapter.extract_hints("ATW-512345XXXXXX1234").transaction_type == "atm"
        assert adapter.extract_hints("NEFT CR-ACME").transaction_type == "credit"
        assert adapter.extract_hints("IB BILLPAY CREDIT CARD").transaction_type == "credit"
        assert adapter.extract_hints("UPI-SWIGGY").transaction_type is None
