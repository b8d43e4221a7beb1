"""Tests for the statement CLI."""

from packages.categorization import cli

HDFC_CSV = (
    "Date,Narration,Value Dat,Debit Amount,Credit Amount,Chq/Ref Number,Closing Balance\n"
    "01/03/24,UPI-SWIGGY-swiggy@icici-412345678901-Order,01/03/24,250.00,0.00,412345678901,9750.00\n"
    "05/03/24,NEFT CR-ACME CORP SALARY MAR,05/03/24,0.00,90000.00,N123,99750.00\n"
    "07/03/24,POS 4111XXXX INDIAN OIL FILLING STATION,07/03/24,2000.00,0.00,0000,97750.00\n"
)


def _write(tmp_path, content=HDFC_CSV, name="statement.csv"):
    path = tmp_path / name
    path.write_text(content)
    return str(path)


def test_parse_prints_rows(tmp_path, capsys):
    code = cli.main(["parse", _write(tmp_path), "--bank", "HDFC"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Found 3 transactions." in out
    assert "2024-03-01" in out
    assert "-250.00" in out


def test_parse_reports_format_error(tmp_path, capsys):
    code = cli.main(["parse", _write(tmp_path, "a,b,c\n1,2,3\n"), "--bank", "HDFC"])
    assert code == 1
    assert "Error parsing file" in capsys.readouterr().out


def test_keys(capsys):
    code = cli.main(["keys", "UPI-SWIGGY-swiggy@icici-412345678901-Order", "--bank", "HDFC"])
    out = capsys.readouterr().out
    assert code == 0
    assert "SWIGGY" in out


def test_categorize(tmp_path, capsys):
    code = cli.main(["categorize", _write(tmp_path), "--bank", "HDFC"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Imported 3 transactions" in out
    assert "food" in out
    assert "income" in out
    assert "transport" in out


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 0
    assert "usage" in capsys.readouterr().out
