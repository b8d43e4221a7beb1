import pytest
from fastapi.testclient import TestClient

from apps.api.core.config import Settings
from apps.api.deps import build_services, get_services
from apps.api.main import app
from packages.storage.memory import InMemoryStore
from packages.storage.models import Account

HDFC_CSV = (
    "Date,Narration,Value Dat,Debit Amount,Credit Amount,Chq/Ref Number,Closing Balance\n"
    "01/03/24,UPI-SWIGGY-swiggy@icici-412345678901-Order,01/03/24,250.00,0.00,412345678901,9750.00\n"
    "05/03/24,NEFT CR-ACME CORP SALARY MAR,05/03/24,0.00,90000.00,N123,99750.00\n"
    "07/03/24,IMPS-412345678901-SELF TRANSFER-SBI-XX1234,07/03/24,50000.00,0.00,412345678901,49750.00\n"
).encode("utf-8")


@pytest.fixture
def services():
    settings = Settings(_env_file=None, STORAGE_BACKEND="memory", MAX_UPLOAD_BYTES=1024 * 1024)
    return build_services(settings, store=InMemoryStore())


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    c = TestClient(app, raise_server_exceptions=False)
    yield c
    app.dependency_overrides.clear()


@pytest.fixture
def account(services):
    return services.store.save_account(
        Account(name="Savings", bank_name="HDFC Bank", account_number="50100012349999")
    )


@pytest.fixture
def hdfc_csv():
    return HDFC_CSV


@pytest.fixture
def imported(client, account, hdfc_csv):
    """The HDFC sample statement imported into ``account``."""
    response = client.post(
        "/api/v1/ingest/import",
        files={"file": ("march.csv", hdfc_csv, "text/csv")},
        data={"account_id": account.id, "bank": "HDFC"},
    )
    assert response.status_code == 200
    return response.json()
