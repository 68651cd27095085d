import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.security import verify_api_key
from app.main import app
from app.services.storage.size_ledger import SizeLedger
from app.services.storage.size_ledger import get_size_ledger

MINIMAL_PDF = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"


# Dummy function to successfully override verify_api_key
async def override_verify_api_key_success():
    return True


@pytest.fixture
def pdf_bytes() -> bytes:
    return MINIMAL_PDF


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    directory = tmp_path / "reports"
    directory.mkdir()
    monkeypatch.setattr(settings, "report_upload_dir", directory, raising=False)
    return directory


@pytest.fixture
def ledger(tmp_path) -> SizeLedger:
    return SizeLedger(tmp_path / "cumulativeSize.json")


@pytest.fixture
def client(upload_dir, ledger):
    app.dependency_overrides[verify_api_key] = override_verify_api_key_success
    app.dependency_overrides[get_size_ledger] = lambda: ledger
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
