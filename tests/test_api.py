import pytest
from fastapi.testclient import TestClient

from statement_ingest.database import get_db
from statement_ingest.main import app
from statement_ingest.routers.ingestion import get_mt940_pipeline, get_van_pipeline


@pytest.fixture
def client(db, mt940_pipe, van_pipe):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mt940_pipeline] = lambda: mt940_pipe
    app.dependency_overrides[get_van_pipeline] = lambda: van_pipe
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_ingest_mt940_returns_poll_report(client, layout, mt940_message):
    (layout.inbox / "stmt.sta").write_text(mt940_message())

    response = client.post("/api/mt940/ingest")

    assert response.status_code == 200
    body = response.json()
    assert body["pipeline"] == "MT940"
    [file_report] = body["files"]
    assert file_report["filename"] == "stmt.sta"
    assert file_report["outcome"] == "ARCHIVED"
    assert file_report["status"] == "IMPORTED"
    assert file_report["processed"] == 1


def test_ingest_with_empty_inbox(client):
    response = client.post("/api/van/ingest")

    assert response.status_code == 200
    assert response.json() == {"pipeline": "VAN", "files": []}


def test_history_lists_runs_with_filters(client, layout, mt940_message, van_row, van_csv):
    (layout.inbox / "stmt.sta").write_text(mt940_message())
    client.post("/api/mt940/ingest")
    (layout.inbox / "credits.csv").write_text(van_csv([van_row()]))
    client.post("/api/van/ingest")

    all_runs = client.get("/api/imports/history").json()
    van_runs = client.get("/api/imports/history", params={"file_type": "VAN"}).json()

    assert sorted(run["file_type"] for run in all_runs) == ["MT940", "VAN"]
    assert [run["filename"] for run in van_runs] == ["credits.csv"]
    assert van_runs[0]["status"] == "IMPORTED"


def test_history_rejects_unknown_file_type(client):
    assert client.get("/api/imports/history", params={"file_type": "PDF"}).status_code == 422


def test_history_detail_includes_errors(client, layout, van_row, van_csv):
    rows = [van_row(), van_row(**{"Virtual Account Number (VAN)": ""})]
    (layout.inbox / "credits.csv").write_text(van_csv(rows))
    report = client.post("/api/van/ingest").json()
    run_id = report["files"][0]["import_run_id"]

    response = client.get(f"/api/imports/history/{run_id}")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "PARTIAL"
    assert body["processed_records"] == 1
    assert [(e["code"], e["line_no"]) for e in body["errors"]] == [("MISSING_VIRTUAL_ACCOUNT", 3)]


def test_history_detail_not_found(client):
    response = client.get("/api/imports/history/9999")

    assert response.status_code == 404
    assert response.json()["detail"] == "Import not found"
