import csv
import io
from datetime import datetime
from decimal import Decimal

import pytest

from conftest import make_row

from cnpj_enricher.core.output import OUTPUT_HEADER
from cnpj_enricher.jobs import process_file, upload_server
from cnpj_enricher.models import EnrichedCompany


@pytest.fixture
def client(monkeypatch, tmp_path):
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path))
    monkeypatch.setenv("ROW_DELAY_SECONDS", "0")
    calls = []

    def fake_lookup(cnpj, base_url=None, timeout=None):
        calls.append(cnpj)
        return EnrichedCompany(cnpj=cnpj, razao_social="ACME", capital_social=Decimal("75000"))

    monkeypatch.setattr(process_file.minhareceita, "lookup_company", fake_lookup)
    test_client = upload_server.app.test_client()
    test_client.lookups = calls
    return test_client


def _upload(client, content, filename="export.csv"):
    data = {"file": (io.BytesIO(content), filename)}
    return client.post("/upload", data=data, content_type="multipart/form-data")


def test_index_serves_upload_form(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert 'name="file"' in body
    assert 'action="/upload"' in body


def test_health_endpoint(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_upload_processes_file(client, tmp_path):
    content = (";".join(make_row()) + "\n").encode("utf-8")

    response = _upload(client, content)

    assert response.status_code == 200
    assert response.mimetype == "text/plain"
    text = response.get_data(as_text=True)
    assert "export.csv" in text
    outputs = list(tmp_path.glob("empresas_capital_maior_50000_*.csv"))
    assert len(outputs) == 1
    assert outputs[0].name in text
    with outputs[0].open(newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))
    assert rows[0] == OUTPUT_HEADER
    assert rows[1][0] == "11222333000181"
    assert rows[1][3] == "75000.00"
    assert client.lookups == ["11222333000181"]


def test_upload_requires_file_field(client):
    response = client.post("/upload", data={}, content_type="multipart/form-data")
    assert response.status_code == 400


def test_upload_rejects_form_without_selected_file(client, tmp_path):
    response = _upload(client, b"", filename="")

    assert response.status_code == 400
    assert list(tmp_path.glob("*.csv")) == []
    assert client.lookups == []


def test_upload_rejects_undecodable_csv(client, tmp_path):
    response = _upload(client, b"\xff\xfe;\x00\n")
    assert response.status_code == 400
    assert list(tmp_path.glob("*.csv")) == []


def test_upload_reports_unwritable_output_dir(client, monkeypatch, tmp_path):
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "missing"))
    response = _upload(client, b"a;b\n")
    assert response.status_code == 500


def test_upload_rejects_oversized_body(client, monkeypatch):
    monkeypatch.setitem(upload_server.app.config, "MAX_CONTENT_LENGTH", 64)
    response = _upload(client, b"x" * 1024)
    assert response.status_code == 413


def test_upload_requires_post(client):
    assert client.get("/upload").status_code == 405


def test_uploads_started_in_same_second_keep_separate_outputs(client, monkeypatch, tmp_path):
    class FrozenDatetime:
        @staticmethod
        def now():
            return datetime(2024, 3, 5, 14, 7, 9)

    monkeypatch.setattr(upload_server, "datetime", FrozenDatetime)
    first = _upload(client, (";".join(make_row()) + "\n").encode("utf-8"))
    second = _upload(client, (";".join(make_row(order="0002", check="62")) + "\n").encode("utf-8"))

    assert first.status_code == 200
    assert second.status_code == 200
    outputs = sorted(tmp_path.glob("empresas_capital_maior_50000_*.csv"))
    assert [path.name for path in outputs] == [
        "empresas_capital_maior_50000_20240305140709.csv",
        "empresas_capital_maior_50000_20240305140710.csv",
    ]
    assert outputs[1].name in second.get_data(as_text=True)
    for path, cnpj in zip(outputs, ["11222333000181", "11222333000262"]):
        with path.open(newline="", encoding="utf-8") as fh:
            rows = list(csv.reader(fh))
        assert [row[0] for row in rows] == ["CNPJ", cnpj]
