import os
import pytest
from sqlalchemy.exc import OperationalError
from excelviz import crud
from excelviz.errors import StorageError, ValidationError
from excelviz.models import Upload

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _post(client, headers, path, name=None, content_type=XLSX):
    with open(path, "rb") as f:
        return client.post(
            "/api/upload/excel",
            headers=headers,
            files={"excel_file": (name or os.path.basename(path), f, content_type)},
        )


def _upload_dir_files(settings):
    if not os.path.isdir(settings.upload_dir):
        return []
    return os.listdir(settings.upload_dir)


def test_sales_scenario(client, make_user, auth_header, workbook_file, db, settings):
    user = make_user(role="user")
    headers = auth_header(user)
    path = workbook_file([["Name", "Salary"], ["Bob", 50000], ["Ann", 60000]], name="sales.xlsx")

    res = _post(client, headers, path)
    assert res.status_code == 200
    body = res.json()
    assert body["data"] == [{"Name": "Bob", "Salary": 50000}, {"Name": "Ann", "Salary": 60000}]
    assert body["message"] == "Upload successful"

    stored = db.get(Upload, body["upload_id"])
    assert stored.original_name == "sales.xlsx"
    assert stored.uploaded_by == user.id
    assert stored.columns == ["Name", "Salary"]
    assert stored.row_count == 2
    assert _upload_dir_files(settings) == []

    res = client.post("/api/history", headers=headers, json={
        "file_name": "sales.xlsx", "x_axis": "Name", "y_axis": "Salary", "chart_type": "Bar",
    })
    assert res.status_code == 201
    entries = client.get("/api/history", headers=headers).json()["data"]
    assert len(entries) == 1
    assert entries[0]["file_name"] == "sales.xlsx"
    assert entries[0]["x_axis"] == "Name"
    assert entries[0]["y_axis"] == "Salary"
    assert entries[0]["chart_type"] == "Bar"


def test_admin_upload_message(client, make_user, auth_header, workbook_file):
    admin = make_user(role="admin")
    res = _post(client, auth_header(admin), workbook_file([["A"], [1]]))
    assert res.json()["message"] == "Admin upload successful"


def test_non_excel_is_rejected(client, make_user, auth_header, tmp_path):
    path = tmp_path / "notes.csv"
    path.write_text("a,b\n1,2\n")
    res = _post(client, auth_header(make_user()), path, content_type="text/csv")
    assert res.status_code == 400
    assert res.json()["error"] == "unsupported_file_type"


def test_oversized_file_is_413(client, make_user, auth_header, tmp_path, settings):
    path = tmp_path / "big.xlsx"
    path.write_bytes(b"0" * (settings.max_upload_bytes + 10))
    res = _post(client, auth_header(make_user()), path)
    assert res.status_code == 413
    assert res.json()["error"] == "file_too_large"


def test_unparseable_file_is_cleaned_up(client, make_user, auth_header, tmp_path, settings, db):
    path = tmp_path / "broken.xlsx"
    path.write_bytes(b"definitely not a zip")
    res = _post(client, auth_header(make_user()), path)
    assert res.status_code == 400
    assert res.json()["error"] == "parse_error"
    assert _upload_dir_files(settings) == []
    assert db.query(Upload).count() == 0


def test_upload_requires_token(client, workbook_file):
    res = _post(client, {}, workbook_file([["A"], [1]]))
    assert res.status_code == 401


def test_list_and_fetch_own_uploads(client, make_user, auth_header, db):
    owner, other = make_user(), make_user()
    upload = crud.create_upload(db, [{"A": 1}, {"A": 2, "B": "x"}], owner, "f.xlsx", "stored.xlsx")
    assert upload.columns == ["A", "B"]

    listed = client.get("/api/upload/excel", headers=auth_header(owner)).json()
    assert [u["id"] for u in listed] == [upload.id]
    detail = client.get(f"/api/upload/excel/{upload.id}", headers=auth_header(owner)).json()
    assert detail["data"] == [{"A": 1}, {"A": 2, "B": "x"}]

    res = client.get(f"/api/upload/excel/{upload.id}", headers=auth_header(other))
    assert res.status_code == 404


def test_admin_deletes_upload(client, make_user, auth_header, db):
    owner, admin = make_user(), make_user(role="admin")
    upload = crud.create_upload(db, [{"A": 1}], owner, "f.xlsx", "stored.xlsx")
    assert client.delete(f"/api/upload/excel/{upload.id}", headers=auth_header(owner)).status_code == 403
    assert client.delete(f"/api/upload/excel/{upload.id}", headers=auth_header(admin)).status_code == 200
    assert client.delete(f"/api/upload/excel/{upload.id}", headers=auth_header(admin)).status_code == 404


def test_create_upload_rejects_non_mapping_rows(db, make_user):
    with pytest.raises(ValidationError):
        crud.create_upload(db, [["not", "a", "mapping"]], make_user(), "f.xlsx", "s.xlsx")


def test_storage_failure_is_storage_error(db, make_user, monkeypatch):
    user = make_user()

    def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("database is unreachable"))

    monkeypatch.setattr(db, "commit", broken_commit)
    with pytest.raises(StorageError):
        crud.create_upload(db, [{"A": 1}], user, "f.xlsx", "s.xlsx")


def test_upload_route_storage_failure(client, make_user, auth_header, workbook_file, settings,
                                      monkeypatch):
    from dataclasses import replace
    from sqlalchemy.orm import Session
    from excelviz import main

    headers = auth_header(make_user())
    path = workbook_file([["A"], [1]])

    def broken_commit(self):
        raise OperationalError("COMMIT", {}, Exception("database is unreachable"))

    monkeypatch.setattr(Session, "commit", broken_commit)
    monkeypatch.setattr(main, "settings", replace(settings, environment="production"))

    res = _post(client, headers, path)
    assert res.status_code == 500
    assert res.json() == {"success": False, "error": "storage_error", "message": "Failed to save upload"}
    assert _upload_dir_files(settings) == []


def test_partial_write_is_removed(client, make_user, auth_header, workbook_file, settings,
                                  monkeypatch, db):
    from excelviz.routers import uploads as uploads_router

    headers = auth_header(make_user())
    path = workbook_file([["A"], [1]])
    real_open = open

    def disk_full_open(file, mode="r", *args, **kwargs):
        f = real_open(file, mode, *args, **kwargs)
        f.write(b"PK\x03\x04")
        f.close()
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(uploads_router, "open", disk_full_open, raising=False)

    res = _post(client, headers, path)
    assert res.status_code == 500
    assert res.json()["error"] == "storage_error"
    assert _upload_dir_files(settings) == []
    assert db.query(Upload).count() == 0
