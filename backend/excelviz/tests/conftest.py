import os, tempfile

# must be in place before excelviz.config builds its settings
_tmp = tempfile.mkdtemp(prefix="excelviz-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_tmp, "test.db")
os.environ["UPLOAD_DIR"] = os.path.join(_tmp, "uploads")
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ADMIN_CODE"] = "letmein"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.pop("SEED_ADMIN_EMAIL", None)

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

from excelviz.config import get_settings
from excelviz.database import Base, engine, SessionLocal
from excelviz.main import app
from excelviz.models import User
from excelviz.utils import hash_password, create_access_token


@pytest.fixture(autouse=True)
def fresh_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role="user", status="active", name=None, email=None, password="secret123", created_at=None):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"User {n}",
            email=email or f"user{n}@example.com",
            password_hash=hash_password(password, 4),
            role=role,
            status=status,
        )
        if created_at is not None:
            user.created_at = created_at
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def auth_header(settings):
    def _header(user):
        token = create_access_token({"sub": str(user.id), "role": user.role}, settings)
        return {"Authorization": f"Bearer {token}"}
    return _header


@pytest.fixture
def workbook_file(tmp_path):
    def _write(rows, name="sales.xlsx"):
        wb = Workbook()
        ws = wb.active
        for row in rows:
            ws.append(row)
        path = tmp_path / name
        wb.save(path)
        return path
    return _write
