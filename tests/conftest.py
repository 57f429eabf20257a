import io

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from auth import create_access_token
from incident_wizard import session_manager
from main import app
from routers.auth import new_user_document
from storage import StorageBackend, StorageError, get_storage


class FakeStorage(StorageBackend):
    """In-memory object store"""

    storage_type = "other"

    def __init__(self):
        self.objects = {}

    def put(self, key, data, content_type=None):
        self.objects[key] = data.read()
        return key

    def upload_file(self, path, key, content_type=None):
        with open(path, "rb") as f:
            return self.put(key, f, content_type)

    def delete(self, key):
        return self.objects.pop(key, None) is not None

    def presigned_url(self, key, expires_in=None):
        if not key:
            raise StorageError("Chave do ficheiro em falta")
        return f"https://signed.test/{key}?sig=1"

    def presigned_upload_url(self, key, content_type, expires_in=None):
        return f"https://signed.test/{key}?upload=1"


@pytest.fixture(autouse=True)
def mongo(monkeypatch):
    db = mongomock.MongoClient().db
    monkeypatch.setattr(database, "db", db)
    database.ensure_indexes()
    yield db
    session_manager.active_sessions.clear()


@pytest.fixture
def storage():
    fake = FakeStorage()
    app.dependency_overrides[get_storage] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_storage, None)


@pytest.fixture
def client(storage):
    return TestClient(app)


def make_user(db, name, email, role="user", password="secret123", **extra):
    doc = new_user_document(name, email, password, role, extra.pop("department", None), verified=True)
    doc.update(extra)
    doc["_id"] = db.users.insert_one(doc).inserted_id
    user_id = str(doc["_id"])
    return {
        "id": user_id,
        "doc": doc,
        "headers": {"Authorization": f"Bearer {create_access_token(user_id, role)}"},
    }


@pytest.fixture
def user(mongo):
    return make_user(mongo, "Ana Silva", "ana@robbialac.pt")


@pytest.fixture
def other_user(mongo):
    return make_user(mongo, "Bruno Costa", "bruno@robbialac.pt")


@pytest.fixture
def admin(mongo):
    return make_user(mongo, "Admin App", "admin@robbialac.pt", role="admin_app")


@pytest.fixture
def qa_admin(mongo):
    return make_user(mongo, "Admin QA", "qa@robbialac.pt", role="admin_qa")


@pytest.fixture
def departments(mongo):
    names = ["Produção", "Manutenção", "Logística"]
    for name in names:
        mongo.departments.insert_one({"name": name, "employeeCount": 10, "color": "#FF4B4B", "active": True})
    return names


def pdf_file(name="relatorio.pdf", content=b"%PDF-1.4 test"):
    return {"document": (name, io.BytesIO(content), "application/pdf")}
