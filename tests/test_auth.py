from datetime import timedelta

from auth import create_access_token, hash_password, verify_password
from database import utcnow


def test_password_hash_roundtrip():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret123", None)


def test_register_creates_plain_user(client, mongo):
    response = client.post("/api/auth/register", json={
        "name": "Carla", "email": "Carla@robbialac.pt", "password": "secret123", "role": "admin_app",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["user"]["email"] == "carla@robbialac.pt"
    assert body["user"]["role"] == "user"
    stored = mongo.users.find_one({"email": "carla@robbialac.pt"})
    assert stored["password"] != "secret123"
    assert stored["points"] == 0


def test_register_duplicate_email(client, user):
    response = client.post("/api/auth/register", json={
        "name": "Ana", "email": "ana@robbialac.pt", "password": "secret123",
    })
    assert response.status_code == 400
    assert response.json() == {"message": "Email já cadastrado"}


def test_register_short_password_is_rejected(client):
    response = client.post("/api/auth/register", json={
        "name": "Ana", "email": "nova@robbialac.pt", "password": "123",
    })
    assert response.status_code == 400
    assert response.json()["message"] == "Dados inválidos"


def test_login_success_records_event(client, user, mongo):
    response = client.post("/api/auth/login", json={"email": "ana@robbialac.pt", "password": "secret123"})
    assert response.status_code == 200
    assert response.json()["user"]["id"] == user["id"]
    assert mongo.login_events.count_documents({"userId": user["id"]}) == 1


def test_login_wrong_password(client, user):
    response = client.post("/api/auth/login", json={"email": "ana@robbialac.pt", "password": "nope"})
    assert response.status_code == 401
    assert response.json() == {"message": "Credenciais inválidas"}


def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json() == {"message": "Token não fornecido"}


def test_me_rejects_bad_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json() == {"message": "Token inválido"}


def test_me_rejects_expired_token(client, user):
    token = create_access_token(user["id"], "user", expires_delta=timedelta(seconds=-10))
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_me_returns_user_without_password(client, user):
    response = client.get("/api/auth/me", headers=user["headers"])
    assert response.status_code == 200
    body = response.json()
    assert body["_id"] == user["id"]
    assert "password" not in body


def test_send_code_only_company_domain(client):
    response = client.post("/api/auth/send-code", json={"email": "someone@gmail.com"})
    assert response.status_code == 400


def test_send_code_and_verify_creates_user(client, mongo):
    response = client.post("/api/auth/send-code", json={"email": "novo@robbialac.pt"})
    assert response.status_code == 200
    code = mongo.verification_codes.find_one({"email": "novo@robbialac.pt"})["code"]
    assert len(code) == 6

    response = client.post("/api/auth/verify-email", json={
        "email": "novo@robbialac.pt", "code": code, "name": "Novo", "password": "secret123",
    })
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "novo@robbialac.pt"
    assert mongo.users.find_one({"email": "novo@robbialac.pt"})["isVerified"] is True
    assert mongo.verification_codes.count_documents({}) == 0


def test_verify_wrong_code(client, mongo):
    mongo.verification_codes.insert_one({
        "email": "x@robbialac.pt", "code": "123456", "expiresAt": utcnow() + timedelta(minutes=5),
    })
    response = client.post("/api/auth/verify-email", json={"email": "x@robbialac.pt", "code": "000000"})
    assert response.status_code == 400
    assert response.json() == {"message": "Código inválido"}


def test_verify_expired_code(client, mongo):
    mongo.verification_codes.insert_one({
        "email": "x@robbialac.pt", "code": "123456", "expiresAt": utcnow() - timedelta(minutes=1),
    })
    response = client.post("/api/auth/verify-email", json={"email": "x@robbialac.pt", "code": "123456"})
    assert response.status_code == 400
    assert response.json() == {"message": "Código expirado"}
