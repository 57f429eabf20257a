from datetime import timedelta

import pytest

import incident_service
from database import utcnow
from incident_wizard import NOT_UNDERSTOOD, SESSION_TTL, match_department, parse_severity, session_manager


@pytest.mark.parametrize("text,expected", [
    ("É ALTO", "Alto"),
    ("médio", "Médio"),
    ("medio talvez", "Médio"),
    ("não sei", "Baixo"),
])
def test_parse_severity(text, expected):
    assert parse_severity(text) == expected


def test_match_department():
    names = ["Logística", "Manutenção", "Produção"]
    assert match_department("manutenção", names) == "Manutenção"
    assert match_department("Foi na produção da fábrica", names) == "Produção"
    assert match_department("xyz", names) == "Logística"
    assert match_department("xyz", []) is None


def test_full_conversation_creates_incident(client, user, departments, mongo):
    start = client.post("/api/chatbot/sessions", headers=user["headers"])
    assert start.status_code == 201
    session_id = start.json()["session_id"]
    assert start.json()["state"] == "title"

    url = f"/api/chatbot/sessions/{session_id}/messages"
    answers = ["Escada escorregadia", "Armazém B", "Degrau partido na escada", "manutenção"]
    for answer in answers:
        response = client.post(url, json={"text": answer}, headers=user["headers"])
        assert response.status_code == 200
        assert "incident" not in response.json()

    response = client.post(url, json={"text": "acho que é médio"}, headers=user["headers"])
    body = response.json()
    assert body["state"] == "done"
    assert body["incident"]["department"] == "Manutenção"
    assert body["incident"]["severity"] == "Médio"
    assert body["incident"]["pointsAwarded"] == 75
    assert "75 pontos" in body["message"]
    assert mongo.incidents.count_documents({"reportedBy": user["id"]}) == 1

    # the session is closed once the report is stored
    assert client.post(url, json={"text": "olá"}, headers=user["headers"]).status_code == 404


def test_empty_answer_keeps_state(client, user):
    session_id = client.post("/api/chatbot/sessions", headers=user["headers"]).json()["session_id"]
    response = client.post(f"/api/chatbot/sessions/{session_id}/messages", json={"text": "  "}, headers=user["headers"])
    assert response.json() == {"message": NOT_UNDERSTOOD, "state": "title"}


def test_sessions_are_private(client, user, other_user):
    session_id = client.post("/api/chatbot/sessions", headers=user["headers"]).json()["session_id"]
    url = f"/api/chatbot/sessions/{session_id}"
    assert client.delete(url, headers=other_user["headers"]).status_code == 404
    assert client.delete(url, headers=user["headers"]).status_code == 200
    assert client.delete(url, headers=user["headers"]).status_code == 404


def test_failed_save_can_be_retried(client, user, departments, mongo, monkeypatch):
    real_create = incident_service.create_incident
    calls = []

    def flaky_create(data, reporter):
        calls.append(data)
        if len(calls) == 1:
            raise RuntimeError("base de dados indisponível")
        return real_create(data, reporter)

    monkeypatch.setattr(incident_service, "create_incident", flaky_create)

    session_id = client.post("/api/chatbot/sessions", headers=user["headers"]).json()["session_id"]
    url = f"/api/chatbot/sessions/{session_id}/messages"
    for answer in ["Fuga de óleo", "Oficina", "Óleo no chão junto à prensa", "produção"]:
        client.post(url, json={"text": answer}, headers=user["headers"])

    failed = client.post(url, json={"text": "alto"}, headers=user["headers"])
    assert failed.status_code == 500
    assert session_manager.get_session(session_id).state == "severity"
    assert mongo.incidents.count_documents({}) == 0

    retry = client.post(url, json={"text": "alto"}, headers=user["headers"])
    assert retry.status_code == 200
    assert retry.json()["state"] == "done"
    assert retry.json()["incident"]["severity"] == "Alto"
    assert mongo.incidents.count_documents({"reportedBy": user["id"]}) == 1
    assert len(calls) == 2


def test_abandoned_sessions_expire(client, user):
    old_id = client.post("/api/chatbot/sessions", headers=user["headers"]).json()["session_id"]
    session_manager.get_session(old_id).created_at = utcnow() - SESSION_TTL - timedelta(minutes=1)
    recent_id = client.post("/api/chatbot/sessions", headers=user["headers"]).json()["session_id"]

    new_id = client.post("/api/chatbot/sessions", headers=user["headers"]).json()["session_id"]
    assert session_manager.get_session(old_id) is None
    assert session_manager.get_session(recent_id) is not None
    assert session_manager.get_session(new_id) is not None
    response = client.post(f"/api/chatbot/sessions/{old_id}/messages", json={"text": "olá"}, headers=user["headers"])
    assert response.status_code == 404
