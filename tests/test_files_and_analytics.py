from datetime import datetime, timedelta

import pytest

import config
from database import utcnow


def test_upload_image(client, user, storage, mongo):
    files = {"image": ("foto.PNG", b"\x89PNG data", "image/png")}
    response = client.post("/api/uploads/image", files=files, headers=user["headers"])
    assert response.status_code == 200
    body = response.json()
    assert body["key"].startswith("incidents/") and body["key"].endswith(".png")
    assert body["url"] == f"https://signed.test/{body['key']}?sig=1"
    assert storage.objects[body["key"]] == b"\x89PNG data"
    assert mongo.upload_logs.count_documents({"userId": user["id"]}) == 1


def test_upload_image_rejects_other_types_and_size(client, user, monkeypatch):
    files = {"image": ("doc.pdf", b"%PDF", "application/pdf")}
    assert client.post("/api/uploads/image", files=files, headers=user["headers"]).status_code == 400

    monkeypatch.setattr(config, "MAX_IMAGE_SIZE", 4)
    files = {"image": ("big.png", b"12345", "image/png")}
    assert client.post("/api/uploads/image", files=files, headers=user["headers"]).status_code == 400


def test_secure_download_url(client, user, monkeypatch):
    monkeypatch.setattr(config, "R2_BUCKET_NAME", "safety")
    response = client.get(
        "/api/secure-url/download",
        params={"url": "https://acc.r2.cloudflarestorage.com/safety/accidents/1-a.pdf"},
        headers=user["headers"],
    )
    assert response.json() == {"signedUrl": "https://signed.test/accidents/1-a.pdf?sig=1"}

    response = client.get("/api/secure-url/download", params={"key": "videos/x.mp4"}, headers=user["headers"])
    assert response.json() == {"signedUrl": "https://signed.test/videos/x.mp4?sig=1"}

    assert client.get("/api/secure-url/download", headers=user["headers"]).status_code == 400


def test_secure_upload_url(client, user):
    response = client.post("/api/secure-url/upload", json={"fileName": "../plano.pdf", "contentType": "application/pdf"},
                           headers=user["headers"])
    body = response.json()
    assert body["key"].startswith("uploads/") and body["key"].endswith("-plano.pdf")
    assert body["uploadUrl"] == f"https://signed.test/{body['key']}?upload=1"


def test_analytics_is_app_admin_only(client, qa_admin):
    assert client.get("/api/analytics/basic", headers=qa_admin["headers"]).status_code == 403


def test_analytics_basic(client, admin, mongo):
    mongo.incidents.insert_many([{"title": "novo"}, {"title": "antigo"}])
    mongo.videos.insert_one({"id": "v1"})
    response = client.get("/api/analytics/basic", headers=admin["headers"])
    assert response.json() == {"totalUsers": 1, "totalIncidents": 2, "totalVideos": 1, "recentIncidentsCount": 0}


def test_analytics_invalid_group_by(client, admin):
    response = client.get("/api/analytics/logins?groupBy=decade", headers=admin["headers"])
    assert response.status_code == 400


def test_analytics_errors_paging(client, admin, mongo):
    for n in range(3):
        mongo.error_logs.insert_one({"level": "ERROR", "message": f"falha {n}", "timestamp": utcnow() + timedelta(seconds=n)})
    page = client.get("/api/analytics/errors?page=1&limit=2", headers=admin["headers"]).json()
    assert page["totalErrors"] == 3
    assert page["totalPages"] == 2
    assert page["currentPage"] == 1
    assert [e["message"] for e in page["errors"]] == ["falha 2", "falha 1"]


LOGIN_TIMES = [
    datetime(2024, 3, 5, 9, 0),
    datetime(2024, 3, 5, 15, 30),
    datetime(2024, 3, 6, 12, 0),
    datetime(2024, 4, 1, 12, 0),
]


@pytest.mark.parametrize("group_by,expected", [
    ("day", [("2024-03-05", 2), ("2024-03-06", 1), ("2024-04-01", 1)]),
    ("week", [("2024-W09", 3), ("2024-W13", 1)]),
    ("month", [("2024-03", 3), ("2024-04", 1)]),
    ("year", [("2024", 4)]),
])
def test_analytics_logins_grouped(client, admin, mongo, group_by, expected):
    mongo.login_events.insert_many([{"userId": admin["id"], "timestamp": t} for t in LOGIN_TIMES])
    response = client.get(f"/api/analytics/logins?groupBy={group_by}", headers=admin["headers"])
    assert response.status_code == 200
    assert [(row["period"], row["count"]) for row in response.json()] == expected


def test_analytics_uploads_sum_sizes(client, admin, mongo):
    mongo.upload_logs.insert_many([
        {"userId": admin["id"], "fileSize": 100, "timestamp": datetime(2024, 3, 5, 10, 0)},
        {"userId": admin["id"], "fileSize": 250, "timestamp": datetime(2024, 3, 20, 10, 0)},
        {"userId": admin["id"], "fileSize": 50, "timestamp": datetime(2024, 4, 2, 10, 0)},
    ])
    response = client.get("/api/analytics/uploads?groupBy=month", headers=admin["headers"])
    assert response.json() == [
        {"period": "2024-03", "count": 2, "totalSize": 350},
        {"period": "2024-04", "count": 1, "totalSize": 50},
    ]
