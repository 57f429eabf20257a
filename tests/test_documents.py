from tests.conftest import pdf_file

FORM = {"name": "Queda em escada", "country": "Portugal", "date": "2024-03-10"}


def create_accident(client, headers, **form):
    return client.post("/api/accidents", data={**FORM, **form}, files=pdf_file(), headers=headers)


def test_accidents_are_admin_only(client, user):
    assert client.get("/api/accidents", headers=user["headers"]).status_code == 403
    assert create_accident(client, user["headers"]).status_code == 403


def test_create_accident_stores_pdf(client, admin, storage, mongo):
    response = create_accident(client, admin["headers"])
    assert response.status_code == 201
    doc = response.json()
    key = doc["pdfFile"]["key"]
    assert key.startswith("accidents/") and key.endswith("-relatorio.pdf")
    assert storage.objects[key] == b"%PDF-1.4 test"
    assert doc["pdfUrl"] == f"https://signed.test/{key}?sig=1"
    assert mongo.upload_logs.count_documents({"mimeType": "application/pdf"}) == 1


def test_create_requires_pdf(client, admin):
    response = client.post("/api/accidents", data=FORM, headers=admin["headers"])
    assert response.status_code == 400
    assert response.json() == {"message": "Arquivo PDF é obrigatório"}

    files = {"document": ("foto.png", b"png", "image/png")}
    response = client.post("/api/accidents", data=FORM, files=files, headers=admin["headers"])
    assert response.status_code == 400


def test_list_filters_by_country(client, admin):
    create_accident(client, admin["headers"])
    create_accident(client, admin["headers"], country="Espanha", name="Corte")
    docs = client.get("/api/accidents?country=Espanha", headers=admin["headers"]).json()
    assert [d["name"] for d in docs] == ["Corte"]
    assert docs[0]["commentCount"] == 0


def test_update_replaces_pdf(client, admin, storage):
    doc = create_accident(client, admin["headers"]).json()
    old_key = doc["pdfFile"]["key"]

    response = client.put(
        f"/api/accidents/{doc['_id']}",
        data={"name": "Queda grave"},
        files=pdf_file("novo.pdf", b"%PDF-new"),
        headers=admin["headers"],
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["name"] == "Queda grave"
    assert updated["country"] == "Portugal"
    assert updated["pdfFile"]["key"].endswith("-novo.pdf")
    assert old_key not in storage.objects


def test_delete_accident(client, admin, storage, mongo):
    doc = create_accident(client, admin["headers"]).json()
    response = client.delete(f"/api/accidents/{doc['_id']}", headers=admin["headers"])
    assert response.status_code == 204
    assert storage.objects == {}
    assert mongo.accidents.count_documents({}) == 0

    assert client.delete(f"/api/accidents/{doc['_id']}", headers=admin["headers"]).status_code == 404
    assert client.get("/api/accidents/invalid", headers=admin["headers"]).status_code == 400


def test_sensibilizacao_write_is_qa_admin_only(client, admin, qa_admin):
    response = client.post("/api/sensibilizacao", data=FORM, files=pdf_file(), headers=admin["headers"])
    assert response.status_code == 403

    response = client.post("/api/sensibilizacao", data=FORM, files=pdf_file(), headers=qa_admin["headers"])
    assert response.status_code == 201
    assert response.json()["pdfFile"]["key"].startswith("sensibilizacao/")

    assert len(client.get("/api/sensibilizacao", headers=admin["headers"]).json()) == 1
