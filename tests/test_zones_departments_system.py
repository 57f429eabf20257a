def test_zone_stats_fill_completion_rate(client, user, mongo):
    mongo.zone_stats.insert_many([
        {"zoneId": "zona1", "zoneName": "Zona 1", "stats": {"videosWatched": 3, "totalVideos": 4, "safetyScore": 80}},
        {"zoneId": "zona2", "zoneName": "Zona 2", "stats": {"videosWatched": 0, "totalVideos": 0}},
    ])
    zones = client.get("/api/zones", headers=user["headers"]).json()
    assert [z["stats"]["completionRate"] for z in zones] == [75.0, 0]

    zone = client.get("/api/zones/zona1/stats", headers=user["headers"])
    assert zone.status_code == 200
    assert zone.json()["stats"]["completionRate"] == 75.0

    missing = client.get("/api/zones/zona9/stats", headers=user["headers"])
    assert missing.status_code == 404
    assert missing.json() == {"message": "Zona não encontrada"}


def test_category_stats(client, user, mongo):
    mongo.category_stats.insert_one(
        {"categoryId": "seguranca", "title": "Segurança", "videosCompleted": 1, "totalVideos": 8}
    )
    categories = client.get("/api/zones/categories", headers=user["headers"]).json()
    assert categories[0]["completionRate"] == 12.5


def test_departments(client, user, departments, mongo):
    listed = client.get("/api/departments", headers=user["headers"]).json()
    assert [d["name"] for d in listed] == sorted(departments)

    by_name = client.get("/api/departments/Produção", headers=user["headers"])
    assert by_name.status_code == 200
    by_id = client.get(f"/api/departments/{by_name.json()['_id']}", headers=user["headers"])
    assert by_id.json()["name"] == "Produção"
    assert client.get("/api/departments/Finanças", headers=user["headers"]).status_code == 404

    with_employees = client.get("/api/departments/with-employees", headers=user["headers"]).json()
    assert with_employees[0]["employeeCount"] == 10


def test_update_employee_count(client, admin, departments, mongo):
    url = "/api/departments/Produção/employee-count"
    response = client.put(url, json={"employeeCount": -1}, headers=admin["headers"])
    assert response.status_code == 400
    assert response.json() == {"message": "Contagem de funcionários inválida."}
    assert client.put(url, json={}, headers=admin["headers"]).status_code == 400

    response = client.put(url, json={"employeeCount": 55}, headers=admin["headers"])
    assert response.status_code == 200
    assert mongo.departments.find_one({"name": "Produção"})["employeeCount"] == 55


def test_system_config(client, user, admin, qa_admin):
    assert client.get("/api/system/config", headers=user["headers"]).json() == {"annualIncidentTargetPerEmployee": 5}

    payload = {"annualIncidentTargetPerEmployee": 8}
    assert client.put("/api/system/config", json=payload, headers=qa_admin["headers"]).status_code == 403
    assert client.put("/api/system/config", json={"annualIncidentTargetPerEmployee": -1},
                      headers=admin["headers"]).status_code == 400
    assert client.put("/api/system/config", json=payload, headers=admin["headers"]).status_code == 200
    assert client.get("/api/system/config", headers=user["headers"]).json() == payload
