from tests.conftest import make_user


def test_points_breakdown_zero_fills(client, user, mongo):
    mongo.user_activities.insert_many([
        {"userId": user["id"], "category": "video", "points": 10},
        {"userId": user["id"], "category": "video", "points": 15},
        {"userId": user["id"], "category": "incident", "points": 50},
    ])
    response = client.get(f"/api/stats/user/{user['id']}/points-breakdown", headers=user["headers"])
    assert response.status_code == 200
    assert response.json() == [
        {"category": "video", "label": "Vídeos Assistidos", "points": 25, "count": 2, "color": "#0071CE"},
        {"category": "incident", "label": "Quase Acidentes", "points": 50, "count": 1, "color": "#FF7A00"},
        {"category": "training", "label": "Formações Concluídas", "points": 0, "count": 0, "color": "#28a745"},
    ]


def test_ranking(client, mongo):
    low = make_user(mongo, "Low", "low@robbialac.pt", points=10)
    high = make_user(mongo, "High", "high@robbialac.pt", points=90)

    response = client.get(f"/api/stats/user/{low['id']}/ranking", headers=low["headers"])
    assert response.json() == {"position": 2, "totalUsers": 2, "points": 10}
    response = client.get(f"/api/stats/user/{high['id']}/ranking", headers=low["headers"])
    assert response.json()["position"] == 1

    missing = client.get("/api/stats/user/507f1f77bcf86cd799439011/ranking", headers=low["headers"])
    assert missing.status_code == 404


def test_leaderboard_order_and_medals(client, mongo):
    alice = make_user(mongo, "Alice", "alice@robbialac.pt", points=50)
    bob = make_user(mongo, "Bob", "bob@robbialac.pt", points=50)
    carl = make_user(mongo, "", "carl@robbialac.pt", points=100)
    for n in range(4):
        mongo.medals.insert_one({"id": f"m{n}", "name": f"Medalha {n}", "imageSrc": f"/m{n}.png"})
        mongo.user_medals.insert_one({"userId": bob["id"], "medalId": f"m{n}"})

    board = client.get("/api/stats/leaderboard", headers=alice["headers"]).json()
    assert [e["userId"] for e in board] == [carl["id"], bob["id"], alice["id"]]
    assert [e["rank"] for e in board] == [1, 2, 3]
    assert board[0]["name"] == f"Utilizador {carl['id'][:5]}"
    assert board[1]["medalCount"] == 4
    assert len(board[1]["topMedals"]) == 3
    assert board[2]["topMedals"] == []


def test_leaderboard_breaks_full_ties_by_name(client, mongo):
    bia = make_user(mongo, "Beatriz", "bia@robbialac.pt", points=40)
    adao = make_user(mongo, "Adão", "adao@robbialac.pt", points=40)
    mongo.medals.insert_one({"id": "m1", "name": "Medalha", "imageSrc": "/m1.png"})
    for member in (bia, adao):
        mongo.user_medals.insert_one({"userId": member["id"], "medalId": "m1"})

    board = client.get("/api/stats/leaderboard", headers=bia["headers"]).json()
    assert [(e["name"], e["rank"]) for e in board] == [("Adão", 1), ("Beatriz", 2)]
    assert board[0]["medalCount"] == board[1]["medalCount"] == 1
