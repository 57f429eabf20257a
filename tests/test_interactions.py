import pytest

ITEM_ID = "507f1f77bcf86cd799439011"


def like(client, headers, item_id=ITEM_ID, item_type="qa"):
    return client.post("/api/interactions/like", json={"itemId": item_id, "itemType": item_type}, headers=headers)


def test_like_is_idempotent(client, user, mongo):
    first = like(client, user["headers"])
    assert first.status_code == 200
    assert first.json() == {"message": "Like registado com sucesso."}
    response = like(client, user["headers"])
    assert response.status_code == 200
    assert response.json() == {"message": "Já gostou deste item."}
    assert mongo.likes.count_documents({}) == 1


@pytest.mark.parametrize("item_id,item_type,message", [
    ("bad-id", "qa", "ID do item inválido."),
    (ITEM_ID, "video", "Tipo de item inválido."),
])
def test_like_validation(client, user, item_id, item_type, message):
    response = like(client, user["headers"], item_id, item_type)
    assert response.status_code == 400
    assert response.json() == {"message": message}


def test_unlike(client, user):
    like(client, user["headers"])
    body = {"itemId": ITEM_ID, "itemType": "qa"}
    assert client.request("DELETE", "/api/interactions/like", json=body, headers=user["headers"]).status_code == 200
    response = client.request("DELETE", "/api/interactions/like", json=body, headers=user["headers"])
    assert response.status_code == 404


def test_counts_are_scoped_by_item_type(client, user, other_user):
    like(client, user["headers"])
    like(client, other_user["headers"])
    like(client, user["headers"], item_type="accident")

    info = client.get(f"/api/interactions/info/qa/{ITEM_ID}", headers=user["headers"]).json()
    assert info == {"likeCount": 2, "commentCount": 0, "userHasLiked": True}

    info = client.get(f"/api/interactions/info/sensibilizacao/{ITEM_ID}", headers=other_user["headers"]).json()
    assert info == {"likeCount": 0, "commentCount": 0, "userHasLiked": False}


def test_comment_length(client, user):
    payload = {"itemId": ITEM_ID, "itemType": "qa", "text": "   "}
    assert client.post("/api/interactions/comment", json=payload, headers=user["headers"]).status_code == 400
    payload["text"] = "x" * 501
    assert client.post("/api/interactions/comment", json=payload, headers=user["headers"]).status_code == 400


def test_comments_are_paginated(client, user):
    for n in range(3):
        response = client.post(
            "/api/interactions/comment",
            json={"itemId": ITEM_ID, "itemType": "qa", "text": f" comentário {n} "},
            headers=user["headers"],
        )
        assert response.status_code == 201
        assert response.json()["user"] == {"_id": user["id"], "name": "Ana Silva"}

    page = client.get(f"/api/interactions/comments/qa/{ITEM_ID}?page=2&limit=2", headers=user["headers"]).json()
    assert page["totalComments"] == 3
    assert page["totalPages"] == 2
    assert page["currentPage"] == 2
    assert len(page["comments"]) == 1
    assert page["comments"][0]["text"].startswith("comentário")


@pytest.mark.parametrize("query", ["page=0", "limit=0", "page=-1&limit=5"])
def test_comments_reject_invalid_pagination(client, user, query):
    response = client.get(f"/api/interactions/comments/qa/{ITEM_ID}?{query}", headers=user["headers"])
    assert response.status_code == 400
    assert response.json() == {"message": "Paginação inválida."}
