"""
Likes and comments on near misses, accidents and sensibilizações
"""

import logging
import math

from fastapi import APIRouter, Depends, HTTPException

import database
import social
from auth import get_current_user
from database import utcnow
from schemas import CommentCreate, LikeRequest

logger = logging.getLogger(__name__)
router = APIRouter()

MAX_COMMENT_LENGTH = 500


def _validate_item(item_id: str, item_type: str) -> None:
    if not database.is_valid_object_id(item_id):
        raise HTTPException(status_code=400, detail="ID do item inválido.")
    if not social.is_valid_item_type(item_type):
        raise HTTPException(status_code=400, detail="Tipo de item inválido.")


@router.post("/like")
def add_like(body: LikeRequest, current_user: dict = Depends(get_current_user)):
    _validate_item(body.itemId, body.itemType)
    try:
        like = {"userId": current_user["_id"], "itemId": body.itemId, "itemType": body.itemType}
        result = database.get_collection("likes").update_one(
            like, {"$setOnInsert": {"createdAt": utcnow()}}, upsert=True
        )
        if result.upserted_id is None:
            logger.info(f"Like duplicado ignorado: {like}")
            return {"message": "Já gostou deste item."}

        logger.info(f"Like registado: {like}")
        return {"message": "Like registado com sucesso."}
    except Exception as e:
        logger.error(f"Erro ao registar like: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao registar like.")


@router.delete("/like")
def remove_like(body: LikeRequest, current_user: dict = Depends(get_current_user)):
    _validate_item(body.itemId, body.itemType)
    try:
        result = database.get_collection("likes").delete_one(
            {"userId": current_user["_id"], "itemId": body.itemId, "itemType": body.itemType}
        )
        if result.deleted_count == 0:
            raise HTTPException(status_code=404, detail="Like não encontrado.")
        logger.info(f"Like removido: {body.itemType}/{body.itemId} por {current_user['_id']}")
        return {"message": "Like removido com sucesso."}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao remover like: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao remover like.")


@router.post("/comment", status_code=201)
def add_comment(body: CommentCreate, current_user: dict = Depends(get_current_user)):
    _validate_item(body.itemId, body.itemType)
    text = body.text.strip()
    if not text or len(text) > MAX_COMMENT_LENGTH:
        raise HTTPException(status_code=400, detail="O comentário deve ter entre 1 e 500 caracteres.")
    try:
        comment = {
            "userId": current_user["_id"],
            "userName": current_user.get("name"),
            "itemId": body.itemId,
            "itemType": body.itemType,
            "text": text,
            "createdAt": utcnow(),
        }
        comment_id = database.get_collection("comments").insert_one(comment).inserted_id
        logger.info(f"Comentário adicionado a {body.itemType}/{body.itemId}")
        return {
            "_id": str(comment_id),
            "user": {"_id": current_user["_id"], "name": current_user.get("name")},
            "text": text,
            "createdAt": comment["createdAt"],
        }
    except Exception as e:
        logger.error(f"Erro ao adicionar comentário: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao adicionar comentário.")


@router.get("/comments/{item_type}/{item_id}")
def list_comments(item_type: str, item_id: str, page: int = 1, limit: int = 10,
                  current_user: dict = Depends(get_current_user)):
    _validate_item(item_id, item_type)
    if page <= 0 or limit <= 0:
        logger.warning(f"Paginação inválida: page={page}, limit={limit}")
        raise HTTPException(status_code=400, detail="Paginação inválida.")
    try:
        comments = database.get_collection("comments")
        query = {"itemId": item_id, "itemType": item_type}
        total = comments.count_documents(query)
        cursor = comments.find(query).sort("createdAt", -1).skip((page - 1) * limit).limit(limit)
        return {
            "comments": [
                {
                    "_id": str(c["_id"]),
                    "user": {"_id": c["userId"], "name": c.get("userName")},
                    "text": c["text"],
                    "createdAt": c["createdAt"],
                }
                for c in cursor
            ],
            "currentPage": page,
            "totalPages": math.ceil(total / limit),
            "totalComments": total,
        }
    except Exception as e:
        logger.error(f"Erro ao buscar comentários: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar comentários.")


@router.get("/info/{item_type}/{item_id}")
def interaction_info(item_type: str, item_id: str, current_user: dict = Depends(get_current_user)):
    _validate_item(item_id, item_type)
    try:
        item = social.attach_interaction_counts([{"_id": item_id}], item_type, current_user["_id"])[0]
        return {k: item[k] for k in ("likeCount", "commentCount", "userHasLiked")}
    except Exception as e:
        logger.error(f"Erro ao buscar interações: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar interações.")
