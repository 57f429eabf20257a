import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

import database
import gamification
import social
from auth import get_current_user
from schemas import ACTIVITY_CATEGORIES, ActivityCreate

logger = logging.getLogger(__name__)
router = APIRouter()

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

FEED_DOCUMENT_SOURCES = (
    ("accidents", "accident", "Acidente"),
    ("sensibilizacoes", "sensibilizacao", "Sensibilizacao"),
)


@router.post("", status_code=201)
def create_activity(body: ActivityCreate, current_user: dict = Depends(get_current_user)):
    if not body.userId or not body.category or not body.activityId or body.points is None:
        raise HTTPException(status_code=400, detail="Campos obrigatórios: userId, category, activityId, points")
    if body.category not in ACTIVITY_CATEGORIES:
        raise HTTPException(status_code=400, detail=f"Categoria inválida: {body.category}")
    try:
        activity, new_medals = gamification.register_activity(
            body.userId, body.category, body.activityId, body.points, body.details
        )
        return {"activity": activity, "newMedals": database.serialize_doc(new_medals)}
    except Exception as e:
        logger.error(f"Erro ao registar atividade: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao registar atividade")


@router.get("/feed")
def activity_feed(limit: int = 10, current_user: dict = Depends(get_current_user)):
    """Latest near misses, accidents and sensibilizações merged by date"""
    if limit <= 0:
        raise HTTPException(status_code=400, detail="O limite deve ser um número positivo.")
    try:
        incidents = database.serialize_doc(
            database.get_documents("incidents", sort=[("date", -1)], limit=limit)
        )
        social.attach_interaction_counts(incidents, "qa", current_user["_id"])
        feed = [
            {
                "_id": i["_id"],
                "type": "qa",
                "title": i.get("title"),
                "description": i.get("description"),
                "date": i.get("date"),
                "severity": i.get("severity"),
                "status": i.get("status"),
                "reporterName": i.get("reporterName"),
                "likeCount": i["likeCount"],
                "commentCount": i["commentCount"],
                "userHasLiked": i["userHasLiked"],
            }
            for i in incidents
        ]

        for collection, item_type, document_type in FEED_DOCUMENT_SOURCES:
            docs = database.serialize_doc(
                database.get_documents(collection, sort=[("createdAt", -1)], limit=limit)
            )
            social.attach_interaction_counts(docs, item_type, current_user["_id"])
            feed.extend(
                {
                    "_id": d["_id"],
                    "type": "document",
                    "documentType": document_type,
                    "title": d.get("name"),
                    "country": d.get("country"),
                    "date": d.get("createdAt"),
                    "likeCount": d["likeCount"],
                    "commentCount": d["commentCount"],
                    "userHasLiked": d["userHasLiked"],
                }
                for d in docs
            )

        feed.sort(key=lambda item: database.as_aware(item["date"]) or EPOCH, reverse=True)
        return feed[:limit]
    except Exception as e:
        logger.error(f"Erro ao construir o feed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar feed de atividades")


@router.get("/user/{user_id}")
def user_activities(user_id: str, limit: int = 10, current_user: dict = Depends(get_current_user)):
    try:
        activities = database.serialize_doc(
            database.get_documents("user_activities", {"userId": user_id}, sort=[("timestamp", -1)], limit=limit)
        )
        for activity in activities:
            activity["description"] = gamification.describe_activity(activity)
        return activities
    except Exception as e:
        logger.error(f"Erro ao buscar atividades de {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar atividades")
