import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from pymongo.errors import DuplicateKeyError

import database
import gamification
from auth import get_current_user, require_admin
from database import utcnow
from schemas import MedalCreate, MedalUpdate

logger = logging.getLogger(__name__)
router = APIRouter()

CATEGORY_TRIGGERS = ("videoWatched", "trainingCompleted")


@router.get("")
def list_medals(current_user: dict = Depends(get_current_user)):
    try:
        return database.serialize_doc(database.get_documents("medals", sort=[("name", 1)]))
    except Exception as e:
        logger.error(f"Erro ao buscar medalhas: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar medalhas")


@router.get("/user/{user_id}")
def user_medals(user_id: str, current_user: dict = Depends(get_current_user)):
    """Medals the user already earned, newest first"""
    try:
        earned = list(database.get_collection("user_medals").find({"userId": user_id}).sort("dateEarned", -1))
        medals = {m["id"]: m for m in database.get_collection("medals").find(
            {"id": {"$in": [um["medalId"] for um in earned]}}
        )}
        result = []
        for um in earned:
            medal = medals.get(um["medalId"])
            if medal is None:
                continue
            medal = database.serialize_doc(medal)
            medal.update({"acquired": True, "dateEarned": um["dateEarned"], "acquiredDate": um["dateEarned"]})
            result.append(medal)
        return result
    except Exception as e:
        logger.error(f"Erro ao buscar medalhas do utilizador {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar medalhas do utilizador")


@router.get("/user/{user_id}/unacquired")
def user_unacquired_medals(user_id: str, current_user: dict = Depends(get_current_user)):
    try:
        owned = [um["medalId"] for um in database.get_collection("user_medals").find({"userId": user_id})]
        medals = database.get_documents("medals", {"id": {"$nin": owned}}, sort=[("name", 1)])
        return [{**database.serialize_doc(m), "acquired": False} for m in medals]
    except Exception as e:
        logger.error(f"Erro ao buscar medalhas por adquirir de {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar medalhas não adquiridas")


@router.post("/assign/{user_id}/{medal_id}")
def assign_medal(user_id: str, medal_id: str, response: Response, current_user: dict = Depends(require_admin)):
    try:
        outcome, medal = gamification.assign_medal(user_id, medal_id)
        if outcome == "missing":
            raise HTTPException(status_code=404, detail="Medalha não encontrada")
        if outcome == "owned":
            return {"message": "Usuário já possui esta medalha", "medal": medal}
        response.status_code = 201
        return {"message": "Medalha atribuída com sucesso", "medal": medal}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao atribuir medalha {medal_id} a {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao atribuir medalha")


@router.post("", status_code=201)
def create_medal(body: MedalCreate, current_user: dict = Depends(require_admin)):
    if not all([body.name, body.description, body.imageSrc, body.triggerAction, body.requiredCount is not None]):
        raise HTTPException(status_code=400, detail="Campos obrigatórios em falta")
    if body.requiredCount <= 0:
        raise HTTPException(status_code=400, detail="requiredCount deve ser maior que zero")
    if body.triggerAction in CATEGORY_TRIGGERS and not body.triggerCategory:
        raise HTTPException(status_code=400, detail="triggerCategory é obrigatório para esta ação")

    medal_id = gamification.slugify(body.name)
    if not medal_id:
        raise HTTPException(status_code=400, detail="Nome de medalha inválido")
    try:
        if database.get_document("medals", {"id": medal_id}):
            raise HTTPException(status_code=400, detail="Já existe uma medalha com este ID")
        medal = {**body.model_dump(), "id": medal_id}
        database.create_document("medals", medal)
        logger.info(f"Medalha criada: {medal_id}")
        return database.serialize_doc(database.get_document("medals", {"id": medal_id}))
    except HTTPException:
        raise
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Já existe uma medalha com este ID")
    except Exception as e:
        logger.error(f"Erro ao criar medalha: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao criar medalha")


@router.put("/{medal_id}")
def update_medal(medal_id: str, body: MedalUpdate, current_user: dict = Depends(require_admin)):
    try:
        changes = body.model_dump(exclude_unset=True)
        changes["updatedAt"] = utcnow()
        result = database.get_collection("medals").update_one({"id": medal_id}, {"$set": changes})
        if result.matched_count == 0:
            raise HTTPException(status_code=404, detail="Medalha não encontrada")
        logger.info(f"Medalha atualizada: {medal_id}")
        return database.serialize_doc(database.get_document("medals", {"id": medal_id}))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao atualizar medalha {medal_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao atualizar medalha")


@router.delete("/{medal_id}")
def delete_medal(medal_id: str, current_user: dict = Depends(require_admin)):
    try:
        if not database.delete_document("medals", {"id": medal_id}):
            raise HTTPException(status_code=404, detail="Medalha não encontrada")
        database.get_collection("user_medals").delete_many({"medalId": medal_id})
        logger.info(f"Medalha excluída: {medal_id}")
        return {"message": "Medalha excluída com sucesso"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao excluir medalha {medal_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao excluir medalha")
