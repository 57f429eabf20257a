import logging

from fastapi import APIRouter, Depends, HTTPException
from pymongo.errors import DuplicateKeyError

import database
from auth import get_current_user, hash_password, public_user, require_admin, require_roles
from database import utcnow
from routers.auth import new_user_document
from schemas import ADMIN_ROLES, ROLES, RoleUpdate, UserCreate, UserUpdate

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_user_or_404(user_id: str) -> dict:
    object_id = database.parse_object_id(user_id)
    if object_id is None:
        raise HTTPException(status_code=400, detail="ID de usuário inválido")
    user = database.get_collection("users").find_one({"_id": object_id})
    if user is None:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")
    return user


@router.get("")
def list_users(current_user: dict = Depends(get_current_user)):
    try:
        users = database.get_collection("users").find({}, {"password": 0}).sort("name", 1)
        return [public_user(u) for u in users]
    except Exception as e:
        logger.error(f"Erro ao listar usuários: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao listar usuários")


@router.get("/{user_id}")
def get_user(user_id: str, current_user: dict = Depends(get_current_user)):
    try:
        return public_user(_get_user_or_404(user_id))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao obter usuário {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao obter usuário")


@router.post("", status_code=201)
def create_user(body: UserCreate, current_user: dict = Depends(require_admin)):
    try:
        users = database.get_collection("users")
        if users.find_one({"email": body.email.lower()}):
            raise HTTPException(status_code=400, detail="Email já cadastrado")

        user = new_user_document(body.name, body.email, body.password, body.role, body.department, verified=True)
        user["_id"] = users.insert_one(user).inserted_id
        logger.info(f"Usuário criado com sucesso: {user['_id']}")
        return {"message": "Usuário criado com sucesso", "user": public_user(user)}
    except HTTPException:
        raise
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Email já cadastrado")
    except Exception as e:
        logger.error(f"Erro ao criar usuário: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao criar usuário")


@router.put("/{user_id}")
def update_user(user_id: str, body: UserUpdate, current_user: dict = Depends(get_current_user)):
    try:
        user = _get_user_or_404(user_id)
        is_admin = current_user.get("role") in ADMIN_ROLES
        if not is_admin and current_user["_id"] != user_id:
            raise HTTPException(status_code=403, detail="Acesso negado")

        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        if "role" in changes and current_user.get("role") != "admin_app":
            raise HTTPException(status_code=403, detail="Apenas admin_app pode alterar roles")

        users = database.get_collection("users")
        if "email" in changes:
            changes["email"] = changes["email"].lower()
            if changes["email"] != user["email"] and users.find_one({"email": changes["email"]}):
                raise HTTPException(status_code=400, detail="Email já cadastrado")
        if "password" in changes:
            changes["password"] = hash_password(changes["password"])

        changes["updatedAt"] = utcnow()
        users.update_one({"_id": user["_id"]}, {"$set": changes})
        logger.info(f"Usuário atualizado com sucesso: {user_id}")
        return {"message": "Usuário atualizado com sucesso", "user": public_user(users.find_one({"_id": user["_id"]}))}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao atualizar usuário {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao atualizar usuário")


@router.delete("/{user_id}")
def delete_user(user_id: str, current_user: dict = Depends(require_admin)):
    try:
        user = _get_user_or_404(user_id)
        database.get_collection("users").delete_one({"_id": user["_id"]})
        database.get_collection("user_medals").delete_many({"userId": user_id})
        logger.info(f"Usuário excluído com sucesso: {user_id}")
        return {"message": "Usuário excluído com sucesso"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao excluir usuário {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao excluir usuário")


@router.patch("/{user_id}/role")
def update_user_role(user_id: str, body: RoleUpdate, current_user: dict = Depends(require_roles("admin_app"))):
    if body.role not in ROLES:
        raise HTTPException(status_code=400, detail="Role inválido")
    try:
        user = _get_user_or_404(user_id)
        database.get_collection("users").update_one(
            {"_id": user["_id"]}, {"$set": {"role": body.role, "updatedAt": utcnow()}}
        )
        logger.info(f"Role de {user_id} alterado para {body.role}")
        return {"message": "Role atualizado com sucesso"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao atualizar role de {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao atualizar role")
