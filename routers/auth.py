"""
Login, registration and e-mail verification
"""

import logging
import secrets
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request
from pymongo.errors import DuplicateKeyError

import config
import database
from auth import create_access_token, get_current_user, hash_password, verify_password
from database import as_aware, utcnow
from schemas import LoginRequest, RegisterRequest, SendCodeRequest, VerifyEmailRequest

logger = logging.getLogger(__name__)
router = APIRouter()


def _token_response(user: dict, message: str) -> dict:
    user_id = str(user["_id"])
    return {
        "message": message,
        "token": create_access_token(user_id, user.get("role", "user")),
        "user": {
            "id": user_id,
            "email": user["email"],
            "name": user.get("name"),
            "role": user.get("role", "user"),
        },
    }


def new_user_document(name: str, email: str, password: str, role: str = "user",
                      department: str = None, verified: bool = False) -> dict:
    now = utcnow()
    return {
        "name": name,
        "email": email.lower(),
        "password": hash_password(password),
        "role": role or "user",
        "department": department,
        "points": 0,
        "level": 1,
        "medals": [],
        "viewedVideos": [],
        "reportedIncidents": [],
        "isVerified": verified,
        "avatarUrl": None,
        "createdAt": now,
        "updatedAt": now,
    }


@router.post("/login")
def login(body: LoginRequest, request: Request):
    try:
        users = database.get_collection("users")
        user = users.find_one({"email": body.email.lower()})
        if user is None or not verify_password(body.password, user.get("password")):
            logger.warning(f"Tentativa de login falhada para {body.email}")
            raise HTTPException(status_code=401, detail="Credenciais inválidas")

        database.get_collection("login_events").insert_one({
            "userId": str(user["_id"]),
            "timestamp": utcnow(),
            "ipAddress": request.client.host if request.client else None,
            "userAgent": request.headers.get("user-agent"),
        })
        logger.info(f"Login realizado com sucesso: {user['_id']}")
        return _token_response(user, "Login realizado com sucesso")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao realizar login: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao realizar login")


@router.post("/register", status_code=201)
def register(body: RegisterRequest):
    try:
        users = database.get_collection("users")
        if users.find_one({"email": body.email.lower()}):
            logger.warning(f"Registo com email já existente: {body.email}")
            raise HTTPException(status_code=400, detail="Email já cadastrado")

        user = new_user_document(body.name, body.email, body.password, "user", body.department)
        user["_id"] = users.insert_one(user).inserted_id
        logger.info(f"Utilizador registado: {user['_id']}")
        return _token_response(user, "Usuário criado com sucesso")
    except HTTPException:
        raise
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Email já cadastrado")
    except Exception as e:
        logger.error(f"Erro ao registar utilizador: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao criar usuário")


@router.post("/send-code")
def send_verification_code(body: SendCodeRequest):
    email = body.email.lower()
    if not email.endswith(f"@{config.ALLOWED_EMAIL_DOMAIN}"):
        raise HTTPException(status_code=400, detail=f"Apenas emails @{config.ALLOWED_EMAIL_DOMAIN} são permitidos")

    try:
        code = f"{secrets.randbelow(10 ** 6):06d}"
        database.get_collection("verification_codes").update_one(
            {"email": email},
            {"$set": {
                "code": code,
                "expiresAt": utcnow() + timedelta(minutes=config.VERIFICATION_CODE_TTL_MINUTES),
            }},
            upsert=True,
        )
        # No mail transport here: the code is delivered through the logs
        logger.info(f"Código de verificação para {email}: {code}")
        return {"message": "Código de verificação enviado"}
    except Exception as e:
        logger.error(f"Erro ao enviar código de verificação: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao enviar código de verificação")


@router.post("/verify-email")
def verify_email(body: VerifyEmailRequest):
    try:
        email = body.email.lower()
        codes = database.get_collection("verification_codes")
        entry = codes.find_one({"email": email})
        if entry is None or entry["code"] != body.code.strip():
            raise HTTPException(status_code=400, detail="Código inválido")
        if as_aware(entry["expiresAt"]) < utcnow():
            codes.delete_one({"_id": entry["_id"]})
            raise HTTPException(status_code=400, detail="Código expirado")

        users = database.get_collection("users")
        user = users.find_one({"email": email})
        if user is None:
            if not body.name or not body.password:
                raise HTTPException(status_code=404, detail="Usuário não encontrado")
            user = new_user_document(body.name, email, body.password, verified=True)
            user["_id"] = users.insert_one(user).inserted_id
        else:
            users.update_one({"_id": user["_id"]}, {"$set": {"isVerified": True, "updatedAt": utcnow()}})

        codes.delete_one({"_id": entry["_id"]})
        logger.info(f"Email verificado: {email}")
        return _token_response(user, "Email verificado com sucesso")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao verificar email: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao verificar email")


@router.get("/me")
def me(current_user: dict = Depends(get_current_user)):
    return current_user
