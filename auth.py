"""
Authentication helpers and FastAPI dependencies

Passwords are hashed with passlib, access tokens are HS256 JWTs carrying the
user id and role. Routes declare access with `Depends(get_current_user)`,
`Depends(require_admin)` or `Depends(require_roles("admin_app"))`.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

import config
import database
from schemas import ADMIN_ROLES

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=config.JWT_EXPIRE_HOURS))
    payload = {"userId": str(user_id), "role": role, "exp": expire}
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])


def public_user(user: dict) -> dict:
    """User document without the password hash, ids as strings"""
    data = {k: v for k, v in user.items() if k != "password"}
    return database.serialize_doc(data)


def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> dict:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        logger.warning("Pedido sem token de autenticação")
        raise HTTPException(status_code=401, detail="Token não fornecido")

    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError:
        logger.warning("Token inválido ou expirado")
        raise HTTPException(status_code=401, detail="Token inválido")

    user_id = database.parse_object_id(payload.get("userId"))
    if user_id is None:
        raise HTTPException(status_code=401, detail="Token inválido")

    user = database.get_collection("users").find_one({"_id": user_id})
    if user is None:
        logger.warning(f"Utilizador do token não existe: {user_id}")
        raise HTTPException(status_code=401, detail="Utilizador não encontrado")

    return public_user(user)


def require_roles(*roles: str):
    """Dependency factory that only lets the listed roles through"""

    def dependency(current_user: dict = Depends(get_current_user)) -> dict:
        if current_user.get("role") not in roles:
            logger.warning(f"Acesso negado para {current_user.get('email')} (role={current_user.get('role')})")
            raise HTTPException(status_code=403, detail="Acesso negado")
        return current_user

    return dependency


require_admin = require_roles(*ADMIN_ROLES)
