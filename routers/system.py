import logging

from fastapi import APIRouter, Depends, HTTPException

import database
from auth import get_current_user, require_roles
from database import utcnow
from schemas import SystemConfigUpdate

logger = logging.getLogger(__name__)
router = APIRouter()

CONFIG_KEY = "global"
DEFAULT_CONFIG = {"annualIncidentTargetPerEmployee": 5}


@router.get("/config")
def get_config(current_user: dict = Depends(get_current_user)):
    try:
        stored = database.get_document("system_config", {"key": CONFIG_KEY})
        if stored is None:
            return dict(DEFAULT_CONFIG)
        return {"annualIncidentTargetPerEmployee": stored.get(
            "annualIncidentTargetPerEmployee", DEFAULT_CONFIG["annualIncidentTargetPerEmployee"]
        )}
    except Exception as e:
        logger.error(f"Erro ao buscar configuração do sistema: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar configuração do sistema")


@router.put("/config")
def update_config(body: SystemConfigUpdate, current_user: dict = Depends(require_roles("admin_app"))):
    try:
        database.get_collection("system_config").update_one(
            {"key": CONFIG_KEY},
            {"$set": {"annualIncidentTargetPerEmployee": body.annualIncidentTargetPerEmployee, "updatedAt": utcnow()}},
            upsert=True,
        )
        logger.info(f"Meta anual de incidentes atualizada para {body.annualIncidentTargetPerEmployee}")
        return {"annualIncidentTargetPerEmployee": body.annualIncidentTargetPerEmployee}
    except Exception as e:
        logger.error(f"Erro ao atualizar configuração do sistema: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao atualizar configuração do sistema")
