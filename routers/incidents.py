"""
MÓDULO: routers/incidents.py - QUASE ACIDENTES (QA)

FUNÇÃO:
CRUD dos reportes de quase acidentes e as vistas agregadas usadas pelo
dashboard (recentes, contagem por departamento).

REGRAS:
- Qualquer utilizador autenticado reporta; o reporte recebe estado
  "Reportado", os campos de risco calculados e os pontos correspondentes
  (ver `incident_service`).
- Apenas admin_app/admin_qa atualizam ou excluem.
- O filtro `status=not_archived` devolve tudo o que não está "Arquivado";
  `status=archived` devolve apenas os arquivados.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

import database
import incident_service
import social
from auth import get_current_user, require_admin
from database import utcnow
from schemas import IncidentCreate, IncidentUpdate

logger = logging.getLogger(__name__)
router = APIRouter()

ARCHIVED = "Arquivado"


def _status_filter(status: Optional[str]) -> dict:
    if not status:
        return {}
    if status == "not_archived":
        return {"status": {"$ne": ARCHIVED}}
    if status == "archived":
        return {"status": ARCHIVED}
    return {"status": status}


def _get_incident_or_error(incident_id: str) -> dict:
    object_id = database.parse_object_id(incident_id)
    if object_id is None:
        raise HTTPException(status_code=400, detail="ID de incidente inválido")
    incident = database.get_document("incidents", {"_id": object_id})
    if incident is None:
        raise HTTPException(status_code=404, detail="Incidente não encontrado")
    return incident


@router.get("")
def list_incidents(status: Optional[str] = None, current_user: dict = Depends(get_current_user)):
    try:
        incidents = database.serialize_doc(
            database.get_documents("incidents", _status_filter(status), sort=[("date", -1)])
        )
        logger.info(f"Incidentes recuperados: {len(incidents)} (status={status})")
        return social.attach_interaction_counts(incidents, "qa", current_user["_id"])
    except Exception as e:
        logger.error(f"Erro ao buscar incidentes: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar incidentes")


@router.get("/mine")
def my_incidents(current_user: dict = Depends(get_current_user)):
    try:
        incidents = database.get_documents("incidents", {"reportedBy": current_user["_id"]}, sort=[("date", -1)])
        return database.serialize_doc(incidents)
    except Exception as e:
        logger.error(f"Erro ao buscar incidentes do utilizador: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar incidentes")


@router.get("/recent")
def recent_incidents(limit: int = 5, current_user: dict = Depends(get_current_user)):
    if limit <= 0:
        logger.warning(f"Limite inválido solicitado para incidentes recentes: {limit}")
        raise HTTPException(status_code=400, detail="O limite deve ser um número positivo.")
    try:
        cursor = database.get_collection("incidents").find({}, {"title": 1, "date": 1}).sort("date", -1).limit(limit)
        return [
            {
                "_id": str(incident["_id"]),
                "title": incident.get("title"),
                "date": database.as_aware(incident["date"]).isoformat() if incident.get("date") else None,
            }
            for incident in cursor
        ]
    except Exception as e:
        logger.error(f"Erro ao buscar incidentes recentes: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar incidentes recentes")


@router.get("/by-department")
def incidents_by_department(year: Optional[int] = None, current_user: dict = Depends(get_current_user)):
    try:
        date_condition = {}
        if year:
            date_condition = {"date": {
                "$gte": datetime(year, 1, 1, tzinfo=timezone.utc),
                "$lt": datetime(year + 1, 1, 1, tzinfo=timezone.utc),
            }}

        incidents = database.get_collection("incidents")
        stats = []
        for dept in database.get_collection("departments").find({}):
            stats.append({
                "department": dept["name"],
                "count": incidents.count_documents({"department": dept["name"], **date_condition}),
                "employeeCount": dept.get("employeeCount", 0),
                "color": dept.get("color"),
            })

        stats.sort(key=lambda s: s["count"], reverse=True)
        logger.info(f"Estatísticas por departamento calculadas. Ano: {year or 'todos'}")
        return stats
    except Exception as e:
        logger.error(f"Erro ao buscar estatísticas por departamento: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar estatísticas de incidentes por departamento")


@router.get("/{incident_id}")
def get_incident(incident_id: str, current_user: dict = Depends(get_current_user)):
    try:
        incident = database.serialize_doc(_get_incident_or_error(incident_id))
        return social.attach_interaction_counts([incident], "qa", current_user["_id"])[0]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao buscar incidente {incident_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar incidente")


@router.post("", status_code=201)
def create_incident(body: IncidentCreate, current_user: dict = Depends(get_current_user)):
    try:
        return incident_service.create_incident(body.model_dump(), current_user)
    except Exception as e:
        logger.error(f"Erro ao criar incidente: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao criar incidente")


@router.put("/{incident_id}")
def update_incident(incident_id: str, body: IncidentUpdate, current_user: dict = Depends(require_admin)):
    try:
        incident = _get_incident_or_error(incident_id)
        changes = body.model_dump(exclude_unset=True)

        if changes.get("department"):
            incident_service.ensure_department(changes["department"])
        if "severity" in changes and "risk" not in changes:
            risk = incident_service.compute_risk(changes["severity"])
            risk.pop("pointsAwarded")
            changes.update(risk)
        if changes.get("status") == "Resolvido" and not incident.get("completionDate"):
            changes.setdefault("completionDate", utcnow())

        database.update_document("incidents", {"_id": incident["_id"]}, changes)
        logger.info(f"Incidente atualizado: {incident_id} por {current_user.get('email')}")
        return database.serialize_doc(database.get_document("incidents", {"_id": incident["_id"]}))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao atualizar incidente {incident_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao atualizar incidente")


@router.delete("/{incident_id}")
def delete_incident(incident_id: str, current_user: dict = Depends(require_admin)):
    try:
        incident = _get_incident_or_error(incident_id)
        database.delete_document("incidents", {"_id": incident["_id"]})
        social.delete_interactions("qa", incident_id)
        logger.info(f"Incidente excluído: {incident_id}")
        return {"message": "Incidente excluído com sucesso"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao excluir incidente {incident_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao excluir incidente")
