"""
Admin analytics: platform totals, logins, uploads and the error log
"""

import logging
import math
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException

import database
from auth import require_roles
from database import utcnow

logger = logging.getLogger(__name__)
router = APIRouter()

require_app_admin = require_roles("admin_app")

RECENT_DAYS = 30

# groupBy -> date parts, coarsest first
PERIOD_PARTS = {
    "year": ("year",),
    "month": ("year", "month"),
    "week": ("year", "week"),
    "day": ("year", "month", "day"),
}
PART_OPERATORS = {"year": "$year", "month": "$month", "week": "$week", "day": "$dayOfMonth"}


def _period_group(group_by: str) -> dict:
    parts = PERIOD_PARTS.get(group_by)
    if parts is None:
        raise HTTPException(status_code=400, detail=f"groupBy inválido: {group_by}")
    return {part: {PART_OPERATORS[part]: "$timestamp"} for part in parts}


def _period_label(key: dict, group_by: str) -> str:
    if group_by == "year":
        return f"{key['year']}"
    if group_by == "week":
        return f"{key['year']}-W{key['week']:02d}"
    if group_by == "month":
        return f"{key['year']}-{key['month']:02d}"
    return f"{key['year']}-{key['month']:02d}-{key['day']:02d}"


def _grouped(collection: str, group_by: str, accumulators: dict) -> list:
    group_id = _period_group(group_by)
    pipeline = [
        {"$group": {"_id": group_id, **accumulators}},
        {"$sort": {f"_id.{part}": 1 for part in group_id}},
    ]
    rows = []
    for row in database.get_collection(collection).aggregate(pipeline):
        key = row.pop("_id")
        rows.append({"period": _period_label(key, group_by), **row})
    return rows


@router.get("/basic")
def basic_stats(current_user: dict = Depends(require_app_admin)):
    try:
        since = utcnow() - timedelta(days=RECENT_DAYS)
        incidents = database.get_collection("incidents")
        return {
            "totalUsers": database.get_collection("users").count_documents({}),
            "totalIncidents": incidents.count_documents({}),
            "totalVideos": database.get_collection("videos").count_documents({}),
            "recentIncidentsCount": incidents.count_documents({"createdAt": {"$gte": since}}),
        }
    except Exception as e:
        logger.error(f"Erro ao buscar estatísticas básicas: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar estatísticas básicas")


@router.get("/logins")
def login_stats(groupBy: str = "day", current_user: dict = Depends(require_app_admin)):
    try:
        return _grouped("login_events", groupBy, {"count": {"$sum": 1}})
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao buscar estatísticas de logins: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar estatísticas de logins")


@router.get("/uploads")
def upload_stats(groupBy: str = "day", current_user: dict = Depends(require_app_admin)):
    try:
        return _grouped("upload_logs", groupBy, {"count": {"$sum": 1}, "totalSize": {"$sum": "$fileSize"}})
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao buscar estatísticas de uploads: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar estatísticas de uploads")


@router.get("/errors")
def error_logs(page: int = 1, limit: int = 50, current_user: dict = Depends(require_app_admin)):
    page = max(page, 1)
    limit = limit if limit > 0 else 50
    try:
        logs = database.get_collection("error_logs")
        total = logs.count_documents({})
        cursor = logs.find({}).sort("timestamp", -1).skip((page - 1) * limit).limit(limit)
        return {
            "errors": database.serialize_doc(list(cursor)),
            "totalErrors": total,
            "currentPage": page,
            "totalPages": math.ceil(total / limit),
        }
    except Exception as e:
        # not logged at ERROR: the handler would write back into error_logs
        logger.warning(f"Erro ao buscar logs de erro: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar logs de erro")
