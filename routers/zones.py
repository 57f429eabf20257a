"""
Training progress per factory zone and per video category
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

import database
from auth import get_current_user

logger = logging.getLogger(__name__)
router = APIRouter()


def with_completion_rate(stats: dict) -> dict:
    """Fill completionRate from the watched/total counters when it is not stored"""
    if stats.get("completionRate") is None:
        watched = stats.get("videosWatched") or stats.get("videosCompleted") or 0
        total = stats.get("totalVideos") or 0
        stats["completionRate"] = round(watched / total * 100, 2) if total > 0 else 0
    return stats


@router.get("")
def list_zones(current_user: dict = Depends(get_current_user)):
    try:
        zones = database.serialize_doc(database.get_documents("zone_stats", sort=[("zoneId", 1)]))
        for zone in zones:
            zone["stats"] = with_completion_rate(zone.get("stats") or {})
        return zones
    except Exception as e:
        logger.error(f"Erro ao buscar zonas: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar zonas")


@router.get("/categories")
def category_stats(current_user: dict = Depends(get_current_user)):
    try:
        categories = database.serialize_doc(database.get_documents("category_stats", sort=[("categoryId", 1)]))
        return [with_completion_rate(c) for c in categories]
    except Exception as e:
        logger.error(f"Erro ao buscar estatísticas de categorias: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar estatísticas de categorias")


@router.get("/{zone_id}/stats")
def zone_stats(zone_id: str, current_user: dict = Depends(get_current_user)):
    try:
        zone = database.get_document("zone_stats", {"zoneId": zone_id})
        if zone is None:
            raise HTTPException(status_code=404, detail="Zona não encontrada")
        zone = database.serialize_doc(zone)
        zone["stats"] = with_completion_rate(zone.get("stats") or {})
        return zone
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao buscar estatísticas da zona {zone_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar estatísticas da zona")
