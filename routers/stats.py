import logging

from fastapi import APIRouter, Depends, HTTPException

import gamification
from auth import get_current_user

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/user/{user_id}/points-breakdown")
def points_breakdown(user_id: str, current_user: dict = Depends(get_current_user)):
    try:
        return gamification.points_breakdown(user_id)
    except Exception as e:
        logger.error(f"Erro ao calcular pontos de {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar distribuição de pontos")


@router.get("/user/{user_id}/ranking")
def user_ranking(user_id: str, current_user: dict = Depends(get_current_user)):
    try:
        ranking = gamification.user_ranking(user_id)
        if ranking is None:
            raise HTTPException(status_code=404, detail="Utilizador não encontrado")
        return ranking
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao calcular ranking de {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar ranking")


@router.get("/leaderboard")
def leaderboard(current_user: dict = Depends(get_current_user)):
    try:
        entries = gamification.leaderboard()
        logger.info(f"Leaderboard calculado com {len(entries)} utilizadores")
        return entries
    except Exception as e:
        logger.error(f"Erro ao calcular leaderboard: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao buscar leaderboard")
