import logging

from fastapi import APIRouter, Depends, HTTPException

from auth import get_current_user
from incident_wizard import PROMPTS, session_manager
from schemas import ChatMessage

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_session_or_404(session_id: str, user: dict):
    session = session_manager.get_session(session_id)
    if session is None or session.user_id != user["_id"]:
        raise HTTPException(status_code=404, detail="Sessão não encontrada")
    return session


@router.post("/sessions", status_code=201)
def start_session(current_user: dict = Depends(get_current_user)):
    session = session_manager.create_session(current_user)
    return {"session_id": session.session_id, "message": PROMPTS[session.state], "state": session.state}


@router.post("/sessions/{session_id}/messages")
def send_message(session_id: str, body: ChatMessage, current_user: dict = Depends(get_current_user)):
    session = _get_session_or_404(session_id, current_user)
    try:
        reply, incident = session_manager.handle_message(session, body.text, current_user)
    except Exception as e:
        logger.error(f"Erro no assistente de reporte ({session_id}): {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao processar mensagem")

    response = {"message": reply, "state": session.state}
    if incident is not None:
        response["incident"] = incident
    return response


@router.delete("/sessions/{session_id}")
def end_session(session_id: str, current_user: dict = Depends(get_current_user)):
    _get_session_or_404(session_id, current_user)
    session_manager.remove_session(session_id)
    return {"message": "Sessão terminada"}
