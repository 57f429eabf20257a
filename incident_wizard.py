"""
MÓDULO: incident_wizard.py - ASSISTENTE DE REPORTE DE QUASE ACIDENTES

FUNÇÃO:
Conduz uma conversa guiada, com estados fixos e lineares, que recolhe os
dados de um quase acidente e o regista no fim:

    title -> location -> description -> department -> severity -> done

ARQUITETURA:
`WizardSessionManager` guarda o estado de cada conversa num dicionário em
memória ({session_id: WizardSession}). `handle_message` aplica a resposta do
utilizador ao estado atual, avança para o próximo e devolve a pergunta
seguinte. No último passo o incidente é criado por `incident_service`, com
as mesmas regras de risco e pontuação da rota REST.
"""

import logging
import uuid
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

import database
import incident_service
from database import utcnow
from schemas import WizardSession

logger = logging.getLogger(__name__)

SESSION_TTL = timedelta(hours=2)

STATES = ["title", "location", "description", "department", "severity", "done"]

PROMPTS = {
    "title": "Olá! Vamos reportar um quase acidente. Qual é o título da ocorrência?",
    "location": "Onde aconteceu?",
    "description": "Descreva o que aconteceu.",
    "department": "Qual é o departamento envolvido?",
    "severity": "Qual a gravidade? (Baixo, Médio ou Alto)",
}
NOT_UNDERSTOOD = "Desculpe, não entendi. Pode tentar novamente?"
DONE_MESSAGE = "Obrigado! O quase acidente foi registado com sucesso. Ganhou {points} pontos."


def parse_severity(text: str) -> str:
    lowered = text.lower()
    if "alto" in lowered:
        return "Alto"
    if "médio" in lowered or "medio" in lowered:
        return "Médio"
    return "Baixo"


def match_department(text: str, departments: List[str]) -> Optional[str]:
    """First department whose name contains the answer (or the reverse), else the first one"""
    lowered = text.lower()
    for name in departments:
        if lowered in name.lower() or name.lower() in lowered:
            return name
    return departments[0] if departments else None


class WizardSessionManager:
    """
    Gerencia o estado de todas as conversas ativas (cache em memória).
    """

    def __init__(self):
        self.active_sessions: Dict[str, WizardSession] = {}

    def create_session(self, user: dict) -> WizardSession:
        self.remove_expired_sessions()
        session = WizardSession(
            session_id=str(uuid.uuid4()),
            user_id=user["_id"],
            user_name=user.get("name"),
            created_at=utcnow(),
        )
        self.active_sessions[session.session_id] = session
        logger.info(f"Sessão do assistente criada: {session.session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[WizardSession]:
        return self.active_sessions.get(session_id)

    def remove_session(self, session_id: str) -> bool:
        if session_id in self.active_sessions:
            logger.info(f"Removendo sessão: {session_id}")
            del self.active_sessions[session_id]
            return True
        return False

    def remove_expired_sessions(self) -> int:
        """Drop abandoned conversations older than SESSION_TTL"""
        cutoff = utcnow() - SESSION_TTL
        expired = [sid for sid, s in self.active_sessions.items() if s.created_at < cutoff]
        for session_id in expired:
            del self.active_sessions[session_id]
        if expired:
            logger.info(f"{len(expired)} sessões expiradas removidas")
        return len(expired)

    def handle_message(self, session: WizardSession, text: str, user: dict) -> Tuple[str, Optional[dict]]:
        """
        Apply one answer to the session.

        Returns:
            (reply, incident) where incident is set only when the report was created
        """
        answer = (text or "").strip()
        if not answer or session.state == "done":
            return NOT_UNDERSTOOD, None

        state = session.state
        if state == "department":
            names = [d["name"] for d in database.get_collection("departments").find({}, {"name": 1}).sort("name", 1)]
            answer = match_department(answer, names) or answer
        elif state == "severity":
            answer = parse_severity(answer)

        next_state = STATES[STATES.index(state) + 1]
        if next_state != "done":
            session.answers[state] = answer
            session.state = next_state
            return PROMPTS[next_state], None

        # the session stays on the last question until the incident is stored
        answers = {**session.answers, state: answer}
        incident = incident_service.create_incident(
            {
                "title": answers["title"],
                "location": answers["location"],
                "description": answers["description"],
                "department": answers["department"],
                "severity": answers["severity"],
                "type": "QA",
                "images": [],
            },
            user,
        )
        session.answers = answers
        session.state = next_state
        self.remove_session(session.session_id)
        return DONE_MESSAGE.format(points=incident["pointsAwarded"]), incident


session_manager = WizardSessionManager()
