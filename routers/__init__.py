"""
Aggregates every resource router under a single `api_router`, mounted by
main.py at `/api`.
"""
from fastapi import APIRouter

from routers import (
    accidents,
    activities,
    analytics,
    auth,
    chatbot,
    departments,
    incidents,
    interactions,
    medals,
    secure_url,
    sensibilizacao,
    stats,
    system,
    uploads,
    users,
    videos,
    zones,
)

api_router = APIRouter()

# --- Utilizadores e autenticação ---
api_router.include_router(auth.router, prefix="/auth", tags=["Autenticação"])
api_router.include_router(users.router, prefix="/users", tags=["Utilizadores"])

# --- Conteúdos ---
api_router.include_router(videos.router, prefix="/videos", tags=["Vídeos"])
api_router.include_router(incidents.router, prefix="/incidents", tags=["Quase Acidentes"])
api_router.include_router(accidents.router, prefix="/accidents", tags=["Acidentes"])
api_router.include_router(sensibilizacao.router, prefix="/sensibilizacao", tags=["Sensibilização"])
api_router.include_router(interactions.router, prefix="/interactions", tags=["Interações"])

# --- Gamificação ---
api_router.include_router(medals.router, prefix="/medals", tags=["Medalhas"])
api_router.include_router(activities.router, prefix="/activities", tags=["Atividades"])
api_router.include_router(stats.router, prefix="/stats", tags=["Estatísticas"])
api_router.include_router(zones.router, prefix="/zones", tags=["Zonas"])

# --- Organização e administração ---
api_router.include_router(departments.router, prefix="/departments", tags=["Departamentos"])
api_router.include_router(system.router, prefix="/system", tags=["Sistema"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])

# --- Ficheiros ---
api_router.include_router(uploads.router, prefix="/uploads", tags=["Uploads"])
api_router.include_router(secure_url.router, prefix="/secure-url", tags=["URLs Seguras"])

# --- Assistente de reporte ---
api_router.include_router(chatbot.router, prefix="/chatbot", tags=["Assistente"])
