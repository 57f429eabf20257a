"""
Populate an empty database with the default medals, departments and zone /
category statistics.

Usage:
    python seed.py

Each collection is only seeded when it is empty.
"""

import logging

import database
import gamification

logger = logging.getLogger(__name__)

MEDALS = [
    {
        "name": "Segurança em Foco",
        "description": "Concedida a quem reporta o primeiro quase acidente.",
        "imageSrc": "/images/medals/safety_focus.png",
        "triggerAction": "incidentReported",
        "requiredCount": 1,
    },
    {
        "name": "Prevenção Total",
        "description": "Reconhecimento por contribuir ativamente para a prevenção de acidentes.",
        "imageSrc": "/images/medals/prevention.png",
        "triggerAction": "incidentReported",
        "requiredCount": 5,
    },
    {
        "name": "Guardião de Regras",
        "description": "Atribuída a quem assiste aos vídeos de procedimentos e regras.",
        "imageSrc": "/images/medals/rules_guardian.png",
        "triggerAction": "videoWatched",
        "triggerCategory": "Procedimentos e Regras",
        "requiredCount": 3,
    },
    {
        "name": "Mestre da Qualidade",
        "description": "Reconhecimento por completar a formação de qualidade.",
        "imageSrc": "/images/medals/quality_master.png",
        "triggerAction": "trainingCompleted",
        "triggerCategory": "Qualidade",
        "requiredCount": 1,
    },
]

DEPARTMENTS = [
    {"name": "Produção", "color": "#FF4B4B", "employeeCount": 40},
    {"name": "Manutenção", "color": "#4CAF50", "employeeCount": 15},
    {"name": "Logística", "color": "#2196F3", "employeeCount": 20},
    {"name": "Qualidade", "color": "#9C27B0", "employeeCount": 10},
    {"name": "Segurança", "color": "#FF9800", "employeeCount": 8},
]

ZONE_STATS = [
    {"zoneId": f"zona{n}", "zoneName": f"Zona {n}",
     "stats": {"videosWatched": 0, "totalVideos": 0, "completionRate": None, "safetyScore": 0}}
    for n in range(1, 6)
]

CATEGORY_STATS = [
    {"categoryId": "seguranca", "title": "Segurança",
     "description": "Vídeos sobre procedimentos de segurança no ambiente de trabalho",
     "videosCompleted": 0, "totalVideos": 0, "iconName": "Shield"},
    {"categoryId": "qualidade", "title": "Qualidade",
     "description": "Instruções para garantir a qualidade em processos produtivos",
     "videosCompleted": 0, "totalVideos": 0, "iconName": "BadgeCheck"},
    {"categoryId": "procedimentos", "title": "Procedimentos e Regras",
     "description": "Normas e procedimentos essenciais para o funcionamento da fábrica",
     "videosCompleted": 0, "totalVideos": 0, "iconName": "ClipboardList"},
]


def seed_collection(collection_name: str, documents: list) -> int:
    """Insert `documents` when the collection is empty, returning how many were inserted"""
    existing = database.get_collection(collection_name).count_documents({})
    if existing > 0:
        logger.info(f"Já existem {existing} documentos em {collection_name}. Pulando inserção.")
        return 0
    for doc in documents:
        database.create_document(collection_name, doc)
    logger.info(f"{len(documents)} documentos inseridos em {collection_name}")
    return len(documents)


def seed_all() -> dict:
    medals = [{**m, "id": gamification.slugify(m["name"])} for m in MEDALS]
    departments = [{**d, "description": "", "active": True} for d in DEPARTMENTS]
    return {
        "medals": seed_collection("medals", medals),
        "departments": seed_collection("departments", departments),
        "zone_stats": seed_collection("zone_stats", ZONE_STATS),
        "category_stats": seed_collection("category_stats", CATEGORY_STATS),
    }


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - [%(levelname)s] - %(name)s: %(message)s')
    database.ensure_indexes()
    seed_all()
