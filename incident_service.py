"""
Near-miss (quase acidente) creation rules shared by the REST routes and the chatbot wizard
"""

import logging
from datetime import timedelta

import database
import gamification
from database import utcnow

logger = logging.getLogger(__name__)

GRAVITY_VALUES = {"Alto": 7, "Médio": 4, "Baixo": 1}
RESOLUTION_DAYS = {"Alto": 7, "Médio": 14, "Baixo": 30}
POINTS_AWARDED = {"Alto": 100, "Médio": 75, "Baixo": 50}

DEFAULT_FREQUENCY = "Baixa"
DEFAULT_FREQUENCY_VALUE = 2

DEPARTMENT_COLOR = "#0071CE"


def compute_risk(severity: str, frequency_value: int = DEFAULT_FREQUENCY_VALUE) -> dict:
    """Risk fields derived from the severity of a report"""
    gravity = GRAVITY_VALUES.get(severity, GRAVITY_VALUES["Baixo"])
    risk = frequency_value * gravity
    if risk > 24:
        quality = "Alta"
    elif risk >= 8:
        quality = "Média"
    else:
        quality = "Baixa"
    return {
        "gravityValue": gravity,
        "frequency": DEFAULT_FREQUENCY,
        "frequencyValue": frequency_value,
        "risk": risk,
        "qaQuality": quality,
        "resolutionDays": RESOLUTION_DAYS.get(severity, RESOLUTION_DAYS["Baixo"]),
        "pointsAwarded": POINTS_AWARDED.get(severity, POINTS_AWARDED["Baixo"]),
    }


def ensure_department(name: str) -> None:
    """Create the department when an incident references an unknown one"""
    departments = database.get_collection("departments")
    if departments.find_one({"name": name}) is None:
        departments.insert_one({
            "name": name,
            "description": "",
            "active": True,
            "employeeCount": 0,
            "color": DEPARTMENT_COLOR,
            "createdAt": utcnow(),
            "updatedAt": utcnow(),
        })
        logger.info(f"Departamento criado automaticamente: {name}")


def create_incident(data: dict, user: dict) -> dict:
    """
    Store a new near-miss report for `user`, award its points and return the
    stored document.
    """
    ensure_department(data["department"])

    now = utcnow()
    incident = dict(data)
    incident.update(compute_risk(incident["severity"]))
    incident["date"] = database.as_aware(incident.get("date")) or now
    incident["status"] = "Reportado"
    incident["reportedBy"] = user["_id"]
    incident["reporterName"] = incident.get("reporterName") or user.get("name")
    incident["resolutionDeadline"] = now + timedelta(days=incident["resolutionDays"])

    incident_id = database.create_document("incidents", incident)
    stored = database.get_document("incidents", {"_id": database.parse_object_id(incident_id)})
    logger.info(f"Quase acidente criado: {incident_id} por {user.get('email')}")

    database.get_collection("users").update_one(
        gamification.user_filter(user["_id"]), {"$push": {"reportedIncidents": incident_id}}
    )
    gamification.register_activity(
        user["_id"], "incident", incident_id, incident["pointsAwarded"],
        {"title": incident["title"], "severity": incident["severity"]},
    )
    return database.serialize_doc(stored)
