"""
Database Schemas

Pydantic models for the MongoDB collections and the request bodies of the API.
This file is the single source of truth for the data structure: enumerations
(roles, categories, severities...) live here and are reused by the routers.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

# Enumerations
# --------------------------------------------------

ROLES = ("user", "admin_app", "admin_qa")
ADMIN_ROLES = ("admin_app", "admin_qa")

VIDEO_CATEGORIES = ("Segurança", "Qualidade", "Procedimentos e Regras")
VIDEO_ZONES = ("Zona 1", "Zona 2", "Zona 3", "Zona 4", "Zona 5", "Geral")

ITEM_TYPES = ("qa", "accident", "sensibilizacao")
ACTIVITY_CATEGORIES = ("video", "incident", "training", "medal")

VideoCategory = Literal["Segurança", "Qualidade", "Procedimentos e Regras"]
VideoZone = Literal["Zona 1", "Zona 2", "Zona 3", "Zona 4", "Zona 5", "Geral"]
Severity = Literal["Baixo", "Médio", "Alto"]
IncidentStatus = Literal["Reportado", "Em Análise", "Resolvido", "Arquivado"]
Role = Literal["user", "admin_app", "admin_qa"]
TriggerAction = Literal["incidentReported", "videoWatched", "trainingCompleted"]

URL_PATTERN = r"^https?://"


# Auth / users
# --------------------------------------------------

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    department: Optional[str] = None


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = "user"
    department: Optional[str] = None


class SendCodeRequest(BaseModel):
    email: EmailStr


class VerifyEmailRequest(BaseModel):
    email: EmailStr
    code: str
    name: Optional[str] = None
    password: Optional[str] = None


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    role: Optional[Role] = None
    department: Optional[str] = None
    avatarUrl: Optional[str] = None


class RoleUpdate(BaseModel):
    role: str


# Videos
# --------------------------------------------------

class VideoCreate(BaseModel):
    id: Optional[str] = None
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=1000)
    url: str = Field(..., pattern=URL_PATTERN)
    thumbnail: str = Field(..., pattern=URL_PATTERN)
    duration: float = Field(0, ge=0)
    views: int = Field(0, ge=0)
    category: VideoCategory
    zone: VideoZone = "Geral"
    pointsForWatching: int = Field(10, ge=0)


class VideoUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=1000)
    url: Optional[str] = Field(None, pattern=URL_PATTERN)
    thumbnail: Optional[str] = Field(None, pattern=URL_PATTERN)
    duration: Optional[float] = Field(None, ge=0)
    category: Optional[VideoCategory] = None
    zone: Optional[VideoZone] = None
    pointsForWatching: Optional[int] = Field(None, ge=0)


# Incidents (quase acidentes)
# --------------------------------------------------

class IncidentCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    department: str = Field(..., min_length=1)
    severity: Severity
    date: Optional[datetime] = None
    type: str = "QA"
    reporterName: Optional[str] = None
    factoryArea: Optional[str] = None
    suggestionToFix: Optional[str] = None
    images: List[str] = []


class IncidentUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    department: Optional[str] = None
    severity: Optional[Severity] = None
    status: Optional[IncidentStatus] = None
    implementedAction: Optional[str] = None
    responsible: Optional[str] = None
    adminNotes: Optional[str] = None
    pointsAwarded: Optional[int] = None
    completionDate: Optional[datetime] = None
    resolutionDeadline: Optional[datetime] = None
    gravityValue: Optional[int] = None
    frequency: Optional[str] = None
    frequencyValue: Optional[int] = None
    risk: Optional[int] = None
    qaQuality: Optional[str] = None
    resolutionDays: Optional[int] = None
    factoryArea: Optional[str] = None
    suggestionToFix: Optional[str] = None
    images: Optional[List[str]] = None


# Interactions
# --------------------------------------------------

class LikeRequest(BaseModel):
    itemId: str
    itemType: str


class CommentCreate(BaseModel):
    itemId: str
    itemType: str
    text: str


# Gamification
# --------------------------------------------------

class MedalCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    imageSrc: Optional[str] = None
    triggerAction: Optional[TriggerAction] = None
    triggerCategory: Optional[str] = None
    requiredCount: Optional[int] = None


class MedalUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    imageSrc: Optional[str] = None
    triggerAction: Optional[TriggerAction] = None
    triggerCategory: Optional[str] = None
    requiredCount: Optional[int] = Field(None, gt=0)


class ActivityCreate(BaseModel):
    userId: Optional[str] = None
    category: Optional[str] = None
    activityId: Optional[str] = None
    points: Optional[int] = None
    details: Dict[str, Any] = {}


# Departments / system
# --------------------------------------------------

class EmployeeCountUpdate(BaseModel):
    employeeCount: Optional[float] = None


class SystemConfigUpdate(BaseModel):
    annualIncidentTargetPerEmployee: int = Field(..., ge=0)


class UploadUrlRequest(BaseModel):
    fileName: str
    contentType: str = "application/octet-stream"


# Incident wizard
# --------------------------------------------------

class ChatMessage(BaseModel):
    text: str = ""


class WizardSession(BaseModel):
    """State of one scripted incident-report conversation."""
    session_id: str
    user_id: str
    user_name: Optional[str] = None
    state: str = "title"
    answers: Dict[str, str] = {}
    created_at: datetime
