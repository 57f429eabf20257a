# Example usage:
# from database import create_document, get_documents, update_document, delete_document
# from schemas import IncidentCreate
#
# # Create an incident (pydantic model or dict)
# incident_id = create_document("incidents", {"title": "Piso molhado", "severity": "Baixo"})
#
# # Get incidents with filter
# open_incidents = get_documents("incidents", {"status": "Reportado"})
#
# # Update an incident
# update_document("incidents", {"_id": parse_object_id(incident_id)}, {"status": "Resolvido"})
#
# # Delete an incident
# delete_document("incidents", {"_id": parse_object_id(incident_id)})

import logging
from datetime import datetime, timezone
from typing import Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient

import config

_client = None
db = None

if config.DATABASE_URL and config.DATABASE_NAME:
    _client = MongoClient(config.DATABASE_URL)
    db = _client[config.DATABASE_NAME]


def _require_db():
    if db is None:
        raise Exception("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    return db


def utcnow():
    return datetime.now(timezone.utc)


def get_collection(collection_name: str):
    """Return a collection handle from the active database"""
    return _require_db()[collection_name]


def is_valid_object_id(value) -> bool:
    return isinstance(value, (str, ObjectId)) and ObjectId.is_valid(value)


def parse_object_id(value) -> Optional[ObjectId]:
    """Convert a string to ObjectId, returning None when it is not a valid id"""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def serialize_doc(doc):
    """Make a Mongo document JSON friendly by turning every ObjectId into a string"""
    if isinstance(doc, list):
        return [serialize_doc(d) for d in doc]
    if isinstance(doc, dict):
        return {k: serialize_doc(v) for k, v in doc.items()}
    if isinstance(doc, ObjectId):
        return str(doc)
    return doc


# Helper functions for common database operations
def create_document(collection_name: str, data: Union[BaseModel, dict]):
    """Insert a single document with timestamps

    Args:
        collection_name: Name of the MongoDB collection
        data: Pydantic model instance or dict

    Returns:
        str: The inserted document's ID
    """
    database = _require_db()

    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = data.copy()

    now = utcnow()
    data_dict.setdefault('createdAt', now)
    data_dict['updatedAt'] = now

    result = database[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: dict = None, limit: int = None, sort=None):
    """Get documents from collection"""
    database = _require_db()

    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)

    return list(cursor)


def get_document(collection_name: str, filter_dict: dict):
    return _require_db()[collection_name].find_one(filter_dict)


def update_document(collection_name: str, filter_dict: dict, update_data: Union[BaseModel, dict]):
    """Update a document with timestamp

    Args:
        collection_name: Name of the MongoDB collection
        filter_dict: MongoDB filter to find the document to update
        update_data: Pydantic model instance or dict with fields to update

    Returns:
        bool: True if a document matched the filter, False otherwise
    """
    database = _require_db()

    if isinstance(update_data, BaseModel):
        update_dict = update_data.model_dump(exclude_unset=True)
    else:
        update_dict = update_data.copy()

    update_dict['updatedAt'] = utcnow()

    result = database[collection_name].update_one(filter_dict, {"$set": update_dict})
    return result.matched_count > 0


def delete_document(collection_name: str, filter_dict: dict):
    """Delete a document"""
    database = _require_db()

    result = database[collection_name].delete_one(filter_dict)
    return result.deleted_count > 0


def ensure_indexes():
    """Create the unique indexes the collections rely on"""
    database = _require_db()
    database["users"].create_index([("email", ASCENDING)], unique=True)
    database["medals"].create_index([("id", ASCENDING)], unique=True)
    database["departments"].create_index([("name", ASCENDING)], unique=True)
    database["likes"].create_index(
        [("userId", ASCENDING), ("itemId", ASCENDING), ("itemType", ASCENDING)], unique=True
    )
    database["comments"].create_index([("itemType", ASCENDING), ("itemId", ASCENDING)])


class MongoLogHandler(logging.Handler):
    """Logging handler that stores records in the error_logs collection"""

    def __init__(self, collection_name: str = "error_logs", level=logging.ERROR):
        super().__init__(level)
        self.collection_name = collection_name

    def emit(self, record):
        if db is None:
            return
        try:
            db[self.collection_name].insert_one({
                "level": record.levelname,
                "logger": record.name,
                "message": self.format(record),
                "timestamp": utcnow(),
            })
        except Exception:
            self.handleError(record)


def as_aware(value: datetime) -> datetime:
    """Mongo returns naive UTC datetimes unless the client is tz-aware"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
