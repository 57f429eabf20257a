"""
Like and comment counters shared by the incident, document and feed routes
"""

import logging
from typing import Dict, List, Optional

import database
from schemas import ITEM_TYPES

logger = logging.getLogger(__name__)


def is_valid_item_type(item_type: str) -> bool:
    return item_type in ITEM_TYPES


def _count_by_item(collection_name: str, item_type: str, item_ids: List[str]) -> Dict[str, int]:
    pipeline = [
        {"$match": {"itemType": item_type, "itemId": {"$in": item_ids}}},
        {"$group": {"_id": "$itemId", "count": {"$sum": 1}}},
    ]
    return {str(row["_id"]): row["count"] for row in database.get_collection(collection_name).aggregate(pipeline)}


def attach_interaction_counts(items: List[dict], item_type: str, user_id: Optional[str] = None) -> List[dict]:
    """Add likeCount, commentCount and userHasLiked to every item (in place)"""
    if not items:
        return items

    item_ids = [str(item["_id"]) for item in items]
    like_counts = _count_by_item("likes", item_type, item_ids)
    comment_counts = _count_by_item("comments", item_type, item_ids)

    liked = set()
    if user_id:
        cursor = database.get_collection("likes").find(
            {"userId": user_id, "itemType": item_type, "itemId": {"$in": item_ids}}
        )
        liked = {like["itemId"] for like in cursor}

    for item, item_id in zip(items, item_ids):
        item["likeCount"] = like_counts.get(item_id, 0)
        item["commentCount"] = comment_counts.get(item_id, 0)
        item["userHasLiked"] = item_id in liked

    return items


def delete_interactions(item_type: str, item_id: str) -> None:
    """Remove the likes and comments of an item that no longer exists"""
    likes = database.get_collection("likes").delete_many({"itemType": item_type, "itemId": item_id})
    comments = database.get_collection("comments").delete_many({"itemType": item_type, "itemId": item_id})
    logger.info(
        f"Interações removidas de {item_type}/{item_id}: "
        f"{likes.deleted_count} likes, {comments.deleted_count} comentários"
    )
