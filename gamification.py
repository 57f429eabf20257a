"""
Points, activities, medals and the leaderboard

Every gamified action goes through `register_activity`: the activity is
stored, the user's points are incremented and action-based medals are
checked. The leaderboard is computed in memory from users, user_medals and
medals.
"""

import logging
import re
from typing import List, Optional, Tuple

import database
from database import utcnow

logger = logging.getLogger(__name__)

TRIGGER_BY_CATEGORY = {
    "video": "videoWatched",
    "incident": "incidentReported",
    "training": "trainingCompleted",
}

# activity categories whose medals are scoped by details.category
CATEGORY_SCOPED = ("video", "training")

CATEGORY_LABELS = {
    "video": "Vídeos Assistidos",
    "incident": "Quase Acidentes",
    "training": "Formações Concluídas",
}

CATEGORY_COLORS = {
    "video": "#0071CE",
    "incident": "#FF7A00",
    "training": "#28a745",
}
DEFAULT_COLOR = "#6c757d"

DESCRIPTION_TEMPLATES = {
    "video": "Assistiu vídeo: '{title}'",
    "incident": "Reportou quase acidente: '{title}'",
    "training": "Completou formação: '{title}'",
    "medal": "Medalha desbloqueada: '{title}'",
}

LEADERBOARD_TOP_MEDALS = 3


def user_filter(user_id: str) -> dict:
    """Users are addressed by ObjectId when possible and by their public `id` otherwise"""
    object_id = database.parse_object_id(user_id)
    return {"_id": object_id} if object_id is not None else {"id": user_id}


def slugify(value: str) -> str:
    slug = value.strip().lower().replace(" ", "-")
    return re.sub(r"[^a-z0-9-]", "", slug)


def _log_medal_activity(user_id: str, medal: dict) -> None:
    database.get_collection("user_activities").insert_one({
        "userId": user_id,
        "category": "medal",
        "activityId": medal["id"],
        "points": 0,
        "timestamp": utcnow(),
        "details": {"title": medal.get("name"), "medalId": medal["id"]},
    })


def check_action_based_medals(user_id: str, category: str, details: Optional[dict] = None) -> List[dict]:
    """
    Award every medal whose trigger matches the activity category and whose
    required count the user has now reached.

    Video and training activities are counted within the category of the
    triggering activity (details.category), and medals tied to another
    category are skipped. A video without a category awards nothing. A
    training without a category counts every training of the user.

    Returns:
        list: the newly awarded medal documents
    """
    trigger = TRIGGER_BY_CATEGORY.get(category)
    if trigger is None:
        return []

    query = {"userId": user_id, "category": category}
    filter_category = None
    if category in CATEGORY_SCOPED:
        filter_category = (details or {}).get("category")
        if filter_category:
            query["details.category"] = filter_category
        elif category == "video":
            logger.warning(f"Atividade de vídeo sem categoria para {user_id}; medalhas não verificadas")
            return []

    count = database.get_collection("user_activities").count_documents(query)
    owned = {
        um["medalId"]
        for um in database.get_collection("user_medals").find({"userId": user_id})
    }
    earned = []

    for medal in database.get_collection("medals").find({"triggerAction": trigger}):
        if medal["id"] in owned:
            continue
        if category in CATEGORY_SCOPED and medal.get("triggerCategory") \
                and medal["triggerCategory"] != filter_category:
            continue
        if count < (medal.get("requiredCount") or 1):
            continue

        database.get_collection("user_medals").insert_one(
            {"userId": user_id, "medalId": medal["id"], "dateEarned": utcnow()}
        )
        _log_medal_activity(user_id, medal)
        logger.info(f"Medalha '{medal['id']}' atribuída ao utilizador {user_id}")
        earned.append(database.serialize_doc(medal))

    return earned


def register_activity(user_id: str, category: str, activity_id: str, points: int,
                      details: Optional[dict] = None) -> Tuple[dict, List[dict]]:
    """Store an activity, add its points to the user and check medals"""
    activity = {
        "userId": user_id,
        "category": category,
        "activityId": activity_id,
        "points": int(points or 0),
        "timestamp": utcnow(),
        "details": details or {},
    }
    result = database.get_collection("user_activities").insert_one(activity)
    activity["_id"] = result.inserted_id

    database.get_collection("users").update_one(user_filter(user_id), {"$inc": {"points": activity["points"]}})
    logger.info(f"Atividade '{category}' registada para {user_id} (+{activity['points']} pontos)")

    new_medals = check_action_based_medals(user_id, category, details)
    return database.serialize_doc(activity), new_medals


def assign_medal(user_id: str, medal_id: str) -> Tuple[Optional[str], Optional[dict]]:
    """
    Manually award a medal.

    Returns:
        ("missing", None) when the medal does not exist,
        ("owned", medal) when the user already holds it,
        ("assigned", medal) otherwise
    """
    medal = database.get_collection("medals").find_one({"id": medal_id})
    if medal is None:
        return "missing", None

    user_medals = database.get_collection("user_medals")
    if user_medals.find_one({"userId": user_id, "medalId": medal_id}):
        return "owned", database.serialize_doc(medal)

    user_medals.insert_one({"userId": user_id, "medalId": medal_id, "dateEarned": utcnow()})
    _log_medal_activity(user_id, medal)
    logger.info(f"Medalha '{medal_id}' atribuída manualmente ao utilizador {user_id}")
    return "assigned", database.serialize_doc(medal)


def describe_activity(activity: dict) -> str:
    details = activity.get("details") or {}
    title = details.get("title") or details.get("name")
    template = DESCRIPTION_TEMPLATES.get(activity.get("category"))
    if template is None or not title:
        return "Atividade registada"
    return template.format(title=title)


def points_breakdown(user_id: str) -> List[dict]:
    pipeline = [
        {"$match": {"userId": user_id}},
        {"$group": {"_id": "$category", "points": {"$sum": "$points"}, "count": {"$sum": 1}}},
    ]
    totals = {row["_id"]: row for row in database.get_collection("user_activities").aggregate(pipeline)}

    breakdown = []
    for category, label in CATEGORY_LABELS.items():
        row = totals.get(category, {})
        breakdown.append({
            "category": category,
            "label": label,
            "points": row.get("points", 0),
            "count": row.get("count", 0),
            "color": CATEGORY_COLORS.get(category, DEFAULT_COLOR),
        })
    return breakdown


def user_ranking(user_id: str) -> Optional[dict]:
    users = list(database.get_collection("users").find({}, {"points": 1, "id": 1}))
    users.sort(key=lambda u: u.get("points", 0), reverse=True)

    for position, user in enumerate(users, start=1):
        if str(user["_id"]) == user_id or user.get("id") == user_id:
            return {"position": position, "totalUsers": len(users), "points": user.get("points", 0)}
    return None


def leaderboard() -> List[dict]:
    """All users ranked by points, then medal count, then name"""
    medals_by_id = {m["id"]: m for m in database.get_collection("medals").find({})}

    medals_by_user = {}
    for um in database.get_collection("user_medals").find({}).sort("dateEarned", -1):
        medal = medals_by_id.get(um["medalId"])
        if medal is not None:
            medals_by_user.setdefault(um["userId"], []).append(medal)

    entries = []
    for user in database.get_collection("users").find({}, {"password": 0}):
        user_id = str(user["_id"])
        user_medals = medals_by_user.get(user_id, [])
        entries.append({
            "userId": user_id,
            "name": user.get("name") or f"Utilizador {user_id[:5]}",
            "points": user.get("points", 0),
            "level": user.get("level", 1),
            "avatarUrl": user.get("avatarUrl"),
            "medalCount": len(user_medals),
            "topMedals": [
                {"id": m["id"], "name": m.get("name"), "imageSrc": m.get("imageSrc")}
                for m in user_medals[:LEADERBOARD_TOP_MEDALS]
            ],
        })

    entries.sort(key=lambda e: (-e["points"], -e["medalCount"], e["name"]))
    for rank, entry in enumerate(entries, start=1):
        entry["rank"] = rank
    return entries
