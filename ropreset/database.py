"""MongoDB collections used by the service, and their indexes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pymongo import ASCENDING, IndexModel, MongoClient

__all__ = ["Collections", "create_indexes", "connect_mongodb"]

CONNECT_TIMEOUT_MS = 20_000


@dataclass(frozen=True)
class Collections:
    """Handles to every collection the service uses."""

    users: Any
    authorization_codes: Any
    refresh_tokens: Any
    ro_presets: Any
    ro_presets_for_summary: Any
    preset_tags: Any
    friends: Any


_INDEXES: dict[str, list[IndexModel]] = {
    "users": [
        IndexModel([("email", ASCENDING)], unique=True),
        IndexModel([("name", ASCENDING)], unique=True),
    ],
    "authorization_codes": [
        IndexModel([("code", ASCENDING)]),
    ],
    "ro_presets": [
        IndexModel([("id", ASCENDING)]),
        IndexModel([("user_id", ASCENDING)]),
    ],
    "preset_tags": [
        IndexModel([("tag", ASCENDING), ("class_id", ASCENDING)]),
        IndexModel([("preset_id", ASCENDING)]),
        IndexModel([("preset_id", ASCENDING), ("tag", ASCENDING)], unique=True),
        IndexModel([("total_like", ASCENDING), ("created_at", ASCENDING)]),
    ],
    "friends": [
        IndexModel([("episode", ASCENDING), ("season", ASCENDING)], unique=True),
    ],
}


def create_indexes(database: Any) -> Collections:
    """Ensure the indexes of every collection exist and return the collections.

    Raises RuntimeError naming the collection whose indexes could not be made.
    """
    for name, models in _INDEXES.items():
        try:
            database[name].create_indexes(models)
        except Exception as exc:
            raise RuntimeError(f"index {name}: {exc}") from exc

    return Collections(
        users=database["users"],
        authorization_codes=database["authorization_codes"],
        refresh_tokens=database["refresh_tokens"],
        ro_presets=database["ro_presets"],
        # The summary reads from the authorization code collection.
        ro_presets_for_summary=database["authorization_codes"],
        preset_tags=database["preset_tags"],
        friends=database["friends"],
    )


def connect_mongodb(connection_str: str, db_name: str) -> Collections:
    """Connect to MongoDB, prepare the indexes and return the collections."""
    client = MongoClient(connection_str, serverSelectionTimeoutMS=CONNECT_TIMEOUT_MS)
    return create_indexes(client[db_name])