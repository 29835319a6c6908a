"""MongoProfileStore: Motor-backed profile storage.

Document layout (collection ``user_profiles`` by default)::

    {
        "_id": <identity_ref>,
        "email": "...",          # unique index
        "username": "...",       # unique index
        "full_name": "...",
        "phone": null,
        "role": "free",
        "reset_code": null,
        "reset_expiry": null,
        "tfa_secret": null,
        "tfa_enabled": false,
        "created_at": ...,
        "updated_at": ...
    }
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from ...domain.profile import UserProfile, normalize_identifier
from ...exceptions import DuplicateProfileError, PersistenceError, ProfileNotFoundError
from ...ports import IProfileStore

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorCollection

    from .connection import MongoConnectionManager

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = "user_profiles"
UNIQUE_INDEXES = {"uniq_email": "email", "uniq_username": "username"}


def to_document(profile: UserProfile) -> dict[str, Any]:
    doc = profile.model_dump()
    doc["_id"] = doc.pop("identity_ref")
    return doc


def from_document(doc: dict[str, Any]) -> UserProfile:
    data = dict(doc)
    data["identity_ref"] = data.pop("_id")
    return UserProfile.model_validate(data)


def duplicate_field(exc: DuplicateKeyError) -> str | None:
    """Name of the profile field whose unique index *exc* violated."""
    details = exc.details or {}
    keys = details.get("keyPattern") or details.get("keyValue") or {}
    if keys:
        field = next(iter(keys))
        return "identity_ref" if field == "_id" else field

    message = str(exc)
    for index_name, field in UNIQUE_INDEXES.items():
        if index_name in message or f"{field}_1" in message:
            return field
    if "_id_" in message:
        return "identity_ref"
    return None


class MongoProfileStore(IProfileStore):
    """``IProfileStore`` on MongoDB via Motor.

    Uniqueness is enforced by the ``_id`` key and the unique indexes created
    by :meth:`ensure_indexes`, which must run once at startup.
    """

    def __init__(
        self,
        connection: MongoConnectionManager,
        database: str,
        collection: str = DEFAULT_COLLECTION,
    ) -> None:
        self.connection = connection
        self.database = database
        self.collection_name = collection

    @property
    def collection(self) -> AsyncIOMotorCollection[Any]:
        return self.connection.database(self.database).get_collection(self.collection_name)

    async def ensure_indexes(self) -> list[str]:
        """Create the unique email and username indexes. Idempotent."""
        names = []
        for index_name, field in UNIQUE_INDEXES.items():
            names.append(
                await self.collection.create_index(
                    [(field, ASCENDING)], name=index_name, unique=True
                )
            )
        return names

    async def _find_one(self, query: dict[str, Any]) -> UserProfile | None:
        try:
            doc = await self.collection.find_one(query)
        except PyMongoError as exc:
            raise PersistenceError(f"Profile lookup failed: {exc}") from exc
        return from_document(doc) if doc else None

    async def find_by_identity_ref(self, identity_ref: str) -> UserProfile | None:
        return await self._find_one({"_id": identity_ref})

    async def find_by_email(self, email: str) -> UserProfile | None:
        return await self._find_one({"email": normalize_identifier(email)})

    async def exists_by_username(self, username: str) -> bool:
        try:
            count = await self.collection.count_documents(
                {"username": normalize_identifier(username)}, limit=1
            )
        except PyMongoError as exc:
            raise PersistenceError(f"Username lookup failed: {exc}") from exc
        return count > 0

    async def insert(self, profile: UserProfile) -> UserProfile:
        try:
            await self.collection.insert_one(to_document(profile))
        except DuplicateKeyError as exc:
            field = duplicate_field(exc)
            logger.debug("Duplicate profile on %s", field or "unknown index")
            raise DuplicateProfileError(field) from exc
        except PyMongoError as exc:
            raise PersistenceError(f"Profile insert failed: {exc}") from exc
        return profile

    async def update_by_identity_ref(
        self, identity_ref: str, fields: dict[str, Any]
    ) -> UserProfile:
        current = await self.find_by_identity_ref(identity_ref)
        if current is None:
            raise ProfileNotFoundError(identity_ref)

        # Validated against the current profile, but only the requested keys
        # are written so concurrent updates to other fields survive.
        data = current.with_changes(fields).model_dump()
        changes = {
            key: data[key]
            for key in (*fields, "updated_at")
            if key in data and key != "identity_ref"
        }
        try:
            doc = await self.collection.find_one_and_update(
                {"_id": identity_ref},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as exc:
            raise DuplicateProfileError(duplicate_field(exc)) from exc
        except PyMongoError as exc:
            raise PersistenceError(f"Profile update failed: {exc}") from exc

        if doc is None:
            raise ProfileNotFoundError(identity_ref)
        return from_document(doc)


__all__: list[str] = [
    "DEFAULT_COLLECTION",
    "MongoProfileStore",
    "duplicate_field",
    "from_document",
    "to_document",
]
