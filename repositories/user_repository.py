"""
Async repository for the `users` collection.

Every method re-reads or conditionally writes MongoDB; nothing is cached in
process, so cooldown and code checks always see the latest stored state.

Field names used in queries are the camelCase storage keys of UserDoc.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection

from schemas.models.user import LoginEvent, UserDoc

_PENDING_CODE_CLEARED = {
    "verificationCode": None,
    "verificationCodeExpire": None,
}


def _as_object_id(user_id: Any) -> ObjectId:
    return user_id if isinstance(user_id, ObjectId) else ObjectId(str(user_id))


class UserRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("email", ASCENDING)], unique=True)
        # Store-native TTL sweep of abandoned signups. Verified accounts have
        # unverifiedExpire = null and are never matched.
        await self._col.create_index(
            [("unverifiedExpire", ASCENDING)],
            expireAfterSeconds=0,
            partialFilterExpression={"isVerified": False},
            name="unverified_expire_ttl",
        )

    # ── Reads ────────────────────────────────────────────────────────────────

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        doc = await self._col.find_one({"email": email})
        return UserDoc.from_mongo(doc)

    async def find_by_id(self, user_id: Any) -> Optional[UserDoc]:
        try:
            oid = _as_object_id(user_id)
        except (InvalidId, TypeError):
            return None
        doc = await self._col.find_one({"_id": oid})
        return UserDoc.from_mongo(doc)

    # ── Writes ───────────────────────────────────────────────────────────────

    async def insert(self, user: UserDoc) -> ObjectId:
        """Insert *user*; raises pymongo DuplicateKeyError on an existing email."""
        result = await self._col.insert_one(user.to_mongo())
        return result.inserted_id

    async def update_fields(self, user_id: Any, fields: dict) -> Optional[UserDoc]:
        """``$set`` *fields* (storage keys) and return the updated document."""
        doc = await self._col.find_one_and_update(
            {"_id": _as_object_id(user_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)

    async def clear_pending_code(self, user_id: Any) -> None:
        await self._col.update_one(
            {"_id": _as_object_id(user_id)}, {"$set": dict(_PENDING_CODE_CLEARED)}
        )

    async def delete_by_id(self, user_id: Any) -> bool:
        result = await self._col.delete_one({"_id": _as_object_id(user_id)})
        return result.deleted_count == 1

    async def consume_verification_code(
        self,
        email: str,
        code: str,
        now: datetime,
        event: LoginEvent,
        history_limit: int,
    ) -> Optional[UserDoc]:
        """Atomically redeem *code* for *email* if it has not expired.

        The match on the code itself makes the redemption single-use: a second
        call with the same code finds verificationCode already null.
        """
        doc = await self._col.find_one_and_update(
            {
                "email": email,
                "verificationCode": code,
                "verificationCodeExpire": {"$gt": now},
            },
            {
                "$set": {
                    **_PENDING_CODE_CLEARED,
                    "unverifiedExpire": None,
                    "isVerified": True,
                },
                "$push": {
                    "loginHistory": {
                        "$each": [event.model_dump()],
                        "$position": 0,
                        "$slice": history_limit,
                    }
                },
            },
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)

    # ── Maintenance ──────────────────────────────────────────────────────────

    async def delete_expired_unverified(self, now: datetime) -> int:
        result = await self._col.delete_many(
            {
                "isVerified": False,
                "unverifiedExpire": {"$exists": True, "$ne": None, "$lt": now},
            }
        )
        return result.deleted_count

    async def set_field_by_email(self, email: str, field: str, value: Any) -> bool:
        result = await self._col.update_one({"email": email}, {"$set": {field: value}})
        return result.matched_count == 1

    async def set_field_on_all(self, field: str, value: Any) -> int:
        result = await self._col.update_many({}, {"$set": {field: value}})
        return result.modified_count

    async def set_field_where_missing(self, field: str, value: Any) -> int:
        result = await self._col.update_many(
            {field: {"$exists": False}}, {"$set": {field: value}}
        )
        return result.modified_count
