# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for members stored in MongoDB (collection ``users``)."""
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import List, Optional

from pymongo import ASCENDING
from pymongo.database import Database
from pymongo.errors import PyMongoError

from member_directory.core.errors import UpstreamError
from member_directory.core.logging import get_logger
from member_directory.models.domain import Member, normalize_email
from member_directory.repositories.base import CREATED, UPDATED

logger = get_logger(__name__)

COLLECTION = "users"
PROJECTION = {"_id": 0, "name": 1, "lawFirm": 1, "email": 1, "phone": 1, "country": 1, "groups": 1}


@contextmanager
def mongo_errors(operation: str):
    try:
        yield
    except PyMongoError as exc:
        logger.error("MongoDB %s failed: %s", operation, exc)
        raise UpstreamError(f"Document store error during {operation}") from exc


class MongoMemberRepository:
    def __init__(self, db: Database):
        self._users = db[COLLECTION]

    def ensure_indexes(self) -> None:
        with mongo_errors("create_index"):
            self._users.create_index([("email", ASCENDING)], unique=True)

    # ── Read ───────────────────────────────────────────────────────────

    def list_members(self) -> List[Member]:
        with mongo_errors("list_members"):
            docs = list(self._users.find({}, PROJECTION).sort("name", ASCENDING))
        return [Member.from_document(d) for d in docs]

    def find_by_email(self, email: str) -> Optional[Member]:
        with mongo_errors("find_by_email"):
            doc = self._users.find_one({"email": normalize_email(email)}, PROJECTION)
        return Member.from_document(doc) if doc else None

    def find_by_key(self, key: str, deriver) -> Optional[Member]:
        with mongo_errors("find_by_key"):
            for doc in self._users.find({}, PROJECTION):
                email = normalize_email(doc.get("email"))
                if email and deriver.matches(email, key):
                    return Member.from_document(doc)
        return None

    def count_with_group(self, name: str) -> int:
        with mongo_errors("count_with_group"):
            return self._users.count_documents({"groups": name})

    def verify_connection(self) -> int:
        with mongo_errors("ping"):
            self._users.database.command("ping")
            return self._users.estimated_document_count()

    # ── Write ──────────────────────────────────────────────────────────

    def upsert(self, member: Member) -> str:
        now = datetime.now(timezone.utc)
        doc = member.to_document()
        doc["email"] = normalize_email(doc["email"])
        doc["updatedAt"] = now
        with mongo_errors("upsert"):
            result = self._users.update_one(
                {"email": doc["email"]},
                {"$set": doc, "$setOnInsert": {"createdAt": now}},
                upsert=True,
            )
        return CREATED if result.upserted_id is not None else UPDATED

    def rename_group(self, old_name: str, new_name: str) -> int:
        with mongo_errors("rename_group"):
            result = self._users.update_many(
                {"groups": old_name},
                {"$set": {"groups.$[g]": new_name}},
                array_filters=[{"g": old_name}],
            )
        return result.modified_count
