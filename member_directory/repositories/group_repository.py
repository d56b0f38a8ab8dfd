# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for groups stored in MongoDB (collection ``groups``)."""
from typing import Iterable, List, Optional

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from member_directory.core.errors import Conflict
from member_directory.models.domain import Group
from member_directory.repositories.member_repository import mongo_errors

COLLECTION = "groups"


def _to_group(doc) -> Group:
    return Group(id=str(doc["_id"]), name=str(doc.get("name") or "").strip())


class MongoGroupRepository:
    def __init__(self, db: Database):
        self._groups = db[COLLECTION]

    def ensure_indexes(self) -> None:
        with mongo_errors("create_index"):
            self._groups.create_index([("name", ASCENDING)], unique=True)

    def list_groups(self) -> List[Group]:
        with mongo_errors("list_groups"):
            docs = list(self._groups.find({}, {"name": 1}).sort("name", ASCENDING))
        return [g for g in map(_to_group, docs) if g.name]

    def is_valid_id(self, group_id: str) -> bool:
        return ObjectId.is_valid(group_id or "")

    def get(self, group_id: str) -> Optional[Group]:
        with mongo_errors("get_group"):
            doc = self._groups.find_one({"_id": ObjectId(group_id)})
        return _to_group(doc) if doc else None

    def find_by_name(self, name: str) -> Optional[Group]:
        with mongo_errors("find_group"):
            doc = self._groups.find_one({"name": name})
        return _to_group(doc) if doc else None

    def existing_names(self, names: Iterable[str]) -> set:
        with mongo_errors("existing_groups"):
            docs = self._groups.find({"name": {"$in": list(names)}}, {"name": 1})
            return {d["name"] for d in docs}

    def create(self, name: str) -> Group:
        with mongo_errors("create_group"):
            try:
                result = self._groups.insert_one({"name": name})
            except DuplicateKeyError:
                raise Conflict("Group already exists")
        return Group(id=str(result.inserted_id), name=name)

    def rename(self, old_name: str, new_name: str) -> bool:
        with mongo_errors("rename_group"):
            try:
                result = self._groups.update_one({"name": old_name}, {"$set": {"name": new_name}})
            except DuplicateKeyError:
                raise Conflict("Group already exists")
        return result.matched_count > 0

    def delete(self, group_id: str) -> bool:
        with mongo_errors("delete_group"):
            result = self._groups.delete_one({"_id": ObjectId(group_id)})
        return result.deleted_count > 0
