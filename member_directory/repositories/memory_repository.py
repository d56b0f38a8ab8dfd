# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""In-memory stores for local development (STORE_BACKEND=memory) and tests."""
import re
import uuid
from typing import Dict, Iterable, List, Optional

from member_directory.core.errors import Conflict
from member_directory.models.domain import Group, Member, normalize_email
from member_directory.repositories.base import CREATED, UPDATED, scan_for_key

_ID_RE = re.compile(r"^[0-9a-f]{32}$")


class InMemoryMemberRepository:
    def __init__(self, members: Iterable[Member] = ()):
        self._members: Dict[str, Member] = {}  # email → member, insertion order
        for m in members:
            self.upsert(m)

    def list_members(self) -> List[Member]:
        return sorted(self._members.values(), key=lambda m: m.name)

    def find_by_email(self, email: str) -> Optional[Member]:
        return self._members.get(normalize_email(email))

    def find_by_key(self, key: str, deriver) -> Optional[Member]:
        email = scan_for_key(list(self._members), key, deriver)
        return self._members.get(email) if email else None

    def upsert(self, member: Member) -> str:
        email = normalize_email(member.email)
        mode = UPDATED if email in self._members else CREATED
        self._members[email] = member.model_copy(update={"email": email})
        return mode

    def rename_group(self, old_name: str, new_name: str) -> int:
        touched = 0
        for email, m in self._members.items():
            if old_name in m.groups:
                groups = [new_name if g == old_name else g for g in m.groups]
                self._members[email] = m.model_copy(update={"groups": groups})
                touched += 1
        return touched

    def count_with_group(self, name: str) -> int:
        return sum(1 for m in self._members.values() if name in m.groups)

    def verify_connection(self) -> int:
        return len(self._members)


class InMemoryGroupRepository:
    def __init__(self, names: Iterable[str] = ()):
        self._groups: Dict[str, str] = {}  # id → name
        for name in names:
            self.create(name)

    def list_groups(self) -> List[Group]:
        return sorted((Group(id=i, name=n) for i, n in self._groups.items()), key=lambda g: g.name)

    def is_valid_id(self, group_id: str) -> bool:
        return bool(_ID_RE.match(group_id or ""))

    def get(self, group_id: str) -> Optional[Group]:
        name = self._groups.get(group_id)
        return Group(id=group_id, name=name) if name is not None else None

    def find_by_name(self, name: str) -> Optional[Group]:
        for gid, n in self._groups.items():
            if n == name:
                return Group(id=gid, name=n)
        return None

    def existing_names(self, names: Iterable[str]) -> set:
        wanted = set(names)
        return {n for n in self._groups.values() if n in wanted}

    def create(self, name: str) -> Group:
        if self.find_by_name(name):
            raise Conflict("Group already exists")
        gid = uuid.uuid4().hex
        self._groups[gid] = name
        return Group(id=gid, name=name)

    def rename(self, old_name: str, new_name: str) -> bool:
        group = self.find_by_name(old_name)
        if group is None:
            return False
        self._groups[group.id] = new_name
        return True

    def delete(self, group_id: str) -> bool:
        return self._groups.pop(group_id, None) is not None
