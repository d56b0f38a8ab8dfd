# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Storage interfaces shared by the MongoDB, Google Sheets and in-memory adapters."""
from typing import Iterable, List, Optional, Protocol

from member_directory.models.domain import Group, Member, normalize_email

CREATED = "created"
UPDATED = "updated"


class MemberRepository(Protocol):
    def list_members(self) -> List[Member]: ...

    def find_by_email(self, email: str) -> Optional[Member]: ...

    def find_by_key(self, key: str, deriver) -> Optional[Member]: ...

    def upsert(self, member: Member) -> str: ...

    def rename_group(self, old_name: str, new_name: str) -> int: ...

    def count_with_group(self, name: str) -> int: ...

    def verify_connection(self) -> int: ...


class GroupRepository(Protocol):
    def list_groups(self) -> List[Group]: ...

    def is_valid_id(self, group_id: str) -> bool: ...

    def get(self, group_id: str) -> Optional[Group]: ...

    def find_by_name(self, name: str) -> Optional[Group]: ...

    def existing_names(self, names: Iterable[str]) -> set: ...

    def create(self, name: str) -> Group: ...

    def rename(self, old_name: str, new_name: str) -> bool: ...

    def delete(self, group_id: str) -> bool: ...


def scan_for_key(emails: Iterable[str], key: str, deriver) -> Optional[str]:
    """Linear scan: first stored email whose derived key equals ``key``."""
    for raw in emails:
        email = normalize_email(raw)
        if email and deriver.matches(email, key):
            return email
    return None
