# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Business logic for groups, including rename cascading into members."""
from typing import List, Optional

from member_directory.core.errors import Conflict, NotFound, ValidationError
from member_directory.core.logging import get_logger
from member_directory.metrics import GROUP_OPERATIONS
from member_directory.models.domain import Group
from member_directory.repositories.base import GroupRepository, MemberRepository
from member_directory.services.mirror import mirror_failures

logger = get_logger(__name__)


class GroupService:
    def __init__(self, groups: GroupRepository, members: MemberRepository,
                 mirror: Optional[MemberRepository] = None):
        self._groups = groups
        self._members = members
        self._mirror = mirror

    def list_groups(self) -> List[Group]:
        return self._groups.list_groups()

    def list_group_names(self) -> List[str]:
        return sorted(g.name for g in self._groups.list_groups())

    def create_group(self, name: str) -> Group:
        name = (name or "").strip()
        if not name:
            raise ValidationError("name is required")
        if self._groups.find_by_name(name):
            raise Conflict("Group already exists")
        group = self._groups.create(name)
        GROUP_OPERATIONS.labels(operation="create").inc()
        logger.info("Group created id=%s name=%s", group.id, name)
        return group

    def rename_group(self, old_name: str, new_name: str) -> int:
        old_name = (old_name or "").strip()
        new_name = (new_name or "").strip()
        if not old_name or not new_name:
            raise ValidationError("oldName and newName are required")
        if old_name == new_name:
            if self._groups.find_by_name(old_name) is None:
                raise NotFound("group not found")
            return 0
        if self._groups.find_by_name(new_name):
            raise Conflict("Group already exists")
        if not self._groups.rename(old_name, new_name):
            raise NotFound("group not found")

        touched = self._members.rename_group(old_name, new_name)
        if self._mirror is not None:
            with mirror_failures("rename_group", f"{old_name} -> {new_name}"):
                self._mirror.rename_group(old_name, new_name)
        GROUP_OPERATIONS.labels(operation="rename").inc()
        logger.info("Group renamed %s -> %s (%d members updated)", old_name, new_name, touched)
        return touched

    def update_group(self, group_id: str, name: str) -> int:
        group = self._get(group_id)
        if not (name or "").strip():
            raise ValidationError("name is required")
        return self.rename_group(group.name, name)

    def delete_group(self, group_id: str) -> None:
        group = self._get(group_id)
        in_use = self._members.count_with_group(group.name)
        if in_use > 0:
            raise Conflict(f"Group is in use by {in_use} user(s)")
        self._groups.delete(group_id)
        GROUP_OPERATIONS.labels(operation="delete").inc()
        logger.info("Group deleted id=%s name=%s", group_id, group.name)

    def _get(self, group_id: str) -> Group:
        group_id = (group_id or "").strip()
        if not self._groups.is_valid_id(group_id):
            raise ValidationError("invalid id")
        group = self._groups.get(group_id)
        if group is None:
            raise NotFound("group not found")
        return group
