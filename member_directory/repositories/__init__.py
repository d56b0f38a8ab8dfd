# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Repository package."""
from member_directory.repositories.base import GroupRepository, MemberRepository
from member_directory.repositories.memory_repository import InMemoryGroupRepository, InMemoryMemberRepository

__all__ = ["GroupRepository", "MemberRepository", "InMemoryGroupRepository", "InMemoryMemberRepository"]
