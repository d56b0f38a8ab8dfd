# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Dependency wiring.

Stores and services are built once at process start by ``build_container`` and
kept on ``app.state.container``; route handlers receive them through the
``get_*`` FastAPI dependencies.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from fastapi import Request

from member_directory.core.config import Settings
from member_directory.core.errors import ConfigurationError
from member_directory.core.logging import get_logger
from member_directory.repositories.base import GroupRepository, MemberRepository
from member_directory.repositories.memory_repository import InMemoryGroupRepository, InMemoryMemberRepository
from member_directory.services.group_service import GroupService
from member_directory.services.key_deriver import KeyDeriver
from member_directory.services.member_service import MemberService

logger = get_logger(__name__)

MEMBER_BACKENDS = ("mongo", "sheet", "memory")
GROUP_BACKENDS = ("mongo", "memory")


@dataclass
class Container:
    members: MemberRepository
    groups: GroupRepository
    member_service: MemberService
    group_service: GroupService
    mirror: Optional[MemberRepository] = None
    closers: List[Callable[[], Any]] = field(default_factory=list)

    def startup(self) -> None:
        for repo in (self.members, self.groups):
            ensure = getattr(repo, "ensure_indexes", None)
            if ensure is not None:
                ensure()

    def close(self) -> None:
        for close in self.closers:
            close()


def assemble(members: MemberRepository, groups: GroupRepository, cfg: Settings,
             mirror: Optional[MemberRepository] = None) -> Container:
    deriver = KeyDeriver(cfg.MOD_LINK_SECRET, cfg.MOD_KEY_LENGTH)
    member_service = MemberService(
        members, groups, deriver,
        public_base_url=cfg.PUBLIC_BASE_URL,
        modify_path=cfg.CLIENT_MODIFY_PATH,
        mirror=mirror,
    )
    group_service = GroupService(groups, members, mirror=mirror)
    return Container(members, groups, member_service, group_service, mirror=mirror)


def build_container(cfg: Settings) -> Container:
    if cfg.STORE_BACKEND not in MEMBER_BACKENDS:
        raise ConfigurationError(f"STORE_BACKEND must be one of {MEMBER_BACKENDS}")
    if cfg.GROUP_BACKEND not in GROUP_BACKENDS:
        raise ConfigurationError(f"GROUP_BACKEND must be one of {GROUP_BACKENDS}")

    closers: List[Callable[[], Any]] = []
    db = None
    if "mongo" in (cfg.STORE_BACKEND, cfg.GROUP_BACKEND):
        from member_directory.core.database import create_mongo_client, get_database
        client = create_mongo_client(cfg)
        closers.append(client.close)
        db = get_database(client, cfg)

    if cfg.STORE_BACKEND == "mongo":
        from member_directory.repositories.member_repository import MongoMemberRepository
        members = MongoMemberRepository(db)
    elif cfg.STORE_BACKEND == "sheet":
        members = _sheet_repository(cfg)
    else:
        members = InMemoryMemberRepository()

    if cfg.GROUP_BACKEND == "mongo":
        from member_directory.repositories.group_repository import MongoGroupRepository
        groups = MongoGroupRepository(db)
    else:
        groups = InMemoryGroupRepository()

    mirror = None
    if cfg.SHEET_MIRROR and cfg.STORE_BACKEND != "sheet":
        mirror = _sheet_repository(cfg)

    container = assemble(members, groups, cfg, mirror=mirror)
    container.closers.extend(closers)
    logger.info(
        "Stores ready members=%s groups=%s sheet_mirror=%s",
        cfg.STORE_BACKEND, cfg.GROUP_BACKEND, mirror is not None,
    )
    return container


def _sheet_repository(cfg: Settings) -> MemberRepository:
    from member_directory.core.sheets import open_worksheet
    from member_directory.repositories.sheet_repository import SheetMemberRepository
    return SheetMemberRepository(open_worksheet(cfg))


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_member_service(request: Request) -> MemberService:
    return get_container(request).member_service


def get_group_service(request: Request) -> GroupService:
    return get_container(request).group_service


def get_member_repo(request: Request) -> MemberRepository:
    return get_container(request).members
