# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Business logic for members: modification links, create, key-based modify."""
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from member_directory.core.errors import AccessDenied, Conflict, NotFound, ValidationError
from member_directory.core.logging import get_logger
from member_directory.metrics import MEMBER_WRITES, MOD_LINKS_ISSUED
from member_directory.models.domain import Member, normalize_email
from member_directory.repositories.base import GroupRepository, MemberRepository
from member_directory.services.access_resolver import DENIED, EXISTING, AccessResolver
from member_directory.services.key_deriver import KeyDeriver
from member_directory.services.mirror import mirror_failures

logger = get_logger(__name__)


class MemberService:
    def __init__(self, store: MemberRepository, groups: GroupRepository,
                 deriver: KeyDeriver, public_base_url: str = "",
                 modify_path: str = "/modifyRecord",
                 mirror: Optional[MemberRepository] = None):
        self._store = store
        self._groups = groups
        self._deriver = deriver
        self._resolver = AccessResolver(store, deriver)
        self._base_url = public_base_url
        self._modify_path = modify_path
        self._mirror = mirror

    # ── Links ──────────────────────────────────────────────────────────

    def issue_mod_link(self, email: Optional[str], source: Any = None,
                       wp_user: Any = None) -> Dict[str, str]:
        email = normalize_email(email)
        if not email:
            raise ValidationError("email is required")
        key = self._deriver.derive(email)
        link = f"{self._base_url}{self._modify_path}?key={quote(key, safe='')}"
        MOD_LINKS_ISSUED.inc()
        logger.info("Modification link issued email=%s source=%s wp_user=%s", email, source, wp_user)
        return {"key": key, "link": link}

    # ── Read ───────────────────────────────────────────────────────────

    def list_members(self) -> List[Member]:
        return sorted(self._store.list_members(), key=lambda m: m.name)

    def get_member_by_key(self, key: str) -> Member:
        decision = self._resolver.resolve(key)
        if decision.outcome != EXISTING:
            raise NotFound("User not found for this key")
        return decision.member

    # ── Write ──────────────────────────────────────────────────────────

    def create_member(self, member: Member) -> str:
        self._check_groups(member.groups)
        if self._store.find_by_email(member.email) is not None:
            raise Conflict("Email already exists")
        return self._write(member, operation="create")

    def modify_member(self, key: str, member: Member) -> str:
        decision = self._resolver.resolve(key, claimed_email=member.email)
        if decision.outcome == DENIED:
            logger.warning("Modify rejected: key matches no member (claimed=%s)", member.email)
            raise AccessDenied("Invalid key")
        self._check_groups(member.groups)
        bound = member.model_copy(update={"email": decision.email})
        operation = "modify" if decision.outcome == EXISTING else "provision"
        return self._write(bound, operation=operation)

    def _check_groups(self, groups: List[str]) -> None:
        known = self._groups.existing_names(groups)
        missing = [g for g in groups if g not in known]
        if missing:
            raise ValidationError(f"Unknown groups: {', '.join(missing)}")

    def _write(self, member: Member, operation: str) -> str:
        mode = self._store.upsert(member)
        MEMBER_WRITES.labels(operation=operation, mode=mode).inc()
        logger.info("Member %s email=%s mode=%s", operation, member.email, mode)
        if self._mirror is not None:
            with mirror_failures("upsert", member.email):
                self._mirror.upsert(member)
        return mode
